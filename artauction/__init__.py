"""
Art auction house engine
"""
