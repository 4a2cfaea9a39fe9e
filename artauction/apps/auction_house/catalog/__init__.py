"""
External artwork catalog integration
"""
