"""
Real-time, multi-floor art auction house
"""
