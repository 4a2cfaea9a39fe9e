"""
Core infrastructure shared across the application
"""
