"""
Applications
"""
