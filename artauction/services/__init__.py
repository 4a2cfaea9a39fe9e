"""
Infrastructure services
"""
