"""
Auction house application services
"""
