"""
Auction house commands
"""
