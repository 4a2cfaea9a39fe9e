"""
Auction house domain model
"""
