"""
Persistence layer for bids and portal credentials.
"""
