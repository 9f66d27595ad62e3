"""
Bid Scraper: aggregates procurement solicitations from vendor portals.
"""

__version__ = "0.1.0"
