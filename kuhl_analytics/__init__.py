"""
KÜHL Merchandising Analytics

Product, sales, pricing and cost reconciliation service.
"""

__version__ = "1.0.0"
