"""
Transformation Module

Cleaning, category normalization, merge planning, waterfall resolution and
dashboard aggregations.
"""
