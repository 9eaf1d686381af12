"""
Serving Module

HTTP surface of the merchandising analytics service.
"""
