"""
Data Quality Module

Batch checks that run on every import before anything is written.
"""
from .validators import DataValidator, ValidationResult, validate_records

__all__ = ["DataValidator", "ValidationResult", "validate_records"]
