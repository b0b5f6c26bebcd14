"""Structural validation of snapshots.

Usage:
    from schema_differ.validation import validate, ErrorCode, ValidationResult
"""

from schema_differ.validation.models import ErrorCode, ValidationResult
from schema_differ.validation.validator import validate

__all__ = ["validate", "ErrorCode", "ValidationResult"]
