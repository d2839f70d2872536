"""
Enumerations for the identification service.

These enums provide type safety and clear documentation of valid values.
"""

from enum import Enum


class IdentificationStatus(str, Enum):
    """Species identification state of a capture."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
