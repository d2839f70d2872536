# Data models module
from field_identifier.models.enums import IdentificationStatus

__all__ = [
    "IdentificationStatus",
]
