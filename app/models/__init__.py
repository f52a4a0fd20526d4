"""
Database models package.
"""
from .document import Document, DocumentSection, DocumentStatus
from .version import ChangeType, DocumentVersion, DocumentPointerState, SectionVersion

__all__ = [
    # Live document models
    "Document",
    "DocumentSection",
    "DocumentStatus",

    # Version history models
    "ChangeType",
    "DocumentVersion",
    "DocumentPointerState",
    "SectionVersion",
]
