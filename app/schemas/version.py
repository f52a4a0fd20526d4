"""
Version history schemas for API request/response models.
"""
from datetime import datetime
from typing import Optional, List
import uuid
from pydantic import Field, validator
import bleach

from app.models.version import ChangeType
from app.schemas.base import CamelModel


class VersionCreate(CamelModel):
    """Schema for recording a new document version."""
    change_type: ChangeType = Field(default=ChangeType.UPDATE, description="Kind of change being recorded")
    change_summary: Optional[str] = Field(None, max_length=500, description="Summary of changes made")
    section_id: Optional[uuid.UUID] = Field(None, description="Section the change was scoped to")

    @validator('change_summary')
    def validate_change_summary(cls, v):
        """Validate and sanitize change summary."""
        if v is not None:
            v = bleach.clean(v.strip(), tags=[], strip=True)
            return v or None
        return v


class VersionRestoreRequest(CamelModel):
    """Schema for restoring a document version."""
    change_summary: Optional[str] = Field(None, max_length=500, description="Summary for the restoration")

    @validator('change_summary')
    def validate_change_summary(cls, v):
        """Validate and sanitize change summary."""
        if v is not None:
            v = bleach.clean(v.strip(), tags=[], strip=True)
            return v or None
        return v


class VersionSummaryResponse(CamelModel):
    """Schema for a version entry in the history list."""
    id: uuid.UUID
    version_number: int
    author_id: uuid.UUID
    change_type: ChangeType
    change_summary: Optional[str] = None
    section_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None


class VersionDetailResponse(VersionSummaryResponse):
    """Schema for a single version including its snapshot."""
    document_id: uuid.UUID
    snapshot: dict


class VersionListResponse(CamelModel):
    """Schema for the version history of a document."""
    versions: List[VersionSummaryResponse]
    current_version: int


class VersionStatusResponse(CamelModel):
    """Schema for undo/redo availability."""
    current_version: int
    can_undo: bool
    can_redo: bool
    previous_version: Optional[int] = None
    next_version: Optional[int] = None
    head_version: int
    max_reachable_version: int


class UndoRedoResponse(CamelModel):
    """Schema for the result of an undo or redo."""
    success: bool = True
    message: str
    current_version: int
    snapshot: dict


class SectionVersionCreate(CamelModel):
    """Schema for recording a section content version."""
    change_type: ChangeType = Field(default=ChangeType.UPDATE, description="Kind of change being recorded")


class SectionVersionResponse(CamelModel):
    """Schema for a section content version."""
    id: uuid.UUID
    section_id: uuid.UUID
    version_number: int
    author_id: uuid.UUID
    content: str
    change_type: ChangeType
    created_at: Optional[datetime] = None
