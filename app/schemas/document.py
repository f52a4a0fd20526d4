"""
Document and section schemas for API request models.
"""
import uuid
from typing import Optional, List
from pydantic import Field, validator
import bleach

from app.schemas.base import CamelModel


class DocumentCreate(CamelModel):
    """Schema for creating a new document."""
    filename: str = Field(..., min_length=1, max_length=255, description="Document file name")
    metadata: dict = Field(default_factory=dict, description="Case information and other document metadata")

    @validator('filename')
    def validate_filename(cls, v):
        """Validate and sanitize file name."""
        if not v or len(v.strip()) == 0:
            raise ValueError('Filename cannot be empty')
        return bleach.clean(v.strip(), tags=[], strip=True)


class SectionCreate(CamelModel):
    """Schema for adding a section to a document."""
    section_type: str = Field(..., min_length=1, max_length=100, description="Section type, e.g. 'liability'")
    content: str = Field(default="", description="Section content")
    order: Optional[int] = Field(None, ge=0, description="Position; appended at the end when omitted")
    is_generated: bool = Field(default=False, description="Whether the content was produced by generation")
    metadata: dict = Field(default_factory=dict, description="Section metadata")


class SectionUpdate(CamelModel):
    """Schema for updating an existing section."""
    content: Optional[str] = Field(None, description="Section content")
    order: Optional[int] = Field(None, ge=0, description="Position")
    is_generated: Optional[bool] = Field(None, description="Whether the content was produced by generation")
    metadata: Optional[dict] = Field(None, description="Section metadata")


class SectionReorderRequest(CamelModel):
    """Schema for reordering all sections of a document."""
    section_ids: List[uuid.UUID] = Field(..., min_length=1, description="Section ids in their new order")

    @validator('section_ids')
    def validate_unique(cls, v):
        """Reject duplicate ids."""
        if len(set(v)) != len(v):
            raise ValueError('Section ids must be unique')
        return v
