"""
Response schemas for document endpoints.
"""
import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import Field

from app.models.document import DocumentStatus
from app.schemas.base import CamelModel


class SectionResponse(CamelModel):
    """Schema for section response."""
    id: uuid.UUID
    section_type: str
    content: str
    order: int
    is_generated: bool
    metadata: dict = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class DocumentResponse(CamelModel):
    """Schema for document response."""
    id: uuid.UUID
    owner_id: uuid.UUID
    filename: str
    status: DocumentStatus
    metadata: dict = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sections: List[SectionResponse] = []
