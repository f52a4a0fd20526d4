"""
Document and section models for the live letter content.
"""
import uuid
from datetime import datetime
from typing import List
from sqlalchemy import String, Text, DateTime, Enum, ForeignKey, Integer, Boolean, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
import enum

from app.core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class DocumentStatus(str, enum.Enum):
    """Document status enumeration."""
    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"


class Document(Base):
    """Demand letter document."""

    __tablename__ = "documents"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus),
        default=DocumentStatus.DRAFT,
        index=True
    )

    # Case information and other restorable document-level data
    custom_metadata: Mapped[dict] = mapped_column("metadata", JSONType, default=dict)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    sections: Mapped[List["DocumentSection"]] = relationship(
        "DocumentSection",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentSection.order"
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, filename='{self.filename}')>"


class DocumentSection(Base):
    """One ordered section of a document."""

    __tablename__ = "document_sections"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    section_type: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Holds generation artefacts such as analysis point usage, captured verbatim
    custom_metadata: Mapped[dict] = mapped_column("metadata", JSONType, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    document: Mapped["Document"] = relationship("Document", back_populates="sections")

    def __repr__(self) -> str:
        return f"<DocumentSection(id={self.id}, type='{self.section_type}', order={self.order})>"
