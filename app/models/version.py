"""
Version history models: immutable document versions, per-document pointer
state and per-section content history.
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Text, DateTime, Enum, ForeignKey, Integer, UniqueConstraint, CheckConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
import enum

from app.core.database import Base
from app.models.document import JSONType


class ChangeType(str, enum.Enum):
    """Kind of change that produced a version."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    GENERATE = "generate"


class DocumentVersion(Base):
    """Immutable snapshot of a document's sections at one point in history."""

    __tablename__ = "document_versions"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    # Version information
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    change_type: Mapped[ChangeType] = mapped_column(Enum(ChangeType), nullable=False)
    change_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    section_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    # Content snapshot
    snapshot: Mapped[dict] = mapped_column(JSONType, nullable=False)

    # Display and audit only, version_number orders history
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint('document_id', 'version_number', name='uq_document_version'),
        CheckConstraint('version_number >= 1', name='ck_document_version_positive'),
    )

    def __repr__(self) -> str:
        return f"<DocumentVersion(id={self.id}, document_id={self.document_id}, version={self.version_number})>"


class DocumentPointerState(Base):
    """Undo/redo position of a document within its version history."""

    __tablename__ = "document_pointer_states"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("documents.id", ondelete="CASCADE"),
        primary_key=True
    )
    head_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_reachable_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            '1 <= current_version AND current_version <= max_reachable_version '
            'AND max_reachable_version <= head_version',
            name='ck_pointer_state_ordering'
        ),
    )

    @property
    def can_undo(self) -> bool:
        return self.current_version > 1

    @property
    def can_redo(self) -> bool:
        return self.current_version < self.max_reachable_version

    def __repr__(self) -> str:
        return (
            f"<DocumentPointerState(document_id={self.document_id}, head={self.head_version}, "
            f"current={self.current_version}, max_reachable={self.max_reachable_version})>"
        )


class SectionVersion(Base):
    """Append-only content history of a single section."""

    __tablename__ = "section_versions"

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
    # No foreign key: history outlives a section removed by a restore
    section_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    change_type: Mapped[ChangeType] = mapped_column(Enum(ChangeType), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint('section_id', 'version_number', name='uq_section_version'),
    )

    def __repr__(self) -> str:
        return f"<SectionVersion(section_id={self.section_id}, version={self.version_number})>"
