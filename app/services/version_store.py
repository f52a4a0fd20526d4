"""
Append-only persistence of document and section versions.
"""
import uuid
import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func
from sqlalchemy.exc import SQLAlchemyError

from app.models.version import ChangeType, DocumentVersion, SectionVersion
from app.core.exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


def default_change_summary(change_type: ChangeType, section_id: Optional[uuid.UUID] = None) -> str:
    """Describe a change when the caller gave no summary."""
    summaries = {
        ChangeType.CREATE: "Document created",
        ChangeType.UPDATE: "Section updated" if section_id else "Document updated",
        ChangeType.DELETE: "Section deleted" if section_id else "Document deleted",
        ChangeType.RESTORE: "Version restored",
        ChangeType.GENERATE: "Section generated" if section_id else "Content generated",
    }
    return summaries[change_type]


class VersionStore:
    """
    Writes and reads immutable ``DocumentVersion`` rows.

    Rows are only ever inserted. Version numbers are allocated as the current
    head plus one, so callers must hold the document's lock while appending;
    the ``(document_id, version_number)`` unique constraint rejects any
    allocation that slips past it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        document_id: uuid.UUID,
        change_type: ChangeType,
        snapshot: dict,
        author_id: uuid.UUID,
        change_summary: Optional[str] = None,
        section_id: Optional[uuid.UUID] = None
    ) -> DocumentVersion:
        """
        Insert the next version of a document.

        Args:
            document_id: Owning document
            change_type: Kind of change that produced the snapshot
            snapshot: Captured document state
            author_id: User who triggered the write
            change_summary: Optional human readable summary
            section_id: Section the change was scoped to, if any

        Returns:
            DocumentVersion: The stored version

        Raises:
            StorageError: If the row could not be written
        """
        try:
            next_version = await self.current_head(document_id) + 1

            version = DocumentVersion(
                document_id=document_id,
                version_number=next_version,
                author_id=author_id,
                change_type=change_type,
                change_summary=change_summary or default_change_summary(change_type, section_id),
                section_id=section_id,
                snapshot=snapshot
            )

            self.db.add(version)
            await self.db.flush()
            # Load server generated columns such as created_at
            await self.db.refresh(version)

            logger.info(f"Appended version {next_version} for document {document_id}")
            return version

        except SQLAlchemyError as e:
            logger.error(f"Error appending version for document {document_id}: {e}")
            raise StorageError("Failed to record document version")

    async def get(self, document_id: uuid.UUID, version_number: int) -> DocumentVersion:
        """
        Get a specific version of a document.

        Raises:
            NotFoundError: If the version does not exist
            StorageError: If the lookup fails
        """
        try:
            result = await self.db.execute(
                select(DocumentVersion).where(
                    and_(
                        DocumentVersion.document_id == document_id,
                        DocumentVersion.version_number == version_number
                    )
                )
            )
            version = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting version {version_number} for document {document_id}: {e}")
            raise StorageError("Failed to retrieve document version")

        if not version:
            raise NotFoundError(f"Version {version_number} not found for document {document_id}")
        return version

    async def list(self, document_id: uuid.UUID, limit: int = DEFAULT_LIST_LIMIT) -> List[DocumentVersion]:
        """List versions of a document, newest first."""
        if limit < 1:
            raise ValidationError("Limit must be at least 1")

        try:
            result = await self.db.execute(
                select(DocumentVersion)
                .where(DocumentVersion.document_id == document_id)
                .order_by(DocumentVersion.version_number.desc())
                .limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing versions for document {document_id}: {e}")
            raise StorageError("Failed to retrieve document versions")

    @staticmethod
    def head_subquery(document_id: uuid.UUID):
        """Scalar subquery of the highest stored version number, 0 when there is none."""
        return (
            select(func.coalesce(func.max(DocumentVersion.version_number), 0))
            .where(DocumentVersion.document_id == document_id)
            .scalar_subquery()
        )

    async def current_head(self, document_id: uuid.UUID) -> int:
        """Highest stored version number, or 0 when the document has none."""
        try:
            result = await self.db.execute(select(self.head_subquery(document_id)))
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error reading version head for document {document_id}: {e}")
            raise StorageError("Failed to read document version head")

    async def append_section_version(
        self,
        document_id: uuid.UUID,
        section_id: uuid.UUID,
        content: str,
        change_type: ChangeType,
        author_id: uuid.UUID
    ) -> SectionVersion:
        """Insert the next content version of a section."""
        try:
            result = await self.db.execute(
                select(func.max(SectionVersion.version_number))
                .where(SectionVersion.section_id == section_id)
            )
            next_version = (result.scalar() or 0) + 1

            version = SectionVersion(
                document_id=document_id,
                section_id=section_id,
                version_number=next_version,
                author_id=author_id,
                content=content,
                change_type=change_type
            )
            self.db.add(version)
            await self.db.flush()
            await self.db.refresh(version)

            logger.info(f"Appended section version {next_version} for section {section_id}")
            return version

        except SQLAlchemyError as e:
            logger.error(f"Error appending version for section {section_id}: {e}")
            raise StorageError("Failed to record section version")

    async def list_section_versions(
        self,
        section_id: uuid.UUID,
        limit: int = DEFAULT_LIST_LIMIT
    ) -> List[SectionVersion]:
        """List content versions of a section, newest first."""
        if limit < 1:
            raise ValidationError("Limit must be at least 1")

        try:
            result = await self.db.execute(
                select(SectionVersion)
                .where(SectionVersion.section_id == section_id)
                .order_by(SectionVersion.version_number.desc())
                .limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing versions for section {section_id}: {e}")
            raise StorageError("Failed to retrieve section versions")
