"""
Document service for live document and section operations.
"""
import uuid
import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import SQLAlchemyError

from app.models.document import Document, DocumentSection, DocumentStatus
from app.models.version import ChangeType, SectionVersion
from app.services.undo_redo import UndoRedoController
from app.services.version_store import VersionStore, DEFAULT_LIST_LIMIT
from app.core.exceptions import (
    ServiceException, NotFoundError, StorageError
)

logger = logging.getLogger(__name__)


class DocumentService:
    """
    CRUD over documents and their sections.

    Section edits do not record versions by themselves; the editor records a
    version through the version endpoints after it saves.
    """

    def __init__(self, db: AsyncSession, controller: Optional[UndoRedoController] = None):
        self.db = db
        self.controller = controller or UndoRedoController(db)
        self.store = VersionStore(db)

    async def create_document(self, doc_data, owner_id: uuid.UUID) -> Document:
        """
        Create a new document and record its baseline version.

        Args:
            doc_data: Document creation data
            owner_id: User creating the document

        Returns:
            Document: Created document with sections loaded
        """
        document = Document(
            id=uuid.uuid4(),
            owner_id=owner_id,
            filename=doc_data.filename,
            status=DocumentStatus.DRAFT,
            custom_metadata=doc_data.metadata or {}
        )

        try:
            await self.controller.initialize(document.id, owner_id, new_document=document)
        except StorageError as e:
            logger.error(f"Error creating document for user {owner_id}: {e.message}")
            raise StorageError("Failed to create document")

        logger.info(f"Document created: {document.id} by user {owner_id}")
        return await self.get_document(document.id)

    async def get_document(self, document_id: uuid.UUID) -> Document:
        """
        Get a document with its ordered sections.

        Raises:
            NotFoundError: If document not found
        """
        try:
            result = await self.db.execute(
                select(Document)
                .options(selectinload(Document.sections))
                .where(Document.id == document_id)
                .execution_options(populate_existing=True)
            )
            document = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting document {document_id}: {e}")
            raise StorageError("Failed to retrieve document")

        if not document:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    async def add_section(self, document_id: uuid.UUID, section_data) -> DocumentSection:
        """Add a section, appending it after the last one when no order is given."""
        await self.get_document(document_id)

        try:
            order = section_data.order
            if order is None:
                max_order = await self.db.scalar(
                    select(func.max(DocumentSection.order))
                    .where(DocumentSection.document_id == document_id)
                )
                order = -1 if max_order is None else max_order
                order += 1

            section = DocumentSection(
                document_id=document_id,
                section_type=section_data.section_type,
                content=section_data.content,
                order=order,
                is_generated=section_data.is_generated,
                custom_metadata=section_data.metadata or {}
            )
            self.db.add(section)
            await self.db.commit()
            await self.db.refresh(section)

            logger.info(f"Section {section.id} added to document {document_id}")
            return section

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error adding section to document {document_id}: {e}")
            raise StorageError("Failed to add section")

    async def update_section(self, document_id: uuid.UUID, section_id: uuid.UUID, section_data) -> DocumentSection:
        """
        Update content, order, generated flag or metadata of a section.

        Raises:
            NotFoundError: If the section does not belong to the document
        """
        section = await self._get_section(document_id, section_id)

        try:
            if section_data.content is not None:
                section.content = section_data.content
            if section_data.order is not None:
                section.order = section_data.order
            if section_data.is_generated is not None:
                section.is_generated = section_data.is_generated
            if section_data.metadata is not None:
                section.custom_metadata = section_data.metadata

            await self.db.commit()
            await self.db.refresh(section)
            return section

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error updating section {section_id}: {e}")
            raise StorageError("Failed to update section")

    async def delete_section(self, document_id: uuid.UUID, section_id: uuid.UUID) -> None:
        """Delete a section from a document."""
        section = await self._get_section(document_id, section_id)

        try:
            await self.db.delete(section)
            await self.db.commit()
            logger.info(f"Section {section_id} deleted from document {document_id}")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error deleting section {section_id}: {e}")
            raise StorageError("Failed to delete section")

    async def reorder_sections(self, document_id: uuid.UUID, section_ids: List[uuid.UUID]) -> Document:
        """
        Give every listed section its index as order.

        Raises:
            NotFoundError: If any id is not a section of the document
        """
        document = await self.get_document(document_id)
        sections = {section.id: section for section in document.sections}

        missing = [section_id for section_id in section_ids if section_id not in sections]
        if missing:
            raise NotFoundError("Some sections not found")

        try:
            for index, section_id in enumerate(section_ids):
                sections[section_id].order = index
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error reordering sections of document {document_id}: {e}")
            raise StorageError("Failed to reorder sections")

        return await self.get_document(document_id)

    async def record_section_version(
        self,
        document_id: uuid.UUID,
        section_id: uuid.UUID,
        author_id: uuid.UUID,
        change_type: ChangeType = ChangeType.UPDATE
    ) -> SectionVersion:
        """Store the current content of a section in its own history."""
        section = await self._get_section(document_id, section_id)

        try:
            version = await self.store.append_section_version(
                document_id, section_id, section.content, change_type, author_id
            )
            await self.db.commit()
            return version
        except ServiceException:
            await self.db.rollback()
            raise

    async def list_section_versions(
        self,
        document_id: uuid.UUID,
        section_id: uuid.UUID,
        limit: int = DEFAULT_LIST_LIMIT
    ) -> List[SectionVersion]:
        """Content history of a section, newest first."""
        await self.get_document(document_id)
        return await self.store.list_section_versions(section_id, limit)

    async def _get_section(self, document_id: uuid.UUID, section_id: uuid.UUID) -> DocumentSection:
        try:
            section = await self.db.scalar(
                select(DocumentSection).where(
                    and_(
                        DocumentSection.id == section_id,
                        DocumentSection.document_id == document_id
                    )
                )
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting section {section_id}: {e}")
            raise StorageError("Failed to retrieve section")

        if not section:
            raise NotFoundError(f"Section {section_id} not found")
        return section
