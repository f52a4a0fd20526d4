"""
Application of stored snapshots onto live document state.
"""
import copy
import uuid
import logging
from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import SQLAlchemyError

from app.models.document import Document, DocumentSection
from app.core.exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


class RestoreEngine:
    """
    Overwrites a document's live sections and metadata from a snapshot.

    This is the only code path that rewrites live state from history; undo,
    redo and explicit restore all go through ``apply_snapshot``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply_snapshot(self, document_id: uuid.UUID, snapshot: Dict[str, Any]) -> None:
        """
        Make the live document match a snapshot.

        Sections are upserted by id, live sections missing from the snapshot
        are deleted and every section takes the snapshot's order. Document
        metadata is replaced by the snapshot's.

        Raises:
            NotFoundError: If the document does not exist
            ValidationError: If the snapshot is malformed
            StorageError: If the live state could not be written
        """
        entries = snapshot.get("sections")
        if not isinstance(entries, list):
            raise ValidationError("Snapshot has no section list")

        try:
            document = await self.db.scalar(
                select(Document)
                .options(selectinload(Document.sections))
                .where(Document.id == document_id)
                .execution_options(populate_existing=True)
            )
            if document is None:
                raise NotFoundError(f"Document {document_id} not found")

            live = {section.id: section for section in document.sections}

            wanted = set()
            for entry in entries:
                section_id = uuid.UUID(str(entry["id"]))
                wanted.add(section_id)

                section = live.get(section_id)
                if section is None:
                    section = DocumentSection(id=section_id)
                    document.sections.append(section)

                section.section_type = entry["section_type"]
                section.content = entry["content"]
                section.order = entry["order"]
                section.is_generated = bool(entry.get("is_generated", False))
                section.custom_metadata = copy.deepcopy(entry.get("metadata") or {})

            # delete-orphan removes the rows
            stale = [section for section_id, section in live.items() if section_id not in wanted]
            for section in stale:
                document.sections.remove(section)

            document.custom_metadata = copy.deepcopy(snapshot.get("metadata") or {})
            await self.db.flush()

            # Collection order follows the order column only after a reload
            await self.db.refresh(document, attribute_names=["sections"])

            logger.info(
                f"Applied snapshot to document {document_id}: "
                f"{len(entries)} sections, {len(stale)} removed"
            )

        except (KeyError, ValueError, TypeError) as e:
            raise ValidationError(f"Malformed snapshot section: {e}")
        except SQLAlchemyError as e:
            logger.error(f"Error applying snapshot to document {document_id}: {e}")
            raise StorageError("Failed to restore document content")
