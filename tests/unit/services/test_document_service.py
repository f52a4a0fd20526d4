"""
Unit tests for document service.
"""
import pytest
import uuid
from unittest.mock import AsyncMock, patch
from sqlalchemy import select, func

from app.services.document import DocumentService
from app.schemas.document import DocumentCreate, SectionCreate, SectionUpdate
from app.models.document import Document
from app.models.version import ChangeType, DocumentVersion
from app.core.exceptions import NotFoundError, StorageError


@pytest.mark.unit
class TestDocumentService:
    """Test cases for DocumentService."""

    @pytest.fixture
    def document_service(self, test_db, controller):
        return DocumentService(test_db, controller=controller)

    @pytest.mark.asyncio
    async def test_create_document_records_baseline(self, document_service, controller, author_id):
        """A new document starts with version 1."""
        document = await document_service.create_document(
            DocumentCreate(filename="letter.docx", metadata={"case": "A v B"}), author_id
        )

        versions, current = await controller.list_versions(document.id)
        assert document.owner_id == author_id
        assert document.custom_metadata == {"case": "A v B"}
        assert [v.version_number for v in versions] == [1]
        assert current == 1

    @pytest.mark.asyncio
    async def test_create_document_rolls_back_without_baseline(self, document_service, controller, test_db, author_id):
        """A failed baseline write leaves no document behind."""
        with patch.object(controller.store, "append", AsyncMock(side_effect=StorageError("disk full"))):
            with pytest.raises(StorageError):
                await document_service.create_document(DocumentCreate(filename="letter.docx"), author_id)

        assert await test_db.scalar(select(func.count()).select_from(Document)) == 0
        assert await test_db.scalar(select(func.count()).select_from(DocumentVersion)) == 0

    @pytest.mark.asyncio
    async def test_get_document_not_found(self, document_service):
        with pytest.raises(NotFoundError):
            await document_service.get_document(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_add_section_appends_after_last(self, document_service, test_document):
        section = await document_service.add_section(
            test_document.id, SectionCreate(section_type="demand", content="Pay $10,000")
        )

        assert section.order == 2
        document = await document_service.get_document(test_document.id)
        assert [s.section_type for s in document.sections] == ["introduction", "facts", "demand"]

    @pytest.mark.asyncio
    async def test_add_section_does_not_version(self, document_service, controller, versioned_document):
        await document_service.add_section(versioned_document.id, SectionCreate(section_type="demand"))

        versions, _ = await controller.list_versions(versioned_document.id)
        assert len(versions) == 1

    @pytest.mark.asyncio
    async def test_update_section(self, document_service, test_document):
        section_id = test_document.sections[0].id

        section = await document_service.update_section(
            test_document.id, section_id, SectionUpdate(content="Dear Ms Jones,", is_generated=True)
        )

        assert section.content == "Dear Ms Jones,"
        assert section.is_generated is True
        assert section.section_type == "introduction"

    @pytest.mark.asyncio
    async def test_update_section_of_other_document(self, document_service, test_document):
        with pytest.raises(NotFoundError):
            await document_service.update_section(
                uuid.uuid4(), test_document.sections[0].id, SectionUpdate(content="x")
            )

    @pytest.mark.asyncio
    async def test_delete_section(self, document_service, test_document):
        section_id = test_document.sections[0].id

        await document_service.delete_section(test_document.id, section_id)

        document = await document_service.get_document(test_document.id)
        assert section_id not in [s.id for s in document.sections]
        assert len(document.sections) == 1

    @pytest.mark.asyncio
    async def test_reorder_sections(self, document_service, test_document):
        first, second = (s.id for s in test_document.sections)

        document = await document_service.reorder_sections(test_document.id, [second, first])

        assert [s.id for s in document.sections] == [second, first]
        assert [s.order for s in document.sections] == [0, 1]

    @pytest.mark.asyncio
    async def test_reorder_with_unknown_section(self, document_service, test_document):
        with pytest.raises(NotFoundError):
            await document_service.reorder_sections(
                test_document.id, [test_document.sections[0].id, uuid.uuid4()]
            )

    @pytest.mark.asyncio
    async def test_section_history(self, test_db, document_service, test_document, author_id):
        section_id = test_document.sections[0].id
        await document_service.record_section_version(test_document.id, section_id, author_id)
        await document_service.update_section(test_document.id, section_id, SectionUpdate(content="Second"))
        await document_service.record_section_version(
            test_document.id, section_id, author_id, ChangeType.GENERATE
        )

        history = await document_service.list_section_versions(test_document.id, section_id)

        assert [(v.version_number, v.content, v.change_type) for v in history] == [
            (2, "Second", ChangeType.GENERATE),
            (1, "Dear Sir or Madam,", ChangeType.UPDATE),
        ]
