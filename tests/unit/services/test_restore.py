"""
Unit tests for applying snapshots to live state.
"""
import copy
import pytest
import uuid

from app.services.restore import RestoreEngine
from app.services.snapshot import SnapshotBuilder
from app.services.document import DocumentService
from app.core.exceptions import NotFoundError, ValidationError
from tests.conftest import live_contents


@pytest.mark.unit
class TestRestoreEngine:
    """Test cases for RestoreEngine."""

    @pytest.fixture
    def engine(self, test_db):
        return RestoreEngine(test_db)

    @pytest.fixture
    def service(self, test_db, controller):
        return DocumentService(test_db, controller=controller)

    @pytest.mark.asyncio
    async def test_apply_overwrites_content_and_metadata(self, test_db, engine, service, test_document):
        snapshot = copy.deepcopy(SnapshotBuilder.capture(test_document))
        first = test_document.sections[0]
        first.content = "Edited"
        test_document.custom_metadata = {"case": "changed"}
        await test_db.commit()

        await engine.apply_snapshot(test_document.id, snapshot)
        await test_db.commit()

        document = await service.get_document(test_document.id)
        assert [s.content for s in document.sections] == [
            "Dear Sir or Madam,", "On 1 March the claimant was injured."
        ]
        assert document.custom_metadata == {"case": "Smith v. Jones"}

    @pytest.mark.asyncio
    async def test_apply_recreates_deleted_section_with_same_id(self, test_db, engine, service, test_document):
        snapshot = SnapshotBuilder.capture(test_document)
        removed_id = test_document.sections[1].id
        await service.delete_section(test_document.id, removed_id)

        await engine.apply_snapshot(test_document.id, snapshot)
        await test_db.commit()

        document = await service.get_document(test_document.id)
        assert [s.id for s in document.sections][1] == removed_id

    @pytest.mark.asyncio
    async def test_apply_removes_sections_missing_from_snapshot(self, test_db, engine, test_document):
        snapshot = {"sections": [SnapshotBuilder.capture(test_document)["sections"][0]], "metadata": {}}

        await engine.apply_snapshot(test_document.id, snapshot)
        await test_db.commit()

        assert await live_contents(test_db, test_document.id) == ["Dear Sir or Madam,"]

    @pytest.mark.asyncio
    async def test_apply_restores_order(self, test_db, engine, service, test_document):
        snapshot = SnapshotBuilder.capture(test_document)
        await service.reorder_sections(
            test_document.id, [test_document.sections[1].id, test_document.sections[0].id]
        )

        await engine.apply_snapshot(test_document.id, snapshot)
        await test_db.commit()

        assert await live_contents(test_db, test_document.id) == [
            "Dear Sir or Madam,", "On 1 March the claimant was injured."
        ]

    @pytest.mark.asyncio
    async def test_apply_rejects_malformed_snapshot(self, engine, test_document):
        with pytest.raises(ValidationError):
            await engine.apply_snapshot(test_document.id, {"metadata": {}})

        with pytest.raises(ValidationError):
            await engine.apply_snapshot(test_document.id, {"sections": [{"content": "no id"}]})

    @pytest.mark.asyncio
    async def test_apply_missing_document(self, engine):
        with pytest.raises(NotFoundError):
            await engine.apply_snapshot(uuid.uuid4(), {"sections": []})
