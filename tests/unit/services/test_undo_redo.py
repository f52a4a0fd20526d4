"""
Unit tests for the undo/redo controller.
"""
import pytest
import uuid
from structlog.testing import capture_logs

from app.services.pointer import PointerTracker
from app.services.undo_redo import UndoRedoController
from app.models.version import ChangeType
from app.core.exceptions import (
    NotFoundError, NoVersionHistoryError, NothingToUndoError, NothingToRedoError
)
from tests.conftest import edit_section, live_contents


async def pointer(test_db, document_id):
    state = await PointerTracker(test_db).load(document_id)
    return state.head_version, state.current_version, state.max_reachable_version


@pytest.mark.unit
class TestInitialize:
    """Test cases for baseline version recording."""

    @pytest.mark.asyncio
    async def test_records_baseline(self, test_db, controller, test_document, author_id):
        version = await controller.initialize(test_document.id, author_id)

        assert version.version_number == 1
        assert version.change_type == ChangeType.CREATE
        assert version.change_summary == "Document created"
        assert len(version.snapshot["sections"]) == 2
        assert await pointer(test_db, test_document.id) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_second_call_is_a_noop(self, controller, versioned_document, author_id):
        again = await controller.initialize(versioned_document.id, author_id)
        versions, _ = await controller.list_versions(versioned_document.id)

        assert again.version_number == 1
        assert len(versions) == 1


@pytest.mark.unit
class TestCreateVersion:
    """Test cases for create_version."""

    @pytest.mark.asyncio
    async def test_appends_and_moves_pointer(self, test_db, controller, versioned_document, author_id):
        section = versioned_document.sections[0]
        await edit_section(test_db, section.id, "Dear Ms Jones,")

        version = await controller.create_version(
            versioned_document.id, ChangeType.UPDATE, author_id, section_id=section.id
        )

        assert version.version_number == 2
        assert version.author_id == author_id
        assert version.change_summary == "Section updated"
        assert version.snapshot["sections"][0]["content"] == "Dear Ms Jones,"
        assert await pointer(test_db, versioned_document.id) == (2, 2, 2)

    @pytest.mark.asyncio
    async def test_empty_history_records_version_one(self, test_db, controller, test_document, author_id):
        version = await controller.create_version(test_document.id, ChangeType.GENERATE, author_id)

        assert version.version_number == 1
        assert await pointer(test_db, test_document.id) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_missing_document(self, controller, author_id):
        with pytest.raises(NotFoundError):
            await controller.create_version(uuid.uuid4(), ChangeType.UPDATE, author_id)

    @pytest.mark.asyncio
    async def test_logs_discarded_branch(self, test_db, controller, locks, versioned_document, author_id):
        """Writing while behind head reports the versions that lost their redo path."""
        for _ in range(2):
            await controller.create_version(versioned_document.id, ChangeType.UPDATE, author_id)
        await controller.undo(versioned_document.id)
        await controller.undo(versioned_document.id)

        # Loggers cache their processors on first use
        fresh = UndoRedoController(test_db, locks=locks)
        with capture_logs() as logs:
            await fresh.create_version(versioned_document.id, ChangeType.UPDATE, author_id)

        discarded = [entry for entry in logs if entry["event"] == "Redo branch discarded"]
        assert len(discarded) == 1
        assert (discarded[0]["orphaned_from"], discarded[0]["orphaned_to"]) == (2, 3)


@pytest.mark.unit
class TestUndoRedo:
    """Test cases for undo and redo."""

    @pytest.fixture
    async def three_versions(self, test_db, controller, versioned_document, author_id):
        """Versions 2 and 3 whose first section reads v2 and v3."""
        section_id = versioned_document.sections[0].id
        for text in ("v2", "v3"):
            await edit_section(test_db, section_id, text)
            await controller.create_version(versioned_document.id, ChangeType.UPDATE, author_id)
        return versioned_document

    @pytest.mark.asyncio
    async def test_undo_restores_previous_content(self, test_db, controller, three_versions):
        restored = await controller.undo(three_versions.id)

        assert restored.version_number == 2
        assert restored.snapshot["sections"][0]["content"] == "v2"
        assert (await live_contents(test_db, three_versions.id))[0] == "v2"
        assert await pointer(test_db, three_versions.id) == (3, 2, 3)

    @pytest.mark.asyncio
    async def test_redo_after_undo(self, test_db, controller, three_versions):
        await controller.undo(three_versions.id)
        restored = await controller.redo(three_versions.id)

        assert restored.version_number == 3
        assert (await live_contents(test_db, three_versions.id))[0] == "v3"
        assert await pointer(test_db, three_versions.id) == (3, 3, 3)

    @pytest.mark.asyncio
    async def test_undo_at_baseline(self, test_db, controller, versioned_document):
        with pytest.raises(NothingToUndoError):
            await controller.undo(versioned_document.id)

        assert await pointer(test_db, versioned_document.id) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_redo_at_horizon(self, test_db, controller, three_versions):
        with pytest.raises(NothingToRedoError):
            await controller.redo(three_versions.id)

        assert await pointer(test_db, three_versions.id) == (3, 3, 3)

    @pytest.mark.asyncio
    async def test_undo_does_not_write_versions(self, controller, three_versions):
        await controller.undo(three_versions.id)
        versions, current = await controller.list_versions(three_versions.id)

        assert [v.version_number for v in versions] == [3, 2, 1]
        assert current == 2

    @pytest.mark.asyncio
    async def test_undo_without_history(self, controller, test_document):
        with pytest.raises(NoVersionHistoryError):
            await controller.undo(test_document.id)

        with pytest.raises(NoVersionHistoryError):
            await controller.redo(test_document.id)


@pytest.mark.unit
class TestRestoreToVersion:
    """Test cases for restore_to_version."""

    @pytest.mark.asyncio
    async def test_restore_appends_new_head(self, test_db, controller, versioned_document, author_id):
        section_id = versioned_document.sections[0].id
        await edit_section(test_db, section_id, "rewritten")
        await controller.create_version(versioned_document.id, ChangeType.UPDATE, author_id)

        version = await controller.restore_to_version(versioned_document.id, 1, author_id)

        assert version.version_number == 3
        assert version.change_type == ChangeType.RESTORE
        assert version.change_summary == "Restored to version 1"
        assert (await live_contents(test_db, versioned_document.id))[0] == "Dear Sir or Madam,"
        assert await pointer(test_db, versioned_document.id) == (3, 3, 3)

    @pytest.mark.asyncio
    async def test_restore_unknown_version(self, test_db, controller, versioned_document, author_id):
        with pytest.raises(NotFoundError):
            await controller.restore_to_version(versioned_document.id, 9, author_id)

        assert await pointer(test_db, versioned_document.id) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_restore_custom_summary(self, controller, versioned_document, author_id):
        version = await controller.restore_to_version(
            versioned_document.id, 1, author_id, change_summary="Back to the draft"
        )

        assert version.change_summary == "Back to the draft"


@pytest.mark.unit
class TestQueries:
    """Test cases for status and listing."""

    @pytest.mark.asyncio
    async def test_status(self, controller, versioned_document, author_id):
        await controller.create_version(versioned_document.id, ChangeType.UPDATE, author_id)
        await controller.undo(versioned_document.id)

        status = await controller.status(versioned_document.id)

        assert status.current_version == 1
        assert not status.can_undo
        assert status.can_redo
        assert status.next_version == 2

    @pytest.mark.asyncio
    async def test_list_without_history(self, controller, test_document):
        versions, current = await controller.list_versions(test_document.id)

        assert versions == []
        assert current == 0

    @pytest.mark.asyncio
    async def test_get_version_of_missing_document(self, controller):
        with pytest.raises(NotFoundError):
            await controller.get_version(uuid.uuid4(), 1)
