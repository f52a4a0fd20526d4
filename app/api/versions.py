"""
Version history, undo and redo API endpoints.
"""
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.auth import CurrentUser, get_current_user
from app.core.config import settings
from app.services.undo_redo import UndoRedoController
from app.schemas.version import (
    VersionCreate, VersionRestoreRequest, VersionSummaryResponse, VersionDetailResponse,
    VersionListResponse, VersionStatusResponse, UndoRedoResponse
)
from app.core.exceptions import (
    NotFoundError, ValidationError, NoVersionHistoryError, NothingToUndoError,
    NothingToRedoError, StorageError, CorruptPointerStateError
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["versions"])


@router.get("/{document_id}/versions", response_model=VersionListResponse)
async def list_versions(
    document_id: uuid.UUID,
    limit: int = Query(
        settings.VERSION_LIST_DEFAULT_LIMIT, ge=1, le=settings.VERSION_LIST_MAX_LIMIT,
        description="Maximum number of versions to return"
    ),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the version history of a document, newest first.

    Also returns the version whose content is currently live.
    """
    try:
        controller = UndoRedoController(db)
        versions, current_version = await controller.list_versions(document_id, limit)
        return VersionListResponse(
            versions=[VersionSummaryResponse.model_validate(v) for v in versions],
            current_version=current_version
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except CorruptPointerStateError as e:
        logger.error(f"Corrupt pointer state for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post("/{document_id}/versions", response_model=VersionSummaryResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    document_id: uuid.UUID,
    version_data: VersionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record the document's live content as a new version.

    - **changeType**: create, update, delete, restore or generate (default update)
    - **changeSummary**: optional summary, generated from the change type when omitted
    - **sectionId**: optional section the change was scoped to
    """
    try:
        controller = UndoRedoController(db)
        version = await controller.create_version(
            document_id,
            version_data.change_type,
            current_user.id,
            change_summary=version_data.change_summary,
            section_id=version_data.section_id
        )
        return VersionSummaryResponse.model_validate(version)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except CorruptPointerStateError as e:
        logger.error(f"Corrupt pointer state for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("/{document_id}/versions/status", response_model=VersionStatusResponse)
async def get_version_status(
    document_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Report whether undo and redo are currently available."""
    try:
        controller = UndoRedoController(db)
        version_status = await controller.status(document_id)
        return VersionStatusResponse(
            current_version=version_status.current_version,
            can_undo=version_status.can_undo,
            can_redo=version_status.can_redo,
            previous_version=version_status.previous_version,
            next_version=version_status.next_version,
            head_version=version_status.head_version,
            max_reachable_version=version_status.max_reachable_version
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except NoVersionHistoryError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except CorruptPointerStateError as e:
        logger.error(f"Corrupt pointer state for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("/{document_id}/versions/{version_number}", response_model=VersionDetailResponse)
async def get_version(
    document_id: uuid.UUID,
    version_number: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a single version including its full snapshot."""
    try:
        controller = UndoRedoController(db)
        version = await controller.get_version(document_id, version_number)
        return VersionDetailResponse.model_validate(version)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post("/{document_id}/versions/{version_number}", response_model=VersionSummaryResponse)
async def restore_version(
    document_id: uuid.UUID,
    version_number: int,
    restore_data: VersionRestoreRequest = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Restore an earlier version.

    The restored content is recorded as a new version on top of history;
    no existing version is removed.
    """
    try:
        controller = UndoRedoController(db)
        version = await controller.restore_to_version(
            document_id,
            version_number,
            current_user.id,
            change_summary=restore_data.change_summary if restore_data else None
        )
        return VersionSummaryResponse.model_validate(version)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except NoVersionHistoryError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        logger.error(f"Unreadable stored snapshot for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except CorruptPointerStateError as e:
        logger.error(f"Corrupt pointer state for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post("/{document_id}/undo", response_model=UndoRedoResponse)
async def undo(
    document_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Step back to the previous version."""
    try:
        controller = UndoRedoController(db)
        restored = await controller.undo(document_id)
        return UndoRedoResponse(
            message="Undo successful",
            current_version=restored.version_number,
            snapshot=restored.snapshot
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except (NothingToUndoError, NoVersionHistoryError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        logger.error(f"Unreadable stored snapshot for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except CorruptPointerStateError as e:
        logger.error(f"Corrupt pointer state for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post("/{document_id}/redo", response_model=UndoRedoResponse)
async def redo(
    document_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Step forward to the next reachable version."""
    try:
        controller = UndoRedoController(db)
        restored = await controller.redo(document_id)
        return UndoRedoResponse(
            message="Redo successful",
            current_version=restored.version_number,
            snapshot=restored.snapshot
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except (NothingToRedoError, NoVersionHistoryError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ValidationError as e:
        logger.error(f"Unreadable stored snapshot for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except CorruptPointerStateError as e:
        logger.error(f"Corrupt pointer state for document {document_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
