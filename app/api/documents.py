"""
Document and section API endpoints.
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.auth import CurrentUser, get_current_user
from app.core.config import settings
from app.services.document import DocumentService
from app.schemas.document import (
    DocumentCreate, SectionCreate, SectionUpdate, SectionReorderRequest
)
from app.schemas.responses import DocumentResponse, SectionResponse
from app.schemas.version import SectionVersionCreate, SectionVersionResponse
from app.core.exceptions import NotFoundError, ValidationError, StorageError

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    doc_data: DocumentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new document.

    The document starts with its baseline version 1 recorded.
    """
    try:
        service = DocumentService(db)
        document = await service.create_document(doc_data, current_user.id)
        return _to_document_response(document)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a document with its ordered sections."""
    try:
        service = DocumentService(db)
        document = await service.get_document(document_id)
        return _to_document_response(document)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post("/{document_id}/sections", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
async def add_section(
    document_id: uuid.UUID,
    section_data: SectionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add a section to a document."""
    try:
        service = DocumentService(db)
        section = await service.add_section(document_id, section_data)
        return _to_section_response(section)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


# Declared before the {section_id} routes so "reorder" is not parsed as an id
@router.put("/{document_id}/sections/reorder", response_model=DocumentResponse)
async def reorder_sections(
    document_id: uuid.UUID,
    reorder_data: SectionReorderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Reorder the sections of a document."""
    try:
        service = DocumentService(db)
        document = await service.reorder_sections(document_id, reorder_data.section_ids)
        return _to_document_response(document)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.put("/{document_id}/sections/{section_id}", response_model=SectionResponse)
async def update_section(
    document_id: uuid.UUID,
    section_id: uuid.UUID,
    section_data: SectionUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a section's content, order, generated flag or metadata."""
    try:
        service = DocumentService(db)
        section = await service.update_section(document_id, section_id, section_data)
        return _to_section_response(section)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.delete("/{document_id}/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_section(
    document_id: uuid.UUID,
    section_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a section."""
    try:
        service = DocumentService(db)
        await service.delete_section(document_id, section_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.get("/{document_id}/sections/{section_id}/versions", response_model=List[SectionVersionResponse])
async def list_section_versions(
    document_id: uuid.UUID,
    section_id: uuid.UUID,
    limit: int = Query(
        settings.VERSION_LIST_DEFAULT_LIMIT, ge=1, le=settings.VERSION_LIST_MAX_LIMIT,
        description="Maximum number of versions to return"
    ),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Content history of a section, newest first."""
    try:
        service = DocumentService(db)
        versions = await service.list_section_versions(document_id, section_id, limit)
        return [SectionVersionResponse.model_validate(v) for v in versions]
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


@router.post(
    "/{document_id}/sections/{section_id}/versions",
    response_model=SectionVersionResponse,
    status_code=status.HTTP_201_CREATED
)
async def record_section_version(
    document_id: uuid.UUID,
    section_id: uuid.UUID,
    version_data: SectionVersionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Store the section's current content in its history."""
    try:
        service = DocumentService(db)
        version = await service.record_section_version(
            document_id, section_id, current_user.id, version_data.change_type
        )
        return SectionVersionResponse.model_validate(version)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


def _to_section_response(section) -> SectionResponse:
    """Convert DocumentSection model to SectionResponse schema."""
    return SectionResponse(
        id=section.id,
        section_type=section.section_type,
        content=section.content,
        order=section.order,
        is_generated=section.is_generated,
        metadata=section.custom_metadata or {},
        updated_at=section.updated_at
    )


def _to_document_response(document) -> DocumentResponse:
    """Convert Document model to DocumentResponse schema."""
    return DocumentResponse(
        id=document.id,
        owner_id=document.owner_id,
        filename=document.filename,
        status=document.status,
        metadata=document.custom_metadata or {},
        created_at=document.created_at,
        updated_at=document.updated_at,
        sections=[_to_section_response(section) for section in document.sections]
    )
