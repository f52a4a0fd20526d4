"""
Pytest configuration and shared fixtures.
"""
import os

# Settings are read at import time; tests never touch PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import uuid
from typing import AsyncGenerator, List, Optional
from unittest.mock import AsyncMock
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.core.database import Base, get_db
from app.core.auth import CurrentUser, get_current_user
from app.core.locks import DocumentLockManager
from app.models.document import Document, DocumentSection, DocumentStatus
from app.services.undo_redo import UndoRedoController
from tests.test_config import pytest_configure, pytest_collection_modifyitems  # noqa: F401


# Test database URL (in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session.

    Services commit their own units of work, so isolation comes from a fresh
    in-memory database per test rather than an outer rolled back transaction.
    """
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session


@pytest.fixture
async def file_engine(tmp_path):
    """File backed engine for tests that need several concurrent sessions."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'versions.db'}",
        connect_args={"timeout": 30}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def mock_db() -> AsyncMock:
    """Mock database session for unit tests."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def locks() -> DocumentLockManager:
    """Lock manager private to one test."""
    return DocumentLockManager()


@pytest.fixture
def author_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def controller(test_db: AsyncSession, locks: DocumentLockManager) -> UndoRedoController:
    return UndoRedoController(test_db, locks=locks)


@pytest.fixture
async def test_document(test_db: AsyncSession, author_id: uuid.UUID) -> Document:
    """A persisted document with two sections and no versions."""
    return await DocumentFactory.create_and_save_document(
        test_db,
        owner_id=author_id,
        sections=[
            ("introduction", "Dear Sir or Madam,"),
            ("facts", "On 1 March the claimant was injured."),
        ]
    )


@pytest.fixture
async def versioned_document(
    test_db: AsyncSession,
    controller: UndoRedoController,
    test_document: Document,
    author_id: uuid.UUID
) -> Document:
    """``test_document`` with its baseline version 1 recorded."""
    await controller.initialize(test_document.id, author_id)
    return test_document


@pytest.fixture
def current_user(author_id: uuid.UUID) -> CurrentUser:
    return CurrentUser(id=author_id, email="author@example.com")


@pytest.fixture
async def test_client(test_db: AsyncSession, current_user: CurrentUser) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and authentication overrides."""

    async def override_get_db():
        yield test_db

    async def override_get_current_user():
        return current_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    # Clean up overrides
    app.dependency_overrides.clear()


# Factory fixtures for creating test data
class DocumentFactory:
    """Factory for creating test documents."""

    @staticmethod
    def create_document(
        owner_id: uuid.UUID = None,
        filename: str = None,
        sections: Optional[List[tuple]] = None,
        metadata: Optional[dict] = None,
        **kwargs
    ) -> Document:
        """
        Create a document instance (not persisted).

        ``sections`` is a list of ``(section_type, content)`` pairs, ordered
        as given.
        """
        doc_id = uuid.uuid4()
        document = Document(
            id=doc_id,
            owner_id=owner_id or uuid.uuid4(),
            filename=filename or f"letter-{doc_id.hex[:8]}.docx",
            status=DocumentStatus.DRAFT,
            custom_metadata=metadata if metadata is not None else {"case": "Smith v. Jones"},
            **kwargs
        )
        document.sections = [
            DocumentSection(
                id=uuid.uuid4(),
                section_type=section_type,
                content=content,
                order=index,
                is_generated=False,
                custom_metadata={}
            )
            for index, (section_type, content) in enumerate(sections or [])
        ]
        return document

    @staticmethod
    async def create_and_save_document(db: AsyncSession, **kwargs) -> Document:
        """Create and save a document to the database."""
        document = DocumentFactory.create_document(**kwargs)
        db.add(document)
        await db.commit()
        await db.refresh(document, attribute_names=["sections"])
        return document


async def edit_section(db: AsyncSession, section_id: uuid.UUID, content: str) -> None:
    """Change a section's live content outside the version machinery."""
    section = await db.get(DocumentSection, section_id)
    section.content = content
    await db.commit()


async def live_contents(db: AsyncSession, document_id: uuid.UUID) -> List[str]:
    """Contents of a document's live sections in order."""
    result = await db.execute(
        select(DocumentSection)
        .where(DocumentSection.document_id == document_id)
        .order_by(DocumentSection.order)
        .execution_options(populate_existing=True)
    )
    return [section.content for section in result.scalars().all()]
