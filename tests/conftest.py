"""Pytest configuration and fixtures."""

import pytest
from typing import AsyncGenerator
from unittest.mock import MagicMock
from botocore.exceptions import ClientError
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from src.main import app
from src.config.database import Base, get_db
from src.core.security import create_access_token
from src.middleware.rate_limit import limiter
from src.repositories.chunk_repo import ChunkRepository
from src.repositories.file_repo import FileMetadataRepository
from src.repositories.storage_repo import StorageRepository
from src.services.chunk_tracker import ChunkTracker
from src.services.completion_service import CompletionCoordinator
from src.services.file_service import FileService
from src.services.grant_service import AccessGrantIssuer
from src.services.upload_planner import UploadPlanner

# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_BUCKET = "test-bucket"
GIB = 1024 ** 3


def client_error(code: str, operation: str = "Operation") -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _presign(operation, Params, ExpiresIn):
    url = f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?op={operation}&expires={ExpiresIn}"
    if "PartNumber" in Params:
        url += f"&uploadId={Params['UploadId']}&partNumber={Params['PartNumber']}"
    return url


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def s3_client():
    """Stand-in for the boto3 S3 client."""
    client = MagicMock()
    client.generate_presigned_url.side_effect = _presign
    client.create_multipart_upload.return_value = {"UploadId": "upload-123"}
    client.complete_multipart_upload.return_value = {}
    client.abort_multipart_upload.return_value = {}
    client.delete_object.return_value = {}
    client.head_object.return_value = {}
    client.head_bucket.return_value = {}
    return client


@pytest.fixture
def s3_error():
    """Factory for botocore ClientErrors."""
    return client_error


@pytest.fixture
def storage_repo(s3_client) -> StorageRepository:
    return StorageRepository(s3_client, TEST_BUCKET)


@pytest.fixture
def file_repo(db_session) -> FileMetadataRepository:
    return FileMetadataRepository(db_session)


@pytest.fixture
def chunk_repo(db_session) -> ChunkRepository:
    return ChunkRepository(db_session)


@pytest.fixture
def grant_issuer(storage_repo) -> AccessGrantIssuer:
    return AccessGrantIssuer(storage_repo)


@pytest.fixture
def planner(file_repo, chunk_repo, storage_repo, grant_issuer) -> UploadPlanner:
    return UploadPlanner(file_repo, chunk_repo, storage_repo, grant_issuer)


@pytest.fixture
def tracker(file_repo, chunk_repo, grant_issuer) -> ChunkTracker:
    return ChunkTracker(file_repo, chunk_repo, grant_issuer)


@pytest.fixture
def coordinator(file_repo, chunk_repo, storage_repo) -> CompletionCoordinator:
    return CompletionCoordinator(file_repo, chunk_repo, storage_repo)


@pytest.fixture
def file_service(file_repo, storage_repo, grant_issuer) -> FileService:
    return FileService(file_repo, storage_repo, grant_issuer)


@pytest.fixture
async def client(db_session: AsyncSession, storage_repo) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.storage_repo = storage_repo
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.storage_repo = None
    limiter.enabled = True


@pytest.fixture
def mock_user():
    """Mock principal data."""
    return {"id": "user-1", "username": "alice"}


@pytest.fixture
def auth_headers(mock_user):
    token = create_access_token({"sub": mock_user["id"], "username": mock_user["username"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers():
    token = create_access_token({"sub": "user-2", "username": "mallory"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def multipart_plan(planner):
    """A planned 12 GiB multipart upload owned by user-1 (3 chunks: 5, 5, 2 GiB)."""
    return await planner.plan("user-1", "movie.mp4", declared_size=12 * GIB, content_type="video/mp4")


@pytest.fixture
async def single_plan(planner):
    """A planned single upload owned by user-1."""
    return await planner.plan("user-1", "notes.txt", declared_size=1024, content_type="text/plain")
