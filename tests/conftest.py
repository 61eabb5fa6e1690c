"""
Test configuration and fixtures.

SQLite (aiosqlite) on a per-test file stands in for PostgreSQL, and blobs go
to LocalBlobStorage under tmp_path.
"""
import os
import random

import pymupdf
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

# app.main builds a module-level app at import time, which needs a database URL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./influencerflow-test.db")
os.environ.setdefault("STORAGE_LOCAL_DIR", "./influencerflow-test-storage")

from app.config import Settings  # noqa: E402
from app.database import create_session_factory  # noqa: E402
from app.models import Base  # noqa: E402
from app.repositories.contract_repo import ContractRepository  # noqa: E402
from app.services.contract_service import ContractService  # noqa: E402
from app.services.storage.local import LocalBlobStorage  # noqa: E402

PUBLIC_BASE_URL = "http://testserver/storage"

TEMPLATE_FIELDS = {
    "influencer_name": "Test Influencer",
    "brand_name": "Test Brand",
    "rate": 1000,
    "timeline": "30 days",
    "deliverables": "Instagram post",
    "payment_terms": "Net 30",
}


def make_png(width: int = 60, height: int = 60, seed: int = 0) -> bytes:
    """Noise-filled RGB PNG; 60x60 comes out at roughly 10 KB."""
    samples = random.Random(seed).randbytes(width * height * 3)
    pix = pymupdf.Pixmap(pymupdf.csRGB, width, height, samples, False)
    return pix.tobytes("png")


@pytest.fixture
def png_signature() -> bytes:
    return make_png()


@pytest.fixture
def template_fields() -> dict:
    return dict(TEMPLATE_FIELDS)


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def storage(storage_dir) -> LocalBlobStorage:
    return LocalBlobStorage(str(storage_dir), PUBLIC_BASE_URL)


@pytest.fixture
async def session(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = create_session_factory(engine)
    async with factory() as db_session:
        yield db_session
    await engine.dispose()


@pytest.fixture
def repo(session) -> ContractRepository:
    return ContractRepository(session)


@pytest.fixture
def service(repo, storage) -> ContractService:
    return ContractService(repo, storage)


@pytest.fixture
def settings(tmp_path, storage_dir) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        DB_CREATE_TABLES=True,
        STORAGE_BACKEND="local",
        STORAGE_LOCAL_DIR=str(storage_dir),
        STORAGE_PUBLIC_BASE_URL=PUBLIC_BASE_URL,
    )


@pytest.fixture
def client(settings):
    """Test client running the full app, lifespan included."""
    from fastapi.testclient import TestClient
    from app.main import create_app

    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": "Bearer test-token"}
