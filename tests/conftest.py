import pytest
from fastapi.testclient import TestClient

from model_store.core import Base, Settings, create_engine_for, create_session_maker
from model_store.main import create_app
from model_store.services import (
    AssetRegistry,
    ChunkStore,
    KeyedLock,
    PostProcessingPipeline,
    SessionReassembler,
)


@pytest.fixture
def anyio_backend():
    # asyncio only, no trio needed
    return "asyncio"


@pytest.fixture
def test_settings(tmp_path):
    settings = Settings()
    settings.UPLOAD_ROOT = str(tmp_path)
    settings.TEMP_UPLOAD_DIR = str(tmp_path / "tmp")
    settings.MODELS_DIR = str(tmp_path / "models")
    settings.DATABASE_URL = f"sqlite+aiosqlite:///{tmp_path / 'db' / 'sessions.db'}"
    settings.ENABLE_DECOMPRESSION = True
    settings.ENABLE_OPTIMIZATION = False
    settings.CORS_ORIGINS = ["*"]
    return settings


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def db(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def chunk_store(tmp_path):
    return ChunkStore(tmp_path / "tmp", KeyedLock(), max_chunk_bytes=8 * 1024 * 1024)


@pytest.fixture
def registry(tmp_path):
    registry = AssetRegistry(tmp_path / "models", extension="glb")
    registry.ensure_root()
    return registry


@pytest.fixture
def reassembler(chunk_store, registry):
    return SessionReassembler(chunk_store, PostProcessingPipeline(decompress=True), registry)
