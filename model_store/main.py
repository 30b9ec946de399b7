"""
Main FastAPI application entry point
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .core import (
    Base,
    Settings,
    create_engine_for,
    create_session_maker,
    ensure_database_dir,
    settings as default_settings,
)
from .api import router
from .services import (
    AssetRegistry,
    ChunkStore,
    KeyedLock,
    PostProcessingPipeline,
    SessionReassembler,
    build_optimizer,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> PostProcessingPipeline:
    optimizer = build_optimizer(
        enabled=settings.ENABLE_OPTIMIZATION,
        command=settings.OPTIMIZER_COMMAND,
        timeout=settings.OPTIMIZER_TIMEOUT,
        work_dir=Path(settings.TEMP_UPLOAD_DIR) / ".optimizer"
    )
    return PostProcessingPipeline(decompress=settings.ENABLE_DECOMPRESSION, optimizer=optimizer)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown"""
    settings = app.state.settings
    logger.info("🚀 Starting Model Store...")
    
    app.state.chunk_store.ensure_root()
    app.state.registry.ensure_root()
    logger.info(f"✅ Storage ready: chunks={settings.TEMP_UPLOAD_DIR} models={settings.MODELS_DIR}")
    
    ensure_database_dir(settings.DATABASE_URL)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Session tables created/verified")
    
    optimizer = app.state.reassembler.pipeline.optimizer
    logger.info(f"⚙️ Optimizer: {optimizer.name if optimizer else 'disabled'}")
    logger.info(f"🌐 Server ready at http://{settings.SERVER_HOST}:{settings.SERVER_PORT}")
    
    yield
    
    logger.info("🛑 Shutting down Model Store...")
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    
    app = FastAPI(
        title=settings.APP_TITLE,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    
    locks = KeyedLock()
    chunk_store = ChunkStore(Path(settings.TEMP_UPLOAD_DIR), locks, max_chunk_bytes=settings.MAX_CHUNK_BYTES)
    registry = AssetRegistry(Path(settings.MODELS_DIR), extension=settings.ASSET_EXTENSION)
    
    app.state.settings = settings
    app.state.engine = create_engine_for(settings.DATABASE_URL)
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.chunk_store = chunk_store
    app.state.registry = registry
    app.state.reassembler = SessionReassembler(chunk_store, build_pipeline(settings), registry)
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    # Compress responses > 1KB when the client sends Accept-Encoding: gzip
    app.add_middleware(
        GZipMiddleware,
        minimum_size=1000,
        compresslevel=6
    )
    
    app.include_router(router)
    
    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": settings.APP_TITLE,
            "version": settings.APP_VERSION,
            "status": "running",
            "docs": "/docs",
            "health": "/health"
        }
    
    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy"}
    
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=default_settings.SERVER_HOST,
        port=default_settings.SERVER_PORT,
        log_level=default_settings.LOG_LEVEL.lower()
    )
