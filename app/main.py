import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import create_engine, create_session_factory
from app.error_handlers import setup_exception_handlers
from app.middleware import RequestIDLogFilter, RequestIDMiddleware

VERSION = "0.1.0"
LOCAL_STORAGE_MOUNT = "/storage"

logger = logging.getLogger(__name__)


def configure_logging(log_level: str) -> None:
    """Set up logging with request ID injected into every log line."""
    log_filter = RequestIDLogFilter()
    formatter = logging.Formatter(
        "%(asctime)s [%(request_id)s] %(levelname)s %(name)s: %(message)s"
    )

    # Replace existing handlers on the root logger rather than using basicConfig
    # (basicConfig is a no-op if handlers are already set, which uvicorn does at startup)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(log_filter)
    root_logger.addHandler(handler)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator:
    """Set up DB engine and blob storage on startup, dispose the engine on shutdown."""
    from app.models import Base
    from app.services.storage.factory import create_blob_storage

    settings: Settings = application.state.settings
    engine = create_engine(settings)
    if settings.DB_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    application.state.engine = engine
    application.state.session_factory = create_session_factory(engine)
    application.state.storage = create_blob_storage(settings)
    logger.info(f"Blob storage backend: {settings.STORAGE_BACKEND}")

    yield

    await application.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory."""
    settings = settings or Settings()

    application = FastAPI(
        title="InfluencerFlow Contracts",
        description="Contract generation and e-signature for brand/influencer agreements",
        version=VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    application.state.settings = settings

    configure_logging(settings.LOG_LEVEL)
    application.add_middleware(RequestIDMiddleware)
    setup_exception_handlers(application)

    # Database session dependency, one transaction per request
    async def get_session() -> AsyncGenerator[AsyncSession, None]:
        async with application.state.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # Register routers
    from app.repositories.contract_repo import ContractRepository
    from app.routers.contracts import get_contract_service, router as contracts_router
    from app.services.contract_service import ContractService

    async def get_contract_service_with_session(
        session: AsyncSession = Depends(get_session),
    ) -> ContractService:
        return ContractService(
            ContractRepository(session),
            application.state.storage,
            max_signature_size_bytes=settings.max_signature_size_bytes,
        )

    application.include_router(contracts_router, prefix="/api/v1")
    application.dependency_overrides[get_contract_service] = get_contract_service_with_session

    if settings.STORAGE_BACKEND == "local" and settings.STORAGE_SERVE_LOCAL:
        application.mount(
            LOCAL_STORAGE_MOUNT,
            StaticFiles(directory=settings.STORAGE_LOCAL_DIR, check_dir=False),
            name="storage",
        )

    @application.get("/health", tags=["Health Check"])
    async def health_check():
        return {"status": "healthy", "version": VERSION}

    return application


app = create_app()
