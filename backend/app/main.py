"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.config import Settings, settings as default_settings
from app.database import make_engine, make_sessionmaker
from app.models import Base
from app.schemas.common import ErrorResponse
from app.services.access_engine import AccessEngine
from app.services.accounts import AccountService
from app.services.clock import SystemClock
from app.services.errors import EngineError, InternalError
from app.services.file_storage import FileStorageService
from app.services.hashing import PasswordHasher
from app.services.metadata_store import MetadataStore
from app.services.retention import retention_loop
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, clock=None) -> FastAPI:
    """Build an app with its own database engine, blob store and access engine."""
    settings = settings or default_settings
    clock = clock or SystemClock()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create tables, wire the services, start the retention sweeper."""
        db_engine = make_engine(settings.DATABASE_URL)
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        sessions = make_sessionmaker(db_engine)
        hasher = PasswordHasher(settings.PASSWORD_HASH_METHOD)
        tokens = TokenService(settings.TOKEN_SECRET, settings.ACCESS_TOKEN_TTL_MINUTES)

        app.state.db_engine = db_engine
        app.state.engine = AccessEngine(
            clock=clock,
            tokens=tokens,
            store=MetadataStore(sessions, clock),
            blobs=FileStorageService(settings.FILE_STORAGE_PATH),
            hasher=hasher,
            min_password_length=settings.MIN_PASSWORD_LENGTH,
            private_upload_requires_auth=settings.PRIVATE_UPLOAD_REQUIRES_AUTH,
        )
        app.state.accounts = AccountService(sessions, hasher, tokens, clock)

        sweeper_task = None
        if settings.RETENTION_SWEEP_SECONDS > 0:
            sweeper_task = asyncio.create_task(
                retention_loop(app.state.engine, settings.RETENTION_SWEEP_SECONDS)
            )

        yield

        # Cleanup
        if sweeper_task is not None:
            sweeper_task.cancel()
        await db_engine.dispose()

    app = FastAPI(
        title="File Sharing API",
        version="1.0.0",
        description="Upload files and share them under visibility, password and time-window policies.",
        lifespan=lifespan,
    )

    # CORS
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        if isinstance(exc, InternalError):
            logger.error(f"{request.method} {request.url.path} failed with an internal error")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(detail=exc.message, code=exc.kind).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "code": "invalid_request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.get("/api/health")
    async def health_check():
        """Verify API and database connectivity."""
        try:
            async with app.state.db_engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
        except Exception as e:
            return {"status": "error", "database": str(e)}

    # Register routers
    from app.routes.auth import router as auth_router
    from app.routes.files import router as files_router
    app.include_router(auth_router)
    app.include_router(files_router)

    return app


app = create_app()
