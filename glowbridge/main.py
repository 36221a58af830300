import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__, config
from .database import Database
from .domain.appointments import router as appointments_router
from .domain.availability import router as availability_router
from .errors import AppError, StoreError

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API.

    With no database the lifespan opens one from DATABASE_URL and disposes it
    on shutdown. A database passed in is used as-is and left open.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        owned = None
        if getattr(app.state, "db", None) is None:
            owned = Database(config.DATABASE_URL).init()
            app.state.db = owned
        try:
            app.state.db.create_all()
            logger.info("Database tables created successfully")
        except Exception as e:
            # Another worker may have created them first
            if "already exists" in str(e):
                logger.info("Database tables already exist (created by another worker)")
            else:
                logger.error(f"Failed to create database tables: {e}")
                raise

        yield
        logger.info("Application shutting down...")
        if owned is not None:
            owned.dispose()
            app.state.db = None

    app = FastAPI(title="GlowBridge API", version=__version__, lifespan=lifespan)
    app.state.db = database

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, StoreError):
            logger.error(f"{request.method} {request.url.path} - {exc.message}: {exc.cause}")
        elif exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    # CORS Configuration
    allowed_origins = [config.FRONTEND_URL, "http://localhost:3000"]
    logger.info(f"CORS allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(availability_router)
    app.include_router(appointments_router)

    @app.get("/")
    def root():
        return {"message": "GlowBridge API is running"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
