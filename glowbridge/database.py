import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from . import config
from .errors import StoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Engine + session factory for one database URL.

    Built explicitly and handed to whoever needs it (the FastAPI lifespan
    keeps it on app.state, tests build their own), so nothing here is global.
    """

    def __init__(
        self,
        url: str,
        log_slow_queries: bool = config.DB_LOG_SLOW_QUERIES,
        slow_query_threshold: float = config.DB_SLOW_QUERY_THRESHOLD,
    ):
        self.url = url
        self.log_slow_queries = log_slow_queries
        self.slow_query_threshold = slow_query_threshold
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def _engine_options(self) -> dict:
        if self.url.startswith("sqlite"):
            options: dict = {"connect_args": {"check_same_thread": False}}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # Single shared connection so every session sees the same in-memory DB
                options["poolclass"] = StaticPool
            return options

        return {
            "pool_pre_ping": True,  # Test connections before using
            "pool_recycle": config.DB_POOL_RECYCLE,
            "pool_size": config.DB_POOL_SIZE,
            "max_overflow": config.DB_MAX_OVERFLOW,
            "pool_timeout": config.DB_POOL_TIMEOUT,
        }

    def init(self) -> "Database":
        if self.engine is not None:
            return self

        try:
            self.engine = create_engine(self.url, echo=False, **self._engine_options())
            logger.info("✅ Database engine created successfully")
        except Exception as e:
            logger.error(f"❌ Failed to create database engine: {e}")
            raise

        if self.log_slow_queries:
            self._install_slow_query_logging(self.engine)

        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        return self

    def _install_slow_query_logging(self, engine: Engine) -> None:
        threshold = self.slow_query_threshold

        @event.listens_for(engine, "before_cursor_execute")
        def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            conn.info.setdefault("query_start_time", []).append(time.time())

        @event.listens_for(engine, "after_cursor_execute")
        def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            total = time.time() - conn.info["query_start_time"].pop(-1)
            if total > threshold:
                logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

        logger.info(f"📊 Slow query logging enabled (threshold: {threshold}s)")

    def create_all(self) -> None:
        # Import models so they are registered on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine, checkfirst=True)

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database.init() must be called before opening sessions")
        return self._session_factory()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self._session_factory = None


@contextmanager
def store_errors(db: Session, description: str) -> Iterator[None]:
    """Roll back and re-raise SQLAlchemy failures as StoreError"""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ {description}: {e}")
        raise StoreError(description, cause=e) from e


@contextmanager
def atomic(db: Session, description: str = "Transaction failed") -> Iterator[Session]:
    """
    Commit everything done inside the block as one unit.

    Any exception rolls the whole block back. Repository calls made inside
    should pass commit=False.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ {description}: {e}")
        raise StoreError(description, cause=e) from e
    except Exception:
        db.rollback()
        raise


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
