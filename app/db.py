from __future__ import annotations

from typing import Callable

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from app.domain.catalog.errors import CatalogError, DuplicateSku, PersistenceFailure

SessionFactory = Callable[[], Session]


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite:///./catalog.db", alias="DATABASE_URL")

    auth_secret: str = Field(alias="AUTH_SECRET")
    auth_algorithm: str = Field(default="HS256", alias="AUTH_ALGORITHM")
    access_token_expire_minutes: int = Field(default=1440, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    max_page_size: int = Field(default=50, alias="CATALOG_MAX_PAGE_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("auth_secret")
    @classmethod
    def validate_auth_secret(cls, value: str) -> str:
        if not value or value == "change-me" or len(value) < 32:
            raise ValueError("AUTH_SECRET must be set and at least 32 chars long")
        return value

    @field_validator("max_page_size")
    @classmethod
    def validate_max_page_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("CATALOG_MAX_PAGE_SIZE must be positive")
        return value


settings = Settings()


def build_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        # sqlite leaves FK enforcement off unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(bind) -> sessionmaker:
    # Results are handed back after commit, so loaded state must survive it.
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


engine = build_engine(settings.database_url)
SessionLocal = build_session_factory(engine)


class Base(DeclarativeBase):
    pass


def get_session_factory() -> SessionFactory:
    return SessionLocal


def is_sku_violation(exc: IntegrityError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return "sku" in message and ("unique" in message or "duplicate" in message)


class UnitOfWork:
    """One atomic transaction.

    Commits when the block exits cleanly and rolls back otherwise. Domain
    errors propagate untouched; a unique violation on ``variants.sku`` becomes
    ``DuplicateSku`` and any other SQLAlchemy error becomes
    ``PersistenceFailure``.
    """

    def __init__(self, session_factory: SessionFactory = SessionLocal):
        self._session_factory = session_factory
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("UnitOfWork is not active")
        return self._session

    def __enter__(self) -> "UnitOfWork":
        self._session = self._session_factory()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        session = self.session
        try:
            if exc is None:
                try:
                    session.commit()
                except SQLAlchemyError as commit_exc:
                    session.rollback()
                    raise translate_store_error(commit_exc) from commit_exc
                return False

            session.rollback()
            if isinstance(exc, CatalogError):
                return False
            if isinstance(exc, SQLAlchemyError):
                raise translate_store_error(exc) from exc
            return False
        finally:
            session.close()
            self._session = None


def translate_store_error(exc: SQLAlchemyError) -> CatalogError:
    if isinstance(exc, IntegrityError) and is_sku_violation(exc):
        return DuplicateSku(None)
    return PersistenceFailure(str(exc))
