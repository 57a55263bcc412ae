from fastapi import Depends, HTTPException, status

from app.db import SessionFactory, get_session_factory, settings
from app.domain.catalog.errors import (
    CatalogError,
    Conflict,
    DuplicateSku,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from app.pagination import DEFAULT_LIMIT, DEFAULT_PAGE
from app.services.accounts import AccountsService
from app.services.catalog_engine import CatalogEngine
from app.services.catalog_queries import CatalogQueries
from app.services.master_data import MasterDataService

ERROR_STATUS = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (DuplicateSku, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (Conflict, status.HTTP_409_CONFLICT),
    (PersistenceFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: CatalogError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.detail)


def check_paging(page: int | None, limit: int | None) -> tuple[int, int]:
    page = DEFAULT_PAGE if page is None else page
    limit = DEFAULT_LIMIT if limit is None else limit
    if page < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Page number must be at least 1")
    if limit < 1 or limit > settings.max_page_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Limit must be between 1 and {settings.max_page_size}",
        )
    return page, limit


def dump(schema, obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


def dump_list(schema, items) -> list[dict]:
    return [dump(schema, item) for item in items]


def get_catalog_engine(session_factory: SessionFactory = Depends(get_session_factory)) -> CatalogEngine:
    return CatalogEngine(session_factory)


def get_catalog_queries(session_factory: SessionFactory = Depends(get_session_factory)) -> CatalogQueries:
    return CatalogQueries(session_factory)


def get_master_data(session_factory: SessionFactory = Depends(get_session_factory)) -> MasterDataService:
    return MasterDataService(session_factory)


def get_accounts(session_factory: SessionFactory = Depends(get_session_factory)) -> AccountsService:
    return AccountsService(session_factory)
