"""
Read paths of the catalog: product listings, category listing, name search,
product detail and the variants of one product.
"""
from __future__ import annotations

from sqlalchemy import asc, desc

from app import models
from app.db import SessionFactory, SessionLocal, UnitOfWork, settings
from app.pagination import Page, normalize_paging, page_offset
from app.repositories import products as product_store
from app.repositories import variants as variant_store


def escape_like(term: str) -> str:
    """Make ``%`` and ``_`` match literally in a LIKE pattern escaped with ``\\``."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogQueries:
    def __init__(self, session_factory: SessionFactory = SessionLocal, max_limit: int | None = None):
        self._session_factory = session_factory
        self._max_limit = max_limit or settings.max_page_size

    def _unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory)

    def _paging(self, page: int | None, limit: int | None) -> tuple[int, int]:
        return normalize_paging(page, limit, self._max_limit)

    def _page(self, query, order_by, page: int, limit: int) -> Page:
        total = query.order_by(None).count()
        items = (
            query.options(*product_store.product_detail_options())
            .order_by(*order_by)
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def get_product(self, product_id: str) -> models.Product | None:
        with self._unit_of_work() as uow:
            return product_store.get_product(uow, product_id, with_details=True)

    def list_products(self, page: int = 1, limit: int = 10) -> Page:
        p, size = self._paging(page, limit)
        with self._unit_of_work() as uow:
            query = uow.session.query(models.Product)
            return self._page(query, (asc(models.Product.name), asc(models.Product.id)), p, size)

    def list_products_by_category(self, category_id: str, page: int = 1, limit: int = 10) -> dict | None:
        p, size = self._paging(page, limit)
        with self._unit_of_work() as uow:
            category = uow.session.get(models.Category, category_id)
            if category is None:
                return None
            query = uow.session.query(models.Product).filter(models.Product.category_id == category_id)
            result = self._page(query, (desc(models.Product.created_at), asc(models.Product.id)), p, size)
        return {
            "category": category,
            "products": result.items,
            "pagination": result.pagination(),
        }

    def search_products_by_name(self, term: str | None, page: int = 1, limit: int = 10) -> Page:
        p, size = self._paging(page, limit)
        token = (term or "").strip()
        if not token:
            return Page(items=[], total=0, page=p, limit=size)
        pattern = f"%{escape_like(token)}%"
        with self._unit_of_work() as uow:
            query = uow.session.query(models.Product).filter(models.Product.name.ilike(pattern, escape="\\"))
            return self._page(query, (desc(models.Product.created_at), asc(models.Product.id)), p, size)

    def list_product_variants(self, product_id: str) -> dict | None:
        with self._unit_of_work() as uow:
            product = product_store.get_product(uow, product_id)
            if product is None:
                return None
            variants = variant_store.list_variants_for_product(uow, product_id)
        return {
            "product_id": product.id,
            "product_name": product.name,
            "has_variant": product.has_variant,
            "variant_count": len(variants),
            "variants": variants,
        }
