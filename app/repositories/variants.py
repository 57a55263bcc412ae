"""Single-row persistence for product variants."""
from __future__ import annotations

import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app import models
from app.db import UnitOfWork, is_sku_violation
from app.domain.catalog.errors import DuplicateSku, NotFound
from app.domain.catalog.variants import VARIANT_FIELDS


def variant_detail_options():
    return (
        selectinload(models.Variant.product),
        selectinload(models.Variant.colour),
        selectinload(models.Variant.size),
    )


def _flush_checking_sku(uow: UnitOfWork, sku: str | None) -> None:
    # a failed flush poisons the session; the enclosing UnitOfWork rolls it back
    try:
        uow.session.flush()
    except IntegrityError as exc:
        if is_sku_violation(exc):
            raise DuplicateSku(sku) from exc
        raise


def insert_variant(uow: UnitOfWork, fields: dict) -> models.Variant:
    variant = models.Variant(
        id=fields.get("id") or str(uuid.uuid4()),
        product_id=fields["product_id"],
        sku=fields["sku"],
        stock=fields.get("stock", 0),
        colour_id=fields.get("colour_id"),
        size_id=fields.get("size_id"),
    )
    uow.session.add(variant)
    _flush_checking_sku(uow, variant.sku)
    return variant


def get_variant(uow: UnitOfWork, variant_id: str, with_details: bool = False) -> models.Variant | None:
    query = uow.session.query(models.Variant).filter(models.Variant.id == variant_id)
    if with_details:
        query = query.options(*variant_detail_options())
    return query.first()


def find_variant_by_sku(uow: UnitOfWork, sku: str, exclude_id: str | None = None) -> models.Variant | None:
    query = uow.session.query(models.Variant).filter(models.Variant.sku == sku)
    if exclude_id is not None:
        query = query.filter(models.Variant.id != exclude_id)
    return query.first()


def count_variants_for_product(uow: UnitOfWork, product_id: str) -> int:
    return (
        uow.session.query(func.count(models.Variant.id))
        .filter(models.Variant.product_id == product_id)
        .scalar()
        or 0
    )


def list_variants_for_product(uow: UnitOfWork, product_id: str) -> list[models.Variant]:
    return (
        uow.session.query(models.Variant)
        .options(selectinload(models.Variant.colour), selectinload(models.Variant.size))
        .filter(models.Variant.product_id == product_id)
        .order_by(models.Variant.created_at.asc(), models.Variant.sku.asc())
        .all()
    )


def update_variant_fields(uow: UnitOfWork, variant_id: str, partial: dict) -> None:
    variant = get_variant(uow, variant_id)
    if variant is None:
        raise NotFound("Variant", variant_id)
    for key, value in partial.items():
        if key not in VARIANT_FIELDS:
            continue
        setattr(variant, key, value)
    _flush_checking_sku(uow, partial.get("sku"))


def delete_variant(uow: UnitOfWork, variant_id: str) -> None:
    deleted = (
        uow.session.query(models.Variant)
        .filter(models.Variant.id == variant_id)
        .delete(synchronize_session="fetch")
    )
    if not deleted:
        raise NotFound("Variant", variant_id)


def delete_variants(uow: UnitOfWork, product_id: str, variant_ids: list[str]) -> int:
    ids = [item for item in variant_ids if item]
    if not ids:
        return 0
    return (
        uow.session.query(models.Variant)
        .filter(models.Variant.product_id == product_id, models.Variant.id.in_(ids))
        .delete(synchronize_session="fetch")
    )


def delete_all_variants_for_product(uow: UnitOfWork, product_id: str) -> int:
    return (
        uow.session.query(models.Variant)
        .filter(models.Variant.product_id == product_id)
        .delete(synchronize_session="fetch")
    )
