"""Single-row persistence for products.

Every function takes the active ``UnitOfWork`` first; none of them commits.
"""
from __future__ import annotations

import uuid

from sqlalchemy.orm import selectinload

from app import models
from app.db import UnitOfWork
from app.domain.catalog.errors import NotFound

PRODUCT_FIELDS = (
    "name",
    "price",
    "description",
    "discount",
    "weight",
    "avatar",
    "has_variant",
    "category_id",
)


def product_detail_options():
    return (
        selectinload(models.Product.merchant),
        selectinload(models.Product.category),
        selectinload(models.Product.variants).selectinload(models.Variant.colour),
        selectinload(models.Product.variants).selectinload(models.Variant.size),
    )


def insert_product(uow: UnitOfWork, fields: dict) -> models.Product:
    product = models.Product(
        id=fields.get("id") or str(uuid.uuid4()),
        merchant_id=fields["merchant_id"],
        **{key: fields[key] for key in PRODUCT_FIELDS if key in fields},
    )
    uow.session.add(product)
    uow.session.flush()
    return product


def get_product(uow: UnitOfWork, product_id: str, with_details: bool = False) -> models.Product | None:
    query = uow.session.query(models.Product).filter(models.Product.id == product_id)
    if with_details:
        query = query.options(*product_detail_options())
    return query.first()


def update_product_fields(uow: UnitOfWork, product_id: str, partial: dict) -> None:
    product = get_product(uow, product_id)
    if product is None:
        raise NotFound("Product", product_id)
    for key, value in partial.items():
        if key not in PRODUCT_FIELDS:
            continue
        setattr(product, key, value)
    uow.session.flush()


def delete_product(uow: UnitOfWork, product_id: str) -> None:
    product = get_product(uow, product_id)
    if product is None:
        raise NotFound("Product", product_id)
    uow.session.delete(product)
    uow.session.flush()
