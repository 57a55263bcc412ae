"""
Product/variant consistency engine.

Every public write runs inside exactly one ``UnitOfWork``. After each mutation
that changes the number of variants of a product, ``has_variant`` is
recomputed from the stored count and persisted (true only when the product
has more than one variant), and a product is never left without a variant.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import BaseModel

from app import models
from app.db import SessionFactory, SessionLocal, UnitOfWork
from app.domain.catalog.errors import DuplicateSku, NotFound, ValidationError
from app.domain.catalog.variants import (
    DEFAULT_STOCK,
    clean_variant_changes,
    clean_variant_fields,
    default_sku,
    disambiguate_sku,
    has_variant_for_count,
    normalize_name,
    normalize_number,
    normalize_price,
)
from app.repositories import products as product_store
from app.repositories import variants as variant_store

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_AVATAR = "default-product.png"

PRODUCT_NOT_FOUND = "product_not_found"
VARIANT_NOT_FOUND = "variant_not_found"
CANNOT_DELETE_LAST_VARIANT = "cannot_delete_last_variant"


@dataclass(frozen=True, slots=True)
class VariantDeletion:
    success: bool
    reason: str | None = None
    message: str | None = None
    deleted_variant_id: str | None = None
    remaining_variant_count: int | None = None
    product_has_variant: bool | None = None

    @classmethod
    def refused(cls, reason: str, message: str) -> "VariantDeletion":
        return cls(success=False, reason=reason, message=message)


@dataclass(frozen=True, slots=True)
class AddedVariant:
    variant: models.Variant
    variant_count: int
    product_has_variant: bool


def payload_dict(payload) -> dict:
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def _ensure_reference(uow: UnitOfWork, model, identifier: str | None, label: str) -> None:
    if identifier is None:
        return
    if uow.session.get(model, identifier) is None:
        raise ValidationError(f"Invalid {label}: {identifier}")


def _ensure_variant_references(uow: UnitOfWork, fields: dict) -> None:
    _ensure_reference(uow, models.Colour, fields.get("colour_id"), "colour")
    _ensure_reference(uow, models.Size, fields.get("size_id"), "size")


def _product_changes(fields: dict) -> dict:
    changes: dict = {}
    if fields.get("name") is not None:
        changes["name"] = normalize_name(fields["name"])
    if fields.get("price") is not None:
        changes["price"] = normalize_price(fields["price"])
    for key in ("discount", "weight"):
        if fields.get(key) is not None:
            changes[key] = normalize_number(fields[key], key)
    for key in ("description", "avatar", "category_id"):
        if key in fields:
            changes[key] = fields[key] or None
    return changes


class CatalogEngine:
    def __init__(self, session_factory: SessionFactory = SessionLocal):
        self._session_factory = session_factory

    def _unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory)

    # --- reads used to build results ---

    def _load_product(self, product_id: str) -> models.Product | None:
        with self._unit_of_work() as uow:
            return product_store.get_product(uow, product_id, with_details=True)

    def _load_variant(self, variant_id: str) -> models.Variant | None:
        with self._unit_of_work() as uow:
            return variant_store.get_variant(uow, variant_id, with_details=True)

    # --- transaction steps ---

    def _insert_variant(self, uow: UnitOfWork, product_id: str, fields: dict) -> models.Variant:
        if variant_store.find_variant_by_sku(uow, fields["sku"]) is not None:
            logger.warning("Rejected duplicate sku=%s product_id=%s", fields["sku"], product_id)
            raise DuplicateSku(fields["sku"])
        _ensure_variant_references(uow, fields)
        return variant_store.insert_variant(uow, {**fields, "product_id": product_id})

    def _insert_default_variant(self, uow: UnitOfWork, product: models.Product) -> models.Variant:
        base = default_sku(product.name)
        sku = base
        while variant_store.find_variant_by_sku(uow, sku) is not None:
            sku = disambiguate_sku(base)
        return variant_store.insert_variant(
            uow,
            {"product_id": product.id, "sku": sku, "stock": DEFAULT_STOCK},
        )

    def _reconcile_variants(self, uow: UnitOfWork, product: models.Product) -> int:
        count = variant_store.count_variants_for_product(uow, product.id)
        if count == 0:
            self._insert_default_variant(uow, product)
            count = 1
        has_variant = has_variant_for_count(count)
        if product.has_variant != has_variant:
            product_store.update_product_fields(uow, product.id, {"has_variant": has_variant})
        return count

    # --- public operations ---

    def create(self, product_fields, variant_list=None) -> models.Product:
        fields = payload_dict(product_fields)
        if fields.get("name") is None or fields.get("price") is None:
            raise ValidationError("Product name and price are required!")
        name = normalize_name(fields["name"])
        price = normalize_price(fields["price"])
        merchant_id = fields.get("merchant_id")
        if not merchant_id:
            raise ValidationError("Merchant ID is required!")
        variants = [clean_variant_fields(payload_dict(item)) for item in (variant_list or [])]

        with self._unit_of_work() as uow:
            _ensure_reference(uow, models.Merchant, merchant_id, "merchant")
            _ensure_reference(uow, models.Category, fields.get("category_id") or None, "category")
            product = product_store.insert_product(
                uow,
                {
                    "merchant_id": merchant_id,
                    "name": name,
                    "price": price,
                    "description": fields.get("description"),
                    "discount": normalize_number(fields.get("discount"), "discount"),
                    "weight": normalize_number(fields.get("weight"), "weight"),
                    "avatar": fields.get("avatar") or DEFAULT_PRODUCT_AVATAR,
                    "category_id": fields.get("category_id") or None,
                    "has_variant": has_variant_for_count(len(variants)),
                },
            )
            if variants:
                for item in variants:
                    self._insert_variant(uow, product.id, item)
            else:
                self._insert_default_variant(uow, product)
            product_id = product.id

        logger.info("Product created product_id=%s variants=%s", product_id, max(len(variants), 1))
        return self._load_product(product_id)

    def update(self, product_id: str, product_fields=None, variant_batch=None) -> models.Product:
        changes = _product_changes(payload_dict(product_fields))
        batch = payload_dict(variant_batch)
        creates = [clean_variant_fields(payload_dict(item)) for item in batch.get("create") or []]
        updates: list[tuple[str, dict]] = []
        for item in batch.get("update") or []:
            entry = payload_dict(item)
            if not entry.get("id"):
                raise ValidationError("Each variant to update must specify its ID")
            updates.append((entry["id"], clean_variant_changes(entry)))
        deletes = [str(item) for item in batch.get("delete") or [] if item]

        with self._unit_of_work() as uow:
            product = product_store.get_product(uow, product_id)
            if product is None:
                raise NotFound("Product", product_id)
            if changes.get("category_id"):
                _ensure_reference(uow, models.Category, changes["category_id"], "category")
            if changes:
                product_store.update_product_fields(uow, product_id, changes)

            for item in creates:
                self._insert_variant(uow, product_id, item)

            for variant_id, item in updates:
                variant = variant_store.get_variant(uow, variant_id)
                if variant is None or variant.product_id != product_id:
                    raise NotFound("Variant", variant_id)
                if "sku" in item and variant_store.find_variant_by_sku(uow, item["sku"], exclude_id=variant_id):
                    logger.warning("Rejected duplicate sku=%s variant_id=%s", item["sku"], variant_id)
                    raise DuplicateSku(item["sku"])
                _ensure_variant_references(uow, item)
                if item:
                    variant_store.update_variant_fields(uow, variant_id, item)

            if deletes:
                variant_store.delete_variants(uow, product_id, deletes)

            count = self._reconcile_variants(uow, product)

        logger.info(
            "Product updated product_id=%s created=%s updated=%s deleted=%s variants=%s",
            product_id,
            len(creates),
            len(updates),
            len(deletes),
            count,
        )
        return self._load_product(product_id)

    def delete_product(self, product_id: str) -> None:
        with self._unit_of_work() as uow:
            if product_store.get_product(uow, product_id) is None:
                raise NotFound("Product", product_id)
            removed = variant_store.delete_all_variants_for_product(uow, product_id)
            product_store.delete_product(uow, product_id)
        logger.info("Product deleted product_id=%s variants=%s", product_id, removed)

    def add_variant(self, product_id: str, variant_fields) -> AddedVariant | None:
        fields = clean_variant_fields(payload_dict(variant_fields), stock_default=DEFAULT_STOCK)
        with self._unit_of_work() as uow:
            product = product_store.get_product(uow, product_id)
            if product is None:
                return None
            variant = self._insert_variant(uow, product_id, fields)
            count = self._reconcile_variants(uow, product)
            variant_id = variant.id

        logger.info("Variant added product_id=%s variant_id=%s variants=%s", product_id, variant_id, count)
        return AddedVariant(
            variant=self._load_variant(variant_id),
            variant_count=count,
            product_has_variant=has_variant_for_count(count),
        )

    def delete_variant(self, product_id: str, variant_id: str) -> VariantDeletion:
        with self._unit_of_work() as uow:
            product = product_store.get_product(uow, product_id)
            if product is None:
                return VariantDeletion.refused(PRODUCT_NOT_FOUND, "Product not found")
            variant = variant_store.get_variant(uow, variant_id)
            if variant is None or variant.product_id != product_id:
                return VariantDeletion.refused(
                    VARIANT_NOT_FOUND, "Variant not found or doesn't belong to this product"
                )
            if variant_store.count_variants_for_product(uow, product_id) <= 1:
                logger.warning("Refused deleting last variant product_id=%s variant_id=%s", product_id, variant_id)
                return VariantDeletion.refused(
                    CANNOT_DELETE_LAST_VARIANT,
                    "Cannot delete the last variant of a product. A product must have at least one variant.",
                )
            variant_store.delete_variant(uow, variant_id)
            remaining = self._reconcile_variants(uow, product)

        logger.info("Variant deleted product_id=%s variant_id=%s remaining=%s", product_id, variant_id, remaining)
        return VariantDeletion(
            success=True,
            deleted_variant_id=variant_id,
            remaining_variant_count=remaining,
            product_has_variant=has_variant_for_count(remaining),
        )

    def update_variant(self, variant_id: str, partial, product_id: str | None = None) -> models.Variant | None:
        changes = clean_variant_changes(payload_dict(partial))
        with self._unit_of_work() as uow:
            variant = variant_store.get_variant(uow, variant_id)
            if variant is None or (product_id is not None and variant.product_id != product_id):
                return None
            changes = {key: value for key, value in changes.items() if getattr(variant, key) != value}
            if changes:
                if "sku" in changes and variant_store.find_variant_by_sku(uow, changes["sku"], exclude_id=variant_id):
                    logger.warning("Rejected duplicate sku=%s variant_id=%s", changes["sku"], variant_id)
                    raise DuplicateSku(changes["sku"])
                _ensure_variant_references(uow, changes)
                variant_store.update_variant_fields(uow, variant_id, changes)

        if changes:
            logger.info("Variant updated variant_id=%s fields=%s", variant_id, sorted(changes))
        return self._load_variant(variant_id)
