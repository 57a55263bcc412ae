"""
Product/variant consistency engine against an in-memory SQLite store.
"""

import pytest
from sqlalchemy import event, func

from app import models
from app.db import UnitOfWork
from app.domain.catalog.errors import DuplicateSku, NotFound, ValidationError
from app.services.catalog_engine import (
    CANNOT_DELETE_LAST_VARIANT,
    DEFAULT_PRODUCT_AVATAR,
    PRODUCT_NOT_FOUND,
    VARIANT_NOT_FOUND,
)


def stored_variants(session_factory, product_id):
    with UnitOfWork(session_factory) as uow:
        return (
            uow.session.query(models.Variant)
            .filter(models.Variant.product_id == product_id)
            .order_by(models.Variant.created_at, models.Variant.sku)
            .all()
        )


def stored_product(session_factory, product_id):
    with UnitOfWork(session_factory) as uow:
        return uow.session.get(models.Product, product_id)


def assert_consistent(session_factory, product_id):
    variants = stored_variants(session_factory, product_id)
    product = stored_product(session_factory, product_id)
    assert len(variants) >= 1
    assert product.has_variant == (len(variants) > 1)


def product_fields(merchant, **overrides):
    fields = {"name": "Kaos Polos", "price": 75000, "merchant_id": merchant.id}
    fields.update(overrides)
    return fields


@pytest.fixture
def two_variant_product(catalog, merchant):
    return catalog.create(
        product_fields(merchant),
        [{"sku": "A1", "stock": 5}, {"sku": "A2", "stock": 0}],
    )


class TestCreate:
    def test_without_variants_gets_default_variant(self, catalog, merchant, session_factory):
        product = catalog.create(product_fields(merchant, name="kaos polos"))

        assert len(product.variants) == 1
        assert product.variants[0].sku.startswith("KAO-")
        assert product.variants[0].stock == 0
        assert product.has_variant is False
        assert product.avatar == DEFAULT_PRODUCT_AVATAR
        assert_consistent(session_factory, product.id)

    def test_with_two_variants_sets_flag(self, two_variant_product, session_factory):
        assert two_variant_product.has_variant is True
        assert sorted(v.sku for v in two_variant_product.variants) == ["A1", "A2"]
        assert_consistent(session_factory, two_variant_product.id)

    def test_with_single_variant_keeps_flag_false(self, catalog, merchant, session_factory):
        product = catalog.create(product_fields(merchant), [{"sku": "ONLY", "stock": 3}])

        assert product.has_variant is False
        assert [v.sku for v in product.variants] == ["ONLY"]
        assert_consistent(session_factory, product.id)

    def test_loads_merchant_category_and_variant_references(
        self, catalog, merchant, category, colour, size
    ):
        product = catalog.create(
            product_fields(merchant, category_id=category.id),
            [{"sku": "RED-M", "stock": 1, "colour_id": colour.id, "size_id": size.id}],
        )

        assert product.merchant.name == "Toko Budi"
        assert product.category.type == "Kaos"
        assert product.variants[0].colour.hex == "#FF0000"
        assert product.variants[0].size.name == "M"

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"name": None}, "Product name and price are required!"),
            ({"price": None}, "Product name and price are required!"),
            ({"price": 0}, "Price must be a positive number!"),
            ({"price": "abc"}, "Price must be a positive number!"),
            ({"merchant_id": None}, "Merchant ID is required!"),
        ],
    )
    def test_rejects_invalid_product_fields(self, catalog, merchant, session_factory, overrides, message):
        with pytest.raises(ValidationError, match=message):
            catalog.create(product_fields(merchant, **overrides))

        with UnitOfWork(session_factory) as uow:
            assert uow.session.query(models.Product).count() == 0

    @pytest.mark.parametrize(
        "variant, message",
        [
            ({"stock": 1}, "Each variant must have an SKU!"),
            ({"sku": "  ", "stock": 1}, "Each variant must have an SKU!"),
            ({"sku": "X1"}, "Stock must be a non-negative number!"),
            ({"sku": "X1", "stock": -1}, "Stock must be a non-negative number!"),
        ],
    )
    def test_rejects_invalid_variants(self, catalog, merchant, variant, message):
        with pytest.raises(ValidationError, match=message):
            catalog.create(product_fields(merchant), [variant])

    def test_rejects_unknown_merchant(self, catalog, merchant):
        with pytest.raises(ValidationError, match="Invalid merchant"):
            catalog.create(product_fields(merchant, merchant_id="missing"))

    def test_duplicate_sku_inside_list_leaves_nothing(self, catalog, merchant, session_factory):
        with pytest.raises(DuplicateSku):
            catalog.create(product_fields(merchant), [{"sku": "D1", "stock": 1}, {"sku": "D1", "stock": 2}])

        with UnitOfWork(session_factory) as uow:
            assert uow.session.query(models.Product).count() == 0
            assert uow.session.query(models.Variant).count() == 0

    def test_duplicate_sku_against_store_leaves_nothing(self, catalog, merchant, two_variant_product, session_factory):
        with pytest.raises(DuplicateSku, match="A1"):
            catalog.create(product_fields(merchant, name="Other"), [{"sku": "A1", "stock": 1}])

        with UnitOfWork(session_factory) as uow:
            assert uow.session.query(models.Product).count() == 1
            assert uow.session.query(models.Variant).count() == 2

    def test_default_skus_made_in_same_millisecond_stay_unique(self, catalog, merchant, monkeypatch):
        monkeypatch.setattr(
            "app.services.catalog_engine.default_sku",
            lambda name: f"{name[:3].upper()}-1700000000000",
        )

        first = catalog.create(product_fields(merchant, name="Topi"))
        second = catalog.create(product_fields(merchant, name="Topi"))

        assert first.variants[0].sku == "TOP-1700000000000"
        assert second.variants[0].sku.startswith("TOP-1700000000000-")


class TestUpdate:
    def test_batch_delete_flips_flag(self, catalog, two_variant_product, session_factory):
        a2 = next(v for v in two_variant_product.variants if v.sku == "A2")

        product = catalog.update(two_variant_product.id, {}, {"delete": [a2.id]})

        assert [v.sku for v in product.variants] == ["A1"]
        assert product.has_variant is False
        assert_consistent(session_factory, product.id)

    def test_duplicate_sku_in_batch_update_changes_nothing(self, catalog, two_variant_product, session_factory):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")

        with pytest.raises(DuplicateSku):
            catalog.update(two_variant_product.id, {}, {"update": [{"id": a1.id, "sku": "A2"}]})

        variants = {v.id: v for v in stored_variants(session_factory, two_variant_product.id)}
        assert variants[a1.id].sku == "A1"
        assert variants[a1.id].stock == 5

    def test_failure_rolls_back_every_entry_and_product_fields(self, catalog, merchant, session_factory):
        product = catalog.create(
            product_fields(merchant),
            [{"sku": f"S{i}", "stock": i} for i in range(1, 6)],
        )
        ids = {v.sku: v.id for v in product.variants}
        updates = [
            {"id": ids["S1"], "stock": 100},
            {"id": ids["S2"], "stock": 200},
            {"id": ids["S3"], "sku": "S5"},
            {"id": ids["S4"], "stock": 400},
            {"id": ids["S5"], "stock": 500},
        ]

        with pytest.raises(DuplicateSku):
            catalog.update(product.id, {"name": "Renamed", "price": 1}, {"update": updates})

        stored = stored_product(session_factory, product.id)
        assert stored.name == "Kaos Polos"
        assert {v.sku: v.stock for v in stored_variants(session_factory, product.id)} == {
            "S1": 1, "S2": 2, "S3": 3, "S4": 4, "S5": 5,
        }

    def test_deleting_every_variant_recreates_default(self, catalog, two_variant_product, session_factory):
        ids = [v.id for v in two_variant_product.variants]

        product = catalog.update(two_variant_product.id, None, {"delete": ids})

        assert len(product.variants) == 1
        assert product.variants[0].id not in ids
        assert product.variants[0].sku.startswith("KAO-")
        assert product.has_variant is False
        assert_consistent(session_factory, product.id)

    def test_create_update_and_delete_in_one_batch(self, catalog, two_variant_product, session_factory):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")
        a2 = next(v for v in two_variant_product.variants if v.sku == "A2")

        product = catalog.update(
            two_variant_product.id,
            {"description": "Cotton"},
            {
                "create": [{"sku": "A3", "stock": 7}],
                "update": [{"id": a1.id, "stock": 9}],
                "delete": [a2.id],
            },
        )

        assert product.description == "Cotton"
        assert {v.sku: v.stock for v in product.variants} == {"A1": 9, "A3": 7}
        assert product.has_variant is True
        assert_consistent(session_factory, product.id)

    def test_ignores_client_supplied_flag_and_merchant(self, catalog, two_variant_product, session_factory):
        product = catalog.update(
            two_variant_product.id,
            {"has_variant": False, "merchant_id": "someone-else", "price": "12.50"},
        )

        assert product.has_variant is True
        assert product.merchant_id == two_variant_product.merchant_id
        assert float(product.price) == 12.5

    def test_delete_ids_of_other_products_are_ignored(self, catalog, merchant, two_variant_product, session_factory):
        other = catalog.create(product_fields(merchant, name="Celana"), [{"sku": "C1", "stock": 1}])

        catalog.update(two_variant_product.id, {}, {"delete": [other.variants[0].id]})

        assert [v.sku for v in stored_variants(session_factory, other.id)] == ["C1"]

    def test_update_entry_of_other_product_is_not_found(self, catalog, merchant, two_variant_product):
        other = catalog.create(product_fields(merchant, name="Celana"), [{"sku": "C1", "stock": 1}])

        with pytest.raises(NotFound):
            catalog.update(two_variant_product.id, {}, {"update": [{"id": other.variants[0].id, "stock": 3}]})

    def test_update_entry_without_id(self, catalog, two_variant_product):
        with pytest.raises(ValidationError, match="must specify its ID"):
            catalog.update(two_variant_product.id, {}, {"update": [{"stock": 3}]})

    def test_missing_product(self, catalog):
        with pytest.raises(NotFound):
            catalog.update("missing", {"name": "x"})

    def test_unknown_category(self, catalog, two_variant_product):
        with pytest.raises(ValidationError, match="Invalid category"):
            catalog.update(two_variant_product.id, {"category_id": "nope"})


class TestDeleteProduct:
    def test_removes_product_and_variants(self, catalog, two_variant_product, session_factory):
        catalog.delete_product(two_variant_product.id)

        with UnitOfWork(session_factory) as uow:
            assert uow.session.get(models.Product, two_variant_product.id) is None
            assert uow.session.query(func.count(models.Variant.id)).scalar() == 0

    def test_missing_product(self, catalog):
        with pytest.raises(NotFound):
            catalog.delete_product("missing")


class TestAddVariant:
    def test_second_variant_sets_flag(self, catalog, merchant, session_factory):
        product = catalog.create(product_fields(merchant))

        added = catalog.add_variant(product.id, {"sku": "NEW-1"})

        assert added.variant.sku == "NEW-1"
        assert added.variant.stock == 0
        assert added.variant.product.id == product.id
        assert added.variant_count == 2
        assert added.product_has_variant is True
        assert stored_product(session_factory, product.id).has_variant is True

    def test_missing_product_returns_none(self, catalog):
        assert catalog.add_variant("missing", {"sku": "X", "stock": 1}) is None

    def test_duplicate_sku(self, catalog, two_variant_product, session_factory):
        with pytest.raises(DuplicateSku):
            catalog.add_variant(two_variant_product.id, {"sku": "A1", "stock": 1})

        assert len(stored_variants(session_factory, two_variant_product.id)) == 2

    def test_unknown_colour(self, catalog, two_variant_product):
        with pytest.raises(ValidationError, match="Invalid colour"):
            catalog.add_variant(two_variant_product.id, {"sku": "Z", "stock": 1, "colour_id": "nope"})


class TestDeleteVariant:
    def test_deleting_down_to_one_clears_flag(self, catalog, two_variant_product, session_factory):
        a2 = next(v for v in two_variant_product.variants if v.sku == "A2")

        result = catalog.delete_variant(two_variant_product.id, a2.id)

        assert result.success is True
        assert result.deleted_variant_id == a2.id
        assert result.remaining_variant_count == 1
        assert result.product_has_variant is False
        assert_consistent(session_factory, two_variant_product.id)

    def test_refuses_last_variant(self, catalog, merchant, session_factory):
        product = catalog.create(product_fields(merchant))
        only = product.variants[0]

        result = catalog.delete_variant(product.id, only.id)

        assert result.success is False
        assert result.reason == CANNOT_DELETE_LAST_VARIANT
        assert [v.id for v in stored_variants(session_factory, product.id)] == [only.id]

    def test_refuses_unknown_product(self, catalog):
        result = catalog.delete_variant("missing", "whatever")

        assert result.success is False
        assert result.reason == PRODUCT_NOT_FOUND

    def test_refuses_variant_of_other_product(self, catalog, merchant, two_variant_product):
        other = catalog.create(product_fields(merchant, name="Celana"))

        result = catalog.delete_variant(two_variant_product.id, other.variants[0].id)

        assert result.success is False
        assert result.reason == VARIANT_NOT_FOUND
        assert result.message == "Variant not found or doesn't belong to this product"


class TestUpdateVariant:
    def test_updates_supplied_fields(self, catalog, two_variant_product, colour):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")

        variant = catalog.update_variant(a1.id, {"stock": 11, "colour_id": colour.id})

        assert variant.stock == 11
        assert variant.sku == "A1"
        assert variant.colour.name == "Merah"

    def test_null_clears_colour_and_size(self, catalog, two_variant_product, colour, size):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")
        catalog.update_variant(a1.id, {"colour_id": colour.id, "size_id": size.id})

        variant = catalog.update_variant(a1.id, {"colour_id": None})
        assert variant.colour_id is None
        assert variant.size.name == "M"

        catalog.update(two_variant_product.id, {}, {"update": [{"id": a1.id, "size_id": None}]})
        cleared = catalog.update_variant(a1.id, {})
        assert cleared.size_id is None
        assert cleared.stock == 5

    def test_no_changes_performs_no_write(self, catalog, two_variant_product, engine):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")
        writes = []

        def record(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith(("INSERT", "UPDATE", "DELETE")):
                writes.append(statement)

        event.listen(engine, "before_cursor_execute", record)
        try:
            variant = catalog.update_variant(a1.id, {"sku": "A1", "stock": 5})
            untouched = catalog.update_variant(a1.id, {})
        finally:
            event.remove(engine, "before_cursor_execute", record)

        assert writes == []
        assert (variant.sku, variant.stock) == ("A1", 5)
        assert (untouched.sku, untouched.stock) == ("A1", 5)

    def test_duplicate_sku(self, catalog, two_variant_product, session_factory):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")

        with pytest.raises(DuplicateSku):
            catalog.update_variant(a1.id, {"sku": "A2"})

        assert {v.sku for v in stored_variants(session_factory, two_variant_product.id)} == {"A1", "A2"}

    def test_negative_stock(self, catalog, two_variant_product):
        a1 = next(v for v in two_variant_product.variants if v.sku == "A1")

        with pytest.raises(ValidationError):
            catalog.update_variant(a1.id, {"stock": -3})

    def test_missing_or_foreign_variant_returns_none(self, catalog, merchant, two_variant_product):
        other = catalog.create(product_fields(merchant, name="Celana"))

        assert catalog.update_variant("missing", {"stock": 1}) is None
        assert catalog.update_variant(other.variants[0].id, {"stock": 1}, product_id=two_variant_product.id) is None


class TestInvariantsAcrossSequences:
    def test_every_step_keeps_product_consistent(self, catalog, merchant, session_factory):
        product = catalog.create(product_fields(merchant))
        assert_consistent(session_factory, product.id)

        added = catalog.add_variant(product.id, {"sku": "B1", "stock": 1})
        assert_consistent(session_factory, product.id)

        catalog.add_variant(product.id, {"sku": "B2", "stock": 2})
        assert_consistent(session_factory, product.id)

        catalog.delete_variant(product.id, added.variant.id)
        assert_consistent(session_factory, product.id)

        remaining = stored_variants(session_factory, product.id)
        catalog.update(product.id, {}, {"delete": [v.id for v in remaining]})
        assert_consistent(session_factory, product.id)

        last = stored_variants(session_factory, product.id)[0]
        assert catalog.delete_variant(product.id, last.id).success is False
        assert_consistent(session_factory, product.id)
