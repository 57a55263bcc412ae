import pytest

from app import models
from app.db import UnitOfWork
from app.domain.catalog.errors import NotFound, ValidationError
from app.services.master_data import DEFAULT_CATEGORIES, DEFAULT_COLOURS, DEFAULT_SIZES


class TestCategories:
    def test_crud(self, master_data):
        created = master_data.create_category({"name": " Elektronik ", "type": "Laptop"})
        assert created.name == "Elektronik"

        updated = master_data.update_category(created.id, {"type": "Kamera"})
        assert (updated.name, updated.type) == ("Elektronik", "Kamera")
        assert [c.id for c in master_data.list_categories()] == [created.id]

        master_data.delete_category(created.id)
        assert master_data.get_category(created.id) is None

    def test_requires_name_and_type(self, master_data):
        with pytest.raises(ValidationError, match="Category type is required"):
            master_data.create_category({"name": "Pakaian"})

    def test_deleting_category_detaches_products(self, master_data, catalog, merchant, category, session_factory):
        product = catalog.create(
            {"name": "Kaos", "price": 1000, "merchant_id": merchant.id, "category_id": category.id}
        )

        master_data.delete_category(category.id)

        with UnitOfWork(session_factory) as uow:
            assert uow.session.get(models.Product, product.id).category_id is None

    def test_update_missing(self, master_data):
        with pytest.raises(NotFound):
            master_data.update_category("missing", {"name": "x"})


class TestColours:
    def test_hex_is_validated_and_uppercased(self, master_data):
        colour = master_data.create_colour({"name": "Navy", "hex": "#00008b"})
        assert colour.hex == "#00008B"

        with pytest.raises(ValidationError):
            master_data.create_colour({"name": "Bad", "hex": "blue"})

    def test_delete_missing(self, master_data):
        with pytest.raises(NotFound):
            master_data.delete_colour("missing")


class TestSizes:
    def test_dimensions(self, master_data):
        size = master_data.create_size({"name": "XL", "length": "75", "width": 45})

        assert (size.length, size.width, size.height) == (75.0, 45.0, 0)

        with pytest.raises(ValidationError):
            master_data.update_size(size.id, {"height": -1})

    def test_list_orders_by_length(self, master_data):
        master_data.create_size({"name": "L", "length": 70})
        master_data.create_size({"name": "S", "length": 60})

        assert [s.name for s in master_data.list_sizes()] == ["S", "L"]


class TestSeed:
    def test_loads_defaults_once(self, master_data):
        first = master_data.seed()
        second = master_data.seed()

        assert first == {
            "categories": len(DEFAULT_CATEGORIES),
            "colours": len(DEFAULT_COLOURS),
            "sizes": len(DEFAULT_SIZES),
        }
        assert second == {"categories": 0, "colours": 0, "sizes": 0}
        assert len(master_data.list_colours()) == 20
