"""
Reference data used by products and variants: categories, colours and sizes.
"""
from __future__ import annotations

import logging
import re
import uuid

from sqlalchemy import asc

from app import models
from app.db import SessionFactory, SessionLocal, UnitOfWork
from app.domain.catalog.errors import NotFound, ValidationError
from app.domain.catalog.variants import normalize_number
from app.services.catalog_engine import payload_dict

logger = logging.getLogger(__name__)

HEX_COLOUR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
SIZE_DIMENSIONS = ("length", "width", "height")

DEFAULT_CATEGORIES = [
    {"name": "Pakaian", "type": kind}
    for kind in ("Baju", "Celana", "Jaket", "Kemeja", "Kaos", "Dress", "Rok", "Sweater", "Hoodie", "Jas")
] + [
    {"name": "Elektronik", "type": kind}
    for kind in ("Gadget", "Laptop", "Komputer", "TV", "Speaker", "Headphone", "Kamera", "Drone")
] + [
    {"name": "Olahraga", "type": kind}
    for kind in ("Sepak Bola", "Basket", "Tenis", "Renang", "Yoga", "Bulu Tangkis")
] + [
    {"name": "Otomotif", "type": kind}
    for kind in ("Mobil", "Motor", "Sepeda")
]

DEFAULT_COLOURS = [
    {"name": "Merah", "hex": "#FF0000"},
    {"name": "Biru", "hex": "#0000FF"},
    {"name": "Hitam", "hex": "#000000"},
    {"name": "Putih", "hex": "#FFFFFF"},
    {"name": "Hijau", "hex": "#00FF00"},
    {"name": "Kuning", "hex": "#FFFF00"},
    {"name": "Ungu", "hex": "#800080"},
    {"name": "Oranye", "hex": "#FFA500"},
    {"name": "Merah Muda", "hex": "#FFC0CB"},
    {"name": "Coklat", "hex": "#A52A2A"},
    {"name": "Abu-abu", "hex": "#808080"},
    {"name": "Cyan", "hex": "#00FFFF"},
    {"name": "Magenta", "hex": "#FF00FF"},
    {"name": "Emas", "hex": "#FFD700"},
    {"name": "Perak", "hex": "#C0C0C0"},
    {"name": "Marun", "hex": "#800000"},
    {"name": "Navy", "hex": "#000080"},
    {"name": "Hijau Tua", "hex": "#006400"},
    {"name": "Turquoise", "hex": "#40E0D0"},
    {"name": "Lavender", "hex": "#E6E6FA"},
]

DEFAULT_SIZES = [
    {"name": "S", "length": 60, "height": 40, "width": 30},
    {"name": "M", "length": 65, "height": 45, "width": 35},
    {"name": "L", "length": 70, "height": 50, "width": 40},
    {"name": "XL", "length": 75, "height": 55, "width": 45},
]


def _required_text(fields: dict, key: str, label: str) -> str:
    value = fields.get(key)
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{label} is required")
    return text


def _hex_colour(value) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not HEX_COLOUR_RE.match(text):
        raise ValidationError("Colour hex must look like #RRGGBB")
    return text.upper()


def _dimension(value, key: str) -> float:
    number = normalize_number(value, key)
    if number < 0:
        raise ValidationError(f"{key} must be a non-negative number")
    return number


class MasterDataService:
    def __init__(self, session_factory: SessionFactory = SessionLocal):
        self._session_factory = session_factory

    def _unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory)

    def _list(self, model, *order_by) -> list:
        with self._unit_of_work() as uow:
            return uow.session.query(model).order_by(*order_by).all()

    def _get(self, model, identifier: str):
        with self._unit_of_work() as uow:
            return uow.session.get(model, identifier)

    def _create(self, model, values: dict):
        with self._unit_of_work() as uow:
            row = model(id=str(uuid.uuid4()), **values)
            uow.session.add(row)
        logger.info("%s created id=%s", model.__name__, row.id)
        return row

    def _update(self, model, label: str, identifier: str, values: dict):
        with self._unit_of_work() as uow:
            row = uow.session.get(model, identifier)
            if row is None:
                raise NotFound(label, identifier)
            for key, value in values.items():
                setattr(row, key, value)
        return row

    def _delete(self, model, label: str, identifier: str) -> None:
        with self._unit_of_work() as uow:
            row = uow.session.get(model, identifier)
            if row is None:
                raise NotFound(label, identifier)
            uow.session.delete(row)
        logger.info("%s deleted id=%s", model.__name__, identifier)

    # Categories

    def list_categories(self) -> list[models.Category]:
        return self._list(models.Category, asc(models.Category.name), asc(models.Category.type))

    def get_category(self, category_id: str) -> models.Category | None:
        return self._get(models.Category, category_id)

    def create_category(self, payload) -> models.Category:
        fields = payload_dict(payload)
        return self._create(
            models.Category,
            {
                "name": _required_text(fields, "name", "Category name"),
                "type": _required_text(fields, "type", "Category type"),
            },
        )

    def update_category(self, category_id: str, payload) -> models.Category:
        fields = payload_dict(payload)
        values = {}
        if fields.get("name") is not None:
            values["name"] = _required_text(fields, "name", "Category name")
        if fields.get("type") is not None:
            values["type"] = _required_text(fields, "type", "Category type")
        return self._update(models.Category, "Category", category_id, values)

    def delete_category(self, category_id: str) -> None:
        self._delete(models.Category, "Category", category_id)

    # Colours

    def list_colours(self) -> list[models.Colour]:
        return self._list(models.Colour, asc(models.Colour.name))

    def get_colour(self, colour_id: str) -> models.Colour | None:
        return self._get(models.Colour, colour_id)

    def create_colour(self, payload) -> models.Colour:
        fields = payload_dict(payload)
        return self._create(
            models.Colour,
            {
                "name": _required_text(fields, "name", "Colour name"),
                "hex": _hex_colour(fields.get("hex")),
            },
        )

    def update_colour(self, colour_id: str, payload) -> models.Colour:
        fields = payload_dict(payload)
        values = {}
        if fields.get("name") is not None:
            values["name"] = _required_text(fields, "name", "Colour name")
        if fields.get("hex") is not None:
            values["hex"] = _hex_colour(fields["hex"])
        return self._update(models.Colour, "Colour", colour_id, values)

    def delete_colour(self, colour_id: str) -> None:
        self._delete(models.Colour, "Colour", colour_id)

    # Sizes

    def list_sizes(self) -> list[models.Size]:
        return self._list(models.Size, asc(models.Size.length), asc(models.Size.name))

    def get_size(self, size_id: str) -> models.Size | None:
        return self._get(models.Size, size_id)

    def create_size(self, payload) -> models.Size:
        fields = payload_dict(payload)
        values = {"name": _required_text(fields, "name", "Size name")}
        for key in SIZE_DIMENSIONS:
            values[key] = _dimension(fields.get(key), key)
        return self._create(models.Size, values)

    def update_size(self, size_id: str, payload) -> models.Size:
        fields = payload_dict(payload)
        values = {}
        if fields.get("name") is not None:
            values["name"] = _required_text(fields, "name", "Size name")
        for key in SIZE_DIMENSIONS:
            if fields.get(key) is not None:
                values[key] = _dimension(fields[key], key)
        return self._update(models.Size, "Size", size_id, values)

    def delete_size(self, size_id: str) -> None:
        self._delete(models.Size, "Size", size_id)

    def seed(self, categories=None, colours=None, sizes=None) -> dict[str, int]:
        """Insert the default reference rows that are not stored yet.

        Rows are matched on their natural key (category name and type, colour
        name, size name), so running it twice adds nothing.
        """
        created = {"categories": 0, "colours": 0, "sizes": 0}
        with self._unit_of_work() as uow:
            session = uow.session
            for item in DEFAULT_CATEGORIES if categories is None else categories:
                exists = (
                    session.query(models.Category)
                    .filter(models.Category.name == item["name"], models.Category.type == item["type"])
                    .first()
                )
                if exists is None:
                    session.add(models.Category(id=str(uuid.uuid4()), name=item["name"], type=item["type"]))
                    session.flush()
                    created["categories"] += 1
            for item in DEFAULT_COLOURS if colours is None else colours:
                if session.query(models.Colour).filter(models.Colour.name == item["name"]).first() is None:
                    session.add(models.Colour(id=str(uuid.uuid4()), name=item["name"], hex=_hex_colour(item["hex"])))
                    session.flush()
                    created["colours"] += 1
            for item in DEFAULT_SIZES if sizes is None else sizes:
                if session.query(models.Size).filter(models.Size.name == item["name"]).first() is None:
                    values = {key: _dimension(item.get(key), key) for key in SIZE_DIMENSIONS}
                    session.add(models.Size(id=str(uuid.uuid4()), name=item["name"], **values))
                    session.flush()
                    created["sizes"] += 1
        logger.info(
            "Master data seeded categories=%s colours=%s sizes=%s",
            created["categories"],
            created["colours"],
            created["sizes"],
        )
        return created
