"""
Users and the merchants they own.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import date

from sqlalchemy import asc, func, or_
from sqlalchemy.orm import selectinload

from app import models
from app.db import SessionFactory, SessionLocal, UnitOfWork, settings
from app.domain.catalog.errors import Conflict, NotFound, ValidationError
from app.pagination import Page, normalize_paging, page_offset
from app.security import hash_password, verify_password
from app.services.catalog_engine import payload_dict

logger = logging.getLogger(__name__)

DEFAULT_USER_AVATAR = "default-user.png"
DEFAULT_MERCHANT_AVATAR = "default-merch.png"
DEFAULT_MERCHANT_TYPE = "Merchant"

PASSWORD_MIN_LENGTH = 8
SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

USER_FIELDS = ("username", "fullname", "email", "gender", "birth", "address", "phone", "avatar")
MERCHANT_FIELDS = ("name", "email", "address", "phone", "avatar", "type", "status")


def is_password_valid(password: str) -> bool:
    if not password or len(password) < PASSWORD_MIN_LENGTH:
        return False
    strength = [
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"[0-9]", password)),
        bool(SPECIAL_CHARS_RE.search(password)),
    ]
    return sum(strength) >= 3


def is_email_valid(email: str) -> bool:
    return bool(email) and "@" in email and ".com" in email


def is_phone_valid(phone: str) -> bool:
    return bool(phone) and 9 <= len(phone) <= 13


def _parse_birth(value) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError("Birth date must look like YYYY-MM-DD")


def _merchant_email(name: str, email: str | None) -> str:
    if email and email.strip():
        return email.strip()
    local_part = re.sub(r"\s", "", name.lower())
    return f"{local_part}@mail.com"


class AccountsService:
    def __init__(self, session_factory: SessionFactory = SessionLocal, max_limit: int | None = None):
        self._session_factory = session_factory
        self._max_limit = max_limit or settings.max_page_size

    def _unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory)

    def _page(self, query, order_by, page: int | None, limit: int | None) -> Page:
        p, size = normalize_paging(page, limit, self._max_limit)
        total = query.order_by(None).count()
        items = query.order_by(*order_by).offset(page_offset(p, size)).limit(size).all()
        return Page(items=items, total=total, page=p, limit=size)

    # --- users ---

    def register_user(self, payload) -> models.User:
        fields = payload_dict(payload)
        required = ("username", "fullname", "email", "password", "phone")
        if any(not fields.get(key) for key in required):
            raise ValidationError("Please provide all required fields !")
        if not is_password_valid(fields["password"]):
            raise ValidationError("Password is not strong enough !")
        if not is_email_valid(fields["email"]):
            raise ValidationError("Email is not valid !")
        if not is_phone_valid(fields["phone"]):
            raise ValidationError("Phone number is not valid !")

        with self._unit_of_work() as uow:
            existing = (
                uow.session.query(models.User)
                .filter(or_(models.User.username == fields["username"], models.User.email == fields["email"]))
                .first()
            )
            if existing is not None:
                logger.warning("Rejected registration username=%s", fields["username"])
                raise Conflict("User already exist !")
            user = models.User(
                id=str(uuid.uuid4()),
                username=fields["username"],
                fullname=fields["fullname"],
                email=fields["email"],
                password_hash=hash_password(fields["password"]),
                gender=fields.get("gender"),
                birth=_parse_birth(fields.get("birth")),
                address=fields.get("address"),
                phone=fields["phone"],
                avatar=DEFAULT_USER_AVATAR,
            )
            uow.session.add(user)

        logger.info("User registered user_id=%s", user.id)
        return user

    def authenticate(self, username: str, password: str) -> models.User | None:
        with self._unit_of_work() as uow:
            user = uow.session.query(models.User).filter(models.User.username == username).first()
        if user is None or not verify_password(password or "", user.password_hash):
            logger.warning("Failed login username=%s", username)
            return None
        return user

    def list_users(self, page: int = 1, limit: int = 10) -> Page:
        with self._unit_of_work() as uow:
            query = uow.session.query(models.User).options(selectinload(models.User.merchants))
            return self._page(query, (asc(models.User.username),), page, limit)

    def get_user(self, user_id: str) -> models.User | None:
        with self._unit_of_work() as uow:
            return (
                uow.session.query(models.User)
                .options(selectinload(models.User.merchants))
                .filter(models.User.id == user_id)
                .first()
            )

    def update_user(self, user_id: str, partial) -> models.User:
        fields = {key: value for key, value in payload_dict(partial).items() if key in USER_FIELDS}
        if fields.get("email") is not None and not is_email_valid(fields["email"]):
            raise ValidationError("Email is not valid !")
        if fields.get("phone") is not None and not is_phone_valid(fields["phone"]):
            raise ValidationError("Phone number is not valid !")
        if "birth" in fields:
            fields["birth"] = _parse_birth(fields["birth"])

        with self._unit_of_work() as uow:
            user = uow.session.get(models.User, user_id)
            if user is None:
                raise NotFound("User", user_id)
            clashes = []
            if fields.get("username"):
                clashes.append(models.User.username == fields["username"])
            if fields.get("email"):
                clashes.append(models.User.email == fields["email"])
            if clashes:
                taken = (
                    uow.session.query(models.User)
                    .filter(models.User.id != user_id, or_(*clashes))
                    .first()
                )
                if taken is not None:
                    raise Conflict("Username or email already taken !")
            for key, value in fields.items():
                if value is None and key in ("username", "fullname", "email", "phone"):
                    continue
                setattr(user, key, value)

        logger.info("User updated user_id=%s fields=%s", user_id, sorted(fields))
        return self.get_user(user_id)

    # --- merchants ---

    def _merchant_query(self, uow: UnitOfWork):
        return uow.session.query(models.Merchant).options(
            selectinload(models.Merchant.user),
            selectinload(models.Merchant.products),
        )

    def list_merchants(self, page: int = 1, limit: int = 10) -> Page:
        with self._unit_of_work() as uow:
            return self._page(self._merchant_query(uow), (asc(models.Merchant.name),), page, limit)

    def get_merchant(self, merchant_id: str) -> models.Merchant | None:
        with self._unit_of_work() as uow:
            return self._merchant_query(uow).filter(models.Merchant.id == merchant_id).first()

    def create_merchant(self, user_id: str, payload) -> models.Merchant:
        fields = payload_dict(payload)
        if fields.get("phone") and not is_phone_valid(fields["phone"]):
            raise ValidationError("Phone number is not valid !")
        name = (fields.get("name") or "").strip()
        address = (fields.get("address") or "").strip()
        if not name or not address:
            raise ValidationError("Please atleast provide name and address !")

        with self._unit_of_work() as uow:
            if uow.session.get(models.User, user_id) is None:
                raise NotFound("User", user_id)
            merchant = models.Merchant(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=name,
                email=_merchant_email(name, fields.get("email")),
                address=address,
                phone=fields.get("phone") or "",
                avatar=fields.get("avatar") or DEFAULT_MERCHANT_AVATAR,
                type=(fields.get("type") or "").strip() or DEFAULT_MERCHANT_TYPE,
                status=fields.get("status"),
            )
            uow.session.add(merchant)
            merchant_id = merchant.id

        logger.info("Merchant created merchant_id=%s user_id=%s", merchant_id, user_id)
        return self.get_merchant(merchant_id)

    def update_merchant(self, merchant_id: str, partial) -> models.Merchant:
        fields = {key: value for key, value in payload_dict(partial).items() if key in MERCHANT_FIELDS}
        if fields.get("phone") and not is_phone_valid(fields["phone"]):
            raise ValidationError("Phone number is not valid !")
        for key in ("name", "address"):
            if key in fields and not (fields[key] or "").strip():
                raise ValidationError("Please atleast provide name and address !")

        with self._unit_of_work() as uow:
            merchant = uow.session.get(models.Merchant, merchant_id)
            if merchant is None:
                raise NotFound("Merchant", merchant_id)
            if "email" in fields:
                fields["email"] = _merchant_email(fields.get("name") or merchant.name, fields["email"])
            if "type" in fields:
                fields["type"] = (fields["type"] or "").strip() or DEFAULT_MERCHANT_TYPE
            for key, value in fields.items():
                setattr(merchant, key, value.strip() if key in ("name", "address") else value)

        logger.info("Merchant updated merchant_id=%s fields=%s", merchant_id, sorted(fields))
        return self.get_merchant(merchant_id)

    def delete_merchant(self, merchant_id: str) -> None:
        with self._unit_of_work() as uow:
            merchant = uow.session.get(models.Merchant, merchant_id)
            if merchant is None:
                raise NotFound("Merchant", merchant_id)
            products = (
                uow.session.query(func.count(models.Product.id))
                .filter(models.Product.merchant_id == merchant_id)
                .scalar()
            )
            if products:
                logger.warning("Refused deleting merchant_id=%s products=%s", merchant_id, products)
                raise Conflict("Merchant still has products !")
            uow.session.delete(merchant)
        logger.info("Merchant deleted merchant_id=%s", merchant_id)

    def merchant_owned_by_user(self, merchant_id: str, user_id: str) -> bool:
        with self._unit_of_work() as uow:
            return (
                uow.session.query(models.Merchant.id)
                .filter(models.Merchant.id == merchant_id, models.Merchant.user_id == user_id)
                .first()
                is not None
            )

    def product_owned_by_user(self, product_id: str, user_id: str) -> bool:
        with self._unit_of_work() as uow:
            return (
                uow.session.query(models.Product.id)
                .join(models.Merchant, models.Product.merchant_id == models.Merchant.id)
                .filter(models.Product.id == product_id, models.Merchant.user_id == user_id)
                .first()
                is not None
            )
