from app.domain.accounts.models import Merchant, User
from app.domain.catalog.models import Category, Colour, Product, Size, Variant

__all__ = [
    "User",
    "Merchant",
    "Category",
    "Colour",
    "Size",
    "Product",
    "Variant",
]
