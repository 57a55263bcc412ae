from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


# Master data


class CategoryOut(BaseModel):
    id: str
    name: str
    type: str

    class Config:
        from_attributes = True


class ColourOut(BaseModel):
    id: str
    name: str
    hex: str

    class Config:
        from_attributes = True


class SizeOut(BaseModel):
    id: str
    name: str
    length: float
    width: float
    height: float

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None


class ColourCreate(BaseModel):
    name: Optional[str] = None
    hex: Optional[str] = None


class ColourUpdate(BaseModel):
    name: Optional[str] = None
    hex: Optional[str] = None


class SizeCreate(BaseModel):
    name: Optional[str] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class SizeUpdate(BaseModel):
    name: Optional[str] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


# Catalog


class VariantIn(BaseModel):
    sku: Optional[str] = None
    stock: Optional[int] = None
    colour_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("colour_id", "colourId"))
    size_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("size_id", "sizeId"))


class VariantUpdate(VariantIn):
    pass


class VariantBatchUpdate(VariantIn):
    id: Optional[str] = None


class VariantBatch(BaseModel):
    create: List[VariantIn] = Field(default_factory=list)
    update: List[VariantBatchUpdate] = Field(default_factory=list)
    delete: List[str] = Field(default_factory=list)


class ProductCreate(BaseModel):
    name: Optional[str] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None
    discount: Optional[float] = None
    weight: Optional[float] = None
    avatar: Optional[str] = None
    category_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("category_id", "categoryId"))
    merchant_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("merchant_id", "merchantId"))
    # accepted for compatibility; the stored flag is always derived from the variants
    has_variant: Optional[bool] = None
    variants: Optional[List[VariantIn]] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None
    discount: Optional[float] = None
    weight: Optional[float] = None
    avatar: Optional[str] = None
    category_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("category_id", "categoryId"))
    has_variant: Optional[bool] = None
    variants: Optional[VariantBatch] = None


class MerchantSummaryOut(BaseModel):
    id: str
    name: str
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class VariantOut(BaseModel):
    id: str
    product_id: str
    sku: str
    stock: int
    colour_id: Optional[str] = None
    size_id: Optional[str] = None
    colour: Optional[ColourOut] = None
    size: Optional[SizeOut] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProductOut(BaseModel):
    id: str
    name: str
    price: float
    description: Optional[str] = None
    discount: float = 0
    weight: float = 0
    avatar: Optional[str] = None
    has_variant: bool
    category_id: Optional[str] = None
    merchant_id: str
    created_at: datetime
    updated_at: datetime
    merchant: Optional[MerchantSummaryOut] = None
    category: Optional[CategoryOut] = None
    variants: List[VariantOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ProductSummaryOut(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


# Accounts


class RegisterPayload(BaseModel):
    username: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    birth: Optional[date] = None
    address: Optional[str] = None


class LoginPayload(BaseModel):
    username: str
    password: str


class UserUpdate(BaseModel):
    username: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    birth: Optional[date] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


class UserOut(BaseModel):
    id: str
    username: str
    fullname: str
    email: str
    gender: Optional[str] = None
    birth: Optional[date] = None
    address: Optional[str] = None
    phone: str
    avatar: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserDetailOut(UserOut):
    merchants: List[MerchantSummaryOut] = Field(default_factory=list)


class OwnerOut(BaseModel):
    id: str
    fullname: str
    avatar: Optional[str] = None
    phone: str

    class Config:
        from_attributes = True


class MerchantCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    type: Optional[str] = None


class MerchantUpdate(MerchantCreate):
    status: Optional[str] = None


class MerchantOut(BaseModel):
    id: str
    user_id: str
    name: str
    email: str
    address: str
    phone: str
    avatar: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    created_at: datetime
    user: Optional[OwnerOut] = None
    products: List[ProductSummaryOut] = Field(default_factory=list)

    class Config:
        from_attributes = True
