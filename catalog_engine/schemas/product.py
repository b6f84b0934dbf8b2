# catalog_engine/schemas/product.py
import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ImageRef(SQLModel):
    """
    One entry of a product/variant image list.
    """

    url: str
    alt_text: str | None = None


class PricingEntry(SQLModel):
    """
    Price of a variant at one location (pincode).

    pincode / city_name may be omitted on variant creation; they are then
    copied from a sibling variant of the same product.
    """

    model_config = ConfigDict(extra="forbid")

    pincode: str | None = None
    city_name: str | None = None
    mrp: float = Field(ge=0)
    selling_price: float = Field(ge=0)
    currency: str = "INR"


class Dimensions(SQLModel):
    model_config = ConfigDict(extra="forbid")

    length: float | None = Field(default=None, ge=0)
    width: float | None = Field(default=None, ge=0)
    height: float | None = Field(default=None, ge=0)


def _strip_required(v: str | None) -> str:
    if v is None:
        raise ValueError("field cannot be null")
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


# -------- Products --------


class ProductCreate(SQLModel):
    """
    Payload for creating a product (always together with its variants).
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    description: str | None = None
    brand: str | None = None
    category_id: uuid.UUID
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_vegetarian: bool = True
    country_of_origin: str | None = "India"
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("brand", "description")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.

    - A field that is omitted is left unchanged.
    - A field explicitly set to null is unset (required fields reject null).
    - images_to_remove lists image URLs to drop from the product; the
      files are deleted from storage after the update commits.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    brand: str | None = None
    category_id: uuid.UUID | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    is_vegetarian: bool | None = None
    country_of_origin: str | None = None
    attributes: dict[str, Any] | None = None
    images_to_remove: list[str] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str:
        return _strip_required(v)

    @field_validator("category_id", "is_active", "is_vegetarian")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    description: str | None = None
    brand: str | None = None
    category_id: uuid.UUID
    tags: list[str] = []
    images: list[ImageRef] = []
    is_active: bool
    is_vegetarian: bool
    country_of_origin: str | None = None
    attributes: dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime


# -------- Variants --------


class VariantCreate(SQLModel):
    """
    Payload for creating a variant.

    `product_id` is never taken from the payload: it is set from the
    owning product.
    """

    model_config = ConfigDict(extra="forbid")

    variant_name: str | None = Field(default=None, max_length=255)
    unit: str = Field(max_length=50)
    sku: str | None = None
    barcode: str | None = None
    pricing: list[PricingEntry] = Field(default_factory=list)
    dimensions: Dimensions | None = None
    weight: float | None = Field(default=None, ge=0)
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("unit")
    @classmethod
    def validate_unit(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("sku", "barcode", "variant_name")
    @classmethod
    def normalize_identifiers(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class VariantUpdate(SQLModel):
    """
    Partial update (delta) for a variant.

    This is also the shape of a change request's `changes`: the delta is
    re-validated and merged onto the variant's current state at approval
    time.
    """

    model_config = ConfigDict(extra="forbid")

    variant_name: str | None = Field(default=None, max_length=255)
    unit: str | None = Field(default=None, max_length=50)
    sku: str | None = None
    barcode: str | None = None
    pricing: list[PricingEntry] | None = None
    dimensions: Dimensions | None = None
    weight: float | None = Field(default=None, ge=0)
    attributes: dict[str, Any] | None = None

    @field_validator("unit")
    @classmethod
    def validate_unit(cls, v: str | None) -> str:
        return _strip_required(v)

    @field_validator("sku", "barcode", "variant_name")
    @classmethod
    def normalize_identifiers(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class VariantUpsert(VariantUpdate):
    """
    One entry of the complete variant list sent with a product update.

    - With `id`: partial update of that existing variant.
    - Without `id`: a new variant (validated as VariantCreate).
    """

    id: uuid.UUID | None = None
    images_to_remove: list[str] | None = None


class VariantRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    variant_name: str | None = None
    unit: str
    sku: str | None = None
    barcode: str | None = None
    pricing: list[PricingEntry] = []
    dimensions: Dimensions | None = None
    weight: float | None = None
    attributes: dict[str, Any] = {}
    images: list[ImageRef] = []
    created_at: datetime
    updated_at: datetime


class ProductWithVariantsRead(ProductRead):
    """
    A product together with its full variant set.
    """

    variants: list[VariantRead] = []

    @classmethod
    def from_entities(cls, product, variants) -> "ProductWithVariantsRead":
        data = ProductRead.model_validate(product, from_attributes=True).model_dump()
        data["variants"] = [
            VariantRead.model_validate(v, from_attributes=True).model_dump()
            for v in variants
        ]
        return cls.model_validate(data)
