# catalog_engine/models/product.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    A product is always created together with at least one variant and
    owns its variant set. It is never hard-deleted by this service.

    `images` is an ordered list of {"url": ..., "alt_text": ...} dicts.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    description: str | None = Field(default=None)

    brand: str | None = Field(default=None, index=True)

    category_id: uuid.UUID = Field(
        foreign_key="catalog_nodes.id",
        index=True,
        description="Catalog node this product is listed under",
    )

    tags: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    images: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    is_active: bool = Field(default=True, index=True)

    is_vegetarian: bool = Field(default=True)

    country_of_origin: str | None = Field(default="India")

    # Arbitrary descriptive fields (nutritional info etc.)
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )


class ProductVariant(SQLModel, table=True):
    """
    A concrete sellable configuration of a Product.

    - product_id is immutable after creation.
    - sku / barcode are globally unique when present (NULLs never collide).
    - cannot be deleted while inventory references it.
    """

    __tablename__ = "product_variants"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
        description="FK to products.id",
    )

    variant_name: str | None = Field(default=None, max_length=255)

    unit: str = Field(max_length=50, description="Selling unit, e.g. '500 g'")

    sku: str | None = Field(default=None, unique=True, index=True)

    barcode: str | None = Field(default=None, unique=True, index=True)

    # [{"pincode", "city_name", "mrp", "selling_price", "currency"}]
    pricing: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # {"length", "width", "height"}
    dimensions: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    weight: float | None = Field(default=None, ge=0)

    attributes: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    images: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(default_factory=_utcnow)

    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )
