# catalog_engine/models/catalog.py
import uuid

from sqlmodel import SQLModel, Field


class CatalogNode(SQLModel, table=True):
    """
    Category / catalog hierarchy node.

    Owned by the hierarchy service; this service only checks that a
    referenced node exists.
    """

    __tablename__ = "catalog_nodes"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=255)

    key: str | None = Field(default=None, index=True)

    parent_id: uuid.UUID | None = Field(default=None, index=True)


class InventoryItem(SQLModel, table=True):
    """
    Stock record for a variant at a location.

    Owned by the inventory service; this service only asks whether any
    record references a given variant.
    """

    __tablename__ = "inventory_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # Weak reference: blocks variant deletion while present.
    variant_id: uuid.UUID = Field(index=True)

    pincode: str | None = Field(default=None, index=True)

    stock: int = Field(default=0, ge=0)

    unit: str | None = Field(default=None)
