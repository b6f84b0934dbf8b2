# catalog_engine/models/change_request.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class ProductVariantChangeRequest(SQLModel, table=True):
    """
    Moderation record staging an edit to a variant.

    - variant_id is a weak reference (no FK): the variant may be deleted
      while the request is still pending.
    - changes is a field -> value delta, merged onto the variant as it
      exists at approval time.
    - status: pending -> approved | rejected (both terminal).
    """

    __tablename__ = "product_variant_change_requests"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    variant_id: uuid.UUID = Field(index=True)

    requested_by: uuid.UUID

    changes: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    # pending | approved | rejected
    status: str = Field(default="pending", index=True)

    reviewed_by: uuid.UUID | None = Field(default=None)

    rejection_reason: str | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column_kwargs={"onupdate": lambda: datetime.now(timezone.utc)},
    )
