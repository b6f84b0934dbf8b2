# catalog_engine/schemas/change_request.py
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from catalog_engine.schemas.product import VariantRead

ChangeRequestStatus = Literal["pending", "approved", "rejected"]

CHANGE_REQUEST_STATUSES: tuple[str, ...] = ("pending", "approved", "rejected")


class ChangeRequestRead(SQLModel):
    id: uuid.UUID
    variant_id: uuid.UUID
    requested_by: uuid.UUID
    changes: dict[str, Any]
    status: ChangeRequestStatus
    reviewed_by: uuid.UUID | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class ChangeRequestWithVariantRead(ChangeRequestRead):
    """
    Moderation queue entry. `variant` is None when the target variant
    has been deleted since the request was filed.
    """

    variant: VariantRead | None = None


class ChangeRequestReject(SQLModel):
    """
    Payload for rejecting a change request. A reason is mandatory.
    """

    model_config = ConfigDict(extra="forbid")

    rejection_reason: str = Field(max_length=1000)

    @field_validator("rejection_reason")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("rejection_reason cannot be empty")
        return v


class Pagination(SQLModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ChangeRequestPage(SQLModel):
    data: list[ChangeRequestWithVariantRead]
    pagination: Pagination


class VariantUpdateOutcome(SQLModel):
    """
    Response of a variant update.

    - outcome="updated": `variant` holds the new state.
    - outcome="pending_review": `change_request` holds the staged delta.
    """

    outcome: Literal["updated", "pending_review"]
    message: str
    variant: VariantRead | None = None
    change_request: ChangeRequestRead | None = None
