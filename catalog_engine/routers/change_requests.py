# catalog_engine/routers/change_requests.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from catalog_engine.core.auth import require_admin
from catalog_engine.core.providers import get_change_request_service
from catalog_engine.database import get_session
from catalog_engine.schemas.change_request import (
    ChangeRequestPage,
    ChangeRequestRead,
    ChangeRequestReject,
)
from catalog_engine.schemas.product import VariantRead
from catalog_engine.services.authorization import Actor
from catalog_engine.services.change_request_service import ChangeRequestService

router = APIRouter(prefix="/change-requests", tags=["Change Requests"])


@router.get("", response_model=ChangeRequestPage)
def list_change_requests(
    status: str = "pending",
    page: int = 1,
    limit: int = 20,
    actor: Actor = Depends(require_admin),
    session: Session = Depends(get_session),
    service: ChangeRequestService = Depends(get_change_request_service),
):
    """
    Moderation queue (admin only), newest first. Defaults to pending requests.
    """
    items, pagination = service.list_change_requests(
        session, actor, status=status, page=page, limit=limit
    )
    data = []
    for request, variant in items:
        entry = ChangeRequestRead.model_validate(request, from_attributes=True).model_dump()
        entry["variant"] = (
            VariantRead.model_validate(variant, from_attributes=True).model_dump()
            if variant is not None
            else None
        )
        data.append(entry)
    return ChangeRequestPage.model_validate({"data": data, "pagination": pagination})


@router.post("/{request_id}/approve")
def approve_change_request(
    request_id: uuid.UUID,
    actor: Actor = Depends(require_admin),
    session: Session = Depends(get_session),
    service: ChangeRequestService = Depends(get_change_request_service),
) -> dict:
    """
    Approve a pending request and apply its changes to the variant (admin only).

    - 404 (and the request is auto-rejected) if the variant no longer exists.
    - 409 if the request is not pending, or the changes collide with
      another variant's sku/barcode (the request then stays pending).
    """
    request, variant = service.approve(session, request_id, actor)
    return {
        "message": "Change request approved and product variant updated successfully.",
        "request": ChangeRequestRead.model_validate(request, from_attributes=True).model_dump(mode="json"),
        "variant": VariantRead.model_validate(variant, from_attributes=True).model_dump(mode="json"),
    }


@router.post("/{request_id}/reject")
def reject_change_request(
    request_id: uuid.UUID,
    payload: ChangeRequestReject,
    actor: Actor = Depends(require_admin),
    session: Session = Depends(get_session),
    service: ChangeRequestService = Depends(get_change_request_service),
) -> dict:
    """
    Reject a pending request with a reason (admin only).
    """
    request = service.reject(session, request_id, actor, payload.rejection_reason)
    return {
        "message": "Change request has been rejected.",
        "request": ChangeRequestRead.model_validate(request, from_attributes=True).model_dump(mode="json"),
    }
