# catalog_engine/routers/variants.py
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status
from sqlmodel import Session

from catalog_engine.core.auth import get_current_actor, require_admin
from catalog_engine.core.providers import get_variant_service
from catalog_engine.database import get_session
from catalog_engine.schemas.change_request import ChangeRequestRead, VariantUpdateOutcome
from catalog_engine.schemas.product import VariantRead
from catalog_engine.services.authorization import Actor
from catalog_engine.services.variant_service import VariantService

router = APIRouter(prefix="/variants", tags=["Variants"])


@router.patch(
    "/{variant_id}",
    response_model=VariantUpdateOutcome,
    summary="Update a product variant or submit the change for approval",
    responses={202: {"description": "Change submitted for approval"}},
)
def update_variant(
    variant_id: uuid.UUID,
    response: Response,
    delta: dict[str, Any] = Body(...),
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session),
    service: VariantService = Depends(get_variant_service),
):
    """
    Partial update of a variant.

    - Admins: applied immediately (200).
    - Everyone else: stored as a pending change request (202).
    - `product` can never be changed here. Images are not accepted.
    """
    result = service.update_variant(session, variant_id, delta, actor)

    if result.outcome == "pending_review":
        response.status_code = status.HTTP_202_ACCEPTED
        return VariantUpdateOutcome(
            outcome=result.outcome,
            message="Update request submitted for approval.",
            change_request=ChangeRequestRead.model_validate(
                result.change_request, from_attributes=True
            ),
        )

    return VariantUpdateOutcome(
        outcome=result.outcome,
        message="Product variant updated successfully.",
        variant=VariantRead.model_validate(result.variant, from_attributes=True),
    )


@router.delete(
    "/{variant_id}",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
    summary="Delete a product variant",
)
def delete_variant(
    variant_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: VariantService = Depends(get_variant_service),
) -> dict[str, str]:
    """
    Delete a variant (admin only).

    - Refused with 409 while inventory references the variant.
    - The variant's images are deleted from Storage afterwards (best-effort).
    """
    service.delete_variant(session, variant_id)
    return {"message": "Product variant deleted successfully."}
