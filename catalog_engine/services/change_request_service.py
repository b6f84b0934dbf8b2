# catalog_engine/services/change_request_service.py
import logging
import math
import uuid

from sqlmodel import Session

from catalog_engine.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from catalog_engine.models.change_request import ProductVariantChangeRequest
from catalog_engine.models.product import ProductVariant
from catalog_engine.repositories.change_request_repo import ChangeRequestRepository
from catalog_engine.repositories.product_repo import ProductRepository
from catalog_engine.schemas.change_request import CHANGE_REQUEST_STATUSES
from catalog_engine.schemas.product import VariantUpdate
from catalog_engine.services.authorization import Actor, Authorization
from catalog_engine.services.guards import reject_product_reassignment
from catalog_engine.services.payloads import merge_delta, validate_payload
from catalog_engine.services.unit_of_work import atomic_unit

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

ORPHANED_REQUEST_REASON = "The associated product variant no longer exists."


class ChangeRequestService:
    """
    Moderation of staged variant edits.

    Lifecycle (both end states are terminal):
        pending -> approved
        pending -> rejected

    Approval merges the staged delta onto the variant as it exists at
    approval time. There is no check that the variant is unchanged since
    the request was filed: the last write wins.
    """

    def __init__(
        self,
        repo: ChangeRequestRepository,
        product_repo: ProductRepository,
        authorization: Authorization,
    ):
        self.repo = repo
        self.product_repo = product_repo
        self.authorization = authorization

    # ----- Helpers -----

    def _require_privileged(self, actor: Actor, action: str) -> None:
        if not self.authorization.can_apply_directly(actor):
            raise ForbiddenError(
                f"Forbidden: You do not have permission to {action} change requests."
            )

    def _get_pending(
        self,
        session: Session,
        request_id: uuid.UUID,
    ) -> ProductVariantChangeRequest:
        request = self.repo.get_by_id(session, request_id)
        if not request:
            raise NotFoundError("Change request not found.")
        if request.status != "pending":
            raise ConflictError(f"This request is already {request.status}.")
        return request

    # ----- Queue -----

    def list_change_requests(
        self,
        session: Session,
        actor: Actor,
        status: str = "pending",
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[tuple[ProductVariantChangeRequest, ProductVariant | None]], dict[str, int]]:
        """
        One page of requests in `status`, newest first, each paired with
        its target variant (None if that variant was deleted).

        Returns:
            (items, pagination) where pagination has total, page, limit,
            total_pages.
        """
        self._require_privileged(actor, "view")

        if status not in CHANGE_REQUEST_STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. Allowed: {', '.join(CHANGE_REQUEST_STATUSES)}."
            )
        if page < 1:
            raise ValidationError("page must be >= 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        skip = (page - 1) * limit
        requests = self.repo.list_by_status(session, status, skip=skip, limit=limit)
        total = self.repo.count_by_status(session, status)

        items = [
            (r, self.product_repo.get_variant(session, r.variant_id)) for r in requests
        ]
        pagination = {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit),
        }
        return items, pagination

    # ----- Transitions -----

    def approve(
        self,
        session: Session,
        request_id: uuid.UUID,
        actor: Actor,
    ) -> tuple[ProductVariantChangeRequest, ProductVariant]:
        """
        Apply a pending request's changes to the variant and mark it approved,
        in one transaction.

        - Target variant gone: the request is rejected with a system reason
          (committed), then NotFoundError is raised.
        - Unique conflict: nothing changes, the request stays pending.
        """
        self._require_privileged(actor, "approve")

        orphaned = False
        with atomic_unit(session, None, "approve_change_request"):
            request = self._get_pending(session, request_id)
            variant = self.product_repo.get_variant(session, request.variant_id)

            if variant is None:
                request.status = "rejected"
                request.rejection_reason = ORPHANED_REQUEST_REASON
                request.reviewed_by = actor.id
                self.repo.save(session, request)
                orphaned = True
            else:
                reject_product_reassignment(request.changes)
                changes = validate_payload(VariantUpdate, request.changes, "change request")
                merge_delta(variant, changes)
                self.product_repo.save_variant(session, variant)

                request.status = "approved"
                request.reviewed_by = actor.id
                self.repo.save(session, request)

        if orphaned:
            logger.info("Change request %s auto-rejected: variant is gone", request_id)
            raise NotFoundError(
                "Associated product variant not found. The request has been automatically rejected."
            )

        session.refresh(request)
        session.refresh(variant)
        logger.info("Change request %s approved by %s", request_id, actor.id)
        return request, variant

    def reject(
        self,
        session: Session,
        request_id: uuid.UUID,
        actor: Actor,
        reason: str | None,
    ) -> ProductVariantChangeRequest:
        self._require_privileged(actor, "reject")

        if not reason or not reason.strip():
            raise ValidationError("A reason for rejection is required.")

        with atomic_unit(session, None, "reject_change_request"):
            request = self._get_pending(session, request_id)
            request.status = "rejected"
            request.rejection_reason = reason.strip()
            request.reviewed_by = actor.id
            self.repo.save(session, request)

        session.refresh(request)
        logger.info("Change request %s rejected by %s", request_id, actor.id)
        return request
