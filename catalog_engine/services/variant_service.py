# catalog_engine/services/variant_service.py
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Literal

from sqlmodel import Session

from catalog_engine.core.errors import NotFoundError, ValidationError
from catalog_engine.models.change_request import ProductVariantChangeRequest
from catalog_engine.models.product import ProductVariant
from catalog_engine.repositories.catalog_repo import InventoryLedger
from catalog_engine.repositories.change_request_repo import ChangeRequestRepository
from catalog_engine.repositories.product_repo import ProductRepository
from catalog_engine.schemas.product import VariantCreate, VariantUpdate
from catalog_engine.services.authorization import Actor, Authorization
from catalog_engine.services.guards import (
    ensure_no_dependent_inventory,
    reject_product_reassignment,
)
from catalog_engine.services.media_service import MediaManager, MediaUpload
from catalog_engine.services.payloads import merge_delta, parse_json, validate_payload
from catalog_engine.services.unit_of_work import atomic_unit

logger = logging.getLogger(__name__)


@dataclass
class VariantUpdateResult:
    """
    Either the variant was changed ("updated") or a change request was
    queued for moderation ("pending_review").
    """

    outcome: Literal["updated", "pending_review"]
    variant: ProductVariant | None = None
    change_request: ProductVariantChangeRequest | None = None


class VariantService:
    """
    Single-variant mutations.

    Responsibilities:
      - create one variant on an existing product (same upload/rollback
        discipline as product creation)
      - route updates by privilege: direct write, or a pending change request
      - delete a variant when no inventory depends on it, then purge its media
    """

    def __init__(
        self,
        repo: ProductRepository,
        change_requests: ChangeRequestRepository,
        media: MediaManager,
        inventory: InventoryLedger,
        authorization: Authorization,
    ):
        self.repo = repo
        self.change_requests = change_requests
        self.media = media
        self.inventory = inventory
        self.authorization = authorization

    def get_variant(self, session: Session, variant_id: uuid.UUID) -> ProductVariant:
        variant = self.repo.get_variant(session, variant_id)
        if not variant:
            raise NotFoundError(f"ProductVariant with id {variant_id} not found.")
        return variant

    # ----- Create -----

    def create_variant(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: Any,
        files: list[MediaUpload] | None = None,
    ) -> ProductVariant:
        """
        Add one variant to an existing product.

        Pricing entries missing a pincode or city name inherit them from the
        first pricing entry of another variant of the same product.
        """
        if payload is None:
            raise ValidationError("variantData is required.")

        data = parse_json(payload, "variantData")
        if isinstance(data, dict):
            reject_product_reassignment(data)
        variant_in = validate_payload(VariantCreate, data, "variantData")

        with atomic_unit(session, self.media, "create_variant") as unit:
            product = self.repo.get_by_id(session, product_id)
            if not product:
                raise NotFoundError(f"Product with id {product_id} not found.")

            values = variant_in.model_dump()
            values["pricing"] = self._fill_pricing_locations(
                session, product_id, values["pricing"]
            )

            variant = ProductVariant(
                **values,
                product_id=product_id,
                images=unit.upload_images(files),
            )
            self.repo.add_variant(session, variant)

        session.refresh(variant)
        logger.info("Created variant %s on product %s", variant.id, product_id)
        return variant

    def _fill_pricing_locations(
        self,
        session: Session,
        product_id: uuid.UUID,
        pricing: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        if not pricing:
            return pricing
        first = pricing[0]
        if first.get("pincode") and first.get("city_name"):
            return pricing

        sibling = self.repo.first_variant(session, product_id)
        if not sibling or not sibling.pricing:
            return pricing

        reference = sibling.pricing[0]
        return [
            {
                **entry,
                "pincode": entry.get("pincode") or reference.get("pincode"),
                "city_name": entry.get("city_name") or reference.get("city_name"),
            }
            for entry in pricing
        ]

    # ----- Update (routed by privilege) -----

    def update_variant(
        self,
        session: Session,
        variant_id: uuid.UUID,
        delta: Any,
        actor: Actor,
    ) -> VariantUpdateResult:
        """
        Apply `delta` now for privileged actors; otherwise stage it as a
        pending change request carrying the delta verbatim.

        A delta that tries to move the variant to another product is
        rejected before anything is read or written.
        """
        if not isinstance(delta, dict):
            raise ValidationError("Variant update must be a JSON object.")
        reject_product_reassignment(delta)

        update_in = validate_payload(VariantUpdate, delta, "variant update")
        if not update_in.model_fields_set:
            raise ValidationError("No changes supplied.")

        if self.authorization.can_apply_directly(actor):
            with atomic_unit(session, self.media, "update_variant"):
                variant = self.get_variant(session, variant_id)
                changed = merge_delta(variant, update_in)
                self.repo.save_variant(session, variant)

            session.refresh(variant)
            logger.info("Variant %s updated by %s: %s", variant_id, actor.id, changed)
            return VariantUpdateResult(outcome="updated", variant=variant)

        with atomic_unit(session, self.media, "submit_variant_change"):
            variant = self.get_variant(session, variant_id)
            request = ProductVariantChangeRequest(
                variant_id=variant.id,
                requested_by=actor.id,
                changes=dict(delta),
            )
            self.change_requests.add(session, request)

        session.refresh(request)
        logger.info(
            "Change request %s queued for variant %s by %s (%s)",
            request.id,
            variant_id,
            actor.id,
            actor.role,
        )
        return VariantUpdateResult(outcome="pending_review", change_request=request)

    # ----- Delete -----

    def delete_variant(self, session: Session, variant_id: uuid.UUID) -> None:
        """
        Delete a variant that no inventory references.

        The inventory check and the delete share one transaction; the
        variant's images are deleted from storage only after it commits.
        """
        with atomic_unit(session, self.media, "delete_variant") as unit:
            variant = self.get_variant(session, variant_id)
            ensure_no_dependent_inventory(session, self.inventory, variant)
            for image in variant.images:
                unit.discard_after_commit(image["url"])
            self.repo.delete_variant(session, variant)

        logger.info("Deleted variant %s", variant_id)
