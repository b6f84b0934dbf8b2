"""Integration tests for single-variant create / update / delete."""

import uuid

import pytest
from sqlmodel import select

from catalog_engine.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_engine.models.change_request import ProductVariantChangeRequest
from catalog_engine.models.product import ProductVariant
from catalog_engine.repositories.catalog_repo import InventoryLedger
from catalog_engine.repositories.change_request_repo import ChangeRequestRepository
from catalog_engine.repositories.product_repo import ProductRepository
from catalog_engine.services.authorization import Actor, RoleAuthorization, guest_actor
from catalog_engine.services.variant_service import VariantService
from tests.fakes import ADMIN, USER, add_inventory, png, variant_payload


def _requests(session) -> list[ProductVariantChangeRequest]:
    return list(session.exec(select(ProductVariantChangeRequest)).all())


class TestCreateVariant:

    def test_adds_variant_with_images(self, session, variant_service, seeded, store):
        product, _ = seeded

        variant = variant_service.create_variant(
            session, product.id, variant_payload("SKU-3"), [png(), png()]
        )

        assert variant.product_id == product.id
        assert [img["url"] for img in variant.images] == store.uploads
        assert len(store.uploads) == 2

    def test_missing_pricing_location_is_copied_from_sibling(
        self, session, variant_service, seeded
    ):
        product, _ = seeded

        variant = variant_service.create_variant(
            session,
            product.id,
            variant_payload("SKU-3", pricing=[{"mrp": 60, "selling_price": 55}]),
        )

        assert variant.pricing[0]["pincode"] == "560001"
        assert variant.pricing[0]["city_name"] == "Bengaluru"
        assert variant.pricing[0]["mrp"] == 60

    def test_explicit_pricing_location_is_kept(self, session, variant_service, seeded):
        product, _ = seeded
        pricing = [{"pincode": "400001", "city_name": "Mumbai", "mrp": 10, "selling_price": 9}]

        variant = variant_service.create_variant(
            session, product.id, variant_payload("SKU-3", pricing=pricing)
        )
        assert variant.pricing[0]["pincode"] == "400001"

    def test_duplicate_barcode_purges_upload(self, session, variant_service, seeded, store):
        product, _ = seeded

        with pytest.raises(ConflictError, match="barcode"):
            variant_service.create_variant(
                session, product.id, variant_payload("SKU-3", barcode="BC-1"), [png()]
            )

        assert len(store.uploads) == 1
        assert store.deletes == store.uploads
        assert len(session.exec(select(ProductVariant)).all()) == 2

    def test_unknown_product_uploads_nothing(self, session, variant_service, store):
        with pytest.raises(NotFoundError):
            variant_service.create_variant(
                session, uuid.uuid4(), variant_payload("SKU-3"), [png()]
            )
        assert store.uploads == []

    def test_product_in_payload_is_rejected(self, session, variant_service, seeded):
        product, _ = seeded
        with pytest.raises(ValidationError, match="not allowed"):
            variant_service.create_variant(
                session, product.id, variant_payload("SKU-3", product_id=str(uuid.uuid4()))
            )


class TestUpdateRouting:

    def test_privileged_actor_updates_directly(self, session, variant_service, seeded):
        _, (variant, _) = seeded

        result = variant_service.update_variant(
            session, variant.id, {"weight": 1.5, "variant_name": "Big pack"}, ADMIN
        )

        assert result.outcome == "updated"
        assert result.change_request is None
        assert result.variant.weight == 1.5
        assert result.variant.variant_name == "Big pack"
        assert result.variant.sku == "SKU-1"
        assert _requests(session) == []

    def test_null_unsets_optional_field(self, session, variant_service, seeded):
        _, (variant, _) = seeded

        result = variant_service.update_variant(session, variant.id, {"barcode": None}, ADMIN)

        assert result.variant.barcode is None
        assert result.variant.unit == "500 ml"

    def test_null_unit_is_rejected(self, session, variant_service, seeded):
        _, (variant, _) = seeded
        with pytest.raises(ValidationError, match="unit"):
            variant_service.update_variant(session, variant.id, {"unit": None}, ADMIN)

    @pytest.mark.parametrize("actor", [USER, guest_actor()], ids=["user", "guest"])
    def test_unprivileged_actor_files_change_request(
        self, session, variant_service, seeded, actor
    ):
        _, (variant, _) = seeded
        delta = {"weight": 2, "sku": "SKU-1X"}

        result = variant_service.update_variant(session, variant.id, delta, actor)

        assert result.outcome == "pending_review"
        assert result.variant is None
        request = result.change_request
        assert request.status == "pending"
        assert request.variant_id == variant.id
        assert request.requested_by == actor.id
        assert request.changes == delta

        session.expire_all()
        stored = session.get(ProductVariant, variant.id)
        assert stored.sku == "SKU-1"
        assert stored.weight is None

    def test_custom_privileged_roles(self, session, media, seeded):
        service = VariantService(
            ProductRepository(),
            ChangeRequestRepository(),
            media,
            InventoryLedger(),
            RoleAuthorization.from_roles(["Admin", "editor"]),
        )
        _, (variant, _) = seeded
        editor = Actor(id=uuid.uuid4(), role="editor")

        result = service.update_variant(session, variant.id, {"weight": 3}, editor)
        assert result.outcome == "updated"

    @pytest.mark.parametrize("actor", [ADMIN, USER], ids=["admin", "user"])
    @pytest.mark.parametrize("key", ["product", "product_id"])
    def test_product_reassignment_rejected_for_everyone(
        self, session, variant_service, seeded, actor, key
    ):
        _, (variant, _) = seeded

        with pytest.raises(ValidationError, match="not allowed"):
            variant_service.update_variant(
                session, variant.id, {key: str(uuid.uuid4())}, actor
            )
        assert _requests(session) == []

    def test_empty_delta_is_rejected(self, session, variant_service, seeded):
        _, (variant, _) = seeded
        with pytest.raises(ValidationError, match="No changes"):
            variant_service.update_variant(session, variant.id, {}, USER)

    def test_unknown_field_is_rejected(self, session, variant_service, seeded):
        _, (variant, _) = seeded
        with pytest.raises(ValidationError):
            variant_service.update_variant(session, variant.id, {"colour": "red"}, USER)
        assert _requests(session) == []

    def test_duplicate_sku_is_a_conflict(self, session, variant_service, seeded):
        _, (first, second) = seeded

        with pytest.raises(ConflictError, match="sku"):
            variant_service.update_variant(session, second.id, {"sku": "SKU-1"}, ADMIN)

        session.expire_all()
        assert session.get(ProductVariant, second.id).sku == "SKU-2"

    @pytest.mark.parametrize("actor", [ADMIN, USER], ids=["admin", "user"])
    def test_unknown_variant(self, session, variant_service, category, actor):
        with pytest.raises(NotFoundError):
            variant_service.update_variant(session, uuid.uuid4(), {"weight": 1}, actor)
        assert _requests(session) == []


class TestDeleteVariant:

    def test_inventory_blocks_delete(self, session, variant_service, seeded, store):
        _, (variant, _) = seeded
        add_inventory(session, variant.id)

        with pytest.raises(ConflictError, match="existing inventory"):
            variant_service.delete_variant(session, variant.id)

        session.expire_all()
        assert session.get(ProductVariant, variant.id) is not None
        assert store.deletes == []

    def test_delete_purges_images_after_commit(self, session, variant_service, seeded, store):
        _, (variant, other) = seeded
        image_url = variant.images[0]["url"]

        variant_service.delete_variant(session, variant.id)

        assert session.get(ProductVariant, variant.id) is None
        assert session.get(ProductVariant, other.id) is not None
        assert store.deletes == [image_url]

    def test_storage_failure_does_not_undo_delete(self, session, variant_service, seeded, store):
        _, (variant, _) = seeded
        store.fail_delete_urls.add(variant.images[0]["url"])

        variant_service.delete_variant(session, variant.id)

        assert session.get(ProductVariant, variant.id) is None
        assert len(store.deletes) == 1

    def test_unknown_variant(self, session, variant_service, category):
        with pytest.raises(NotFoundError):
            variant_service.delete_variant(session, uuid.uuid4())
