# catalog_engine/services/product_service.py
import logging
import uuid
from typing import Any

from sqlmodel import Session

from catalog_engine.core.errors import NotFoundError, ValidationError
from catalog_engine.models.product import Product, ProductVariant
from catalog_engine.repositories.catalog_repo import CatalogDirectory, InventoryLedger
from catalog_engine.repositories.product_repo import ProductRepository
from catalog_engine.schemas.product import (
    ProductCreate,
    ProductUpdate,
    VariantCreate,
    VariantUpsert,
)
from catalog_engine.services.guards import (
    ensure_category_exists,
    ensure_no_dependent_inventory,
    reject_product_reassignment,
)
from catalog_engine.services.media_service import MediaManager, MediaUpload
from catalog_engine.services.payloads import (
    merge_delta,
    parse_json,
    remove_images,
    validate_payload,
)
from catalog_engine.services.unit_of_work import MutationUnit, atomic_unit

logger = logging.getLogger(__name__)

FilesByField = dict[str, list[MediaUpload]]

# Multipart field names for uploaded images.
PRODUCT_IMAGES_FIELD = "product_images"


def variant_images_field(index: int) -> str:
    """
    Field name carrying the images of the variant at `index` in the
    submitted variant list, e.g. "variant_images[0]".
    """
    return f"variant_images[{index}]"


class ProductService:
    """
    Creates and updates a product together with its variant set.

    Responsibilities:
      - all-or-nothing writes of a product and its N variants
      - category existence checks
      - image upload orchestration, with compensating deletion of every
        file uploaded by an attempt that rolls back
      - deletion of replaced/removed media only after a successful commit
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(
        self,
        repo: ProductRepository,
        media: MediaManager,
        directory: CatalogDirectory,
        inventory: InventoryLedger,
    ):
        self.repo = repo
        self.media = media
        self.directory = directory
        self.inventory = inventory

    # ----- Reads -----

    def get_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> tuple[Product, list[ProductVariant]]:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError(f"Product with id {product_id} not found.")
        return product, self.repo.list_variants(session, product_id)

    # ----- Create -----

    def create_product_with_variants(
        self,
        session: Session,
        product_payload: Any,
        variant_payloads: Any,
        files_by_field: FilesByField | None = None,
    ) -> tuple[Product, list[ProductVariant]]:
        """
        Create a product and all of its variants as one unit.

        Steps:
          1. Parse and validate the product and every variant payload
             (nothing is uploaded or written if this fails).
          2. Check the referenced category exists.
          3. Upload product images, persist the product.
          4. For each variant: upload its own images, persist it with
             product_id set to the new product.
          5. Commit. On any failure, roll back and delete every file
             uploaded in steps 3-4.
        """
        if product_payload is None or variant_payloads is None:
            raise ValidationError("productData and variantData are required.")

        product_data = parse_json(product_payload, "productData")
        variants_data = parse_json(variant_payloads, "variantData")
        if not isinstance(variants_data, list):
            raise ValidationError("variantData should be an array.")
        if not variants_data:
            raise ValidationError("At least one variant is required.")

        product_in = validate_payload(ProductCreate, product_data, "productData")
        variants_in: list[VariantCreate] = []
        for i, raw in enumerate(variants_data):
            if isinstance(raw, dict):
                reject_product_reassignment(raw)
            variants_in.append(validate_payload(VariantCreate, raw, f"variant #{i + 1}"))

        files_by_field = files_by_field or {}

        with atomic_unit(session, self.media, "create_product") as unit:
            ensure_category_exists(session, self.directory, product_in.category_id)

            product = Product(
                **product_in.model_dump(),
                images=unit.upload_images(files_by_field.get(PRODUCT_IMAGES_FIELD)),
            )
            self.repo.add(session, product)

            variants: list[ProductVariant] = []
            for i, variant_in in enumerate(variants_in):
                variant = ProductVariant(
                    **variant_in.model_dump(),
                    product_id=product.id,
                    images=unit.upload_images(files_by_field.get(variant_images_field(i))),
                )
                self.repo.add_variant(session, variant)
                variants.append(variant)

        session.refresh(product)
        for variant in variants:
            session.refresh(variant)

        logger.info("Created product %s with %d variant(s)", product.id, len(variants))
        return product, variants

    # ----- Update -----

    def update_product_with_variants(
        self,
        session: Session,
        product_id: uuid.UUID,
        product_delta: Any = None,
        variant_deltas: Any = None,
        files_by_field: FilesByField | None = None,
    ) -> tuple[Product, list[ProductVariant]]:
        """
        Partial update of a product plus reconciliation of its variant set.

        - product_delta: partial product fields; explicit null unsets a field;
          `images_to_remove` drops image URLs.
        - variant_deltas: None leaves variants untouched. A list is the
          COMPLETE target set: entries with `id` update that variant,
          entries without `id` create one, and existing variants missing
          from the list are deleted (blocked if they have inventory).
        - New files are appended to the existing image lists.

        Removed/replaced media is deleted from storage only after commit.
        Media uploaded by a failed attempt is deleted after rollback.
        """
        if product_delta is None and variant_deltas is None:
            raise ValidationError(
                "At least one of productData or variantsData must be provided."
            )

        product_in: ProductUpdate | None = None
        if product_delta is not None:
            product_in = validate_payload(
                ProductUpdate, parse_json(product_delta, "productData"), "productData"
            )

        variants_in: list[tuple[VariantUpsert, VariantCreate | None]] | None = None
        if variant_deltas is not None:
            variants_in = self._parse_variant_list(parse_json(variant_deltas, "variantsData"))

        files_by_field = files_by_field or {}

        with atomic_unit(session, self.media, "update_product") as unit:
            product = self.repo.get_by_id(session, product_id)
            if not product:
                raise NotFoundError(f"Product with id {product_id} not found.")

            self._apply_product_delta(
                session,
                unit,
                product,
                product_in,
                files_by_field.get(PRODUCT_IMAGES_FIELD),
            )
            self.repo.save(session, product)

            if variants_in is not None:
                self._reconcile_variants(session, unit, product, variants_in, files_by_field)

        logger.info("Updated product %s", product_id)
        product, variants = self.get_product(session, product_id)
        session.refresh(product)
        return product, variants

    # ----- Helpers -----

    @staticmethod
    def _parse_variant_list(data: Any) -> list[tuple[VariantUpsert, VariantCreate | None]]:
        if not isinstance(data, list):
            raise ValidationError("variantsData should be an array.")

        parsed: list[tuple[VariantUpsert, VariantCreate | None]] = []
        seen_ids: set[uuid.UUID] = set()
        for i, raw in enumerate(data):
            label = f"variant #{i + 1}"
            if isinstance(raw, dict):
                reject_product_reassignment(raw)
            upsert = validate_payload(VariantUpsert, raw, label)

            if upsert.id is not None:
                if upsert.id in seen_ids:
                    raise ValidationError(f"Variant {upsert.id} appears more than once.")
                seen_ids.add(upsert.id)
                parsed.append((upsert, None))
                continue

            fields = {k: v for k, v in raw.items() if k not in ("id", "images_to_remove")}
            parsed.append((upsert, validate_payload(VariantCreate, fields, label)))
        return parsed

    def _apply_product_delta(
        self,
        session: Session,
        unit: MutationUnit,
        product: Product,
        delta: ProductUpdate | None,
        files: list[MediaUpload] | None,
    ) -> None:
        if delta is not None:
            if (
                "category_id" in delta.model_fields_set
                and delta.category_id != product.category_id
            ):
                ensure_category_exists(session, self.directory, delta.category_id)
            merge_delta(product, delta, skip=("images_to_remove",))

        images = list(product.images) + unit.upload_images(files)
        if delta is not None and delta.images_to_remove:
            images, removed = remove_images(images, delta.images_to_remove)
            for url in removed:
                unit.discard_after_commit(url)
        product.images = images

    def _reconcile_variants(
        self,
        session: Session,
        unit: MutationUnit,
        product: Product,
        variants_in: list[tuple[VariantUpsert, VariantCreate | None]],
        files_by_field: FilesByField,
    ) -> None:
        existing = {v.id: v for v in self.repo.list_variants(session, product.id)}
        keep_ids = {upsert.id for upsert, _ in variants_in if upsert.id is not None}

        # Delete variants missing from the target list first, so a new
        # variant may reuse the sku/barcode of one being removed.
        for variant_id, variant in existing.items():
            if variant_id in keep_ids:
                continue
            ensure_no_dependent_inventory(session, self.inventory, variant)
            for image in variant.images:
                unit.discard_after_commit(image["url"])
            self.repo.delete_variant(session, variant)

        for i, (upsert, create) in enumerate(variants_in):
            files = files_by_field.get(variant_images_field(i))

            if create is not None:
                variant = ProductVariant(
                    **create.model_dump(),
                    product_id=product.id,
                    images=unit.upload_images(files),
                )
                self.repo.add_variant(session, variant)
                continue

            variant = existing.get(upsert.id)
            if variant is None:
                raise NotFoundError(
                    f"Variant with id {upsert.id} not found for product {product.id}."
                )

            merge_delta(variant, upsert, skip=("id", "images_to_remove"))
            images = list(variant.images) + unit.upload_images(files)
            images, removed = remove_images(images, upsert.images_to_remove)
            for url in removed:
                unit.discard_after_commit(url)
            variant.images = images
            self.repo.save_variant(session, variant)
