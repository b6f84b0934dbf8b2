# catalog_engine/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from catalog_engine.core.auth import require_admin
from catalog_engine.core.providers import get_product_service, get_variant_service
from catalog_engine.database import get_session
from catalog_engine.routers.forms import read_multipart
from catalog_engine.schemas.product import ProductWithVariantsRead, VariantRead
from catalog_engine.services.product_service import ProductService
from catalog_engine.services.variant_service import VariantService

router = APIRouter(prefix="/products", tags=["Products"])


# -------- Public endpoints --------


@router.get("/{product_id}", response_model=ProductWithVariantsRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Get a single product with all its variants.

    - Public endpoint.
    """
    product, variants = service.get_product(session, product_id)
    return ProductWithVariantsRead.from_entities(product, variants)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductWithVariantsRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
    summary="Create a new product and its variants",
)
async def create_product(
    request: Request,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a product together with its variants (admin only).

    Multipart form:
      - productData: JSON object of the product
      - variantData: JSON array of variant objects (at least one)
      - product_images: files for the product
      - variant_images[<i>]: files for the i-th variant

    Nothing is created if any part fails; uploaded files are then deleted.
    """
    fields, files = await read_multipart(request)
    product, variants = await run_in_threadpool(
        service.create_product_with_variants,
        session,
        fields.get("productData"),
        fields.get("variantData"),
        files,
    )
    return ProductWithVariantsRead.from_entities(product, variants)


@router.patch(
    "/{product_id}",
    response_model=ProductWithVariantsRead,
    dependencies=[Depends(require_admin)],
    summary="Update a product and its variants",
)
async def update_product(
    product_id: uuid.UUID,
    request: Request,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Update a product and reconcile its variants (admin only).

    Multipart form:
      - productData: JSON object of product fields to change. To remove
        images, include an `images_to_remove` array of URLs.
      - variantsData: JSON array with the COMPLETE variant list. Include `id`
        to update a variant, omit it to create one. Variants not in the
        array are DELETED (refused if they have inventory).
      - product_images / variant_images[<i>]: new images to APPEND.
    """
    fields, files = await read_multipart(request)
    product, variants = await run_in_threadpool(
        service.update_product_with_variants,
        session,
        product_id,
        fields.get("productData"),
        fields.get("variantsData"),
        files,
    )
    return ProductWithVariantsRead.from_entities(product, variants)


@router.post(
    "/{product_id}/variants",
    response_model=VariantRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
    summary="Create a new variant for a product",
)
async def create_variant(
    product_id: uuid.UUID,
    request: Request,
    session: Session = Depends(get_session),
    service: VariantService = Depends(get_variant_service),
):
    """
    Add one variant to an existing product (admin only).

    Multipart form:
      - variantData: JSON object of the variant
      - variant_images: files for the variant
    """
    fields, files = await read_multipart(request)
    variant = await run_in_threadpool(
        service.create_variant,
        session,
        product_id,
        fields.get("variantData"),
        files.get("variant_images"),
    )
    return VariantRead.model_validate(variant, from_attributes=True)
