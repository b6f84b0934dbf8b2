"""Shared fixtures.

Services run against an in-memory SQLite database and a recording fake
media store: no network, no Supabase.
"""

import os

# Settings are read at import time by the API modules.
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "anon-test-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from catalog_engine.models import catalog as _catalog_models  # noqa: F401
from catalog_engine.models import change_request as _change_request_models  # noqa: F401
from catalog_engine.models import product as _product_models  # noqa: F401
from catalog_engine.models.catalog import CatalogNode
from catalog_engine.repositories.catalog_repo import CatalogDirectory, InventoryLedger
from catalog_engine.repositories.change_request_repo import ChangeRequestRepository
from catalog_engine.repositories.product_repo import ProductRepository
from catalog_engine.services.authorization import RoleAuthorization
from catalog_engine.services.change_request_service import ChangeRequestService
from catalog_engine.services.media_service import MediaManager
from catalog_engine.services.product_service import ProductService
from catalog_engine.services.variant_service import VariantService
from tests.fakes import FakeMediaStore, png, product_payload, variant_payload


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def media(store) -> MediaManager:
    return MediaManager(store, max_bytes=1024)


@pytest.fixture
def authorization() -> RoleAuthorization:
    return RoleAuthorization()


@pytest.fixture
def product_service(media) -> ProductService:
    return ProductService(ProductRepository(), media, CatalogDirectory(), InventoryLedger())


@pytest.fixture
def variant_service(media, authorization) -> VariantService:
    return VariantService(
        ProductRepository(),
        ChangeRequestRepository(),
        media,
        InventoryLedger(),
        authorization,
    )


@pytest.fixture
def change_request_service(authorization) -> ChangeRequestService:
    return ChangeRequestService(ChangeRequestRepository(), ProductRepository(), authorization)


@pytest.fixture
def category(session) -> CatalogNode:
    node = CatalogNode(name="Dairy", key="DAIRY")
    session.add(node)
    session.commit()
    session.refresh(node)
    return node


@pytest.fixture
def seeded(session, product_service, category, store):
    """A product with two variants (one image each), already committed.

    Returns (product, [variant SKU-1, variant SKU-2]); the store's call
    log is cleared afterwards.
    """
    product, variants = product_service.create_product_with_variants(
        session,
        product_payload(category.id),
        [variant_payload("SKU-1", barcode="BC-1"), variant_payload("SKU-2")],
        {"variant_images[0]": [png("v1.png")], "variant_images[1]": [png("v2.png")]},
    )
    store.uploads.clear()
    store.deletes.clear()
    return product, sorted(variants, key=lambda v: v.sku)
