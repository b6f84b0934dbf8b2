# catalog_engine/core/providers.py
"""
FastAPI dependencies that build the services.

Each provider is cached so one instance serves the whole process. Tests
swap them out with app.dependency_overrides.
"""

from functools import lru_cache

from catalog_engine.core.config import get_settings
from catalog_engine.core.storage_utils import SupabaseMediaStore
from catalog_engine.core.supabase_client import supabase_admin
from catalog_engine.repositories.catalog_repo import CatalogDirectory, InventoryLedger
from catalog_engine.repositories.change_request_repo import ChangeRequestRepository
from catalog_engine.repositories.product_repo import ProductRepository
from catalog_engine.services.authorization import Authorization, RoleAuthorization
from catalog_engine.services.change_request_service import ChangeRequestService
from catalog_engine.services.media_service import MediaManager
from catalog_engine.services.product_service import ProductService
from catalog_engine.services.variant_service import VariantService


@lru_cache
def get_authorization() -> Authorization:
    return RoleAuthorization.from_roles(get_settings().PRIVILEGED_ROLES)


@lru_cache
def get_media_manager() -> MediaManager:
    settings = get_settings()
    store = SupabaseMediaStore(supabase_admin(), settings.STORAGE_BUCKET)
    return MediaManager(store, max_bytes=settings.MEDIA_MAX_BYTES)


@lru_cache
def get_product_service() -> ProductService:
    return ProductService(
        ProductRepository(),
        get_media_manager(),
        CatalogDirectory(),
        InventoryLedger(),
    )


@lru_cache
def get_variant_service() -> VariantService:
    return VariantService(
        ProductRepository(),
        ChangeRequestRepository(),
        get_media_manager(),
        InventoryLedger(),
        get_authorization(),
    )


@lru_cache
def get_change_request_service() -> ChangeRequestService:
    return ChangeRequestService(
        ChangeRequestRepository(),
        ProductRepository(),
        get_authorization(),
    )
