# catalog_engine/repositories/catalog_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from catalog_engine.models.catalog import CatalogNode, InventoryItem


class CatalogDirectory:
    """
    Read-only view of the category hierarchy owned by another service.
    """

    def exists(self, session: Session, category_id: uuid.UUID) -> bool:
        return session.get(CatalogNode, category_id) is not None


class InventoryLedger:
    """
    Read-only view of inventory records owned by another service.

    Queried inside the caller's transaction so the check and the delete
    it guards see the same snapshot.
    """

    def count_by_variant(self, session: Session, variant_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(InventoryItem).where(
            InventoryItem.variant_id == variant_id
        )
        return session.exec(stmt).one()
