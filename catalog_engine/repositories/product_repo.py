# catalog_engine/repositories/product_repo.py
import uuid

from sqlmodel import Session, select

from catalog_engine.models.product import Product, ProductVariant


class ProductRepository:
    """
    Data access layer for Product & ProductVariant.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - No commits here; every mutation is part of a multi-document unit of
      work and the service decides when to commit or roll back. Writes are
      flushed immediately so constraint violations surface at the step
      that caused them.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def add(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.flush()
        return product

    def save(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.flush()
        return product

    # ----- Variants -----

    def get_variant(
        self,
        session: Session,
        variant_id: uuid.UUID,
    ) -> ProductVariant | None:
        return session.get(ProductVariant, variant_id)

    def list_variants(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductVariant]:
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.created_at)
        )
        return list(session.exec(stmt).all())

    def first_variant(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> ProductVariant | None:
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.created_at)
        )
        return session.exec(stmt).first()

    def add_variant(self, session: Session, variant: ProductVariant) -> ProductVariant:
        session.add(variant)
        session.flush()
        return variant

    def save_variant(self, session: Session, variant: ProductVariant) -> ProductVariant:
        session.add(variant)
        session.flush()
        return variant

    def delete_variant(self, session: Session, variant: ProductVariant) -> None:
        session.delete(variant)
        session.flush()
