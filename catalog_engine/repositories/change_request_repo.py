# catalog_engine/repositories/change_request_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from catalog_engine.models.change_request import ProductVariantChangeRequest


class ChangeRequestRepository:
    """
    Data access layer for product variant change requests.

    NOTE:
      - No commits here; approval updates the variant and the request in
        one transaction. The service is responsible for session.commit().
    """

    def get_by_id(
        self,
        session: Session,
        request_id: uuid.UUID,
    ) -> ProductVariantChangeRequest | None:
        return session.get(ProductVariantChangeRequest, request_id)

    def list_by_status(
        self,
        session: Session,
        status: str,
        skip: int = 0,
        limit: int = 20,
    ) -> list[ProductVariantChangeRequest]:
        stmt = (
            select(ProductVariantChangeRequest)
            .where(ProductVariantChangeRequest.status == status)
            .order_by(ProductVariantChangeRequest.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count_by_status(self, session: Session, status: str) -> int:
        stmt = select(func.count()).select_from(ProductVariantChangeRequest).where(
            ProductVariantChangeRequest.status == status
        )
        return session.exec(stmt).one()

    def add(
        self,
        session: Session,
        request: ProductVariantChangeRequest,
    ) -> ProductVariantChangeRequest:
        session.add(request)
        session.flush()
        return request

    def save(
        self,
        session: Session,
        request: ProductVariantChangeRequest,
    ) -> ProductVariantChangeRequest:
        session.add(request)
        session.flush()
        return request
