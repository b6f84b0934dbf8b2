# catalog_engine/services/guards.py
"""
Consistency guards.

Small checks shared by every mutation path: category existence, dependent
inventory, product reassignment, and recognition of unique-index
violations raised by the store.
"""

import re
import uuid
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from catalog_engine.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_engine.models.product import ProductVariant
from catalog_engine.repositories.catalog_repo import CatalogDirectory, InventoryLedger

UNIQUE_VIOLATION_SQLSTATE = "23505"

UNIQUE_FIELDS: tuple[str, ...] = ("sku", "barcode", "name")

_FIELD_PATTERNS = (
    # Postgres: DETAIL:  Key (sku)=(ABC-1) already exists.
    re.compile(r"Key \((\w+)\)="),
    # SQLite: UNIQUE constraint failed: product_variants.sku
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),
    # Constraint / index name: ix_product_variants_sku
    re.compile(r"ix_\w+?_(sku|barcode|name)\b"),
)

# Keys that would move a variant to another product.
PRODUCT_REFERENCE_KEYS = ("product", "product_id")


def ensure_category_exists(
    session: Session,
    directory: CatalogDirectory,
    category_id: uuid.UUID,
) -> None:
    if not directory.exists(session, category_id):
        raise NotFoundError(f"Catalog with id {category_id} not found.")


def has_dependent_inventory(
    session: Session,
    ledger: InventoryLedger,
    variant_id: uuid.UUID,
) -> bool:
    return ledger.count_by_variant(session, variant_id) > 0


def ensure_no_dependent_inventory(
    session: Session,
    ledger: InventoryLedger,
    variant: ProductVariant,
) -> None:
    if has_dependent_inventory(session, ledger, variant.id):
        label = variant.variant_name or str(variant.id)
        sku = f" ({variant.sku})" if variant.sku else ""
        raise ConflictError(
            f"Cannot delete variant {label}{sku} as it has existing inventory. "
            "Please clear inventory first."
        )


def reject_product_reassignment(delta: Mapping[str, Any]) -> None:
    """
    A variant never moves to another product. Checked before any lookup
    or write, whoever the actor is.
    """
    for key in PRODUCT_REFERENCE_KEYS:
        if key in delta:
            raise ValidationError(
                "Changing the product a variant belongs to is not allowed."
            )


def is_uniqueness_violation(exc: BaseException) -> bool:
    if not isinstance(exc, IntegrityError):
        return False

    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code == UNIQUE_VIOLATION_SQLSTATE

    return "UNIQUE constraint failed" in str(orig)


def duplicate_field(exc: IntegrityError) -> str | None:
    """
    Best-effort name of the column whose unique index was violated.
    """
    text = str(exc.orig)
    for pattern in _FIELD_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1) in UNIQUE_FIELDS:
            return match.group(1)
    return None


def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    field = duplicate_field(exc)
    if field:
        return ConflictError(
            f"A product or variant with the same {field} already exists."
        )
    return ConflictError(
        "A product or variant with the same unique fields (sku/barcode/name) already exists."
    )
