# catalog_engine/services/payloads.py
"""
Helpers for turning raw request payloads into validated schemas and for
merging partial updates onto stored entities.
"""

import json
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import SQLModel

from catalog_engine.core.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_json(raw: Any, label: str) -> Any:
    """
    Accept either an already-decoded value or a JSON string (multipart
    form fields carry JSON as text).
    """
    if not isinstance(raw, (str, bytes)):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON format in {label}. {exc.msg}") from exc


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def validate_payload(schema: type[SchemaT], data: Any, label: str) -> SchemaT:
    if not isinstance(data, dict):
        raise ValidationError(f"{label} must be a JSON object.")
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid {label}: {_format_errors(exc)}") from exc


def _unset_value(entity: SQLModel, field: str) -> Any:
    info = type(entity).model_fields[field]
    if info.default_factory is not None:
        return info.default_factory()
    return None


def merge_delta(
    entity: SQLModel,
    delta: BaseModel,
    skip: Iterable[str] = (),
) -> list[str]:
    """
    Apply the fields explicitly present in `delta` onto `entity`.

    - omitted field: untouched
    - explicit null: unset (empty list/dict for collection fields, None otherwise)
    - anything else: replaced (nested models become plain dicts)

    Returns:
        Names of the fields that were written.
    """
    fields = delta.model_fields_set - set(skip)
    values = delta.model_dump(include=fields)
    for field, value in values.items():
        if value is None:
            value = _unset_value(entity, field)
        setattr(entity, field, value)
    return sorted(values)


def remove_images(
    images: list[dict[str, Any]],
    urls_to_remove: Iterable[str] | None,
) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Drop images whose URL is listed.

    Returns:
        (kept images, removed URLs). Only URLs actually present in the
        list are reported as removed.
    """
    targets = set(urls_to_remove or [])
    kept: list[dict[str, Any]] = []
    removed: list[str] = []
    for image in images:
        if image.get("url") in targets:
            removed.append(image["url"])
        else:
            kept.append(image)
    return kept, removed
