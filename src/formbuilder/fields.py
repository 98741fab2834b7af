from __future__ import annotations

import logging
import re
from typing import Any, Iterable

import orjson

from formbuilder.config import DEFAULT_OPTIONS, FIELD_TYPES, OPTION_TYPES
from formbuilder.errors import FieldDefinitionError
from formbuilder.utils import new_field_id

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def new_field(
    field_type: str,
    label: str | None = None,
    existing_ids: Iterable[str] = (),
    order: int = 1,
) -> dict[str, Any]:
    if field_type not in FIELD_TYPES:
        raise FieldDefinitionError(f"Unknown field type: {field_type}")
    field: dict[str, Any] = {
        "id": new_field_id(existing_ids),
        "type": field_type,
        "label": label or f"New {field_type.capitalize()}",
        "placeholder": f"Enter {field_type}",
        "required": False,
        "order": order,
    }
    if field_type in OPTION_TYPES:
        field["options"] = list(DEFAULT_OPTIONS)
    return field


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_field(raw: dict[str, Any]) -> dict[str, Any]:
    field_type = _as_text(raw.get("type")).strip()
    if field_type not in FIELD_TYPES:
        raise FieldDefinitionError(f"Unknown field type: {field_type or '(empty)'}")
    try:
        order = int(raw.get("order") or 0)
    except (TypeError, ValueError) as exc:
        raise FieldDefinitionError(f"Invalid order: {raw.get('order')!r}") from exc
    field: dict[str, Any] = {
        "id": _as_text(raw.get("id")).strip(),
        "type": field_type,
        "label": _as_text(raw.get("label")),
        "placeholder": _as_text(raw.get("placeholder")),
        "required": bool(raw.get("required")),
        "order": order,
    }
    if field_type in OPTION_TYPES:
        options = raw.get("options")
        if options is None:
            options = list(DEFAULT_OPTIONS)
        if not isinstance(options, list):
            raise FieldDefinitionError("Options must be a list")
        field["options"] = [_as_text(option) for option in options]
    return field


def parse_fields(raw_fields: Any) -> tuple[list[dict[str, Any]], list[str]]:
    if not isinstance(raw_fields, list):
        return [], ["Field definitions must be a list"]

    errors: list[str] = []
    fields: list[dict[str, Any]] = []
    seen_ids: set[str] = {
        _as_text(raw.get("id")).strip() for raw in raw_fields if isinstance(raw, dict)
    }
    seen_ids.discard("")
    used_ids: set[str] = set()

    for index, raw in enumerate(raw_fields, start=1):
        loc = f"Field {index}"
        if not isinstance(raw, dict):
            errors.append(f"{loc}: definition must be an object")
            continue
        try:
            field = normalize_field(raw)
        except FieldDefinitionError as exc:
            errors.append(f"{loc}: {exc}")
            continue
        if not field["id"]:
            field["id"] = new_field_id(seen_ids | used_ids)
        if field["id"] in used_ids:
            errors.append(f"{loc}: duplicate id ({field['id']})")
            continue
        used_ids.add(field["id"])
        if not field["order"]:
            field["order"] = index
        fields.append(field)

    return fields, errors


def parse_fields_json(fields_json: str) -> tuple[list[dict[str, Any]], list[str]]:
    try:
        raw_fields = orjson.loads(fields_json) if fields_json else []
    except orjson.JSONDecodeError:
        return [], ["Field definitions are not valid JSON"]
    return parse_fields(raw_fields)


def option_value(option: str) -> str:
    return _WHITESPACE.sub("-", option.lower())


def option_choices(field: dict[str, Any]) -> list[tuple[str, str]]:
    if field.get("type") not in OPTION_TYPES:
        return []
    return [(option, option_value(option)) for option in field.get("options") or []]


def option_collisions(field: dict[str, Any]) -> dict[str, list[str]]:
    """Normalized values shared by more than one distinct option label."""
    grouped: dict[str, list[str]] = {}
    for label, value in option_choices(field):
        labels = grouped.setdefault(value, [])
        if label not in labels:
            labels.append(label)
    collisions = {value: labels for value, labels in grouped.items() if len(labels) > 1}
    if collisions:
        logger.warning(
            "Field %s has options with colliding values: %s",
            field.get("id"),
            ", ".join(sorted(collisions)),
        )
    return collisions


def field_input_type(field: dict[str, Any]) -> str:
    field_type = field.get("type")
    if field_type in {"email", "number", "date", "checkbox", "radio"}:
        return field_type
    return "text"


def field_label(field: dict[str, Any]) -> str:
    return field.get("label") or "This field"
