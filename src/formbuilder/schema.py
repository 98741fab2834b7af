from __future__ import annotations

from typing import Any, Callable

from jsonschema import Draft7Validator

from formbuilder.fields import field_label
from formbuilder.filters import parse_bool

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
OPTIONAL_EMAIL_PATTERN = r"^(?:[^\s@]+@[^\s@]+\.[^\s@]+)?$"

# Lower rank wins when a single field fails several keywords.
_KEYWORD_PRIORITY = {"type": 0, "required": 1, "minLength": 1, "const": 2, "pattern": 3}


def _text_rule(field: dict[str, Any]) -> dict[str, Any]:
    label = field_label(field)
    rule: dict[str, Any] = {
        "type": "string",
        "x-messages": {"type": f"{label} must be text"},
    }
    if field.get("required"):
        rule["minLength"] = 1
        rule["x-messages"]["minLength"] = f"{label} is required"
        rule["x-messages"]["required"] = f"{label} is required"
    return rule


def _email_rule(field: dict[str, Any]) -> dict[str, Any]:
    rule = _text_rule(field)
    rule["pattern"] = EMAIL_PATTERN if field.get("required") else OPTIONAL_EMAIL_PATTERN
    rule["x-messages"]["pattern"] = "Invalid email address"
    return rule


def _checkbox_rule(field: dict[str, Any]) -> dict[str, Any]:
    label = field_label(field)
    rule: dict[str, Any] = {
        "type": "boolean",
        "x-messages": {"type": f"{label} must be true or false"},
    }
    if field.get("required"):
        rule["const"] = True
        rule["x-messages"]["const"] = f"{label} must be checked"
        rule["x-messages"]["required"] = f"{label} must be checked"
    return rule


# number, date, select, radio, text and textarea share the plain string rule.
RULE_BUILDERS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "email": _email_rule,
    "checkbox": _checkbox_rule,
}


def build_rule(field: dict[str, Any]) -> dict[str, Any]:
    builder = RULE_BUILDERS.get(field.get("type", ""), _text_rule)
    rule = builder(field)
    rule["title"] = field.get("label") or ""
    return rule


def compile_schema(fields: list[dict[str, Any]]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    field_order: list[str] = []
    for field in fields:
        field_id = field["id"]
        properties[field_id] = build_rule(field)
        field_order.append(field_id)
    return {
        "type": "object",
        "properties": properties,
        "required": list(field_order),
        "x-field-order": field_order,
    }


def default_values(fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {field["id"]: False if field.get("type") == "checkbox" else "" for field in fields}


def _coerce_value(field: dict[str, Any], value: Any) -> Any:
    if field.get("type") == "checkbox":
        if value is None:
            return False
        if isinstance(value, str):
            return parse_bool(value)
        return value
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def coerce_answers(fields: list[dict[str, Any]], raw: dict[str, Any] | None) -> dict[str, Any]:
    raw = raw or {}
    defaults = default_values(fields)
    return {
        field["id"]: _coerce_value(field, raw.get(field["id"], defaults[field["id"]]))
        for field in fields
    }


def _message_for(schema: dict[str, Any], field_id: str, keyword: str) -> str:
    rule = schema["properties"].get(field_id, {})
    messages = rule.get("x-messages", {})
    return messages.get(keyword) or f"{rule.get('title') or 'This field'} is invalid"


def collect_errors(schema: dict[str, Any], data: dict[str, Any]) -> dict[str, str]:
    ranked: dict[str, tuple[int, str]] = {}

    def record(field_id: str, keyword: str) -> None:
        rank = _KEYWORD_PRIORITY.get(keyword, len(_KEYWORD_PRIORITY))
        current = ranked.get(field_id)
        if current is None or rank < current[0]:
            ranked[field_id] = (rank, _message_for(schema, field_id, keyword))

    validator = Draft7Validator(schema)
    for error in validator.iter_errors(data):
        if error.path:
            record(str(error.path[0]), error.validator)
        elif error.validator == "required":
            for field_id in error.validator_value:
                if field_id not in data:
                    record(field_id, "required")

    order = schema.get("x-field-order") or list(schema["properties"])
    return {field_id: ranked[field_id][1] for field_id in order if field_id in ranked}


def validate_answers(
    fields: list[dict[str, Any]],
    raw: dict[str, Any] | None,
) -> tuple[dict[str, Any], dict[str, str]]:
    """Compile a schema for ``fields`` and check every answer against it.

    Returns the coerced answers (keyed by field id, unknown keys dropped) and a
    mapping of field id to message. The mapping is empty when the answers are
    valid; otherwise it holds one message for every failing field.
    """
    schema = compile_schema(fields)
    data = coerce_answers(fields, raw)
    return data, collect_errors(schema, data)
