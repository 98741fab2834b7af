from __future__ import annotations

import copy
from typing import Any

from formbuilder.errors import IdentityCollisionError
from formbuilder.utils import new_field_id

# Every function returns a new list of new dicts; callers' lists are never mutated.


def _copy(fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [copy.deepcopy(field) for field in fields]


def _index_of(fields: list[dict[str, Any]], field_id: str | None) -> int | None:
    for index, field in enumerate(fields):
        if field.get("id") == field_id:
            return index
    return None


def renumber(fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{**field, "order": index} for index, field in enumerate(_copy(fields), start=1)]


def reorder_for_display(fields: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # sorted() is stable, so equal orders keep their input positions.
    return sorted(_copy(fields), key=lambda field: field.get("order") or 0)


def append_field(fields: list[dict[str, Any]], field: dict[str, Any]) -> list[dict[str, Any]]:
    """Append ``field`` with ``order = len(fields) + 1``.

    Existing orders are left alone, so a list with gaps (``[10, 20]``) gets
    ``3`` for the new field. Call :func:`renumber` first for contiguous orders.
    """
    if _index_of(fields, field.get("id")) is not None:
        raise IdentityCollisionError(f"Field id already present: {field.get('id')}")
    result = _copy(fields)
    result.append({**copy.deepcopy(field), "order": len(fields) + 1})
    return result


def remove_field(fields: list[dict[str, Any]], field_id: str) -> list[dict[str, Any]]:
    if _index_of(fields, field_id) is None:
        return _copy(fields)
    return renumber([field for field in fields if field.get("id") != field_id])


def duplicate_field(
    fields: list[dict[str, Any]],
    field_id: str,
    new_id: str | None = None,
) -> list[dict[str, Any]]:
    index = _index_of(fields, field_id)
    if index is None:
        return _copy(fields)
    existing = {field.get("id") for field in fields}
    clone_id = new_id or new_field_id(existing)
    if clone_id in existing:
        raise IdentityCollisionError(f"Field id already present: {clone_id}")
    clone = {**copy.deepcopy(fields[index]), "id": clone_id, "order": len(fields) + 1}
    result = _copy(fields)
    result.append(clone)
    return result


def move_before(
    fields: list[dict[str, Any]],
    dragged_id: str,
    target_id: str,
) -> list[dict[str, Any]]:
    if dragged_id == target_id:
        return _copy(fields)
    dragged_index = _index_of(fields, dragged_id)
    target_index = _index_of(fields, target_id)
    if dragged_index is None or target_index is None:
        return _copy(fields)
    result = _copy(fields)
    dragged = result.pop(dragged_index)
    result.insert(target_index, dragged)
    return renumber(result)
