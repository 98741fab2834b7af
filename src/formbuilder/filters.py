from __future__ import annotations

import base64
import binascii
import csv
import io
from datetime import datetime, timezone
from typing import Any

from formbuilder.ordering import reorder_for_display


def parse_bool(value: Any) -> bool:
    return str(value).lower() in {"1", "true", "on", "yes"}


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def encode_cursor(created_at: datetime, submission_id: str) -> str:
    value = f"{ensure_aware(created_at).isoformat()}|{submission_id}"
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("utf-8")


def decode_cursor(cursor: str) -> tuple[datetime, str] | None:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("utf-8")).decode("utf-8")
        created_at_raw, submission_id = raw.split("|", 1)
        created_at = datetime.fromisoformat(created_at_raw)
        return ensure_aware(created_at), submission_id
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def paginate_submissions(
    submissions: list[dict[str, Any]],
    cursor: tuple[datetime, str] | None,
    limit: int,
) -> tuple[list[dict[str, Any]], str | None]:
    ordered = sorted(
        submissions,
        key=lambda item: (ensure_aware(item["created_at"]), item["id"]),
        reverse=True,
    )
    if cursor:
        cursor_dt, cursor_id = cursor
        ordered = [
            item
            for item in ordered
            if (ensure_aware(item["created_at"]), item["id"]) < (cursor_dt, cursor_id)
        ]
    page = ordered[:limit]
    next_cursor = None
    if len(page) == limit and len(ordered) > limit:
        last = page[-1]
        next_cursor = encode_cursor(last["created_at"], last["id"])
    return page, next_cursor


def value_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def csv_headers_and_rows(
    fields: list[dict[str, Any]],
    submissions: list[dict[str, Any]],
) -> tuple[list[str], list[list[str]]]:
    ordered = reorder_for_display(fields)
    headers = ["submission_id", "created_at"] + [
        field.get("label") or field["id"] for field in ordered
    ]
    rows: list[list[str]] = []
    for submission in submissions:
        answers = submission.get("answers", {})
        row = [submission["id"], ensure_aware(submission["created_at"]).isoformat()]
        row.extend(value_to_text(answers.get(field["id"])) for field in ordered)
        rows.append(row)
    return headers, rows


def render_table(headers: list[str], rows: list[list[str]], fmt: str = "csv") -> str:
    delimiter = "," if fmt == "csv" else "\t"
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter)
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()
