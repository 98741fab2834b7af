from __future__ import annotations

import copy
from typing import Any

from formbuilder.config import (
    DEFAULT_TITLE,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    STATUSES,
)
from formbuilder.utils import now_utc, to_iso


def resolve_status(payload: dict[str, Any], current: str | None = None) -> str:
    status = payload.get("status")
    if status in STATUSES:
        return status
    if status:
        raise ValueError(f"Unknown status: {status}")
    if "published" in payload:
        return STATUS_PUBLISHED if payload["published"] else STATUS_DRAFT
    return current or STATUS_DRAFT


def apply_status(doc: dict[str, Any], status: str) -> dict[str, Any]:
    if status not in STATUSES:
        raise ValueError(f"Unknown status: {status}")
    return {**doc, "status": status, "published": status == STATUS_PUBLISHED}


def build_document(
    user_id: str,
    title: str = DEFAULT_TITLE,
    description: str = "",
    content: list[dict[str, Any]] | None = None,
    status: str = STATUS_DRAFT,
    form_id: str | None = None,
) -> dict[str, Any]:
    doc = {
        "id": form_id,
        "user_id": user_id,
        "title": title,
        "description": description,
        "content": copy.deepcopy(content or []),
    }
    return apply_status(doc, status)


def is_editable(doc: dict[str, Any]) -> bool:
    return doc.get("status") != STATUS_PUBLISHED


def is_accepting_submissions(doc: dict[str, Any]) -> bool:
    return doc.get("status") == STATUS_PUBLISHED


def sanitize_form_output(
    form: dict[str, Any], submission_count: int | None = None
) -> dict[str, Any]:
    output = {
        "id": form["id"],
        "user_id": form.get("user_id"),
        "title": form.get("title", ""),
        "description": form.get("description", ""),
        "status": form.get("status", STATUS_DRAFT),
        "published": bool(form.get("published")),
        "content": form.get("content", []),
        "created_at": to_iso(form.get("created_at") or now_utc()),
        "updated_at": to_iso(form.get("updated_at") or now_utc()),
    }
    if submission_count is not None:
        output["submission_count"] = submission_count
    return output


def sanitize_submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "form_id": submission["form_id"],
        "answers": submission.get("answers", {}),
        "created_at": to_iso(submission["created_at"]),
    }


def filter_forms(
    forms: list[dict[str, Any]],
    query: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    needle = (query or "").strip().lower()
    result: list[dict[str, Any]] = []
    for form in forms:
        if status and status != "all" and form.get("status") != status:
            continue
        if needle:
            haystack = f"{form.get('title') or ''}\n{form.get('description') or ''}".lower()
            if needle not in haystack:
                continue
        result.append(form)
    return result


def form_stats(forms: list[dict[str, Any]], counts: dict[str, int]) -> dict[str, int]:
    return {
        "total_forms": len(forms),
        "published_forms": sum(1 for form in forms if form.get("status") == STATUS_PUBLISHED),
        "total_responses": sum(counts.get(form["id"], 0) for form in forms),
    }
