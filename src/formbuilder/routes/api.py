from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from formbuilder.auth import require_user
from formbuilder.collector import SubmissionCollector
from formbuilder.config import DEFAULT_TITLE, STATUSES
from formbuilder.documents import (
    filter_forms,
    form_stats,
    is_accepting_submissions,
    resolve_status,
    sanitize_form_output,
    sanitize_submission_output,
)
from formbuilder.fields import parse_fields, parse_fields_json

logger = logging.getLogger(__name__)

router = APIRouter()


def get_owned_form(storage: Any, form_id: str, user_id: str) -> dict[str, Any]:
    form = storage.forms.get_form(form_id)
    # Other users' forms are reported as missing.
    if not form or form.get("user_id") != user_id:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def get_published_form(storage: Any, form_id: str) -> dict[str, Any]:
    form = storage.forms.get_form(form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    if not is_accepting_submissions(form):
        raise HTTPException(status_code=409, detail="This form is not accepting responses")
    return form


@router.get("/api/forms", tags=["api/forms"])
async def api_list_forms(request: Request, user_id: str = Depends(require_user)) -> JSONResponse:
    storage = request.app.state.storage
    status = request.query_params.get("status")
    if status and status != "all" and status not in STATUSES:
        raise HTTPException(status_code=400, detail="Unknown status filter")
    owned = storage.forms.list_forms_by_owner(user_id)
    counts = {form["id"]: storage.submissions.count_submissions(form["id"]) for form in owned}
    forms = filter_forms(owned, request.query_params.get("q"), status)
    return JSONResponse(
        {
            "items": [sanitize_form_output(form, counts[form["id"]]) for form in forms],
            "stats": form_stats(owned, counts),
        }
    )


@router.post("/api/forms", tags=["api/forms"])
async def api_upsert_form(request: Request, user_id: str = Depends(require_user)) -> JSONResponse:
    storage = request.app.state.storage
    payload = await request.json()
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be an object")

    form_id = str(payload.get("id") or "").strip() or None
    existing = storage.forms.get_form(form_id) if form_id else None
    if existing and existing.get("user_id") != user_id:
        raise HTTPException(status_code=404, detail="Form not found")

    raw_content = payload.get("content")
    if isinstance(raw_content, str):
        content, errors = parse_fields_json(raw_content)
    else:
        content, errors = parse_fields(raw_content or [])
    if errors:
        raise HTTPException(status_code=400, detail=errors)
    try:
        status = resolve_status(payload, current=existing.get("status") if existing else None)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    title = payload.get("title")
    saved = storage.forms.upsert_form(
        {
            "id": existing["id"] if existing else None,
            "user_id": user_id,
            "title": DEFAULT_TITLE if title is None else str(title),
            "description": str(payload.get("description") or ""),
            "status": status,
            "content": content,
        }
    )
    return JSONResponse(sanitize_form_output(saved))


@router.get("/api/forms/{form_id}", tags=["api/forms"])
async def api_get_form(
    request: Request, form_id: str, user_id: str = Depends(require_user)
) -> JSONResponse:
    storage = request.app.state.storage
    form = get_owned_form(storage, form_id, user_id)
    count = storage.submissions.count_submissions(form_id)
    return JSONResponse(sanitize_form_output(form, count))


@router.delete("/api/forms/{form_id}", tags=["api/forms"])
async def api_delete_form(
    request: Request, form_id: str, user_id: str = Depends(require_user)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(storage, form_id, user_id)
    storage.forms.delete_form(form_id)
    return JSONResponse({"id": form_id, "deleted": True})


@router.get("/api/public/forms/{form_id}", tags=["api/public"])
async def api_public_form(request: Request, form_id: str) -> JSONResponse:
    form = get_published_form(request.app.state.storage, form_id)
    output = sanitize_form_output(form)
    output.pop("user_id", None)
    return JSONResponse(output)


@router.post("/api/public/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_submit_form(request: Request, form_id: str) -> JSONResponse:
    storage = request.app.state.storage
    form = get_published_form(storage, form_id)
    payload = await request.json()
    answers = payload.get("answers", payload) if isinstance(payload, dict) else None
    if not isinstance(answers, dict):
        raise HTTPException(status_code=400, detail="answers must be an object")

    collector = SubmissionCollector(form, storage.submissions)
    submission = collector.submit(answers)
    if submission is None:
        return JSONResponse(
            {"detail": "Validation failed", "errors": collector.errors}, status_code=422
        )
    return JSONResponse(sanitize_submission_output(submission), status_code=201)
