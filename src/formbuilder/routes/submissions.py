from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from formbuilder.auth import require_user
from formbuilder.documents import sanitize_submission_output
from formbuilder.filters import (
    csv_headers_and_rows,
    decode_cursor,
    paginate_submissions,
    render_table,
)
from formbuilder.routes.api import get_owned_form

router = APIRouter()

MAX_PAGE_SIZE = 200


@router.get("/api/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_list_submissions(
    request: Request, form_id: str, user_id: str = Depends(require_user)
) -> JSONResponse:
    storage = request.app.state.storage
    get_owned_form(storage, form_id, user_id)

    try:
        limit = int(request.query_params.get("limit", 50))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="limit must be an integer") from exc
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise HTTPException(status_code=400, detail=f"limit must be between 1 and {MAX_PAGE_SIZE}")

    cursor = None
    cursor_raw = request.query_params.get("cursor")
    if cursor_raw:
        cursor = decode_cursor(cursor_raw)
        if cursor is None:
            raise HTTPException(status_code=400, detail="Invalid cursor")

    submissions = storage.submissions.list_submissions(form_id)
    page, next_cursor = paginate_submissions(submissions, cursor, limit)
    headers = {"X-Next-Cursor": next_cursor} if next_cursor else {}
    return JSONResponse([sanitize_submission_output(item) for item in page], headers=headers)


@router.get("/api/forms/{form_id}/export", tags=["api/submissions"])
async def export_submissions(
    request: Request, form_id: str, user_id: str = Depends(require_user)
) -> PlainTextResponse:
    storage = request.app.state.storage
    form = get_owned_form(storage, form_id, user_id)

    fmt = request.query_params.get("format", "csv")
    if fmt not in {"csv", "tsv"}:
        raise HTTPException(status_code=400, detail="format must be csv or tsv")

    submissions = storage.submissions.list_submissions(form_id)
    headers, rows = csv_headers_and_rows(form.get("content") or [], submissions)
    content_type = "text/csv" if fmt == "csv" else "text/tab-separated-values"
    return PlainTextResponse(
        render_table(headers, rows, fmt),
        media_type=content_type,
        headers={"Content-Disposition": f"attachment; filename=submissions.{fmt}"},
    )


@router.get("/healthz", tags=["system"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
