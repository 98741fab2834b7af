from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from formbuilder.collector import SubmissionCollector
from formbuilder.documents import is_accepting_submissions

router = APIRouter()


def _render_unavailable(request: Request, form_id: str, status_code: int, message: str) -> HTMLResponse:
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "form_unavailable.html",
        {"form_id": form_id, "message": message, "retry": status_code == 404},
        status_code=status_code,
    )


def _render_form(request: Request, collector: SubmissionCollector, status_code: int = 200) -> HTMLResponse:
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "form_fill.html",
        {
            "form": collector.form,
            "fields": collector.fields,
            "values": collector.values,
            "errors": collector.errors,
        },
        status_code=status_code,
    )


def _load_collector(request: Request, form_id: str) -> SubmissionCollector | HTMLResponse:
    storage = request.app.state.storage
    form = storage.forms.get_form(form_id)
    if not form:
        return _render_unavailable(
            request, form_id, 404, "We could not find this form. Check the link and try again."
        )
    if not is_accepting_submissions(form):
        return _render_unavailable(request, form_id, 409, "This form is not accepting responses.")
    return SubmissionCollector(form, storage.submissions)


@router.get("/fill/{form_id}", response_class=HTMLResponse, tags=["public"])
async def fill_form(request: Request, form_id: str) -> HTMLResponse:
    collector = _load_collector(request, form_id)
    if isinstance(collector, HTMLResponse):
        return collector
    return _render_form(request, collector)


@router.post("/fill/{form_id}", response_class=HTMLResponse, tags=["public"])
async def submit_fill_form(request: Request, form_id: str) -> HTMLResponse:
    collector = _load_collector(request, form_id)
    if isinstance(collector, HTMLResponse):
        return collector

    form_data = await request.form()
    raw: dict[str, Any] = {key: form_data.get(key) for key in form_data.keys()}
    if collector.submit(raw) is None:
        return _render_form(request, collector, status_code=422)

    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "submission_done.html",
        {"form": collector.form},
    )
