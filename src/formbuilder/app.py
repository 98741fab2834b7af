from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.templating import Jinja2Templates

from formbuilder.auth import get_auth_provider
from formbuilder.config import BASE_DIR, Settings
from formbuilder.errors import FormNotFoundError, TransportError
from formbuilder.fields import field_input_type, option_choices
from formbuilder.protocols import Storage
from formbuilder.routes.api import router as api_router
from formbuilder.routes.public import router as public_router
from formbuilder.routes.submissions import router as submissions_router
from formbuilder.storage import init_storage

logger = logging.getLogger(__name__)


async def _transport_error_handler(request: Request, exc: Exception) -> Response:
    logger.warning("Store unavailable during %s %s: %s", request.method, request.url.path, exc)
    if request.url.path.startswith("/fill/"):
        return request.app.state.templates.TemplateResponse(
            request,
            "form_unavailable.html",
            {
                "form_id": request.path_params.get("form_id", ""),
                "message": "This form is temporarily unavailable. Please try again shortly.",
                "retry": True,
            },
            status_code=503,
        )
    return JSONResponse({"detail": "The form store is temporarily unavailable"}, status_code=503)


async def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"detail": "Form not found"}, status_code=404)


def create_app(settings: Settings | None = None, storage: Storage | None = None) -> FastAPI:
    settings = settings or Settings()
    storage = storage or init_storage(settings)

    app = FastAPI(
        title="formbuilder",
        openapi_tags=[
            {"name": "public", "description": "Public fill-out pages (HTML)"},
            {"name": "api/forms", "description": "REST API: forms"},
            {"name": "api/public", "description": "REST API: published forms"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.storage = storage
    app.state.settings = settings
    app.state.auth_provider = get_auth_provider(settings)

    templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
    templates.env.globals["field_input_type"] = field_input_type
    templates.env.globals["option_choices"] = option_choices
    app.state.templates = templates

    app.add_exception_handler(TransportError, _transport_error_handler)
    app.add_exception_handler(FormNotFoundError, _not_found_handler)

    app.include_router(public_router)
    app.include_router(submissions_router)
    app.include_router(api_router)

    return app
