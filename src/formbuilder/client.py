from __future__ import annotations

import logging
from typing import Any

import httpx

from formbuilder.auth import USER_HEADER
from formbuilder.errors import (
    AuthenticationRequired,
    FormNotFoundError,
    FormNotPublishedError,
    SubmissionValidationError,
    TransportError,
)
from formbuilder.utils import parse_dt

logger = logging.getLogger(__name__)


class FormAPIClient:
    """Form and submission store backed by a remote formbuilder JSON API.

    Implements both repository protocols, so a :class:`BuilderSession` or a
    :class:`SubmissionCollector` can work against a server exactly as they do
    against a local store.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        user_id: str | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        headers = {USER_HEADER: user_id} if user_id else {}
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = headers

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> FormAPIClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Request %s %s failed: %s", method, url, exc)
            raise TransportError(str(exc)) from exc
        if response.status_code == 401:
            raise AuthenticationRequired(self._detail(response))
        if response.status_code >= 500:
            logger.warning("Request %s %s returned %s", method, url, response.status_code)
            raise TransportError(f"{method} {url} returned {response.status_code}")
        return response

    @staticmethod
    def _detail(response: httpx.Response) -> Any:
        try:
            return response.json().get("detail")
        except ValueError:
            return response.text

    @staticmethod
    def _form_from_json(payload: dict[str, Any]) -> dict[str, Any]:
        return {
            **payload,
            "created_at": parse_dt(payload.get("created_at")),
            "updated_at": parse_dt(payload.get("updated_at")),
        }

    @staticmethod
    def _submission_from_json(payload: dict[str, Any]) -> dict[str, Any]:
        return {**payload, "created_at": parse_dt(payload.get("created_at"))}

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Unexpected response {response.status_code}: {self._detail(response)}"
            ) from exc

    def list_forms(self) -> list[dict[str, Any]]:
        response = self._request("GET", "/api/forms")
        self._raise_for_status(response)
        return [self._form_from_json(item) for item in response.json()["items"]]

    def list_forms_by_owner(self, user_id: str) -> list[dict[str, Any]]:
        # The server scopes the listing to the authenticated user.
        return [form for form in self.list_forms() if form.get("user_id") == user_id]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        response = self._request("GET", f"/api/forms/{form_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return self._form_from_json(response.json())

    def get_public_form(self, form_id: str) -> dict[str, Any] | None:
        response = self._request("GET", f"/api/public/forms/{form_id}")
        if response.status_code == 404:
            return None
        if response.status_code == 409:
            raise FormNotPublishedError(self._detail(response))
        self._raise_for_status(response)
        return self._form_from_json(response.json())

    def upsert_form(self, form: dict[str, Any]) -> dict[str, Any]:
        payload = {
            key: form.get(key)
            for key in ("id", "title", "description", "status", "content")
            if key in form
        }
        response = self._request("POST", "/api/forms", json=payload)
        self._raise_for_status(response)
        return self._form_from_json(response.json())

    def delete_form(self, form_id: str) -> None:
        response = self._request("DELETE", f"/api/forms/{form_id}")
        if response.status_code == 404:
            raise FormNotFoundError(form_id)
        self._raise_for_status(response)

    def list_submissions(self, form_id: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        params: dict[str, Any] = {}
        while True:
            response = self._request("GET", f"/api/forms/{form_id}/submissions", params=params)
            if response.status_code == 404:
                raise FormNotFoundError(form_id)
            self._raise_for_status(response)
            items.extend(self._submission_from_json(item) for item in response.json())
            cursor = response.headers.get("X-Next-Cursor")
            if not cursor:
                return items
            params = {"cursor": cursor}

    def count_submissions(self, form_id: str) -> int:
        return len(self.list_submissions(form_id))

    def create_submission(self, form_id: str, answers: dict[str, Any]) -> dict[str, Any]:
        response = self._request(
            "POST", f"/api/public/forms/{form_id}/submissions", json={"answers": answers}
        )
        if response.status_code == 404:
            raise FormNotFoundError(form_id)
        if response.status_code == 409:
            raise FormNotPublishedError(self._detail(response))
        if response.status_code == 422:
            raise SubmissionValidationError(response.json().get("errors") or {})
        self._raise_for_status(response)
        return self._submission_from_json(response.json())
