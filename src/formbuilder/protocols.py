from __future__ import annotations

from typing import Any, Protocol


class FormRepository(Protocol):
    def list_forms(self) -> list[dict[str, Any]]: ...

    def list_forms_by_owner(self, user_id: str) -> list[dict[str, Any]]: ...

    def get_form(self, form_id: str) -> dict[str, Any] | None: ...

    def upsert_form(self, form: dict[str, Any]) -> dict[str, Any]: ...

    def delete_form(self, form_id: str) -> None: ...


class SubmissionRepository(Protocol):
    def list_submissions(self, form_id: str) -> list[dict[str, Any]]: ...

    def count_submissions(self, form_id: str) -> int: ...

    def create_submission(self, form_id: str, answers: dict[str, Any]) -> dict[str, Any]: ...


class Storage(Protocol):
    forms: FormRepository
    submissions: SubmissionRepository


class CurrentUser(Protocol):
    def id(self) -> str | None: ...
