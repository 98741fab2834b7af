from __future__ import annotations

import copy
import logging
from typing import Any

from formbuilder import ordering
from formbuilder.config import (
    DEFAULT_TITLE,
    OPTION_TYPES,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
)
from formbuilder.documents import build_document, is_editable
from formbuilder.errors import (
    AuthenticationRequired,
    FieldDefinitionError,
    FormLockedError,
    FormNotFoundError,
)
from formbuilder.fields import new_field, normalize_field, option_collisions
from formbuilder.protocols import CurrentUser, FormRepository

logger = logging.getLogger(__name__)

EDITABLE_KEYS = {"label", "type", "placeholder", "order", "required", "options"}


class BuilderSession:
    """Editable, not yet persisted state of one form.

    The session owns the title, description and field list of a form and the
    field currently selected for property editing. Nothing reaches the store
    until :meth:`save`; a failed save leaves the session untouched so it can be
    retried.
    """

    def __init__(
        self,
        store: FormRepository,
        user: CurrentUser,
        title: str = DEFAULT_TITLE,
        description: str = "",
    ) -> None:
        self._store = store
        self._user = user
        self.form_id: str | None = None
        self.title = title
        self.description = description
        self.status = STATUS_DRAFT
        self.fields: list[dict[str, Any]] = []
        self.selected_id: str | None = None
        self.dirty = False

    @property
    def locked(self) -> bool:
        return not is_editable({"status": self.status})

    @property
    def selected_field(self) -> dict[str, Any] | None:
        for field in self.fields:
            if field["id"] == self.selected_id:
                return field
        return None

    def _ensure_editable(self) -> None:
        if self.locked:
            raise FormLockedError(f"Form {self.form_id} is published and can no longer be edited")

    def _replace_fields(self, fields: list[dict[str, Any]]) -> None:
        self.fields = fields
        self.dirty = True
        if self.selected_field is None:
            self.selected_id = None

    def set_title(self, title: str) -> None:
        self._ensure_editable()
        self.title = title
        self.dirty = True

    def set_description(self, description: str) -> None:
        self._ensure_editable()
        self.description = description
        self.dirty = True

    def add_field(self, field_type: str, label: str | None = None) -> dict[str, Any]:
        self._ensure_editable()
        field = new_field(
            field_type,
            label=label,
            existing_ids=[item["id"] for item in self.fields],
            order=len(self.fields) + 1,
        )
        self._replace_fields(ordering.append_field(self.fields, field))
        self.selected_id = field["id"]
        return self.selected_field or field

    def remove_field(self, field_id: str) -> None:
        self._ensure_editable()
        self._replace_fields(ordering.remove_field(self.fields, field_id))

    def duplicate_field(self, field_id: str) -> dict[str, Any] | None:
        self._ensure_editable()
        before = {field["id"] for field in self.fields}
        self._replace_fields(ordering.duplicate_field(self.fields, field_id))
        added = [field for field in self.fields if field["id"] not in before]
        return added[0] if added else None

    def move_field(self, dragged_id: str, target_id: str) -> None:
        self._ensure_editable()
        self._replace_fields(ordering.move_before(self.fields, dragged_id, target_id))

    def select_field(self, field_id: str | None) -> dict[str, Any] | None:
        self.selected_id = field_id
        if self.selected_field is None:
            self.selected_id = None
        return self.selected_field

    def update_selected_field(self, patch: dict[str, Any]) -> dict[str, Any]:
        self._ensure_editable()
        current = self.selected_field
        if current is None:
            raise FieldDefinitionError("No field is selected")
        unknown = set(patch) - EDITABLE_KEYS
        if "id" in unknown:
            raise FieldDefinitionError("Field id cannot be changed")
        if unknown:
            raise FieldDefinitionError(f"Unknown field attributes: {', '.join(sorted(unknown))}")

        merged = {**copy.deepcopy(current), **copy.deepcopy(patch)}
        if current["type"] not in OPTION_TYPES and "options" not in patch:
            merged.pop("options", None)
        updated = normalize_field(merged)
        updated["id"] = current["id"]
        if updated["type"] in OPTION_TYPES:
            option_collisions(updated)

        self._replace_fields(
            [updated if field["id"] == current["id"] else field for field in self.fields]
        )
        return updated

    def _update_options(self, options: list[str]) -> dict[str, Any]:
        current = self.selected_field
        if current is None or current["type"] not in OPTION_TYPES:
            raise FieldDefinitionError("The selected field has no options")
        return self.update_selected_field({"options": options})

    def add_option(self, option: str | None = None) -> dict[str, Any]:
        current = self.selected_field
        options = list((current or {}).get("options") or [])
        options.append(option or f"Option {len(options) + 1}")
        return self._update_options(options)

    def update_option(self, index: int, option: str) -> dict[str, Any]:
        options = list((self.selected_field or {}).get("options") or [])
        if not 0 <= index < len(options):
            raise FieldDefinitionError(f"No option at position {index}")
        options[index] = option
        return self._update_options(options)

    def remove_option(self, index: int) -> dict[str, Any]:
        options = list((self.selected_field or {}).get("options") or [])
        if not 0 <= index < len(options):
            raise FieldDefinitionError(f"No option at position {index}")
        del options[index]
        return self._update_options(options)

    def to_document(self, status: str | None = None) -> dict[str, Any]:
        return build_document(
            user_id=self._user.id() or "",
            title=self.title,
            description=self.description,
            content=self.fields,
            status=status or self.status,
            form_id=self.form_id,
        )

    def save(self, status: str | None = None) -> dict[str, Any]:
        self._ensure_editable()
        if not self._user.id():
            raise AuthenticationRequired("A signed-in user is required to save the form")
        saved = self._store.upsert_form(self.to_document(status))
        self._rehydrate(saved)
        logger.info("Saved form %s (%s)", saved["id"], saved["status"])
        return saved

    def publish(self) -> dict[str, Any]:
        return self.save(STATUS_PUBLISHED)

    def load(self, form_id: str) -> dict[str, Any]:
        doc = self._store.get_form(form_id)
        if not doc:
            raise FormNotFoundError(form_id)
        self._rehydrate(doc)
        self.selected_id = None
        return doc

    def _rehydrate(self, doc: dict[str, Any]) -> None:
        self.form_id = doc["id"]
        self.title = doc.get("title", "")
        self.description = doc.get("description", "")
        self.status = doc.get("status") or STATUS_DRAFT
        self.fields = copy.deepcopy(doc.get("content") or [])
        if self.selected_field is None:
            self.selected_id = None
        self.dirty = False
