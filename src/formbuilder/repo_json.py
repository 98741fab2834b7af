from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from filelock import FileLock, Timeout
from tinydb import Query, TinyDB

from formbuilder.documents import apply_status, resolve_status
from formbuilder.errors import FormNotFoundError, TransportError
from formbuilder.utils import new_ulid, now_utc, parse_dt, to_iso

logger = logging.getLogger(__name__)


class JSONRepoBase:
    def __init__(self, path: Path, lock: FileLock) -> None:
        self._path = path
        self._lock = lock

    @contextmanager
    def _db(self) -> Iterator[TinyDB]:
        try:
            with self._lock:
                db = TinyDB(self._path)
                try:
                    yield db
                finally:
                    db.close()
        except (OSError, json.JSONDecodeError, Timeout) as exc:
            logger.exception("JSON store operation failed: %s", self._path)
            raise TransportError(str(exc)) from exc


class JSONFormRepo(JSONRepoBase):
    def list_forms(self) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table("forms").all()
        forms = [self._from_record(item) for item in items]
        return sorted(forms, key=lambda x: x["updated_at"], reverse=True)

    def list_forms_by_owner(self, user_id: str) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table("forms").search(Query().user_id == user_id)
        forms = [self._from_record(item) for item in items]
        return sorted(forms, key=lambda x: x["updated_at"], reverse=True)

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._db() as db:
            item = db.table("forms").get(Query().id == form_id)
        return self._from_record(item) if item else None

    def upsert_form(self, form: dict[str, Any]) -> dict[str, Any]:
        now = to_iso(now_utc())
        with self._db() as db:
            table = db.table("forms")
            item = table.get(Query().id == form["id"]) if form.get("id") else None
            if item:
                doc = apply_status(form, resolve_status(form, current=item.get("status")))
                record = {
                    **item,
                    "title": doc.get("title") or "",
                    "description": doc.get("description") or "",
                    "status": doc["status"],
                    "published": doc["published"],
                    "content": doc.get("content") or [],
                    "updated_at": now,
                }
                table.update(record, Query().id == item["id"])
                logger.info("Updated form %s", item["id"])
            else:
                doc = apply_status(form, resolve_status(form))
                record = {
                    "id": new_ulid(),
                    "user_id": doc.get("user_id"),
                    "title": doc.get("title") or "",
                    "description": doc.get("description") or "",
                    "status": doc["status"],
                    "published": doc["published"],
                    "content": doc.get("content") or [],
                    "created_at": now,
                    "updated_at": now,
                }
                table.insert(record)
                logger.info("Created form %s for user %s", record["id"], record["user_id"])
        return self._from_record(record)

    def delete_form(self, form_id: str) -> None:
        with self._db() as db:
            removed = db.table("forms").remove(Query().id == form_id)
        if not removed:
            raise FormNotFoundError(form_id)
        logger.info("Deleted form %s", form_id)

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "user_id": record.get("user_id"),
            "title": record.get("title", ""),
            "description": record.get("description", ""),
            "status": record.get("status"),
            "published": bool(record.get("published")),
            "content": record.get("content", []),
            "created_at": parse_dt(record.get("created_at")),
            "updated_at": parse_dt(record.get("updated_at")),
        }


class JSONSubmissionRepo(JSONRepoBase):
    def list_submissions(self, form_id: str) -> list[dict[str, Any]]:
        with self._db() as db:
            items = db.table("submissions").search(Query().form_id == form_id)
        submissions = [self._from_record(item) for item in items]
        return sorted(submissions, key=lambda x: x["created_at"], reverse=True)

    def count_submissions(self, form_id: str) -> int:
        with self._db() as db:
            return db.table("submissions").count(Query().form_id == form_id)

    def create_submission(self, form_id: str, answers: dict[str, Any]) -> dict[str, Any]:
        record = self._to_record(
            {"id": new_ulid(), "form_id": form_id, "answers": answers, "created_at": now_utc()}
        )
        with self._db() as db:
            db.table("submissions").insert(record)
        logger.info("Stored submission %s for form %s", record["id"], form_id)
        return self._from_record(record)

    @staticmethod
    def _to_record(submission: dict[str, Any]) -> dict[str, Any]:
        created_at = submission["created_at"]
        return {
            "id": submission["id"],
            "form_id": submission["form_id"],
            "answers": submission["answers"],
            "created_at": to_iso(created_at) if isinstance(created_at, datetime) else created_at,
        }

    @staticmethod
    def _from_record(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": record["id"],
            "form_id": record["form_id"],
            "answers": record.get("answers", {}),
            "created_at": parse_dt(record.get("created_at")),
        }


class JSONStorage:
    def __init__(self, path: Path) -> None:
        self._lock = FileLock(f"{path}.lock", timeout=10)
        self.forms = JSONFormRepo(path, self._lock)
        self.submissions = JSONSubmissionRepo(path, self._lock)
