from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from formbuilder.documents import apply_status, resolve_status
from formbuilder.errors import FormNotFoundError, TransportError
from formbuilder.models import Base, FormModel, SubmissionModel
from formbuilder.utils import dumps_json, loads_json, new_ulid, now_utc

logger = logging.getLogger(__name__)


class SQLiteRepoBase:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._Session = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self._Session() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("SQLite store operation failed")
            raise TransportError(str(exc)) from exc


class SQLiteFormRepo(SQLiteRepoBase):
    def list_forms(self) -> list[dict[str, Any]]:
        with self._session() as session:
            rows = session.query(FormModel).order_by(FormModel.updated_at.desc()).all()
            return [self._to_dict(row) for row in rows]

    def list_forms_by_owner(self, user_id: str) -> list[dict[str, Any]]:
        with self._session() as session:
            rows = (
                session.query(FormModel)
                .filter(FormModel.user_id == user_id)
                .order_by(FormModel.updated_at.desc())
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def get_form(self, form_id: str) -> dict[str, Any] | None:
        with self._session() as session:
            row = session.get(FormModel, form_id)
            return self._to_dict(row) if row else None

    def upsert_form(self, form: dict[str, Any]) -> dict[str, Any]:
        now = now_utc()
        with self._session() as session:
            row = session.get(FormModel, form["id"]) if form.get("id") else None
            if row:
                doc = apply_status(form, resolve_status(form, current=row.status))
                row.title = doc.get("title") or ""
                row.description = doc.get("description") or ""
                row.status = doc["status"]
                row.published = doc["published"]
                row.content_json = dumps_json(doc.get("content") or [])
                row.updated_at = now
                logger.info("Updated form %s", row.id)
            else:
                doc = apply_status(form, resolve_status(form))
                row = FormModel(
                    id=new_ulid(),
                    user_id=doc.get("user_id"),
                    title=doc.get("title") or "",
                    description=doc.get("description") or "",
                    status=doc["status"],
                    published=doc["published"],
                    content_json=dumps_json(doc.get("content") or []),
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                logger.info("Created form %s for user %s", row.id, row.user_id)
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete_form(self, form_id: str) -> None:
        with self._session() as session:
            row = session.get(FormModel, form_id)
            if not row:
                raise FormNotFoundError(form_id)
            session.delete(row)
            session.commit()
        logger.info("Deleted form %s", form_id)

    @staticmethod
    def _to_dict(row: FormModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "user_id": row.user_id,
            "title": row.title or "",
            "description": row.description or "",
            "status": row.status,
            "published": bool(row.published),
            "content": loads_json(row.content_json) or [],
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }


class SQLiteSubmissionRepo(SQLiteRepoBase):
    def list_submissions(self, form_id: str) -> list[dict[str, Any]]:
        with self._session() as session:
            rows = (
                session.query(SubmissionModel)
                .filter(SubmissionModel.form_id == form_id)
                .order_by(SubmissionModel.created_at.desc())
                .all()
            )
            return [self._to_dict(row) for row in rows]

    def count_submissions(self, form_id: str) -> int:
        with self._session() as session:
            stmt = select(func.count()).select_from(SubmissionModel).where(
                SubmissionModel.form_id == form_id
            )
            return int(session.execute(stmt).scalar_one())

    def create_submission(self, form_id: str, answers: dict[str, Any]) -> dict[str, Any]:
        with self._session() as session:
            row = SubmissionModel(
                id=new_ulid(),
                form_id=form_id,
                answers_json=dumps_json(answers),
                created_at=now_utc(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info("Stored submission %s for form %s", row.id, form_id)
            return self._to_dict(row)

    @staticmethod
    def _to_dict(row: SubmissionModel) -> dict[str, Any]:
        return {
            "id": row.id,
            "form_id": row.form_id,
            "answers": loads_json(row.answers_json) or {},
            "created_at": row.created_at,
        }


class SQLiteStorage:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(f"sqlite:///{db_path}", future=True)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        self.forms = SQLiteFormRepo(self._Session)
        self.submissions = SQLiteSubmissionRepo(self._Session)
