from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class FormModel(Base):
    __tablename__ = "forms"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True)
    title = Column(String)
    description = Column(Text)
    status = Column(String)
    published = Column(Boolean, default=False)
    content_json = Column(Text)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class SubmissionModel(Base):
    __tablename__ = "submissions"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    answers_json = Column(Text)
    created_at = Column(DateTime)
