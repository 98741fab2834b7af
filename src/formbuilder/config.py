from __future__ import annotations

import os
from pathlib import Path
from typing import Any

BASE_DIR = Path(__file__).resolve().parent

FIELD_TYPES = ("text", "email", "number", "textarea", "select", "checkbox", "radio", "date")
OPTION_TYPES = {"select", "radio"}
DEFAULT_OPTIONS = ["Option 1", "Option 2", "Option 3"]

STATUS_DRAFT = "DRAFT"
STATUS_PUBLISHED = "PUBLISHED"
STATUS_ARCHIVED = "archived"
STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED, STATUS_ARCHIVED)

DEFAULT_TITLE = "Untitled form"


class Settings:
    def __init__(self, **overrides: Any) -> None:
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.json_path = Path(os.getenv("JSON_PATH", "./data/jsonstore.json"))
        self.auth_mode = os.getenv("AUTH_MODE", "none").lower()
        self.default_user_id = os.getenv("DEFAULT_USER_ID", "local")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.host = os.getenv("HOST", "0.0.0.0")
        port_value = os.getenv("PORT", "8000")
        try:
            self.port = int(port_value)
        except ValueError:
            self.port = 8000
        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)


def ensure_dirs(settings: Settings) -> None:
    Path(settings.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    Path(settings.json_path).parent.mkdir(parents=True, exist_ok=True)
