import pytest
from fastapi.testclient import TestClient

from formbuilder.app import create_app
from formbuilder.auth import StaticUser
from formbuilder.config import Settings
from formbuilder.storage import init_storage

OWNER_ID = "user-1"


def make_field(field_id, field_type="text", label=None, required=False, order=1, **extra):
    field = {
        "id": field_id,
        "type": field_type,
        "label": label if label is not None else f"Field {field_id}",
        "placeholder": f"Enter {field_type}",
        "required": required,
        "order": order,
    }
    field.update(extra)
    return field


@pytest.fixture(params=["sqlite", "json"])
def settings(request, tmp_path):
    return Settings(
        storage_backend=request.param,
        sqlite_path=tmp_path / "app.db",
        json_path=tmp_path / "store.json",
        auth_mode="header",
    )


@pytest.fixture
def storage(settings):
    return init_storage(settings)


@pytest.fixture
def owner():
    return StaticUser(OWNER_ID)


@pytest.fixture
def app(settings, storage):
    return create_app(settings, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app, headers={"X-User-Id": OWNER_ID}) as test_client:
        yield test_client


@pytest.fixture
def anonymous_client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def published_form(storage):
    return storage.forms.upsert_form(
        {
            "user_id": OWNER_ID,
            "title": "Event signup",
            "description": "Tell us you are coming",
            "status": "PUBLISHED",
            "content": [
                make_field("1", "text", "Name", required=True, order=1),
                make_field("2", "checkbox", "Confirm", required=True, order=2),
            ],
        }
    )
