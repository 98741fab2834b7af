"""Tests for the JSON API: form CRUD, submissions and export."""

from conftest import OWNER_ID, make_field


def _form_payload(**overrides):
    payload = {
        "title": "Customer Feedback Survey",
        "description": "Please share your thoughts with us",
        "content": [
            make_field("1", "text", "Name", required=True, order=1),
            make_field("2", "email", "Email", order=2),
            make_field("3", "select", "Rating", options=["Very Good", "Poor"], order=3),
        ],
    }
    payload.update(overrides)
    return payload


def _create(client, **overrides):
    resp = client.post("/api/forms", json=_form_payload(**overrides))
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestUpsertForm:
    def test_create_as_draft(self, client):
        data = _create(client)
        assert data["id"]
        assert data["user_id"] == OWNER_ID
        assert data["status"] == "DRAFT"
        assert data["published"] is False
        assert [field["id"] for field in data["content"]] == ["1", "2", "3"]

    def test_update_replaces_content(self, client):
        created = _create(client)
        resp = client.post(
            "/api/forms",
            json={"id": created["id"], "title": "Renamed", "content": [make_field("9")]},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == created["id"]
        assert data["title"] == "Renamed"
        assert data["description"] == ""
        assert [field["id"] for field in data["content"]] == ["9"]

    def test_unknown_id_creates_new_form(self, client):
        data = _create(client, id="does-not-exist")
        assert data["id"] != "does-not-exist"

    def test_publish_keeps_flags_consistent(self, client):
        created = _create(client)
        data = client.post("/api/forms", json={**_form_payload(), "id": created["id"], "status": "PUBLISHED"}).json()
        assert data["status"] == "PUBLISHED"
        assert data["published"] is True

    def test_published_flag_alone_sets_status(self, client):
        data = _create(client, published=True)
        assert data["status"] == "PUBLISHED"

    def test_null_title_falls_back_to_default(self, client):
        data = _create(client, title=None, content=[])
        assert data["title"] == "Untitled form"

    def test_content_as_json_string(self, client):
        data = _create(client, content='[{"id": "7", "type": "date", "label": "When"}]')
        assert [(field["id"], field["type"], field["order"]) for field in data["content"]] == [
            ("7", "date", 1)
        ]

    def test_content_json_string_must_parse(self, client):
        resp = client.post("/api/forms", json=_form_payload(content="[{"))
        assert resp.status_code == 400
        assert resp.json()["detail"] == ["Field definitions are not valid JSON"]

    def test_invalid_fields(self, client):
        resp = client.post("/api/forms", json=_form_payload(content=[{"id": "1", "type": "button"}]))
        assert resp.status_code == 400
        assert "Unknown field type" in resp.json()["detail"][0]

    def test_invalid_status(self, client):
        resp = client.post("/api/forms", json=_form_payload(status="LIVE"))
        assert resp.status_code == 400

    def test_requires_user(self, anonymous_client):
        resp = anonymous_client.post("/api/forms", json=_form_payload())
        assert resp.status_code == 401

    def test_cannot_update_someone_elses_form(self, client):
        created = _create(client)
        resp = client.post(
            "/api/forms",
            json={"id": created["id"], "title": "Hijack"},
            headers={"X-User-Id": "intruder"},
        )
        assert resp.status_code == 404


class TestReadAndDelete:
    def test_get_form(self, client):
        created = _create(client)
        resp = client.get(f"/api/forms/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["submission_count"] == 0

    def test_get_missing(self, client):
        assert client.get("/api/forms/missing").status_code == 404

    def test_other_owner_sees_not_found(self, client):
        created = _create(client)
        resp = client.get(f"/api/forms/{created['id']}", headers={"X-User-Id": "someone"})
        assert resp.status_code == 404

    def test_delete(self, client):
        created = _create(client)
        resp = client.delete(f"/api/forms/{created['id']}")
        assert resp.status_code == 200
        assert client.get(f"/api/forms/{created['id']}").status_code == 404
        assert client.delete(f"/api/forms/{created['id']}").status_code == 404


class TestListForms:
    def test_dashboard_listing(self, client):
        draft = _create(client, title="Draft one")
        published = _create(client, title="Live one", status="PUBLISHED")
        client.post(
            f"/api/public/forms/{published['id']}/submissions",
            json={"answers": {"1": "Alice"}},
        )
        client.post("/api/forms", json=_form_payload(title="Other user"), headers={"X-User-Id": "other"})

        data = client.get("/api/forms").json()
        assert {item["id"] for item in data["items"]} == {draft["id"], published["id"]}
        assert data["stats"] == {"total_forms": 2, "published_forms": 1, "total_responses": 1}

    def test_search_and_status_filter(self, client):
        _create(client, title="Event signup", description="Party")
        _create(client, title="Feedback", description="After the event", status="PUBLISHED")
        titles = lambda resp: sorted(item["title"] for item in resp.json()["items"])  # noqa: E731
        assert titles(client.get("/api/forms", params={"q": "EVENT"})) == ["Event signup", "Feedback"]
        assert titles(client.get("/api/forms", params={"status": "PUBLISHED"})) == ["Feedback"]
        assert client.get("/api/forms", params={"status": "LIVE"}).status_code == 400


class TestSubmissions:
    def test_submit_to_draft_is_rejected(self, client):
        created = _create(client)
        resp = client.post(f"/api/public/forms/{created['id']}/submissions", json={"answers": {}})
        assert resp.status_code == 409

    def test_submit_missing_form(self, client):
        resp = client.post("/api/public/forms/missing/submissions", json={"answers": {}})
        assert resp.status_code == 404

    def test_validation_errors(self, client, published_form):
        resp = client.post(
            f"/api/public/forms/{published_form['id']}/submissions",
            json={"answers": {"1": "", "2": False}},
        )
        assert resp.status_code == 422
        assert resp.json()["errors"] == {"1": "Name is required", "2": "Confirm must be checked"}

    def test_valid_submission(self, client, published_form):
        resp = client.post(
            f"/api/public/forms/{published_form['id']}/submissions",
            json={"answers": {"1": "Alice", "2": True}},
        )
        assert resp.status_code == 201
        assert resp.json()["answers"] == {"1": "Alice", "2": True}

    def test_public_form_hides_owner(self, client, published_form):
        data = client.get(f"/api/public/forms/{published_form['id']}").json()
        assert "user_id" not in data
        assert data["title"] == "Event signup"

    def test_cursor_pagination(self, client, published_form):
        for name in ["a", "b", "c"]:
            client.post(
                f"/api/public/forms/{published_form['id']}/submissions",
                json={"answers": {"1": name, "2": True}},
            )
        first = client.get(f"/api/forms/{published_form['id']}/submissions", params={"limit": 2})
        assert len(first.json()) == 2
        cursor = first.headers["X-Next-Cursor"]
        second = client.get(
            f"/api/forms/{published_form['id']}/submissions",
            params={"limit": 2, "cursor": cursor},
        )
        assert len(second.json()) == 1
        assert "X-Next-Cursor" not in second.headers
        names = {item["answers"]["1"] for item in first.json() + second.json()}
        assert names == {"a", "b", "c"}

    def test_bad_cursor(self, client, published_form):
        resp = client.get(
            f"/api/forms/{published_form['id']}/submissions", params={"cursor": "!!!"}
        )
        assert resp.status_code == 400

    def test_export_csv(self, client, published_form):
        client.post(
            f"/api/public/forms/{published_form['id']}/submissions",
            json={"answers": {"1": "Alice", "2": True}},
        )
        resp = client.get(f"/api/forms/{published_form['id']}/export")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        lines = resp.text.strip().splitlines()
        assert lines[0] == "submission_id,created_at,Name,Confirm"
        assert lines[1].endswith(",Alice,true")

    def test_export_rejects_unknown_format(self, client, published_form):
        resp = client.get(f"/api/forms/{published_form['id']}/export", params={"format": "xlsx"})
        assert resp.status_code == 400


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}
