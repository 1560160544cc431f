"""End-to-end tests for the /api/cases routes."""

import uuid
from datetime import datetime, timezone


def _naive_utc(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _create(client, **overrides):
    body = {"title": "Annual Checkup", "patient": {"name": "Jane Doe"}}
    body.update(overrides)
    response = client.post("/api/cases", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_then_fetch_returns_same_record(client):
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    created = _create(client)

    assert created["id"]
    assert created["title"] == "Annual Checkup"
    assert created["patient"]["name"] == "Jane Doe"
    assert _naive_utc(created["updated_at"]) >= before

    fetched = client.get(f"/api/cases/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_create_with_narrative_blocks(client):
    created = _create(
        client,
        summary="Routine visit, no concerns.",
        patient={"name": "John Roe", "gender": "male", "date_of_birth": "1980-02-29"},
        note={"hpi": "No complaints", "plan": "Return in one year"},
        vitals={"weight": 172.5, "blood_pressure_systolic": 120, "blood_pressure_diastolic": 80},
        physical_exam={"cardiovascular": "Regular rate and rhythm"},
    )
    assert created["patient"]["gender"] == "male"
    assert created["note"]["plan"] == "Return in one year"
    assert created["note"]["assessment"] is None
    assert created["vitals"]["weight"] == 172.5
    assert created["physical_exam"]["cardiovascular"] == "Regular rate and rhythm"


def test_create_rejects_blank_title_and_patient_name(client):
    response = client.post("/api/cases", json={"title": "   ", "patient": {"name": ""}})
    assert response.status_code == 400
    locations = {tuple(err["loc"]) for err in response.json()["detail"]}
    assert ("body", "title") in locations
    assert ("body", "patient", "name") in locations


def test_create_rejects_unknown_gender(client):
    response = client.post(
        "/api/cases", json={"title": "x", "patient": {"name": "A", "gender": "robot"}}
    )
    assert response.status_code == 400


def test_client_cannot_set_timestamps_or_id(client):
    forged = "2000-01-01T00:00:00+00:00"
    created = _create(client, id=str(uuid.uuid4()), updated_at=forged)
    assert created["updated_at"] != forged
    assert _naive_utc(created["updated_at"]).year > 2000


def test_list_is_ordered_by_recency(client):
    first = _create(client, title="First")
    second = _create(client, title="Second")
    client.patch(f"/api/cases/{first['id']}", json={"summary": "touched"})

    titles = [case["title"] for case in client.get("/api/cases").json()]
    assert titles == ["First", "Second"]
    assert second["id"] in {case["id"] for case in client.get("/api/cases").json()}


def test_partial_update_changes_only_supplied_fields(client):
    created = _create(
        client,
        summary="Original summary",
        patient={"name": "Jane Doe", "gender": "female"},
        vitals={"height": 65, "weight": 140},
    )

    response = client.patch(
        f"/api/cases/{created['id']}",
        json={"patient": {"date_of_birth": "1990-01-15"}, "vitals": {"weight": 138.25}},
    )
    assert response.status_code == 200
    updated = response.json()

    assert updated["title"] == "Annual Checkup"
    assert updated["summary"] == "Original summary"
    assert updated["patient"] == {
        "name": "Jane Doe",
        "gender": "female",
        "date_of_birth": "1990-01-15",
    }
    assert updated["vitals"]["height"] == 65
    assert updated["vitals"]["weight"] == 138.25
    assert _naive_utc(updated["updated_at"]) >= _naive_utc(created["updated_at"])
    assert updated["created_at"] == created["created_at"]


def test_update_can_clear_optional_block(client):
    created = _create(client, note={"hpi": "Cough"})
    updated = client.patch(f"/api/cases/{created['id']}", json={"note": None}).json()
    assert updated["note"] is None


def test_update_rejects_null_title(client):
    created = _create(client)
    response = client.patch(f"/api/cases/{created['id']}", json={"title": None})
    assert response.status_code == 400
    assert client.get(f"/api/cases/{created['id']}").json()["title"] == "Annual Checkup"


def test_patch_with_empty_body_is_rejected(client):
    created = _create(client)
    response = client.patch(f"/api/cases/{created['id']}", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "PATCH body cannot be empty"


def test_patch_with_only_empty_sub_objects_is_rejected(client):
    created = _create(client)
    for body in ({"patient": {}}, {"patient": {}, "note": {}}):
        response = client.patch(f"/api/cases/{created['id']}", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "PATCH body cannot be empty"

    assert client.get(f"/api/cases/{created['id']}").json()["updated_at"] == created["updated_at"]


def test_patch_empty_body_for_unknown_case_is_still_a_client_error(client):
    response = client.patch(f"/api/cases/{uuid.uuid4()}", json={})
    assert response.status_code == 400


def test_unknown_id_is_not_found(client):
    missing = uuid.uuid4()
    assert client.get(f"/api/cases/{missing}").status_code == 404
    assert client.patch(f"/api/cases/{missing}", json={"title": "x"}).status_code == 404
    assert client.delete(f"/api/cases/{missing}").status_code == 404


def test_malformed_id_is_a_client_error(client):
    assert client.get("/api/cases/not-a-uuid").status_code == 400
    assert client.delete("/api/cases/42").status_code == 400


def test_delete_then_fetch_is_not_found(client):
    created = _create(client)
    response = client.delete(f"/api/cases/{created['id']}")
    assert response.status_code == 200
    assert response.json() == {"deleted": True, "id": created["id"]}
    assert client.get(f"/api/cases/{created['id']}").status_code == 404


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
