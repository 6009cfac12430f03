import pytest
from datetime import datetime, timedelta

from hr_calltracker.schemas.call import CallStatus


@pytest.fixture
def seeded(repository, make_employee, make_call, now):
    repository.add_employee(make_employee("emp-low", performance_score=3))
    done = now - timedelta(days=10)
    repository.add_call(make_call(done, employee_id="emp-low", status=CallStatus.COMPLETED, completed_at=done, rating=5))
    return repository


def _generate(client):
    response = client.post("/api/scheduling/suggestions/generate")
    assert response.status_code == 200
    return response.json()


def test_generate_and_list_suggestions(client, seeded):
    generated = _generate(client)

    assert len(generated) == 1
    suggestion = generated[0]
    assert suggestion["employeeId"] == "emp-low"
    assert suggestion["priority"] == "high"
    assert suggestion["status"] == "pending"
    assert datetime.fromisoformat(suggestion["suggestedDate"]).isoformat() == "2026-10-22T09:00:00+02:00"

    listed = client.get("/api/scheduling/suggestions").json()
    assert [s["id"] for s in listed] == [suggestion["id"]]

    single = client.get(f"/api/scheduling/suggestions/{suggestion['id']}")
    assert single.status_code == 200

def test_unknown_suggestion_uses_error_envelope(client):
    response = client.get("/api/scheduling/suggestions/missing")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "NOT_FOUND"

def test_accept_suggestion_returns_the_call(client, seeded, dispatcher):
    suggestion_id = _generate(client)[0]["id"]

    response = client.post(f"/api/scheduling/suggestions/{suggestion_id}/accept")

    assert response.status_code == 200
    call = response.json()
    assert call["employeeId"] == "emp-low"
    assert call["status"] == "scheduled"
    assert "dataSchedulata" in call
    assert len(dispatcher.sent) == 1
    assert client.get("/api/scheduling/suggestions").json() == []

def test_dismiss_suggestion_with_reason(client, seeded):
    suggestion_id = _generate(client)[0]["id"]

    response = client.post(f"/api/scheduling/suggestions/{suggestion_id}/dismiss", json={"reason": "In ferie"})

    assert response.status_code == 200
    assert response.json()["status"] == "dismissed"
    assert response.json()["dismissReason"] == "In ferie"

def test_dismiss_without_body(client, seeded):
    suggestion_id = _generate(client)[0]["id"]

    response = client.post(f"/api/scheduling/suggestions/{suggestion_id}/dismiss")

    assert response.status_code == 200
    assert response.json()["status"] == "dismissed"

def test_cleanup_endpoint(client, seeded):
    _generate(client)

    response = client.post("/api/scheduling/suggestions/cleanup", params={"older_than_days": 0})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == 0

def test_rules_and_company_events(client):
    rules = client.get("/api/scheduling/rules").json()
    assert {r["name"] for r in rules} == {"Performance Critica", "Contratto in Scadenza"}

    created = client.post("/api/scheduling/events", json={
        "title": "Ciclo di review",
        "date": "2026-11-02",
        "type": "review_cycle",
        "affectedDepartments": ["Vendite"],
    })
    assert created.status_code == 201
    assert created.json()["id"]

    events = client.get("/api/scheduling/events").json()
    assert [e["title"] for e in events] == ["Ciclo di review"]

def test_analytics_refresh(client, seeded):
    response = client.post("/api/scheduling/analytics/refresh")

    assert response.status_code == 200
    assert response.json()[0]["totalCalls"] == 1

# --- Calls ---

def test_slot_search_endpoints(client, repository, make_call, local):
    repository.add_call(make_call(local(20, 10), call_id="existing"))

    found = client.post("/api/calls/slots/find", json={"proposedAt": "2026-10-20T10:10:00+02:00"})
    assert found.status_code == 200
    assert datetime.fromisoformat(found.json()["slot"]) == local(20, 11)

    check = client.post("/api/calls/conflicts/check", json={"proposedAt": "2026-10-20T10:10:00+02:00"})
    assert check.json()["hasConflict"] is True
    assert check.json()["conflictingCalls"][0]["id"] == "existing"

    excluded = client.post("/api/calls/conflicts/check", json={
        "proposedAt": "2026-10-20T10:10:00+02:00", "excludeCallId": "existing"
    })
    assert excluded.json()["hasConflict"] is False

    alternative = client.post("/api/calls/slots/alternative", json={"proposedAt": "2026-10-20T15:00:00+02:00"})
    assert alternative.json()["reason"] == "Orario originale disponibile"

def test_conflict_reports(client, repository, make_call, local):
    repository.add_call(make_call(local(20, 9), call_id="a"))
    repository.add_call(make_call(local(20, 9, 10), call_id="b"))
    repository.add_call(make_call(local(20, 14), call_id="c"))

    report = client.get("/api/calls/conflicts").json()
    assert report["totalConflicts"] == 2
    assert [c["id"] for c in report["conflictGroups"][0]] == ["a", "b"]

    single = client.get("/api/calls/a/conflicts").json()
    assert [c["id"] for c in single["conflictingCalls"]] == ["b"]

    missing = client.get("/api/calls/zzz/conflicts")
    assert missing.status_code == 404

def test_invalid_request_body_uses_error_envelope(client):
    response = client.post("/api/calls/slots/find", json={})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "proposedAt"
