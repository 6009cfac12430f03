import asyncio
import pytest

from hr_calltracker.models.notification import Notification
from hr_calltracker.schemas.scheduling import Priority, SchedulingSuggestion
from hr_calltracker.services.notification import (
    DatabaseNotificationDispatcher,
    NotificationService,
    NullNotificationDispatcher,
)


@pytest.fixture
def suggestion(now):
    return SchedulingSuggestion(
        id="sug-1",
        employee_id="emp-1",
        suggested_date=now,
        priority=Priority.URGENT,
        confidence=0.9,
        created_at=now,
    )


def test_database_dispatcher_stores_a_notification(session_factory, db_session, make_employee, make_call, suggestion, local):
    call = make_call(local(20, 10, 30), call_id="call-9")
    dispatcher = DatabaseNotificationDispatcher(session_factory)

    asyncio.run(dispatcher.notify_auto_scheduled(call, make_employee(), suggestion))

    stored = db_session.query(Notification).filter(Notification.related_call_id == "call-9").one()
    assert stored.title == "Call programmata automaticamente"
    assert stored.message == "Call con Mario Rossi programmata per il 20/10/2026 10:30 (priorità: urgent)"
    assert stored.type == "auto_scheduled"
    assert stored.priority == "urgent"
    assert stored.suggestion_id == "sug-1"
    assert stored.is_read is False

def test_null_dispatcher_accepts_everything(make_employee, make_call, suggestion, local):
    asyncio.run(NullNotificationDispatcher().notify_auto_scheduled(make_call(local(20, 10)), make_employee(), suggestion))

def test_list_and_mark_notifications(client, db_session):
    first = NotificationService.create_notification(db_session, "emp-1", "Call programmata", "Promemoria")
    NotificationService.create_notification(db_session, "emp-2", "Call programmata", "Altro dipendente")

    response = client.get("/api/notifications/", params={"employee_id": "emp-1"})
    assert response.status_code == 200
    assert [n["id"] for n in response.json()] == [first.id]

    response = client.patch(f"/api/notifications/{first.id}/read")
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    unread = client.get("/api/notifications/", params={"employee_id": "emp-1", "unread_only": True})
    assert unread.json() == []

def test_mark_missing_notification_returns_404(client):
    response = client.patch("/api/notifications/99999/read")
    assert response.status_code == 404
    assert response.json()["success"] is False
