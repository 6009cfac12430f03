import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from hr_calltracker.models.notification import Notification
from hr_calltracker.schemas.call import Call
from hr_calltracker.schemas.employee import Employee
from hr_calltracker.schemas.scheduling import SchedulingSuggestion
from hr_calltracker.services import business_calendar as bc

logger = logging.getLogger(__name__)

class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        employee_id: str,
        title: str,
        message: str,
        type: str = "info",
        priority: str = "medium",
        related_call_id: Optional[str] = None,
        suggestion_id: Optional[str] = None
    ) -> Notification:
        """
        Internal utility for creating notifications.
        """
        notification = Notification(
            employee_id=employee_id,
            title=title,
            message=message,
            type=type,
            priority=priority,
            related_call_id=related_call_id,
            suggestion_id=suggestion_id
        )
        db.add(notification)
        try:
            db.commit()
            db.refresh(notification)
        except Exception:
            db.rollback()
            raise
        return notification


class NotificationDispatcher(ABC):
    """Receives scheduling events; delivery is best-effort."""

    @abstractmethod
    async def notify_auto_scheduled(
        self, call: Call, employee: Employee, suggestion: SchedulingSuggestion
    ) -> None:
        ...


class NullNotificationDispatcher(NotificationDispatcher):
    async def notify_auto_scheduled(self, call, employee, suggestion) -> None:
        logger.debug(f"Dropping auto-scheduled notification for call {call.id}")


class DatabaseNotificationDispatcher(NotificationDispatcher):
    """Stores an in-app notification row for each auto-scheduled call."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    async def notify_auto_scheduled(
        self, call: Call, employee: Employee, suggestion: SchedulingSuggestion
    ) -> None:
        # The commit blocks, keep it off the event loop
        await run_in_threadpool(self._store, call, employee, suggestion)
        logger.info(f"Auto-scheduled notification stored for call {call.id}")

    def _store(self, call: Call, employee: Employee, suggestion: SchedulingSuggestion) -> None:
        when = bc.to_local(call.scheduled_at, bc.get_timezone()).strftime("%d/%m/%Y %H:%M")
        db = self.session_factory()
        try:
            NotificationService.create_notification(
                db,
                employee_id=employee.id,
                title="Call programmata automaticamente",
                message=f"Call con {employee.full_name} programmata per il {when} (priorità: {suggestion.priority.value})",
                type="auto_scheduled",
                priority=suggestion.priority.value,
                related_call_id=call.id,
                suggestion_id=suggestion.id
            )
        finally:
            db.close()
