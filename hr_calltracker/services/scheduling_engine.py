"""
Auto-scheduling engine.

Analyzes every active employee, keeps at most one pending suggestion per
employee, and turns accepted suggestions into scheduled calls. Suggestions,
company events and rule presets live in the key-value store; a storage
failure degrades to in-memory state instead of breaking the analysis.
"""
import logging
import threading
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Dict, List, Optional

from hr_calltracker.core.config import settings
from hr_calltracker.core.exceptions import NotFoundError, StorageUnavailableError
from hr_calltracker.core.logging import run_id_var
from hr_calltracker.schemas.call import Call, CallStatus
from hr_calltracker.schemas.scheduling import (
    CompanyEvent,
    CompanyEventCreate,
    Priority,
    SchedulingAction,
    SchedulingCondition,
    SchedulingRule,
    SchedulingSuggestion,
    SuggestionStatus,
)
from hr_calltracker.services import business_calendar as bc
from hr_calltracker.services.conflict_detector import CallConflictDetector
from hr_calltracker.services.notification import NotificationDispatcher, NullNotificationDispatcher
from hr_calltracker.services.repository import CallTrackerRepository, parse_records
from hr_calltracker.services.storage import KeyValueStore
from hr_calltracker.services.suggestion_builder import build_suggestion
from hr_calltracker.services.trigger_analyzer import analyze_triggers

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "rules": "hr-scheduling-rules",
    "suggestions": "hr-scheduling-suggestions",
    "events": "hr-company-events",
}


def default_rules(now: datetime) -> List[SchedulingRule]:
    return [
        SchedulingRule(
            id=str(uuid.uuid4()),
            name="Performance Critica",
            description="Suggerisce call urgente per performance sotto 4/10",
            condition=SchedulingCondition(type="performance_score", operator="less_than", value=4),
            action=SchedulingAction(priority=Priority.URGENT, schedule_days_from_now=1),
            priority=100,
            created_at=now,
        ),
        SchedulingRule(
            id=str(uuid.uuid4()),
            name="Contratto in Scadenza",
            description="Suggerisce call per contratti in scadenza entro 30 giorni",
            condition=SchedulingCondition(type="contract_days_remaining", operator="less_than", value=30),
            action=SchedulingAction(priority=Priority.HIGH, schedule_days_from_now=3),
            priority=90,
            created_at=now,
        ),
    ]


class SchedulingEngine:
    def __init__(
        self,
        store: KeyValueStore,
        repository: CallTrackerRepository,
        conflict_detector: CallConflictDetector,
        dispatcher: Optional[NotificationDispatcher] = None,
        tz: Optional[tzinfo] = None,
        resolve_slot_on_accept: Optional[bool] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.repository = repository
        self.conflict_detector = conflict_detector
        self.dispatcher = dispatcher or NullNotificationDispatcher()
        self.tz = tz or bc.get_timezone()
        if resolve_slot_on_accept is None:
            resolve_slot_on_accept = settings.scheduling.resolve_slot_on_accept
        self.resolve_slot_on_accept = resolve_slot_on_accept
        self.clock = clock or (lambda: bc.now_local(self.tz))

        # Routes run in the threadpool while the analysis loop runs on the event loop
        self._lock = threading.RLock()
        self._loaded = False
        self._rules: List[SchedulingRule] = []
        self._suggestions: List[SchedulingSuggestion] = []
        self._events: List[CompanyEvent] = []


    # --- Persistence ---

    def _load(self, key: str):
        try:
            return self.store.get(STORAGE_KEYS[key])
        except StorageUnavailableError as e:
            logger.warning(f"Failed to load {key}, continuing in memory: {e.message}")
            return None

    def _save(self, key: str, records: list) -> None:
        try:
            self.store.set(STORAGE_KEYS[key], [r.to_record() for r in records])
        except StorageUnavailableError as e:
            logger.error(f"Failed to persist {key}, keeping in-memory state: {e.message}")

    def _ensure_loaded(self) -> None:
        with self._lock:
            if self._loaded:
                return

            self._suggestions = parse_records(SchedulingSuggestion, self._load("suggestions"), "suggestion")
            self._events = parse_records(CompanyEvent, self._load("events"), "company event")
            self._rules = parse_records(SchedulingRule, self._load("rules"), "scheduling rule")
            if not self._rules:
                self._rules = default_rules(self.clock())
                self._save("rules", self._rules)
            self._loaded = True
            logger.debug(
                f"Scheduling state loaded: {len(self._suggestions)} suggestion(s), {len(self._events)} event(s)"
            )

    # --- Analysis ---

    async def generate_suggestions(self, now: Optional[datetime] = None) -> List[SchedulingSuggestion]:
        """
        Analyze all active employees and merge the results into the stored
        suggestions. Returns the pending suggestions. Running it twice on an
        unchanged calendar yields the same pending set.
        """
        token = run_id_var.set(uuid.uuid4().hex[:12])
        try:
            with self._lock:
                self._ensure_loaded()
                now = now or self.clock()

                try:
                    employees = self.repository.get_employees()
                    calls = self.repository.get_calls()
                except StorageUnavailableError as e:
                    logger.error(f"Cannot read employees/calls, skipping analysis: {e.message}")
                    employees, calls = [], []

                calls_by_employee: Dict[str, List[Call]] = defaultdict(list)
                for call in calls:
                    calls_by_employee[call.employee_id].append(call)

                fresh: List[SchedulingSuggestion] = []
                for employee in employees:
                    if not employee.is_active:
                        continue
                    try:
                        triggers = analyze_triggers(
                            employee, calls_by_employee.get(employee.id, []), self._events, now, self.tz
                        )
                        if triggers:
                            fresh.append(build_suggestion(employee, triggers, now, self.tz))
                    except Exception:
                        logger.exception(f"Analysis failed for employee {employee.id}, continuing with the others")

                created, updated = self._merge(fresh)
                self._save("suggestions", self._suggestions)
                logger.info(f"Scheduling analysis done: {created} new, {updated} updated suggestion(s)")
                return self.get_pending_suggestions()
        finally:
            run_id_var.reset(token)

    def _merge(self, fresh: List[SchedulingSuggestion]):
        created = updated = 0
        for suggestion in fresh:
            existing = next(
                (s for s in self._suggestions
                 if s.employee_id == suggestion.employee_id and s.status == SuggestionStatus.PENDING),
                None,
            )
            if existing is None:
                self._suggestions.append(suggestion)
                created += 1
                continue
            # id, created_at and status stay as they were
            existing.triggers = suggestion.triggers
            existing.reasoning = suggestion.reasoning
            existing.priority = suggestion.priority
            existing.confidence = suggestion.confidence
            existing.suggested_date = suggestion.suggested_date
            updated += 1
        return created, updated

    # --- Queries ---

    def get_pending_suggestions(self) -> List[SchedulingSuggestion]:
        self._ensure_loaded()
        with self._lock:
            return [s for s in self._suggestions if s.status == SuggestionStatus.PENDING]

    def get_suggestions(self) -> List[SchedulingSuggestion]:
        self._ensure_loaded()
        with self._lock:
            return list(self._suggestions)

    def get_suggestion(self, suggestion_id: str) -> SchedulingSuggestion:
        self._ensure_loaded()
        with self._lock:
            suggestion = next((s for s in self._suggestions if s.id == suggestion_id), None)
        if suggestion is None:
            raise NotFoundError("Suggestion", suggestion_id)
        return suggestion

    def get_rules(self) -> List[SchedulingRule]:
        self._ensure_loaded()
        with self._lock:
            return list(self._rules)

    # --- User actions ---

    async def accept_suggestion(self, suggestion_id: str) -> Optional[Call]:
        """
        Schedule the suggestion's call, then mark the suggestion accepted.
        Dismissed suggestions may be accepted later. Returns None when the
        employee no longer exists. If the call cannot be stored the
        suggestion keeps its previous status.
        """
        with self._lock:
            suggestion = self.get_suggestion(suggestion_id)
            previous = suggestion.status

            employee = self.repository.get_employee(suggestion.employee_id)
            if employee is None:
                logger.warning(f"Employee {suggestion.employee_id} not found, no call created for {suggestion_id}")
                suggestion.status = SuggestionStatus.ACCEPTED
                self._save("suggestions", self._suggestions)
                return None

            call = Call(
                id=str(uuid.uuid4()),
                employee_id=suggestion.employee_id,
                scheduled_at=self._call_time(suggestion),
                status=CallStatus.SCHEDULED,
                note=f"Call programmata automaticamente: {', '.join(suggestion.reasoning)}",
            )
            self.repository.add_call(call)

            if previous != SuggestionStatus.PENDING:
                logger.info(f"Accepting suggestion {suggestion_id} previously {previous.value}")
            suggestion.status = SuggestionStatus.ACCEPTED
            suggestion.call_id = call.id
            self._save("suggestions", self._suggestions)

        try:
            await self.dispatcher.notify_auto_scheduled(call, employee, suggestion)
        except Exception:
            logger.exception(f"Notification for auto-scheduled call {call.id} failed")
        return call

    def _call_time(self, suggestion: SchedulingSuggestion) -> datetime:
        suggested = suggestion.suggested_date
        try:
            if self.resolve_slot_on_accept:
                slot = self.conflict_detector.find_available_slot(suggested)
                if slot != suggested:
                    logger.info(f"Suggestion {suggestion.id} moved from {suggested.isoformat()} to {slot.isoformat()}")
                return slot
            check = self.conflict_detector.has_conflict(suggested)
        except StorageUnavailableError as e:
            logger.warning(f"Calendar unavailable, keeping suggested date for {suggestion.id}: {e.message}")
            return suggested

        if check.has_conflict:
            ids = ", ".join(c.id for c in check.conflicting_calls)
            logger.warning(f"Suggested date {suggested.isoformat()} of {suggestion.id} collides with call(s) {ids}")
        return suggested

    def dismiss_suggestion(self, suggestion_id: str, reason: Optional[str] = None) -> SchedulingSuggestion:
        with self._lock:
            suggestion = self.get_suggestion(suggestion_id)
            suggestion.status = SuggestionStatus.DISMISSED
            suggestion.dismiss_reason = reason
            self._save("suggestions", self._suggestions)
            return suggestion

    def cleanup_suggestions(self, older_than_days: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """Delete accepted/dismissed suggestions older than the retention window."""
        self._ensure_loaded()
        days = older_than_days if older_than_days is not None else settings.suggestion_retention_days
        cutoff = bc.to_local(now or self.clock(), self.tz) - timedelta(days=days)
        with self._lock:
            kept = [
                s for s in self._suggestions
                if s.status == SuggestionStatus.PENDING or bc.to_local(s.created_at, self.tz) >= cutoff
            ]
            removed = len(self._suggestions) - len(kept)
            if removed:
                self._suggestions = kept
                self._save("suggestions", self._suggestions)
                logger.info(f"Removed {removed} old suggestion(s)")
            return removed

    # --- Company events ---

    def add_company_event(self, event: CompanyEventCreate) -> CompanyEvent:
        self._ensure_loaded()
        new_event = CompanyEvent(id=str(uuid.uuid4()), **event.model_dump())
        with self._lock:
            self._events.append(new_event)
            self._save("events", self._events)
        return new_event

    def get_company_events(self) -> List[CompanyEvent]:
        self._ensure_loaded()
        with self._lock:
            return list(self._events)
