import logging
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from hr_calltracker.schemas.call import Call, CallStatus
from hr_calltracker.schemas.employee import MAX_DAYS_FOR_FREQUENCY, Employee
from hr_calltracker.schemas.scheduling import (
    CompanyEvent,
    CompanyEventType,
    SchedulingTrigger,
    Severity,
    TriggerType,
)
from hr_calltracker.services import business_calendar as bc

logger = logging.getLogger(__name__)

PERFORMANCE_THRESHOLD = 6
PERFORMANCE_CRITICAL = 4
CONTRACT_WINDOW_DAYS = 90
CONTRACT_CRITICAL_DAYS = 30
LOW_RATING_THRESHOLD = 3
EVENT_WINDOW_DAYS = 30


def last_completed_call(calls: Sequence[Call], tz: tzinfo) -> Optional[Call]:
    """Completed call with the latest completion instant; calls without one are skipped."""
    completed = []
    for call in calls:
        if call.status != CallStatus.COMPLETED:
            continue
        if call.completed_at is None:
            logger.warning(f"Completed call {call.id} has no completion date, skipping it")
            continue
        completed.append(call)
    if not completed:
        return None
    return max(completed, key=lambda c: bc.to_local(c.completed_at, tz))


def _performance_trigger(employee: Employee) -> Optional[SchedulingTrigger]:
    score = employee.performance_score
    if score is None or score >= PERFORMANCE_THRESHOLD:
        return None
    return SchedulingTrigger(
        type=TriggerType.PERFORMANCE_DECLINE,
        description=f"Performance score basso: {score:g}/10",
        severity=Severity.HIGH if score < PERFORMANCE_CRITICAL else Severity.MEDIUM,
    )


def _contract_trigger(employee: Employee, now: datetime, tz: tzinfo) -> Optional[SchedulingTrigger]:
    if employee.contract_expiry_date is None:
        return None
    days = bc.days_until(employee.contract_expiry_date, now, tz)
    if not 0 < days <= CONTRACT_WINDOW_DAYS:
        return None
    return SchedulingTrigger(
        type=TriggerType.CONTRACT_EXPIRY,
        description=f"Contratto in scadenza tra {days} giorni",
        severity=Severity.HIGH if days <= CONTRACT_CRITICAL_DAYS else Severity.MEDIUM,
        days_until_action=days,
    )


def _low_rating_trigger(call: Call) -> Optional[SchedulingTrigger]:
    if call.rating is None or call.rating >= LOW_RATING_THRESHOLD:
        return None
    return SchedulingTrigger(
        type=TriggerType.LOW_RATING,
        description=f"Ultimo rating basso: {call.rating}/5",
        severity=Severity.HIGH if call.rating <= 2 else Severity.MEDIUM,
    )


def _call_history_triggers(employee: Employee, calls: Sequence[Call], now: datetime, tz: tzinfo) -> List[SchedulingTrigger]:
    last_call = last_completed_call(calls, tz)
    if last_call is None:
        undated = [c for c in calls if c.status == CallStatus.COMPLETED]
        if not undated:
            return [SchedulingTrigger(
                type=TriggerType.OVERDUE_REVIEW,
                description="Nessuna call mai effettuata",
                severity=Severity.HIGH,
            )]
        # Only undated completed calls: the gap is unknown, the scheduled date orders them
        triggers = [SchedulingTrigger(
            type=TriggerType.OVERDUE_REVIEW,
            description="Call completate senza data di completamento",
            severity=Severity.MEDIUM,
        )]
        rating = _low_rating_trigger(max(undated, key=lambda c: bc.to_local(c.scheduled_at, tz)))
        return triggers + [rating] if rating else triggers

    triggers = []
    frequency = employee.preferred_call_frequency
    max_days = MAX_DAYS_FOR_FREQUENCY[frequency]
    days_since_last = bc.days_since(last_call.completed_at, now, tz)
    if days_since_last > max_days:
        triggers.append(SchedulingTrigger(
            type=TriggerType.OVERDUE_REVIEW,
            description=f"Ultima call {days_since_last} giorni fa (frequenza: {frequency.value})",
            severity=Severity.HIGH if days_since_last > max_days * 1.5 else Severity.MEDIUM,
        ))

    rating = _low_rating_trigger(last_call)
    if rating:
        triggers.append(rating)
    return triggers


def _affects(event: CompanyEvent, employee: Employee) -> bool:
    if employee.id in (event.affected_employees or []):
        return True
    return employee.department is not None and employee.department in (event.affected_departments or [])


def _event_triggers(employee: Employee, events: Sequence[CompanyEvent], now: datetime, tz: tzinfo) -> List[SchedulingTrigger]:
    triggers = []
    for event in events:
        if not event.impacts_employees:
            continue
        days = bc.days_until(event.date, now, tz)
        if not 0 < days <= EVENT_WINDOW_DAYS or not _affects(event, employee):
            continue
        triggers.append(SchedulingTrigger(
            type=TriggerType.COMPANY_EVENT,
            description=f"Evento aziendale in arrivo: {event.title}",
            severity=Severity.HIGH if event.type == CompanyEventType.RESTRUCTURING else Severity.MEDIUM,
            days_until_action=days,
        ))
    return triggers


def analyze_triggers(
    employee: Employee,
    employee_calls: Sequence[Call],
    company_events: Sequence[CompanyEvent],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> List[SchedulingTrigger]:
    """
    Evaluate every scheduling rule for one employee.
    Rules are independent; an employee may fire several triggers at once.
    Inactive employees never produce triggers.
    """
    if not employee.is_active:
        return []
    tz = tz or bc.get_timezone()

    triggers: List[SchedulingTrigger] = []
    for trigger in (_performance_trigger(employee), _contract_trigger(employee, now, tz)):
        if trigger is not None:
            triggers.append(trigger)
    triggers.extend(_call_history_triggers(employee, employee_calls, now, tz))
    triggers.extend(_event_triggers(employee, company_events, now, tz))
    return triggers
