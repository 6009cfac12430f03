import uuid
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from hr_calltracker.schemas.employee import Employee
from hr_calltracker.schemas.scheduling import (
    Priority,
    SchedulingSuggestion,
    SchedulingTrigger,
    Severity,
    SuggestionStatus,
    TriggerType,
)
from hr_calltracker.services import business_calendar as bc

DAYS_TO_ADD = {
    Priority.URGENT: 1,
    Priority.HIGH: 3,
    Priority.MEDIUM: 7,
    Priority.LOW: 14,
}

TRIGGER_MARKERS = {
    TriggerType.PERFORMANCE_DECLINE: ("🔻", "richiede attenzione immediata"),
    TriggerType.CONTRACT_EXPIRY: ("⏰", "importante discutere il rinnovo"),
    TriggerType.OVERDUE_REVIEW: ("📅", "necessario catch-up"),
    TriggerType.LOW_RATING: ("⭐", "follow-up importante"),
    TriggerType.COMPANY_EVENT: ("🏢", "preparazione necessaria"),
}

PRIORITY_MESSAGES = {
    Priority.URGENT: "🚨 Azione immediata richiesta",
    Priority.HIGH: "⚠️ Alta priorità",
    Priority.MEDIUM: "📊 Priorità media",
    Priority.LOW: "📝 Bassa priorità",
}


def _count(triggers: Sequence[SchedulingTrigger], severity: Severity) -> int:
    return sum(1 for t in triggers if t.severity == severity)


def calculate_priority(triggers: Sequence[SchedulingTrigger]) -> Priority:
    high = _count(triggers, Severity.HIGH)
    medium = _count(triggers, Severity.MEDIUM)
    if high >= 2:
        return Priority.URGENT
    if high >= 1 or medium >= 2:
        return Priority.HIGH
    if medium >= 1:
        return Priority.MEDIUM
    return Priority.LOW


def calculate_confidence(triggers: Sequence[SchedulingTrigger], employee: Employee) -> float:
    """Confidence in [0, 1]: more triggers and more known data mean higher confidence."""
    confidence = 0.5
    confidence += len(triggers) * 0.1
    confidence += _count(triggers, Severity.HIGH) * 0.15
    if employee.performance_score is not None:
        confidence += 0.1
    if employee.average_call_rating is not None:
        confidence += 0.1
    if employee.total_calls:
        confidence += 0.05
    return round(min(confidence, 1.0), 2)


def calculate_optimal_date(
    triggers: Sequence[SchedulingTrigger],
    employee: Employee,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> datetime:
    """
    Date offset by priority, pulled earlier for contracts expiring soon,
    then moved off the weekend. Not checked against the calendar here.
    """
    tz = tz or bc.get_timezone()
    suggested = bc.add_days(now, DAYS_TO_ADD[calculate_priority(triggers)], tz)

    contract = next((t for t in triggers if t.type == TriggerType.CONTRACT_EXPIRY), None)
    if contract is not None and contract.days_until_action:
        contract_date = bc.add_days(now, max(contract.days_until_action - 30, 1), tz)
        if contract_date < suggested:
            suggested = contract_date

    return bc.roll_to_business_day(suggested, tz)


def generate_reasoning(triggers: Sequence[SchedulingTrigger], employee: Employee) -> List[str]:
    reasoning = [f"Analisi automatica per {employee.full_name}:"]
    for trigger in triggers:
        marker, follow_up = TRIGGER_MARKERS[trigger.type]
        reasoning.append(f"{marker} {trigger.description} - {follow_up}")
    reasoning.append(PRIORITY_MESSAGES[calculate_priority(triggers)])
    return reasoning


def build_suggestion(
    employee: Employee,
    triggers: Sequence[SchedulingTrigger],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> SchedulingSuggestion:
    return SchedulingSuggestion(
        id=str(uuid.uuid4()),
        employee_id=employee.id,
        suggested_date=calculate_optimal_date(triggers, employee, now, tz),
        priority=calculate_priority(triggers),
        confidence=calculate_confidence(triggers, employee),
        reasoning=generate_reasoning(triggers, employee),
        triggers=list(triggers),
        created_at=now,
        status=SuggestionStatus.PENDING,
    )
