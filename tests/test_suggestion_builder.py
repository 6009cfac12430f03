import itertools

from hr_calltracker.schemas.scheduling import (
    Priority,
    SchedulingTrigger,
    Severity,
    SuggestionStatus,
    TriggerType,
)
from hr_calltracker.services.suggestion_builder import (
    build_suggestion,
    calculate_confidence,
    calculate_optimal_date,
    calculate_priority,
    generate_reasoning,
)


def _trigger(severity, type=TriggerType.OVERDUE_REVIEW, days_until_action=None, description="test"):
    return SchedulingTrigger(type=type, description=description, severity=severity, days_until_action=days_until_action)

HIGH = _trigger(Severity.HIGH)
MEDIUM = _trigger(Severity.MEDIUM)
LOW = _trigger(Severity.LOW)


def test_priority_tiers():
    assert calculate_priority([]) == Priority.LOW
    assert calculate_priority([LOW, LOW]) == Priority.LOW
    assert calculate_priority([MEDIUM]) == Priority.MEDIUM
    assert calculate_priority([MEDIUM, MEDIUM]) == Priority.HIGH
    assert calculate_priority([HIGH]) == Priority.HIGH
    assert calculate_priority([HIGH, HIGH]) == Priority.URGENT

def test_adding_a_high_trigger_never_lowers_priority():
    pool = [HIGH, MEDIUM, LOW]
    for size in range(4):
        for base in itertools.combinations_with_replacement(pool, size):
            before = calculate_priority(list(base))
            after = calculate_priority(list(base) + [HIGH])
            assert after.rank >= before.rank

def test_confidence_for_single_high_trigger(make_employee):
    employee = make_employee(performance_score=3)
    trigger = _trigger(Severity.HIGH, type=TriggerType.PERFORMANCE_DECLINE)

    assert calculate_confidence([trigger], employee) == 0.85

def test_confidence_is_bounded(make_employee):
    bare = make_employee()
    rich = make_employee(performance_score=2, average_call_rating=1.5, total_calls=4)

    assert calculate_confidence([], bare) == 0.5
    assert calculate_confidence([HIGH] * 5, rich) == 1.0
    for size in range(6):
        for triggers in itertools.combinations_with_replacement([HIGH, MEDIUM, LOW], size):
            for employee in (bare, rich):
                assert 0 <= calculate_confidence(list(triggers), employee) <= 1

def test_optimal_date_offsets_by_priority(make_employee, now, local, tz):
    employee = make_employee()

    assert calculate_optimal_date([HIGH], employee, now, tz) == local(22, 9)
    assert calculate_optimal_date([MEDIUM], employee, now, tz) == local(26, 9)
    assert calculate_optimal_date([LOW], employee, now, tz) == local(2, 9, month=11)

def test_optimal_date_skips_the_weekend(make_employee, local, tz):
    friday = local(23, 9)

    suggested = calculate_optimal_date([HIGH, HIGH], make_employee(), friday, tz)

    assert suggested == local(26, 9)
    assert suggested.hour == 9

def test_contract_expiry_pulls_the_date_earlier(make_employee, now, local, tz):
    contract = _trigger(Severity.MEDIUM, type=TriggerType.CONTRACT_EXPIRY, days_until_action=33)

    assert calculate_optimal_date([contract], make_employee(), now, tz) == local(22, 9)

def test_reasoning_lines(make_employee):
    employee = make_employee(performance_score=3)
    trigger = _trigger(Severity.HIGH, type=TriggerType.PERFORMANCE_DECLINE, description="Performance score basso: 3/10")

    reasoning = generate_reasoning([trigger], employee)

    assert reasoning == [
        "Analisi automatica per Mario Rossi:",
        "🔻 Performance score basso: 3/10 - richiede attenzione immediata",
        "⚠️ Alta priorità",
    ]

def test_build_suggestion(make_employee, now, local, tz):
    employee = make_employee("emp-7", performance_score=3)
    trigger = _trigger(Severity.HIGH, type=TriggerType.PERFORMANCE_DECLINE)

    suggestion = build_suggestion(employee, [trigger], now, tz)

    assert suggestion.employee_id == "emp-7"
    assert suggestion.status == SuggestionStatus.PENDING
    assert suggestion.priority == Priority.HIGH
    assert suggestion.suggested_date == local(22, 9)
    assert suggestion.created_at == now
    assert suggestion.auto_generated
    assert suggestion.triggers == [trigger]
