import logging
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional, Sequence

from hr_calltracker.schemas.call import Call, CallStatus
from hr_calltracker.schemas.employee import Employee, RiskLevel
from hr_calltracker.services import business_calendar as bc
from hr_calltracker.services.repository import CallTrackerRepository

logger = logging.getLogger(__name__)

RECENT_CALL_WINDOW_DAYS = 90


def calculate_risk_level(employee: Employee, completed_calls: Sequence[Call], now: datetime, tz: tzinfo) -> RiskLevel:
    score = 0

    if employee.performance_score is not None:
        if employee.performance_score < 4:
            score += 3
        elif employee.performance_score < 6:
            score += 2
        elif employee.performance_score < 7:
            score += 1

    if employee.average_call_rating is not None:
        if employee.average_call_rating < 2:
            score += 3
        elif employee.average_call_rating < 3:
            score += 2
        elif employee.average_call_rating < 4:
            score += 1

    if employee.contract_expiry_date is not None:
        days = bc.days_until(employee.contract_expiry_date, now, tz)
        if days <= 30:
            score += 2
        elif days <= 90:
            score += 1

    recent = [
        c for c in completed_calls
        if (now - bc.to_local(c.completed_at or c.scheduled_at, tz)).total_seconds() <= RECENT_CALL_WINDOW_DAYS * bc.SECONDS_PER_DAY
    ]
    if not recent:
        score += 2
    elif len(recent) < 2:
        score += 1

    if score >= 5:
        return RiskLevel.HIGH
    if score >= 3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class EmployeeAnalyticsService:
    """Keeps the call statistics and risk level stored on each employee current."""

    def __init__(self, repository: CallTrackerRepository, tz: Optional[tzinfo] = None):
        self.repository = repository
        self.tz = tz or bc.get_timezone()

    def compute(self, employee: Employee, calls: Sequence[Call], now: datetime) -> Dict[str, Any]:
        completed = sorted(
            (c for c in calls if c.status == CallStatus.COMPLETED),
            key=lambda c: bc.to_local(c.completed_at or c.scheduled_at, self.tz),
        )
        stats: Dict[str, Any] = {"total_calls": len(completed)}
        ratings = [c.rating for c in completed if c.rating is not None]
        if ratings:
            stats["average_call_rating"] = round(sum(ratings) / len(ratings), 2)
            stats["last_call_rating"] = ratings[-1]

        # Risk uses the refreshed averages
        refreshed = employee.model_copy(update=stats)
        stats["risk_level"] = calculate_risk_level(refreshed, completed, now, self.tz)
        return stats

    def refresh(self, now: Optional[datetime] = None) -> List[Employee]:
        """Patch changed statistics for every active employee; returns the updated records."""
        now = bc.to_local(now or bc.now_local(self.tz), self.tz)
        calls = self.repository.get_calls()
        updated = []
        for employee in self.repository.get_employees():
            if not employee.is_active:
                continue
            employee_calls = [c for c in calls if c.employee_id == employee.id]
            stats = self.compute(employee, employee_calls, now)
            changes = {k: v for k, v in stats.items() if getattr(employee, k) != v}
            if changes:
                updated.append(self.repository.update_employee(employee.id, changes))
        logger.info(f"Employee analytics refreshed: {len(updated)} record(s) changed")
        return updated
