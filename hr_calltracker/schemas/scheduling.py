from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import Field, field_validator

from hr_calltracker.schemas.common import CamelModel
from hr_calltracker.schemas.employee import parse_date_only

class TriggerType(str, Enum):
    PERFORMANCE_DECLINE = "performance_decline"
    CONTRACT_EXPIRY = "contract_expiry"
    OVERDUE_REVIEW = "overdue_review"
    LOW_RATING = "low_rating"
    COMPANY_EVENT = "company_event"

class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class Priority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2, Priority.URGENT: 3}

class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"

class CompanyEventType(str, Enum):
    REVIEW_CYCLE = "review_cycle"
    BUDGET_PLANNING = "budget_planning"
    RESTRUCTURING = "restructuring"
    TRAINING = "training"
    OTHER = "other"

class SchedulingTrigger(CamelModel):
    type: TriggerType
    description: str
    severity: Severity
    days_until_action: Optional[int] = None

class SchedulingSuggestion(CamelModel):
    id: str
    employee_id: str
    suggested_date: datetime
    priority: Priority
    confidence: float = Field(ge=0, le=1)
    reasoning: List[str] = []
    triggers: List[SchedulingTrigger] = []
    auto_generated: bool = True
    created_at: datetime
    status: SuggestionStatus = SuggestionStatus.PENDING
    dismiss_reason: Optional[str] = None
    call_id: Optional[str] = None  # call created on acceptance

class CompanyEventBase(CamelModel):
    title: str
    date: datetime
    type: CompanyEventType = CompanyEventType.OTHER
    description: Optional[str] = None
    impacts_employees: bool = True
    affected_employees: Optional[List[str]] = None
    affected_departments: Optional[List[str]] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_event_date(cls, value):
        return parse_date_only(value)

class CompanyEventCreate(CompanyEventBase):
    pass

class CompanyEvent(CompanyEventBase):
    id: str

# --- Rule presets ---

class SchedulingCondition(CamelModel):
    type: str  # e.g. performance_score, contract_days_remaining
    operator: str  # less_than, greater_than, equals
    value: float

class SchedulingAction(CamelModel):
    type: str = "suggest_call"
    priority: Priority
    schedule_days_from_now: int

class SchedulingRule(CamelModel):
    id: str
    name: str
    description: str
    condition: SchedulingCondition
    action: SchedulingAction
    priority: int = 0
    is_active: bool = True
    created_at: datetime

# --- Request bodies ---

class DismissRequest(CamelModel):
    reason: Optional[str] = None
