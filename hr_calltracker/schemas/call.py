from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hr_calltracker.schemas.common import CamelModel
from hr_calltracker.schemas.employee import parse_date_only

class CallStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"
    RESCHEDULED = "rescheduled"

# Statuses that still occupy a slot in the calendar
ACTIVE_CALL_STATUSES = (CallStatus.SCHEDULED, CallStatus.RESCHEDULED)

class Call(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    employee_id: str
    scheduled_at: datetime = Field(alias="dataSchedulata")
    completed_at: Optional[datetime] = Field(default=None, alias="dataCompletata")
    duration_minutes: Optional[int] = Field(default=None, alias="durata", gt=0)
    note: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    status: CallStatus = CallStatus.SCHEDULED
    next_call_date: Optional[datetime] = None

    @field_validator("scheduled_at", "completed_at", "next_call_date", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return parse_date_only(value)
