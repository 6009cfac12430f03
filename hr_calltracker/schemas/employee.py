from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hr_calltracker.schemas.common import CamelModel

class CallFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

# Longest tolerated gap between two completed calls, per frequency
MAX_DAYS_FOR_FREQUENCY = {
    CallFrequency.WEEKLY: 7,
    CallFrequency.BIWEEKLY: 14,
    CallFrequency.MONTHLY: 30,
    CallFrequency.QUARTERLY: 90,
}

class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

def parse_date_only(value):
    # "2026-12-31" style values are read as midnight of that day
    if isinstance(value, str) and len(value) == 10:
        return f"{value}T00:00:00"
    return value

class Employee(CamelModel):
    """Externally owned employee record. Unknown fields are preserved."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    first_name: str = Field(default="", alias="nome")
    last_name: str = Field(default="", alias="cognome")
    email: Optional[str] = None
    position: Optional[str] = Field(default=None, alias="posizione")
    department: Optional[str] = Field(default=None, alias="dipartimento")
    hire_date: Optional[str] = Field(default=None, alias="dataAssunzione")
    phone: Optional[str] = Field(default=None, alias="telefono")
    is_active: bool = True

    # Scheduling-relevant attributes
    performance_score: Optional[float] = Field(default=None, ge=0, le=10)
    contract_expiry_date: Optional[datetime] = None
    preferred_call_frequency: CallFrequency = CallFrequency.MONTHLY
    average_call_rating: Optional[float] = None
    last_call_rating: Optional[float] = None
    total_calls: Optional[int] = None
    risk_level: Optional[RiskLevel] = None

    @field_validator("contract_expiry_date", mode="before")
    @classmethod
    def parse_contract_expiry(cls, value):
        return parse_date_only(value)

    @field_validator("preferred_call_frequency", mode="before")
    @classmethod
    def default_frequency(cls, value):
        return value or CallFrequency.MONTHLY

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.id
