from datetime import datetime
from typing import List, Optional

from hr_calltracker.schemas.call import Call
from hr_calltracker.schemas.common import CamelModel

class ConflictCheck(CamelModel):
    has_conflict: bool
    conflicting_calls: List[Call] = []
    message: str

class ConflictReport(CamelModel):
    conflict_groups: List[List[Call]] = []
    total_conflicts: int = 0
    summary: str

class AlternativeTime(CamelModel):
    suggested_time: datetime
    reason: str

class SlotRequest(CamelModel):
    proposed_at: datetime
    exclude_call_id: Optional[str] = None

class SlotResponse(CamelModel):
    slot: datetime
