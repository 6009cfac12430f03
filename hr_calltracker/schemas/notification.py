from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

class NotificationResponse(BaseModel):
    id: int
    employee_id: str
    related_call_id: Optional[str] = None
    suggestion_id: Optional[str] = None
    title: str
    message: str
    type: str
    priority: str
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
