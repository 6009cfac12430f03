from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr_calltracker.core.exceptions import NotFoundError
from hr_calltracker.database import get_db
from hr_calltracker.models.notification import Notification
from hr_calltracker.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("/", response_model=List[NotificationResponse])
def list_notifications(
    employee_id: Optional[str] = None,
    unread_only: bool = False,
    db: Session = Depends(get_db)
):
    """Latest 50 notifications, newest first."""
    query = db.query(Notification)
    if employee_id:
        query = query.filter(Notification.employee_id == employee_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()

@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_as_read(notification_id: int, db: Session = Depends(get_db)):
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification", str(notification_id))

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification
