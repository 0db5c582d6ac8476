from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fulltech.api.deps import get_current_customer
from fulltech.core.exceptions import AppException
from fulltech.db.models import Customer
from fulltech.db.session import get_db
from fulltech.services.notification_service import list_notifications, mark_notification_read

router = APIRouter()


@router.get("")
def notifications(
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    return {"data": list_notifications(db, customer.id)}


@router.post("/{notification_id}/read")
def read_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    customer: Customer = Depends(get_current_customer),
):
    data = mark_notification_read(db, customer.id, notification_id)
    if not data:
        raise AppException("Notification not found", status_code=404)
    return {"data": data}
