from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fulltech.db.session import get_db
from fulltech.services.raffle_service import get_current_raffle, serialize_raffle

router = APIRouter()


@router.get("/current")
def raffle_current(db: Session = Depends(get_db)):
    return {"data": serialize_raffle(get_current_raffle(db))}
