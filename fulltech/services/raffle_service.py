"""Monthly raffle lookup, entry granting and the admin raffle lifecycle.

A customer's weight in a raffle is the sum of ``entries`` over all of their
RaffleEntry rows for it; granting never increments an existing row.
"""

import logging
import secrets
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from fulltech.core.exceptions import AppException
from fulltech.db.models import Customer, MonthlyRaffle, RaffleEntry

logger = logging.getLogger(__name__)


def serialize_raffle(row: MonthlyRaffle | None) -> dict | None:
    if row is None:
        return None
    return {
        "id": row.id,
        "month": row.month,
        "year": row.year,
        "prize": row.prize,
        "description": row.description,
        "winnerId": row.winner_id,
        "isActive": bool(row.is_active),
        "drawDate": row.draw_date.isoformat() if row.draw_date else None,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def serialize_entry(row: RaffleEntry) -> dict:
    return {
        "id": row.id,
        "customerId": row.customer_id,
        "raffleId": row.raffle_id,
        "entries": int(row.entries or 0),
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def _active_for_month(db: Session, month: int, year: int):
    return db.query(MonthlyRaffle).filter(
        MonthlyRaffle.month == month,
        MonthlyRaffle.year == year,
        MonthlyRaffle.is_active == True,  # noqa: E712
    )


def get_current_raffle(db: Session, today: date | None = None) -> MonthlyRaffle | None:
    # More than one active row per month is possible for legacy data; the
    # most recently created one wins.
    today = today or datetime.utcnow().date()
    return (
        _active_for_month(db, today.month, today.year)
        .order_by(MonthlyRaffle.created_at.desc(), MonthlyRaffle.id.desc())
        .first()
    )


def grant_referral_entry(db: Session, referrer_id: str, today: date | None = None) -> RaffleEntry | None:
    """Stage one entry for the referrer in the current raffle, if there is one."""
    raffle = get_current_raffle(db, today=today)
    if raffle is None:
        logger.debug("No active raffle this month, skipping entry for %s", referrer_id)
        return None
    entry = RaffleEntry(customer_id=referrer_id, raffle_id=raffle.id, entries=1)
    db.add(entry)
    db.flush()
    logger.info("Raffle entry granted to %s in raffle %s", referrer_id, raffle.id)
    return entry


def customer_entry_total(db: Session, customer_id: str, raffle_id: str) -> int:
    total = (
        db.query(func.coalesce(func.sum(RaffleEntry.entries), 0))
        .filter(RaffleEntry.customer_id == customer_id, RaffleEntry.raffle_id == raffle_id)
        .scalar()
    )
    return int(total or 0)


def get_raffle_or_404(db: Session, raffle_id: str) -> MonthlyRaffle:
    row = db.query(MonthlyRaffle).filter(MonthlyRaffle.id == raffle_id).first()
    if not row:
        raise AppException("Raffle not found", status_code=404)
    return row


def _validate_period(month: int, year: int) -> None:
    if not 1 <= int(month) <= 12:
        raise AppException("Month must be between 1 and 12", status_code=400)
    if not 2000 <= int(year) <= 9999:
        raise AppException("Invalid year", status_code=400)


def create_raffle(
    db: Session,
    month: int,
    year: int,
    prize: str,
    description: str | None = None,
    is_active: bool = True,
) -> MonthlyRaffle:
    _validate_period(month, year)
    if is_active and _active_for_month(db, month, year).first():
        raise AppException("An active raffle already exists for this month", status_code=409)
    row = MonthlyRaffle(
        month=int(month),
        year=int(year),
        prize=prize,
        description=description,
        is_active=bool(is_active),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Raffle %s created for %02d/%d", row.id, row.month, row.year)
    return row


def list_raffles(db: Session) -> list[MonthlyRaffle]:
    return (
        db.query(MonthlyRaffle)
        .order_by(MonthlyRaffle.year.desc(), MonthlyRaffle.month.desc(), MonthlyRaffle.created_at.desc())
        .all()
    )


def update_raffle(db: Session, raffle_id: str, changes: dict) -> MonthlyRaffle:
    row = get_raffle_or_404(db, raffle_id)
    if changes.get("is_active") and not row.is_active:
        clash = _active_for_month(db, row.month, row.year).filter(MonthlyRaffle.id != row.id).first()
        if clash:
            raise AppException("An active raffle already exists for this month", status_code=409)
    for field in ("prize", "description", "is_active"):
        if field in changes and changes[field] is not None:
            setattr(row, field, changes[field])
    db.commit()
    db.refresh(row)
    return row


def list_raffle_standings(db: Session, raffle_id: str) -> list[dict]:
    get_raffle_or_404(db, raffle_id)
    total_col = func.sum(RaffleEntry.entries).label("total")
    rows = (
        db.query(RaffleEntry.customer_id, Customer.name, total_col)
        .join(Customer, Customer.id == RaffleEntry.customer_id)
        .filter(RaffleEntry.raffle_id == raffle_id)
        .group_by(RaffleEntry.customer_id, Customer.name)
        .order_by(total_col.desc(), RaffleEntry.customer_id.asc())
        .all()
    )
    return [
        {"customerId": customer_id, "customerName": name, "entries": int(total or 0)}
        for customer_id, name, total in rows
    ]


def draw_winner(db: Session, raffle_id: str) -> MonthlyRaffle:
    """Pick a winner with probability proportional to entry totals and close the raffle."""
    raffle = get_raffle_or_404(db, raffle_id)
    if raffle.winner_id:
        raise AppException("Raffle already drawn", status_code=409)

    standings = list_raffle_standings(db, raffle_id)
    pool = sum(row["entries"] for row in standings)
    if pool < 1:
        raise AppException("Raffle has no entries", status_code=400)

    ticket = secrets.randbelow(pool)
    winner_id = standings[-1]["customerId"]
    for row in standings:
        if ticket < row["entries"]:
            winner_id = row["customerId"]
            break
        ticket -= row["entries"]

    raffle.winner_id = winner_id
    raffle.draw_date = datetime.utcnow()
    raffle.is_active = False
    db.commit()
    db.refresh(raffle)
    logger.info("Raffle %s drawn, winner %s out of %d entries", raffle.id, winner_id, pool)
    return raffle
