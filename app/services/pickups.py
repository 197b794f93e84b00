"""
Pickup Lifecycle.

    pending -> completed   (terminal, credits POINTS_PER_PICKUP)
    pending -> cancelled   (terminal)

Transitions are guarded UPDATEs on ``status = 'pending'``, so a terminal
pickup is invisible to cancel/complete and both fail with PickupNotFound.
"""

import logging
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import apply_lock_timeout
from app.core.exceptions import AccountNotFound, EcoPointsError, PickupNotFound, TransactionFailed
from app.models import Pickup, User
from app.services.accounts import adjust_points, get_account


logger = logging.getLogger(__name__)

PENDING = "pending"
COMPLETED = "completed"
CANCELLED = "cancelled"


def schedule_pickup(
    db: Session,
    account_id: int,
    address: str,
    preferred_date: str,
    preferred_time: str,
    items: str,
) -> Pickup:
    if get_account(db, account_id) is None:
        raise AccountNotFound()

    pickup = Pickup(
        user_id=account_id,
        address=address,
        preferred_date=preferred_date,
        preferred_time=preferred_time,
        items=items,
        fee=settings.PICKUP_FEE,
        status=PENDING,
    )
    db.add(pickup)
    db.commit()
    db.refresh(pickup)
    logger.info("Scheduled pickup %s for account %s on %s %s", pickup.id, account_id, preferred_date, preferred_time)
    return pickup


def _transition(db: Session, pickup_id: int, account_id: int, new_status: str) -> None:
    result = db.execute(
        update(Pickup)
        .where(Pickup.id == pickup_id, Pickup.user_id == account_id, Pickup.status == PENDING)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise PickupNotFound()


def cancel_pickup(db: Session, pickup_id: int, account_id: int) -> None:
    try:
        _transition(db, pickup_id, account_id, CANCELLED)
        db.commit()
    except EcoPointsError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        logger.exception("Pickup cancellation failed; rolling back DB transaction")
        db.rollback()
        raise TransactionFailed() from e
    logger.info("Cancelled pickup %s for account %s", pickup_id, account_id)


def complete_pickup(db: Session, pickup_id: int, account_id: int) -> int:
    """Marks the pickup completed and credits the account in one transaction. Returns the new balance."""
    try:
        apply_lock_timeout(db)
        _transition(db, pickup_id, account_id, COMPLETED)
        new_balance = adjust_points(db, account_id, settings.POINTS_PER_PICKUP, commit=False)
        db.execute(
            update(User)
            .where(User.id == account_id)
            .values(pickups_completed=User.pickups_completed + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except EcoPointsError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        logger.exception("Pickup completion failed; rolling back DB transaction")
        db.rollback()
        raise TransactionFailed() from e

    logger.info("Completed pickup %s: +%s points for account %s", pickup_id, settings.POINTS_PER_PICKUP, account_id)
    return new_balance


def list_pickups(db: Session, account_id: int) -> List[Pickup]:
    return (
        db.query(Pickup)
        .filter(Pickup.user_id == account_id)
        .order_by(Pickup.created_at.desc(), Pickup.id.desc())
        .all()
    )
