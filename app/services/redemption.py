"""
Redemption Engine.

Exchanges points for a catalog reward. The cheap checks run first so the
common failures never open a write transaction; the same conditions are then
re-validated under row locks with guarded UPDATEs, so a concurrent redemption
that slipped in between check and commit cannot overdraw the balance or
oversell the last unit of stock.
"""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.database import apply_lock_timeout
from app.core.exceptions import (
    AccountNotFound,
    EcoPointsError,
    InsufficientBalance,
    InsufficientPoints,
    OutOfStock,
    RewardNotFound,
    TransactionFailed,
)
from app.models import Redemption, Reward, User
from app.services.accounts import adjust_points, get_account
from app.services.catalog import decrement_stock, get_reward

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    redemption_id: int
    new_balance: int
    reward_title: str
    cost: int


def redeem(db: Session, account_id: int, reward_id: int) -> RedemptionResult:
    user = get_account(db, account_id)
    if user is None:
        raise AccountNotFound()

    reward = get_reward(db, reward_id)
    if reward is None or not reward.active:
        raise RewardNotFound()
    if reward.quantity is not None and reward.quantity <= 0:
        raise OutOfStock()
    if user.points < reward.cost:
        raise InsufficientPoints()

    try:
        apply_lock_timeout(db)

        # Lock order is always account, then reward
        # Either row may have been deleted since the pre-checks
        owner = db.query(User).filter(User.id == account_id).with_for_update().populate_existing().one_or_none()
        if owner is None:
            raise AccountNotFound()
        locked = db.query(Reward).filter(Reward.id == reward_id).with_for_update().populate_existing().one_or_none()
        if locked is None or not locked.active:
            raise RewardNotFound()
        cost = locked.cost
        title = locked.title

        try:
            new_balance = adjust_points(db, account_id, -cost, commit=False)
        except InsufficientBalance:
            raise InsufficientPoints() from None

        redemption = Redemption(user_id=account_id, reward_id=reward_id, cost=cost, status="pending")
        db.add(redemption)

        decrement_stock(db, reward_id)

        db.flush()
        redemption_id = redemption.id
        db.commit()
    except EcoPointsError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        logger.exception("Redemption failed; rolling back DB transaction")
        db.rollback()
        raise TransactionFailed() from e

    logger.info(
        "Account %s redeemed reward %s for %s points (redemption %s, balance %s)",
        account_id, reward_id, cost, redemption_id, new_balance,
    )
    return RedemptionResult(
        redemption_id=redemption_id,
        new_balance=new_balance,
        reward_title=title,
        cost=cost,
    )


def get_redemption_history(db: Session, account_id: int) -> List[Redemption]:
    """Newest first."""
    return (
        db.query(Redemption)
        .options(joinedload(Redemption.reward))
        .filter(Redemption.user_id == account_id)
        .order_by(Redemption.created_at.desc(), Redemption.id.desc())
        .all()
    )
