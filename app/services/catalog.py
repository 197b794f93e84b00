import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import OutOfStock, RewardNotFound
from app.models import Reward

logger = logging.getLogger(__name__)


def list_rewards(db: Session, active_only: bool = True) -> List[Reward]:
    """Rewards ordered by ascending cost, cheapest first."""
    query = db.query(Reward)
    if active_only:
        query = query.filter(Reward.active.is_(True))
    return query.order_by(Reward.cost.asc(), Reward.id.asc()).all()


def get_reward(db: Session, reward_id: int) -> Optional[Reward]:
    return db.get(Reward, reward_id)


def decrement_stock(db: Session, reward_id: int) -> None:
    """
    Takes one unit of stock inside the caller's transaction (no commit).
    Unlimited rewards (quantity NULL) are left untouched.
    """
    result = db.execute(
        update(Reward)
        .where(Reward.id == reward_id, Reward.quantity.is_not(None), Reward.quantity > 0)
        .values(quantity=Reward.quantity - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        return

    quantity = db.query(Reward.quantity).filter(Reward.id == reward_id).first()
    if quantity is None:
        raise RewardNotFound()
    if quantity[0] is not None:
        raise OutOfStock()


def add_reward(
    db: Session,
    title: str,
    cost: int,
    quantity: Optional[int] = None,
    description: Optional[str] = None,
    image: Optional[str] = None,
    active: bool = True,
) -> Reward:
    reward = Reward(
        title=title,
        description=description,
        image=image,
        cost=cost,
        quantity=quantity,
        active=active,
    )
    db.add(reward)
    db.commit()
    db.refresh(reward)
    logger.info("Added reward %s '%s' (cost %s, quantity %s)", reward.id, title, cost, quantity)
    return reward
