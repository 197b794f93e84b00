"""Account Store: identity, contact details and the point balance."""

import logging
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccountNotFound, DuplicateAccount, InsufficientBalance, TransactionFailed
from app.models import User, Pickup, Redemption

logger = logging.getLogger(__name__)


def get_account(db: Session, account_id: int) -> Optional[User]:
    return db.get(User, account_id)


def get_account_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def require_account(db: Session, email: str) -> User:
    user = get_account_by_email(db, email)
    if not user:
        raise AccountNotFound()
    return user


def account_exists(db: Session, email: str) -> bool:
    return get_account_by_email(db, email) is not None


def create_account(db: Session, name: str, mobile: str, city: str, email: str) -> User:
    if account_exists(db, email):
        raise DuplicateAccount()

    user = User(name=name, mobile=mobile, city=city, email=email, points=settings.SIGNUP_POINTS)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration for the same email
        db.rollback()
        raise DuplicateAccount()
    db.refresh(user)
    logger.info("Registered account %s (%s)", user.id, email)
    return user


def adjust_points(db: Session, account_id: int, delta: int, commit: bool = True) -> int:
    """
    Atomically adds ``delta`` (which may be negative) to the balance.

    The guard lives in the UPDATE itself so the balance can never be driven
    below zero by concurrent writers. Pass ``commit=False`` to fold the
    adjustment into the caller's transaction. Returns the new balance.
    """
    result = db.execute(
        update(User)
        .where(User.id == account_id, User.points + delta >= 0)
        .values(points=User.points + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        if db.get(User, account_id) is None:
            raise AccountNotFound()
        raise InsufficientBalance()

    if commit:
        db.commit()

    balance = db.query(User.points).filter(User.id == account_id).scalar()
    logger.info("Adjusted points for account %s by %+d (balance %s)", account_id, delta, balance)
    return balance


def update_profile(
    db: Session,
    email: str,
    name: str,
    mobile: str,
    city: str,
    profile_pic: Optional[str] = None,
) -> User:
    """Contact fields only; points and stats are never touched here."""
    user = require_account(db, email)
    user.name = name
    user.mobile = mobile
    user.city = city
    user.profile_pic = profile_pic
    db.commit()
    db.refresh(user)
    return user


def delete_account(db: Session, account_id: int) -> None:
    """Removes the account together with every pickup and redemption it owns."""
    if db.get(User, account_id) is None:
        raise AccountNotFound()

    try:
        db.execute(delete(Pickup).where(Pickup.user_id == account_id))
        db.execute(delete(Redemption).where(Redemption.user_id == account_id))
        db.execute(delete(User).where(User.id == account_id))
        db.commit()
    except SQLAlchemyError as e:
        logger.exception("Account deletion failed; rolling back DB transaction")
        db.rollback()
        raise TransactionFailed() from e

    logger.info("Deleted account %s", account_id)
