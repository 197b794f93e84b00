"""
OTP Challenge Store.

Challenges live in the shared database rather than process memory, so a code
issued by one server instance can be verified by another.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import CodeMismatch, NoChallenge, OtpExpired
from app.models import OtpChallenge

logger = logging.getLogger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_code() -> str:
    """Six digits, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
    result = db.execute(
        delete(OtpChallenge)
        .where(OtpChallenge.expires_at < _now(now))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def get_challenge(db: Session, email: str) -> Optional[OtpChallenge]:
    return db.get(OtpChallenge, email)


def _store_challenge(db: Session, email: str, code: str, expires_at: datetime) -> None:
    challenge = get_challenge(db, email)
    if challenge is None:
        challenge = OtpChallenge(email=email)
        db.add(challenge)
    challenge.code = code
    challenge.expires_at = expires_at
    db.flush()


def issue_otp(db: Session, email: str, now: Optional[datetime] = None) -> str:
    """Stores a fresh code for ``email``, replacing any pending challenge."""
    current = _now(now)
    code = generate_code()
    expires_at = current + timedelta(seconds=settings.OTP_TTL_SECONDS)

    try:
        _store_challenge(db, email, code, expires_at)
    except IntegrityError:
        # A concurrent issue for the same email inserted first; overwrite its row
        db.rollback()
        _store_challenge(db, email, code, expires_at)
    purge_expired(db, current)
    db.commit()

    logger.info("Issued OTP challenge for %s", email)
    return code


def verify_otp(db: Session, email: str, code: str, now: Optional[datetime] = None) -> bool:
    """
    Consumes the challenge on success.

    A wrong code leaves the challenge in place for another attempt; an
    expired one is deleted before the error is raised.
    """
    challenge = get_challenge(db, email)
    if challenge is None:
        raise NoChallenge()

    if _now(now) > _as_utc(challenge.expires_at):
        db.delete(challenge)
        db.commit()
        raise OtpExpired()

    if not secrets.compare_digest(challenge.code, str(code).strip()):
        raise CodeMismatch()

    db.delete(challenge)
    db.commit()
    logger.info("Verified OTP challenge for %s", email)
    return True
