"""
Post-commit notifications.

Routes hand events to ``Notifier.send`` through FastAPI background tasks once
the database work has committed. Delivery problems are logged and dropped;
they never turn a committed request into a failure.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Protocol, Tuple

from supabase import create_client, Client

from app.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATES: Dict[str, Tuple[str, str]] = {
    "otp": (
        "Your OTP Code - EcoRewards",
        "Your OTP is: {code}. It will expire in {minutes} minutes.",
    ),
    "login_otp": (
        "Your Login OTP - EcoRewards",
        "Your OTP is: {code}. It will expire in {minutes} minutes.",
    ),
    "pickup_scheduled": (
        "Pickup Scheduled - EcoRewards",
        "Hello {name},\n\nYour e-waste pickup is scheduled on {date} at {time}.\n\n"
        "Items: {items}\nFee: ₹{fee}\n\nThank you,\nTeam EcoRewards",
    ),
    "pickup_cancelled": (
        "Pickup Cancelled - EcoRewards",
        "Your pickup (ID: {pickup_id}) has been cancelled. If this was a mistake, please schedule again.",
    ),
    "pickup_completed": (
        "Pickup Completed - EcoRewards",
        "Your pickup (ID: {pickup_id}) is complete. +{points} EcoPoints have been added to your balance.",
    ),
    "reward_redeemed": (
        "Reward Redeemed - EcoRewards",
        'You have redeemed "{title}". Our team will process it shortly.',
    ),
    "account_deleted": (
        "Account Deleted - EcoRewards",
        "Your account ({email}) has been permanently deleted.",
    ),
}


def render(template: str, data: Dict[str, Any]) -> Tuple[str, str]:
    subject, body = TEMPLATES[template]
    return subject, body.format(**data)


class EmailBackend(Protocol):
    def send_email(self, recipient: str, subject: str, body: str) -> None:
        ...


@lru_cache
def get_supabase_client() -> Client:
    return create_client(str(settings.SUPABASE_URL), str(settings.SUPABASE_KEY))


class SupabaseEmailBackend:
    """Delivers mail through a Supabase Edge Function that owns the SMTP credentials."""

    def __init__(self, function_name: str):
        self.function_name = function_name

    def send_email(self, recipient: str, subject: str, body: str) -> None:
        client = get_supabase_client()
        client.functions.invoke(
            self.function_name,
            invoke_options={"body": {"to": recipient, "subject": subject, "text": body}},
        )


class LoggingEmailBackend:
    """Used when delivery is switched off (local development, tests)."""

    def send_email(self, recipient: str, subject: str, body: str) -> None:
        logger.info("Notification to %s suppressed: %s", recipient, subject)


class Notifier:
    def __init__(self, backend: EmailBackend):
        self.backend = backend

    def send(self, recipient: str, template: str, data: Dict[str, Any]) -> None:
        try:
            subject, body = render(template, data)
            self.backend.send_email(recipient, subject, body)
        except Exception:
            logger.warning("Notification '%s' to %s failed", template, recipient, exc_info=True)
            return
        logger.info("Notification '%s' sent to %s", template, recipient)


@lru_cache
def get_notifier() -> Notifier:
    if settings.NOTIFICATIONS_ENABLED:
        return Notifier(SupabaseEmailBackend(settings.NOTIFY_FUNCTION))
    return Notifier(LoggingEmailBackend())
