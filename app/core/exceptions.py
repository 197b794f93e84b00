import logging
from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse

# Set up our logger
logger = logging.getLogger(__name__)


class EcoPointsError(Exception):
    """Base class for every error the points engine surfaces to callers."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False
    default_message = "Request could not be processed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# --- NotFound ---
class NotFound(EcoPointsError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."

class AccountNotFound(NotFound):
    default_message = "User not found."

class RewardNotFound(NotFound):
    default_message = "Reward not found."

class PickupNotFound(NotFound):
    default_message = "Pickup not found."


# --- Conflict ---
class Conflict(EcoPointsError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict."

class DuplicateAccount(Conflict):
    default_message = "Email already registered."

class OutOfStock(Conflict):
    default_message = "Reward out of stock."

class InsufficientPoints(Conflict):
    default_message = "Insufficient points."

class InsufficientBalance(Conflict):
    default_message = "Point balance cannot go negative."


class TransactionFailed(EcoPointsError):
    """The atomic unit was rolled back; the only kind callers may retry."""

    kind = "transaction_failed"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_message = "Transaction failed. Please try again."


# --- OTP ---
class OtpError(EcoPointsError):
    kind = "otp"
    status_code = status.HTTP_400_BAD_REQUEST

class NoChallenge(OtpError):
    default_message = "No OTP sent to this email."

class OtpExpired(OtpError):
    default_message = "OTP expired."

class CodeMismatch(OtpError):
    default_message = "Invalid OTP."


async def domain_exception_handler(request: Request, exc: EcoPointsError):
    """Surfaces engine errors verbatim with their kind and retry hint."""
    logger.info("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind, "retryable": exc.retryable},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catches ALL completely unhandled Python exceptions (500s) globally.
    Logs the full traceback securely on the server, but returns a clean JSON to the client.
    """
    # Log the exact error and stack trace to our server logs for debugging
    logger.error(f"CRITICAL UNHANDLED ERROR processing {request.method} {request.url}: {exc}", exc_info=True)

    # Return a safe, standard JSON response to the client
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected system error occurred. Our engineers have been notified."},
    )
