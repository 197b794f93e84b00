import logging
import secrets
from typing import Optional
from fastapi import Header, HTTPException, status
from app.core.config import settings
from app.services.notifications import Notifier, get_notifier

__all__ = ["require_admin", "get_notifier", "Notifier"]

def require_admin(x_admin_key: Optional[str] = Header(None)) -> None:
    """
    Guards catalog management. Disabled entirely unless ADMIN_API_KEY is configured.
    """
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Catalog management is disabled.")

    if not x_admin_key or not secrets.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        logging.warning("Rejected catalog management request with invalid admin key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key.",
        )
