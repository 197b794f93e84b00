from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Required Secrets (No defaults, will fail fast if missing)
    DATABASE_URL: str

    # Only needed when notifications are delivered through Supabase
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None

    AUTO_CREATE_TABLES: bool = False

    # --- Points & Pickup Configuration ---
    # New accounts start at the Silver baseline
    SIGNUP_POINTS: int = 100
    POINTS_PER_PICKUP: int = 150
    PICKUP_FEE: int = 49

    # --- OTP Configuration ---
    OTP_TTL_SECONDS: int = 5 * 60

    # Row locks that cannot be acquired within this window fail the transaction
    LOCK_TIMEOUT_MS: int = 5000

    # --- Notifications ---
    NOTIFICATIONS_ENABLED: bool = False
    NOTIFY_FUNCTION: str = "send-email"

    # Guards the catalog seeding endpoint
    ADMIN_API_KEY: Optional[str] = None

    # Pydantic v2 config to read from .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

# Instantiate as a singleton to be imported across the app
settings = Settings()

# Fail Fast validation for the required variables
if not settings.DATABASE_URL:
    raise RuntimeError("Missing required env var: DATABASE_URL")
if settings.NOTIFICATIONS_ENABLED and (not settings.SUPABASE_URL or not settings.SUPABASE_KEY):
    raise RuntimeError("Missing required env vars: SUPABASE_URL and SUPABASE_KEY")
