from app.core.database import Base
from app.models.models import User, Reward, Redemption, Pickup, OtpChallenge

__all__ = ["Base", "User", "Reward", "Redemption", "Pickup", "OtpChallenge"]
