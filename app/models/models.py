from sqlalchemy import Column, Integer, Float, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from app.core.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("points >= 0", name="ck_users_points_non_negative"),)
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    mobile = Column(String, nullable=False)
    city = Column(String, nullable=False)
    profile_pic = Column(String, nullable=True)
    points = Column(Integer, nullable=False, default=100)
    pickups_completed = Column(Integer, nullable=False, default=0)
    ewaste_recycled = Column(Float, nullable=False, default=0)
    co2_saved = Column(Float, nullable=False, default=0)
    registered_at = Column(DateTime(timezone=True), default=utcnow)
    pickups = relationship("Pickup", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    redemptions = relationship("Redemption", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("cost > 0", name="ck_rewards_cost_positive"),
        CheckConstraint("quantity IS NULL OR quantity >= 0", name="ck_rewards_quantity_non_negative"),
    )
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String, nullable=True)
    cost = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=True)  # NULL means unlimited
    active = Column(Boolean, nullable=False, default=True, index=True)
    redemptions = relationship("Redemption", back_populates="reward", passive_deletes=True)

class Redemption(Base):
    __tablename__ = "reward_redemptions"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reward_id = Column(Integer, ForeignKey("rewards.id", ondelete="CASCADE"), nullable=False, index=True)
    cost = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    user = relationship("User", back_populates="redemptions")
    reward = relationship("Reward", back_populates="redemptions")

class Pickup(Base):
    __tablename__ = "pickups"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    address = Column(String, nullable=False)
    preferred_date = Column(String, nullable=False)
    preferred_time = Column(String, nullable=False)
    items = Column(Text, nullable=False)
    fee = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    user = relationship("User", back_populates="pickups")

class OtpChallenge(Base):
    __tablename__ = "otp_challenges"
    # One live challenge per email
    email = Column(String, primary_key=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
