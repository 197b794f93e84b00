from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

class PickupStatusEnum(str, Enum):
    pending = "pending"
    completed = "completed"
    cancelled = "cancelled"

class RedemptionStatusEnum(str, Enum):
    pending = "pending"
    fulfilled = "fulfilled"
    cancelled = "cancelled"

# --- Auth ---
class OTPRequest(BaseModel):
    email: EmailStr

class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\s*\d{6}\s*$")

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class EmailCheckResponse(BaseModel):
    exists: bool

# --- Accounts ---
class RegisterRequest(BaseModel):
    name: NonEmptyStr
    mobile: NonEmptyStr
    city: NonEmptyStr
    email: EmailStr

class ProfileUpdateRequest(BaseModel):
    email: EmailStr
    name: NonEmptyStr
    mobile: NonEmptyStr
    city: NonEmptyStr
    profile_pic: Optional[str] = None

class DeleteAccountRequest(BaseModel):
    email: EmailStr

class TierResponse(BaseModel):
    current_tier: str
    next_tier: str
    progress_percent: float
    points_to_next: int

class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    name: str
    mobile: str
    city: str
    profile_pic: Optional[str] = None
    points: int
    pickups_completed: int
    ewaste_recycled: float
    co2_saved: float
    registered_at: Optional[datetime] = None
    tier: Optional[TierResponse] = None

# --- Rewards ---
class RewardCreate(BaseModel):
    title: NonEmptyStr
    description: Optional[str] = None
    image: Optional[str] = None
    cost: int = Field(..., gt=0)
    quantity: Optional[int] = Field(None, ge=0)
    active: bool = True

class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    cost: int
    quantity: Optional[int] = None
    active: bool

class RedeemRequest(BaseModel):
    email: EmailStr
    reward_id: int = Field(..., gt=0)

class RedeemResponse(BaseModel):
    success: bool = True
    message: str
    redemption_id: int
    points: int
    tier: TierResponse

class RedemptionHistoryItem(BaseModel):
    redemption_id: int
    reward_id: int
    title: str
    description: Optional[str] = None
    cost: int
    status: RedemptionStatusEnum
    created_at: Optional[datetime] = None

# --- Pickups ---
class PickupCreate(BaseModel):
    email: EmailStr
    name: NonEmptyStr
    phone: NonEmptyStr
    address: NonEmptyStr
    date: NonEmptyStr
    time: NonEmptyStr
    items: NonEmptyStr

class PickupAction(BaseModel):
    email: EmailStr
    pickup_id: int = Field(..., gt=0)

class PickupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    address: str
    preferred_date: str
    preferred_time: str
    items: str
    fee: int
    status: PickupStatusEnum
    created_at: Optional[datetime] = None

class PickupCompletedResponse(BaseModel):
    success: bool = True
    message: str
    points: int
    tier: TierResponse
