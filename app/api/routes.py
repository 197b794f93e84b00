from dataclasses import asdict
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from pydantic import EmailStr

from app.core.config import settings
from app.core.database import get_db
from app.models import User
from app.schemas.schemas import (
    AccountResponse,
    DeleteAccountRequest,
    EmailCheckResponse,
    MessageResponse,
    OTPRequest,
    PickupAction,
    PickupCompletedResponse,
    PickupCreate,
    PickupResponse,
    ProfileUpdateRequest,
    RedeemRequest,
    RedeemResponse,
    RedemptionHistoryItem,
    RegisterRequest,
    RewardCreate,
    RewardResponse,
    TierResponse,
    VerifyOTPRequest,
)
from app.services import accounts, catalog, pickups
from app.services.auth import issue_otp, verify_otp
from app.services.redemption import get_redemption_history, redeem
from app.services.tiers import tier_of
from app.api.deps import Notifier, get_notifier, require_admin

from disposable_email_domains import blocklist


router = APIRouter()

def verify_not_burner(email: str):
    """Fails fast with a 422 if the email domain is a known burner."""
    domain = email.split('@')[-1].lower()
    if domain in blocklist:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Disposable/temporary email addresses are strictly prohibited."
        )

def tier_payload(points: int) -> dict:
    return asdict(tier_of(points))

def account_payload(user: User) -> dict:
    payload = AccountResponse.model_validate(user).model_dump()
    payload["tier"] = tier_payload(user.points)
    return payload

def otp_data(code: str) -> dict:
    return {"code": code, "minutes": settings.OTP_TTL_SECONDS // 60}


# --- Auth ---

@router.post("/auth/send-otp/", response_model=MessageResponse)
def request_otp(
    payload: OTPRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Signup step 1: block burners and send a code. Does not create the account."""
    verify_not_burner(payload.email)
    code = issue_otp(db, payload.email)
    background_tasks.add_task(notifier.send, payload.email, "otp", otp_data(code))
    return {"message": "OTP sent successfully. Please check your email."}

@router.post("/auth/login/", response_model=MessageResponse)
def login(
    payload: OTPRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Sends a login code, but only to registered emails."""
    accounts.require_account(db, payload.email)
    code = issue_otp(db, payload.email)
    background_tasks.add_task(notifier.send, payload.email, "login_otp", otp_data(code))
    return {"message": "OTP sent"}

@router.post("/auth/verify-otp/", response_model=MessageResponse)
def confirm_otp(payload: VerifyOTPRequest, db: Session = Depends(get_db)):
    verify_otp(db, payload.email, payload.otp)
    return {"message": "OTP verified"}

@router.post("/auth/check-email/", response_model=EmailCheckResponse)
def check_email(payload: OTPRequest, db: Session = Depends(get_db)):
    return {"exists": accounts.account_exists(db, payload.email)}


# --- Accounts ---

@router.post("/accounts/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    verify_not_burner(payload.email)
    user = accounts.create_account(db, payload.name, payload.mobile, payload.city, payload.email)
    return account_payload(user)

@router.get("/accounts/", response_model=AccountResponse)
def get_account(email: EmailStr = Query(...), db: Session = Depends(get_db)):
    return account_payload(accounts.require_account(db, email))

@router.post("/accounts/profile/", response_model=AccountResponse)
def update_profile(payload: ProfileUpdateRequest, db: Session = Depends(get_db)):
    user = accounts.update_profile(
        db, payload.email, payload.name, payload.mobile, payload.city, payload.profile_pic
    )
    return account_payload(user)

@router.post("/accounts/delete/", response_model=MessageResponse)
def delete_account(
    payload: DeleteAccountRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    user = accounts.require_account(db, payload.email)
    accounts.delete_account(db, user.id)
    background_tasks.add_task(notifier.send, payload.email, "account_deleted", {"email": payload.email})
    return {"message": "Account deleted"}


# --- Rewards ---

@router.get("/rewards/", response_model=List[RewardResponse])
def get_rewards(active_only: bool = True, db: Session = Depends(get_db)):
    return catalog.list_rewards(db, active_only=active_only)

@router.post(
    "/admin/rewards/",
    response_model=RewardResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def add_reward(payload: RewardCreate, db: Session = Depends(get_db)):
    return catalog.add_reward(db, **payload.model_dump())

@router.post("/redeem/", response_model=RedeemResponse)
def redeem_reward(
    payload: RedeemRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    user = accounts.require_account(db, payload.email)
    result = redeem(db, user.id, payload.reward_id)

    # Only reached once the redemption has committed
    background_tasks.add_task(notifier.send, payload.email, "reward_redeemed", {"title": result.reward_title})
    return {
        "message": "Redeemed",
        "redemption_id": result.redemption_id,
        "points": result.new_balance,
        "tier": tier_payload(result.new_balance),
    }

@router.get("/rewards/history/", response_model=List[RedemptionHistoryItem])
def rewards_history(email: EmailStr = Query(...), db: Session = Depends(get_db)):
    user = accounts.require_account(db, email)
    return [
        {
            "redemption_id": r.id,
            "reward_id": r.reward_id,
            "title": r.reward.title,
            "description": r.reward.description,
            "cost": r.cost,
            "status": r.status,
            "created_at": r.created_at,
        }
        for r in get_redemption_history(db, user.id)
    ]


# --- Pickups ---

@router.post("/pickups/", response_model=PickupResponse, status_code=status.HTTP_201_CREATED)
def schedule_pickup(
    payload: PickupCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    user = accounts.require_account(db, payload.email)
    pickup = pickups.schedule_pickup(db, user.id, payload.address, payload.date, payload.time, payload.items)
    background_tasks.add_task(
        notifier.send,
        payload.email,
        "pickup_scheduled",
        {"name": payload.name, "date": payload.date, "time": payload.time, "items": payload.items, "fee": pickup.fee},
    )
    return pickup

@router.get("/pickups/", response_model=List[PickupResponse])
def get_pickups(email: EmailStr = Query(...), db: Session = Depends(get_db)):
    user = accounts.require_account(db, email)
    return pickups.list_pickups(db, user.id)

@router.post("/pickups/cancel/", response_model=MessageResponse)
def cancel_pickup(
    payload: PickupAction,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    user = accounts.require_account(db, payload.email)
    pickups.cancel_pickup(db, payload.pickup_id, user.id)
    background_tasks.add_task(notifier.send, payload.email, "pickup_cancelled", {"pickup_id": payload.pickup_id})
    return {"message": "Pickup cancelled"}

@router.post("/pickups/complete/", response_model=PickupCompletedResponse)
def complete_pickup(
    payload: PickupAction,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    user = accounts.require_account(db, payload.email)
    balance = pickups.complete_pickup(db, payload.pickup_id, user.id)
    points = settings.POINTS_PER_PICKUP
    background_tasks.add_task(
        notifier.send, payload.email, "pickup_completed", {"pickup_id": payload.pickup_id, "points": points}
    )
    return {
        "message": f"Pickup completed! +{points} EcoPoints added.",
        "points": balance,
        "tier": tier_payload(balance),
    }


# --- Tiers ---

@router.get("/tiers/", response_model=TierResponse)
def get_tier(points: int = Query(..., ge=0)):
    return tier_payload(points)
