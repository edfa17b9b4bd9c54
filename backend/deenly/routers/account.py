import logging
from fastapi import APIRouter, Depends, HTTPException
from deenly.config import settings
from deenly.dependencies import get_current_user
from deenly.models.account import AccountResponse, PremiumUpdate
from deenly.services import entitlements

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/account", tags=["account"])


def _account(user: dict, is_premium: bool) -> AccountResponse:
    return AccountResponse(
        id=user["id"],
        email=user["email"],
        is_guest=bool(user.get("is_guest")),
        is_premium=is_premium,
        questions_today=entitlements.daily_question_count(user["id"]),
        daily_limit=settings.daily_question_limit,
    )


@router.get("", response_model=AccountResponse)
async def get_account(user: dict = Depends(get_current_user)):
    return _account(user, entitlements.is_premium(user))


@router.patch("/premium", response_model=AccountResponse)
async def update_premium(request: PremiumUpdate, user: dict = Depends(get_current_user)):
    if user.get("is_guest"):
        raise HTTPException(status_code=403, detail="Guests cannot change their plan")
    try:
        entitlements.set_premium(user["id"], request.is_premium)
    except Exception:
        logger.exception(f"Failed to update premium flag for user {user['id']}")
        raise HTTPException(status_code=502, detail="Could not update account")
    # The caller's JWT still carries the old metadata until it is refreshed
    return _account(user, request.is_premium)
