"""User profile API router.

Endpoints:
- GET /api/auth/user - Current user (created on first request)
- PATCH /api/users/me - Update profile; recomputes daily targets
- GET /api/users/me/targets - Nutrition targets from the stored profile
"""

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user
from ..models import User
from ..schemas import NutritionTargetsOut, UserOut, UserProfileUpdate
from ..services.nutrition_service import NutritionInputError, targets_for_profile

router = APIRouter()
logger = logging.getLogger("chefgpt.users")

PROFILE_FIELDS = ("gender", "age", "height_cm", "weight_kg", "activity_level", "goal")


def _profile_complete(user: User) -> bool:
    return all(getattr(user, name) is not None for name in PROFILE_FIELDS)


@router.get("/auth/user", response_model=UserOut)
def get_auth_user(user: User = Depends(get_current_user)):
    return user


@router.patch("/users/me", response_model=UserOut)
def update_profile(
    payload: UserProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update profile fields. Daily targets are recomputed, or cleared while the profile is incomplete."""
    data = payload.model_dump(exclude_unset=True, mode="json")

    tz_name = data.get("timezone")
    if tz_name is not None:
        try:
            ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise HTTPException(status_code=422, detail=f"Unknown timezone: {tz_name}")

    for field, value in data.items():
        setattr(user, field, value)

    # Targets only exist for a complete, valid profile; otherwise they are cleared
    targets = None
    if _profile_complete(user):
        try:
            targets = targets_for_profile(user)
        except NutritionInputError as e:
            logger.warning("Profile for %s has invalid %s: %s", user.id, e.field, e)

    if targets is None:
        user.daily_calorie_target = None
        user.daily_macros = None
    else:
        user.daily_calorie_target = targets.target_calories
        user.daily_macros = targets.macros.as_macros()

    db.commit()
    db.refresh(user)
    return user


@router.get("/users/me/targets", response_model=NutritionTargetsOut)
def get_my_targets(user: User = Depends(get_current_user)):
    if not _profile_complete(user):
        missing = [name for name in PROFILE_FIELDS if getattr(user, name) is None]
        raise HTTPException(
            status_code=422,
            detail=f"Profile incomplete, missing: {', '.join(missing)}",
        )
    return NutritionTargetsOut.model_validate(targets_for_profile(user))
