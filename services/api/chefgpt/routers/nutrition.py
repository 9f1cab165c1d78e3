from fastapi import APIRouter, Depends

from ..deps import get_current_user
from ..models import User
from ..schemas import NutritionTargetsOut, NutritionTargetsRequest
from ..services.nutrition_service import compute_targets

router = APIRouter()


@router.post("/nutrition/targets", response_model=NutritionTargetsOut)
def calculate_targets(
    payload: NutritionTargetsRequest,
    user: User = Depends(get_current_user),
):
    """BMR, maintenance, goal-adjusted calories and macro split for the given stats.

    Invalid input is reported as 422 with the offending field.
    """
    targets = compute_targets(**payload.model_dump())
    return NutritionTargetsOut.model_validate(targets)
