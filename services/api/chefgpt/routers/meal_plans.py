"""Meal plan API router.

Endpoints:
- POST /api/meal-plans/generate - Compute targets, generate and persist a plan
- GET /api/meal-plans - List plans
- GET /api/meal-plans/{id} - Get one plan
"""

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.rate_limit import limiter
from ..db import get_db
from ..deps import get_current_user
from ..infra.idempotency import idempotency_precheck, idempotency_store_result, idempotency_clear_key
from ..models import MealPlan, User
from ..schemas import MealPlanGenerateOut, MealPlanGenerateRequest, MealPlanOut, NutritionTargetsOut
from ..services.ai_service import ai_service
from ..services.nutrition_service import NutritionTargets, compute_targets
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("chefgpt.meal_plans")


def resolve_plan_targets(payload: MealPlanGenerateRequest, user: User) -> NutritionTargets:
    """Targets for a plan request: explicit stats win over the stored profile.

    Goal and activity level fall back to the profile too. Anything still
    missing surfaces as a NutritionInputError naming the field.
    """
    stats = payload.user_stats
    goal = payload.goal or user.goal
    activity_level = payload.activity_level or user.activity_level
    if stats:
        return compute_targets(
            sex=stats.sex,
            weight_kg=stats.weight_kg,
            height_cm=stats.height_cm,
            age=stats.age,
            activity_level=activity_level,
            goal=goal,
        )
    return compute_targets(
        sex=user.gender,
        weight_kg=user.weight_kg,
        height_cm=user.height_cm,
        age=user.age,
        activity_level=activity_level,
        goal=goal,
    )


@router.post("/meal-plans/generate", response_model=MealPlanGenerateOut, status_code=201)
@limiter.limit(settings.generation_rate_limit)
async def generate_meal_plan(
    request: Request,  # Required for rate limiter
    payload: MealPlanGenerateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Generate a multi-day plan sized to the user's calorie and macro targets."""
    targets = resolve_plan_targets(payload, user)

    pre = await idempotency_precheck(request, user_id=user.id, route_key="meal_plan_generate")
    if isinstance(pre, JSONResponse):
        return pre
    redis_key = pre[0] if pre else None

    try:
        restrictions = payload.dietary_restrictions or list(user.dietary_restrictions or [])
        generated = await ai_service.generate_meal_plan(
            days=payload.days,
            targets=targets,
            dietary_restrictions=restrictions,
            preferences=payload.preferences,
        )

        start = payload.start_date or date.today()
        plan = MealPlan(
            user_id=user.id,
            name=f"{payload.days}-day {targets.goal.value.replace('_', ' ')} plan",
            start_date=start,
            end_date=start + timedelta(days=payload.days - 1),
            goal=targets.goal.value,
            dietary_restrictions=restrictions,
            meals=[meal.model_dump() for meal in generated.meals],
            shopping_list=generated.shopping_list,
            total_calories=generated.total_calories or targets.target_calories,
            daily_macros=generated.daily_macros.model_dump(),
            tips=generated.tips,
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        logger.info("Generated %d-day meal plan %s for user %s", payload.days, plan.id, user.id)

        body = MealPlanGenerateOut(
            **MealPlanOut.model_validate(plan).model_dump(),
            targets=NutritionTargetsOut.model_validate(targets),
        ).model_dump(mode="json")
        if redis_key:
            await idempotency_store_result(redis_key, pre[1], status=201, body=body)
        return body
    except Exception:
        if redis_key:
            await idempotency_clear_key(redis_key)
        raise


@router.get("/meal-plans", response_model=list[MealPlanOut])
def list_meal_plans(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(MealPlan)
        .filter(MealPlan.user_id == user.id)
        .order_by(MealPlan.created_at.desc())
        .all()
    )


def get_owned_plan(db: Session, user_id: str, plan_id: str) -> MealPlan:
    plan = db.query(MealPlan).filter(MealPlan.id == plan_id, MealPlan.user_id == user_id).first()
    if not plan:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return plan


@router.get("/meal-plans/{plan_id}", response_model=MealPlanOut)
def get_meal_plan(
    plan_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_owned_plan(db, user.id, plan_id)
