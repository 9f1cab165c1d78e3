"""Calorie tracking API router.

Endpoints:
- POST /api/calories/manual - Log a food entry
- POST /api/calories/analyze-photo - Estimate a meal photo and log one entry per food
- POST /api/calories/from-recipe - Log servings of a saved recipe
- GET /api/calories - Entries in a date range
- GET /api/calories/daily - Totals for one day against the user's targets
- DELETE /api/calories/{id} - Delete an entry
"""

import re
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.rate_limit import limiter
from ..db import get_db
from ..deps import get_current_user
from ..models import CalorieEntry, User
from ..schemas import (
    CalorieEntryCreate,
    CalorieEntryFromRecipe,
    CalorieEntryOut,
    DailySummaryOut,
    DailyTotalsOut,
    MealType,
    NutrientProgressOut,
    NutritionTargetsOut,
)
from ..services.ai_service import FoodAnalysis, ai_service
from ..services.nutrition_service import (
    NutritionInputError,
    aggregate_daily,
    calculate_macros_for_log,
    compare_to_targets,
    targets_for_profile,
    to_utc,
)
from ..settings import settings
from .recipes import get_owned_recipe

router = APIRouter()
logger = logging.getLogger("chefgpt.calories")

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack", "post-workout")

_QUANTITY = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*(.*)$")


class PhotoAnalysisOut(BaseModel):
    analysis: FoodAnalysis
    entries: list[CalorieEntryOut]


def user_zone(user: User) -> ZoneInfo:
    try:
        return ZoneInfo(user.timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("User %s has unknown timezone %r, using UTC", user.id, user.timezone)
        return ZoneInfo("UTC")


def split_quantity(text: Optional[str]) -> tuple[Optional[float], str]:
    """'1.5 cups' -> (1.5, 'cups'); anything without a leading number is one portion."""
    match = _QUANTITY.match(text or "")
    if not match:
        return 1.0, "portion"
    amount = float(match.group(1).replace(",", "."))
    return amount, (match.group(2).strip() or "portion")[:20]


def _local_day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants covering one calendar day in the given zone."""
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return to_utc(start), to_utc(end)


def _add_entry(db: Session, user: User, **fields) -> CalorieEntry:
    logged_at = fields.pop("date", None) or datetime.now(timezone.utc)
    entry = CalorieEntry(user_id=user.id, date=to_utc(logged_at), **fields)
    db.add(entry)
    return entry


@router.post("/calories/manual", response_model=CalorieEntryOut, status_code=201)
def log_manual_entry(
    payload: CalorieEntryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = payload.model_dump()
    entry = _add_entry(db, user, source="manual", **data)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/calories/analyze-photo", response_model=PhotoAnalysisOut, status_code=201)
@limiter.limit(settings.generation_rate_limit)
async def analyze_photo(
    request: Request,  # Required for rate limiter
    image: UploadFile = File(...),
    meal_type: str = Form("snack"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Estimate the foods in a meal photo and log each one as an entry."""
    if meal_type not in MEAL_TYPES:
        raise HTTPException(status_code=422, detail=f"meal_type must be one of: {', '.join(MEAL_TYPES)}")
    content_type = (image.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {content_type or 'unknown'}")

    data = await image.read(settings.max_upload_bytes + 1)
    if not data:
        raise HTTPException(status_code=400, detail="Empty image upload")
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Image too large")

    analysis = await ai_service.analyze_food_photo(data, content_type, meal_type)
    logger.info(
        "Photo analysis for user %s: %d foods, %d kcal (confidence %.2f, %s)",
        user.id, len(analysis.foods), analysis.total_calories, analysis.confidence, analysis.source,
    )

    entries = []
    for food in analysis.foods:
        quantity, unit = split_quantity(food.quantity)
        entries.append(_add_entry(
            db,
            user,
            meal_type=meal_type,
            food_name=food.name,
            calories=food.calories,
            macros=food.macros.model_dump(),
            quantity=quantity,
            unit=unit,
            source="photo",
        ))
    db.commit()
    for entry in entries:
        db.refresh(entry)

    return PhotoAnalysisOut(
        analysis=analysis,
        entries=[CalorieEntryOut.model_validate(entry) for entry in entries],
    )


@router.post("/calories/from-recipe", response_model=CalorieEntryOut, status_code=201)
def log_recipe_entry(
    payload: CalorieEntryFromRecipe,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Log servings of one of the user's recipes, scaling its per-serving nutrition."""
    recipe = get_owned_recipe(db, user.id, payload.recipe_id)
    scaled = calculate_macros_for_log(recipe.calories, recipe.macros, payload.servings)
    entry = _add_entry(
        db,
        user,
        date=payload.date,
        meal_type=payload.meal_type,
        food_name=recipe.title,
        calories=scaled["calories"],
        macros=scaled["macros"],
        quantity=payload.servings,
        unit="serving",
        source="recipe",
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/calories", response_model=list[CalorieEntryOut])
def list_entries(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    meal_type: Optional[MealType] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Entries between two calendar dates (inclusive) in the user's timezone."""
    zone = user_zone(user)
    query = db.query(CalorieEntry).filter(CalorieEntry.user_id == user.id)
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    if start_date:
        query = query.filter(CalorieEntry.date >= _local_day_bounds(start_date, zone)[0])
    if end_date:
        query = query.filter(CalorieEntry.date < _local_day_bounds(end_date, zone)[1])
    if meal_type:
        query = query.filter(CalorieEntry.meal_type == meal_type)
    return query.order_by(CalorieEntry.date.asc()).all()


@router.get("/calories/daily", response_model=DailySummaryOut)
def daily_summary(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Totals for one local calendar day, compared to the profile's targets when it is complete."""
    zone = user_zone(user)
    day = day or datetime.now(zone).date()
    start, end = _local_day_bounds(day, zone)

    entries = (
        db.query(CalorieEntry)
        .filter(CalorieEntry.user_id == user.id, CalorieEntry.date >= start, CalorieEntry.date < end)
        .order_by(CalorieEntry.date.asc())
        .all()
    )
    totals = aggregate_daily(entries, day, zone)

    try:
        targets = targets_for_profile(user)
    except NutritionInputError:
        targets = None
    progress = compare_to_targets(totals, targets)

    return DailySummaryOut(
        date=day,
        timezone=zone.key,
        totals=DailyTotalsOut.model_validate(totals),
        targets=NutritionTargetsOut.model_validate(targets) if targets else None,
        progress={k: NutrientProgressOut.model_validate(v) for k, v in progress.progress.items()},
        entries=[CalorieEntryOut.model_validate(e) for e in entries],
    )


@router.delete("/calories/{entry_id}", status_code=204)
def delete_entry(
    entry_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = db.query(CalorieEntry).filter(CalorieEntry.id == entry_id, CalorieEntry.user_id == user.id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Calorie entry not found")
    db.delete(entry)
    db.commit()
