"""Recipes API router.

Endpoints:
- POST /api/recipes/generate - Generate and persist a recipe for a chef mode
- GET /api/recipes - List the user's recipes
- GET /api/recipes/{id} - Get one recipe
- DELETE /api/recipes/{id} - Delete a recipe (and its cookbook entries)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.rate_limit import limiter
from ..db import get_db
from ..deps import get_current_user
from ..infra.idempotency import idempotency_precheck, idempotency_store_result, idempotency_clear_key
from ..models import PantryItem, Recipe, User
from ..schemas import RecipeGenerateRequest, RecipeListOut, RecipeOut
from ..services.ai_service import ai_service
from ..services.pantry_freshness import prioritize_for_cooking
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("chefgpt.recipes")

PANTRY_PROMPT_LIMIT = 30


def _pantry_names(db: Session, user_id: str) -> list[str]:
    """Usable pantry items, soonest-to-expire first."""
    items = db.query(PantryItem).filter(PantryItem.user_id == user_id).all()
    return [item.name for item in prioritize_for_cooking(items)][:PANTRY_PROMPT_LIMIT]


def get_owned_recipe(db: Session, user_id: str, recipe_id: str) -> Recipe:
    recipe = db.query(Recipe).filter(Recipe.id == recipe_id, Recipe.user_id == user_id).first()
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.post("/recipes/generate", response_model=RecipeOut, status_code=201)
@limiter.limit(settings.generation_rate_limit)
async def generate_recipe(
    request: Request,  # Required for rate limiter
    payload: RecipeGenerateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Generate a recipe with the AI chef and save it to the user's recipes."""
    pre = await idempotency_precheck(request, user_id=user.id, route_key="recipe_generate")
    if isinstance(pre, JSONResponse):
        return pre
    redis_key = pre[0] if pre else None

    try:
        pantry = _pantry_names(db, user.id) if payload.use_pantry or payload.chef_mode == "pantry" else []
        if not payload.dietary_restrictions and user.dietary_restrictions:
            payload.dietary_restrictions = list(user.dietary_restrictions)

        generated = await ai_service.generate_recipe(payload, pantry)

        recipe = Recipe(
            user_id=user.id,
            title=generated.title,
            description=generated.description,
            ingredients=generated.ingredients,
            instructions=generated.instructions,
            prep_time=generated.prep_time,
            cook_time=generated.cook_time,
            servings=generated.servings,
            calories=generated.calories,
            macros=generated.macros.model_dump(),
            tags=generated.tags,
            chef_mode=payload.chef_mode,
            difficulty=generated.difficulty,
            cuisine=generated.cuisine or payload.cuisine,
            meal_type=payload.meal_type,
        )
        db.add(recipe)
        db.commit()
        db.refresh(recipe)
        logger.info("Generated recipe %s (%s) for user %s", recipe.id, payload.chef_mode, user.id)

        body = RecipeOut.model_validate(recipe).model_dump(mode="json")
        if redis_key:
            await idempotency_store_result(redis_key, pre[1], status=201, body=body)
        return body
    except Exception:
        if redis_key:
            await idempotency_clear_key(redis_key)
        raise


@router.get("/recipes", response_model=list[RecipeListOut])
def list_recipes(
    q: Optional[str] = None,
    chef_mode: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the user's recipes, newest first."""
    query = db.query(Recipe).filter(Recipe.user_id == user.id)
    if q:
        term = f"%{q.lower()}%"
        query = query.filter(or_(func.lower(Recipe.title).like(term), func.lower(Recipe.description).like(term)))
    if chef_mode:
        query = query.filter(Recipe.chef_mode == chef_mode)
    return query.order_by(Recipe.created_at.desc()).limit(limit).offset(offset).all()


@router.get("/recipes/{recipe_id}", response_model=RecipeOut)
def get_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_owned_recipe(db, user.id, recipe_id)


@router.delete("/recipes/{recipe_id}", status_code=204)
def delete_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    recipe = get_owned_recipe(db, user.id, recipe_id)
    db.delete(recipe)
    db.commit()
    logger.info("Deleted recipe %s", recipe_id)
