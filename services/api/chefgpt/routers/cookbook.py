"""Cookbook (saved recipes) API router."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session, joinedload

from ..db import get_db
from ..deps import get_current_user
from ..models import SavedRecipe, User
from ..schemas import SavedRecipeCreate, SavedRecipeOut
from .recipes import get_owned_recipe

router = APIRouter()


@router.get("/cookbook", response_model=list[SavedRecipeOut])
def list_saved_recipes(
    collection: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = (
        db.query(SavedRecipe)
        .options(joinedload(SavedRecipe.recipe))
        .filter(SavedRecipe.user_id == user.id)
    )
    if collection:
        query = query.filter(SavedRecipe.collection_name == collection)
    return query.order_by(SavedRecipe.saved_at.desc()).all()


@router.post("/cookbook", response_model=SavedRecipeOut, status_code=201)
def save_recipe(
    payload: SavedRecipeCreate,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save one of the user's recipes to a collection. Saving twice returns the existing entry."""
    recipe = get_owned_recipe(db, user.id, payload.recipe_id)

    existing = db.query(SavedRecipe).filter(
        SavedRecipe.user_id == user.id,
        SavedRecipe.recipe_id == recipe.id,
        SavedRecipe.collection_name == payload.collection_name,
    ).first()
    if existing:
        response.status_code = 200
        return existing

    saved = SavedRecipe(user_id=user.id, recipe_id=recipe.id, collection_name=payload.collection_name)
    db.add(saved)
    db.commit()
    db.refresh(saved)
    return saved


@router.delete("/cookbook/{recipe_id}", status_code=204)
def unsave_recipe(
    recipe_id: str,
    collection: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a recipe from the cookbook (one collection, or all of them)."""
    query = db.query(SavedRecipe).filter(
        SavedRecipe.user_id == user.id,
        SavedRecipe.recipe_id == recipe_id,
    )
    if collection:
        query = query.filter(SavedRecipe.collection_name == collection)
    if query.delete(synchronize_session=False) == 0:
        raise HTTPException(status_code=404, detail="Saved recipe not found")
    db.commit()
