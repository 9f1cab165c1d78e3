"""Shopping list API router."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user
from ..models import ShoppingList, User
from ..schemas import ShoppingListCreate, ShoppingListOut, ShoppingListUpdate
from .meal_plans import get_owned_plan

router = APIRouter()


def _get_list(db: Session, user_id: str, list_id: str) -> ShoppingList:
    shopping_list = db.query(ShoppingList).filter(
        ShoppingList.id == list_id,
        ShoppingList.user_id == user_id,
    ).first()
    if not shopping_list:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return shopping_list


@router.get("/shopping-lists", response_model=list[ShoppingListOut])
def list_shopping_lists(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(ShoppingList)
        .filter(ShoppingList.user_id == user.id)
        .order_by(ShoppingList.created_at.desc())
        .all()
    )


@router.post("/shopping-lists", response_model=ShoppingListOut, status_code=201)
def create_shopping_list(
    payload: ShoppingListCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    shopping_list = ShoppingList(user_id=user.id, **payload.model_dump())
    db.add(shopping_list)
    db.commit()
    db.refresh(shopping_list)
    return shopping_list


@router.post("/shopping-lists/from-meal-plan/{plan_id}", response_model=ShoppingListOut, status_code=201)
def create_from_meal_plan(
    plan_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Copy a meal plan's shopping list into a new, editable list."""
    plan = get_owned_plan(db, user.id, plan_id)
    items = []
    for item in plan.shopping_list or []:
        if item and item not in items:
            items.append(item)
    shopping_list = ShoppingList(user_id=user.id, name=f"Shopping: {plan.name}", items=items)
    db.add(shopping_list)
    db.commit()
    db.refresh(shopping_list)
    return shopping_list


@router.patch("/shopping-lists/{list_id}", response_model=ShoppingListOut)
def update_shopping_list(
    list_id: str,
    payload: ShoppingListUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    shopping_list = _get_list(db, user.id, list_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(shopping_list, field, value)
    db.commit()
    db.refresh(shopping_list)
    return shopping_list


@router.delete("/shopping-lists/{list_id}", status_code=204)
def delete_shopping_list(
    list_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    shopping_list = _get_list(db, user.id, list_id)
    db.delete(shopping_list)
    db.commit()
