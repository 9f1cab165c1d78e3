from typing import Optional
from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import and_, func

from .. import models, schemas
from ..db import get_db
from ..deps import get_current_user
from ..services.pantry_freshness import (
    EXPIRING_WITHIN_DAYS,
    WARNING_WITHIN_DAYS,
    ExpiryStatus,
    classify_expiry,
    days_until_expiry,
    summarize_expiry,
)

router = APIRouter()


def _pantry_to_out(item: models.PantryItem, today: date) -> schemas.PantryItemOut:
    return schemas.PantryItemOut(
        id=item.id,
        user_id=item.user_id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        category=item.category,
        expiry_date=item.expiry_date,
        added_at=item.added_at,
        expiry_status=classify_expiry(item.expiry_date, today),
        days_until_expiry=days_until_expiry(item.expiry_date, today),
    )


def _expiry_status_clause(expiry_status: ExpiryStatus, today: date):
    """SQL condition matching classify_expiry for one status."""
    expiry = models.PantryItem.expiry_date
    expiring_until = today + timedelta(days=EXPIRING_WITHIN_DAYS)
    warning_until = today + timedelta(days=WARNING_WITHIN_DAYS)
    if expiry_status == ExpiryStatus.NO_DATE:
        return expiry.is_(None)
    if expiry_status == ExpiryStatus.EXPIRED:
        return expiry < today
    if expiry_status == ExpiryStatus.EXPIRING:
        return expiry.between(today, expiring_until)
    if expiry_status == ExpiryStatus.WARNING:
        return and_(expiry > expiring_until, expiry <= warning_until)
    return expiry > warning_until


def _get_item(db: Session, user_id: str, item_id: str) -> models.PantryItem:
    item = db.query(models.PantryItem).filter(
        models.PantryItem.id == item_id,
        models.PantryItem.user_id == user_id,
    ).first()
    if not item:
        raise HTTPException(status_code=404, detail="Pantry item not found")
    return item


@router.get("/", response_model=list[schemas.PantryItemOut])
def get_pantry_items(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    q: Optional[str] = None,
    category: Optional[str] = None,
    expiry_status: Optional[ExpiryStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List pantry items, soonest expiry first. Items without a date go last."""
    query = db.query(models.PantryItem).filter(models.PantryItem.user_id == user.id)

    if q:
        query = query.filter(func.lower(models.PantryItem.name).contains(q.lower()))
    if category:
        query = query.filter(models.PantryItem.category == category)

    today = date.today()
    if expiry_status:
        query = query.filter(_expiry_status_clause(expiry_status, today))

    items = (
        query.order_by(models.PantryItem.expiry_date.asc().nulls_last(), models.PantryItem.name.asc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return [_pantry_to_out(item, today) for item in items]


@router.get("/summary", response_model=schemas.PantrySummaryOut)
def get_pantry_summary(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Item counts per expiry status."""
    items = db.query(models.PantryItem).filter(models.PantryItem.user_id == user.id).all()
    return schemas.PantrySummaryOut(total=len(items), counts=summarize_expiry(items, date.today()))


@router.get("/{item_id}", response_model=schemas.PantryItemOut)
def get_pantry_item(
    item_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _pantry_to_out(_get_item(db, user.id, item_id), date.today())


@router.post("/", response_model=schemas.PantryItemOut, status_code=status.HTTP_201_CREATED)
def create_pantry_item(
    item_in: schemas.PantryItemCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new pantry item."""
    item = models.PantryItem(
        **item_in.model_dump(),
        user_id=user.id,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return _pantry_to_out(item, date.today())


@router.put("/{item_id}", response_model=schemas.PantryItemOut)
def replace_pantry_item(
    item_id: str,
    item_in: schemas.PantryItemCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace every editable field of a pantry item."""
    item = _get_item(db, user.id, item_id)
    for field, value in item_in.model_dump().items():
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return _pantry_to_out(item, date.today())


@router.patch("/{item_id}", response_model=schemas.PantryItemOut)
def update_pantry_item(
    item_id: str,
    item_in: schemas.PantryItemUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a pantry item."""
    item = _get_item(db, user.id, item_id)
    for field, value in item_in.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return _pantry_to_out(item, date.today())


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pantry_item(
    item_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a pantry item."""
    item = _get_item(db, user.id, item_id)
    db.delete(item)
    db.commit()
