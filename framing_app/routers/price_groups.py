"""
Price groups — named markups on the purchase price.

Items in a group get their sales price derived when created without one.
Updating a group can reprice all of its items in the same transaction.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..inventory import InventoryAdapter, validate_markup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/price-groups", tags=["price-groups"])


def get_group(group_id: int, db: Session) -> models.PriceGroup:
    group = db.query(models.PriceGroup).filter(models.PriceGroup.id == group_id).first()
    if not group:
        raise HTTPException(status_code=404, detail="Price group not found")
    return group


def ensure_unique_name(name: str, db: Session, exclude_id: int = None):
    query = db.query(models.PriceGroup).filter(models.PriceGroup.name == name)
    if exclude_id is not None:
        query = query.filter(models.PriceGroup.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"Price group {name} already exists")


def _clean_name(name) -> str:
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Price group name is required")
    return name


def _checked_markup(markup_percentage) -> float:
    try:
        return validate_markup(markup_percentage)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[schemas.PriceGroup])
def list_groups(db: Session = Depends(get_db)):
    return db.query(models.PriceGroup).order_by(models.PriceGroup.name).all()


@router.get("/{group_id}", response_model=schemas.PriceGroup)
def get_price_group(group_id: int, db: Session = Depends(get_db)):
    return get_group(group_id, db)


@router.post("/", response_model=schemas.PriceGroup)
def create_group(
    group: schemas.PriceGroupCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    name = _clean_name(group.name)
    ensure_unique_name(name, db)
    db_group = models.PriceGroup(
        name=name,
        markup_percentage=_checked_markup(group.markup_percentage),
        description=group.description,
    )
    db.add(db_group)
    db.commit()
    db.refresh(db_group)
    logger.info("Created price group %s (%.2f %%)", db_group.name, db_group.markup_percentage)
    return db_group


@router.put("/{group_id}")
def update_group(
    group_id: int,
    update: schemas.PriceGroupUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Rename, change the markup or the description. With ``update_items`` every
    item in the group with a purchase price is repriced. All in one commit.
    """
    group = get_group(group_id, db)
    adapter = InventoryAdapter(db)
    changes = update.model_dump(exclude_unset=True, exclude={"update_items"})

    if "name" in changes:
        changes["name"] = _clean_name(changes["name"])
        ensure_unique_name(changes["name"], db, exclude_id=group.id)
    if "markup_percentage" in changes:
        changes["markup_percentage"] = _checked_markup(changes["markup_percentage"])

    old_name = group.name
    for field, value in changes.items():
        setattr(group, field, value)

    updated_items = 0
    try:
        if group.name != old_name:
            adapter.rename_group_items(old_name, group.name)
        if update.update_items:
            updated_items = adapter.reprice_group(group)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update price group %s", old_name)
        raise HTTPException(status_code=500, detail="Could not save price group")

    db.refresh(group)
    return {**schemas.PriceGroup.model_validate(group).model_dump(), "updated_items": updated_items}


@router.delete("/{group_id}")
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Items leave the group and keep their current sales price."""
    group = get_group(group_id, db)
    name = group.name
    detached = InventoryAdapter(db).rename_group_items(name, None)
    db.delete(group)
    db.commit()
    logger.info("Deleted price group %s, %d items detached", name, detached)
    return {"ok": True, "detached_items": detached}
