import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..inventory import DEFAULT_ITEMS, DEFAULT_PRICE_GROUPS, InventoryAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def seed_default_price_groups(db: Session) -> int:
    """Add the default price groups that are missing. Caller commits."""
    added = 0
    for data in DEFAULT_PRICE_GROUPS:
        if not InventoryAdapter(db).get_price_group(data["name"]):
            db.add(models.PriceGroup(**data))
            added += 1
    db.flush()
    return added


def seed_default_items(db: Session) -> int:
    """
    Add the starter catalog items that are missing (matched by name), plus
    the default price groups. Returns how many items were added.
    """
    seed_default_price_groups(db)
    adapter = InventoryAdapter(db)
    added = 0
    for data in DEFAULT_ITEMS:
        existing = db.query(models.InventoryItem).filter(models.InventoryItem.name == data["name"]).first()
        if not existing:
            extra = {k: v for k, v in data.items() if k not in ("name", "category")}
            adapter.create_item(data["name"], data["category"], **extra)
            added += 1
    db.commit()
    return added


@router.get("/seed")
def seed_inventory(db: Session = Depends(get_db)):
    """Seed the starter catalog."""
    added = seed_default_items(db)
    return {"ok": True, "seeded": added}


@router.get("/materials")
def list_materials(db: Session = Depends(get_db)):
    """Selectable materials per frame-order slot."""
    adapter = InventoryAdapter(db)
    return {
        "frames": adapter.get_frames(),
        "glass": adapter.get_glass(),
        "backings": adapter.get_backings(),
        "passepartouts": adapter.get_passepartouts(),
        "labor": adapter.get_labor(),
    }


@router.get("/", response_model=List[schemas.InventoryItem])
def list_items(category: Optional[str] = None, price_group: Optional[str] = None,
               db: Session = Depends(get_db)):
    query = db.query(models.InventoryItem)
    if category:
        query = query.filter(models.InventoryItem.category == category)
    if price_group:
        query = query.filter(models.InventoryItem.price_group == price_group)
    return query.order_by(models.InventoryItem.category, models.InventoryItem.name).all()


@router.get("/{item_id}", response_model=schemas.InventoryItem)
def get_item(item_id: int, db: Session = Depends(get_db)):
    item = db.query(models.InventoryItem).filter(models.InventoryItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


@router.post("/", response_model=schemas.InventoryItem)
def create_item(
    item: schemas.InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    data = item.model_dump(exclude={"name", "category"})
    try:
        db_item = InventoryAdapter(db).create_item(item.name, item.category, **data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(db_item)
    return db_item


@router.patch("/{item_id}", response_model=schemas.InventoryItem)
def update_item(
    item_id: int,
    update: schemas.InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Price changes only affect frame orders priced afterwards."""
    item = get_item(item_id, db)
    changes = update.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise HTTPException(status_code=400, detail="name cannot be empty")
    try:
        InventoryAdapter(db).update_item(item, changes)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(item)
    logger.info("Updated inventory item %s: %s", item.sku, sorted(changes))
    return item


@router.delete("/{item_id}")
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Frame orders keep their locked snapshot of a deleted item."""
    item = get_item(item_id, db)
    sku = item.sku
    db.delete(item)
    db.commit()
    logger.info("Deleted inventory item %s", sku)
    return {"ok": True, "deleted_id": item_id}
