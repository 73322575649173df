"""
Customer orders and their frame orders.

Every frame-order create/update resolves material prices from the
inventory, runs the pricing engine with the owning tenant's VAT, currency
and rounding, stores the full PriceCalculationResult plus its line items,
and re-sums the customer order totals. Delivered orders (Utlämnad) are
locked: nothing on them can be edited or deleted.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import models, schemas
from ..auth import get_current_user, tenant_pricing
from ..calculators.dimensions import EDGE_SIDES, parse_mm
from ..calculators.line_items import apply_template
from ..calculators.registry import normalize_method
from ..config import settings
from ..database import get_db
from ..inventory import InventoryAdapter
from ..order_numbers import generate_order_number
from ..pricing_engine import OrderCostAggregator, PricingEngine
from ..template_store import SqlTemplateStore
from .customers import get_tenant_customer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

pricing_engine = PricingEngine()
aggregator = OrderCostAggregator()

# Per-slot result fields copied onto the FrameOrder row
RESULT_COLUMNS = [
    "frame_length_meters", "frame_cost",
    "glass_area_sqm", "glass_cost",
    "backing_area_sqm", "backing_cost",
    "passepartout_area_sqm", "passepartout_cost",
    "passepartout2_area_sqm", "passepartout2_cost",
    "labor_cost",
]


# --- Schemas ---

class OrderCreate(BaseModel):
    customer_id: int
    status: Optional[str] = None
    notes: Optional[str] = None
    delivery_date: Optional[datetime] = None


class OrderUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None
    delivery_date: Optional[datetime] = None


class FrameOrderInput(BaseModel):
    motif: Optional[str] = None
    quantity: int = 1
    calculation_method: str = "simple"
    width_mm: Optional[float] = None
    height_mm: Optional[float] = None
    motif_width_mm: Optional[float] = None
    motif_height_mm: Optional[float] = None
    pp_left_mm: Optional[float] = None
    pp_right_mm: Optional[float] = None
    pp_top_mm: Optional[float] = None
    pp_bottom_mm: Optional[float] = None
    pp2_left_mm: Optional[float] = None
    pp2_right_mm: Optional[float] = None
    pp2_top_mm: Optional[float] = None
    pp2_bottom_mm: Optional[float] = None
    passepartout_width_mm: Optional[float] = None
    frame_profile_width_mm: Optional[float] = None
    simple_price_per_meter: Optional[float] = None
    frame_item_id: Optional[int] = None
    glass_item_id: Optional[int] = None
    backing_item_id: Optional[int] = None
    passepartout_item_id: Optional[int] = None
    passepartout2_item_id: Optional[int] = None
    labor_item_id: Optional[int] = None
    notes: Optional[str] = None


class ItemInput(BaseModel):
    type: str
    item_id: Optional[int] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: Optional[float] = None  # only used for labor/custom
    unit: Optional[str] = None
    unit_price: Optional[float] = None  # defaults to the catalog sales price
    metadata: dict = {}


class ItemizedFrameOrderInput(BaseModel):
    motif: Optional[str] = None
    quantity: int = 1
    width_mm: Optional[float] = None
    height_mm: Optional[float] = None
    motif_width_mm: Optional[float] = None
    motif_height_mm: Optional[float] = None
    pp_left_mm: Optional[float] = None
    pp_right_mm: Optional[float] = None
    pp_top_mm: Optional[float] = None
    pp_bottom_mm: Optional[float] = None
    items: List[ItemInput] = []
    template_id: Optional[int] = None
    save_as_template: Optional[str] = None  # template name
    template_description: Optional[str] = None
    notes: Optional[str] = None


# --- Helpers ---

def get_tenant_order(order_id: int, user: models.User, db: Session) -> models.CustomerOrder:
    order = db.query(models.CustomerOrder).filter(
        models.CustomerOrder.id == order_id,
        models.CustomerOrder.user_id == user.id,
    ).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def ensure_editable(order: models.CustomerOrder):
    if models.is_locked_status(order.status):
        raise HTTPException(status_code=403, detail="Order is delivered (Utlämnad) and locked")


def get_order_frame(order: models.CustomerOrder, frame_id: int) -> models.FrameOrder:
    for frame in order.frame_orders:
        if frame.id == frame_id:
            return frame
    raise HTTPException(status_code=404, detail="Frame order not found")


def price_fixed_slot(payload: dict, user: models.User, db: Session) -> tuple:
    """Lock catalog prices for the selected items and run the engine. Returns (fields, result)."""
    fields = InventoryAdapter(db).resolve_material_prices(payload)
    if fields.get("passepartout_width_mm") is None:
        fields["passepartout_width_mm"] = settings.DEFAULT_PASSEPARTOUT_WIDTH_MM
    result = pricing_engine.calculate_frame_order_price(fields, **tenant_pricing(user))
    return fields, result


def with_preview_defaults(payload: dict) -> dict:
    """
    The live preview assumes the shop's default simple frame price when none
    was typed in. Saved frame orders never get it: no price means no frame cost.
    """
    fields = dict(payload)
    method = normalize_method(fields.get("calculation_method"))
    if method == "simple" and parse_mm(fields.get("simple_price_per_meter"), default=None) is None:
        fields["simple_price_per_meter"] = settings.DEFAULT_SIMPLE_PRICE_PER_METER
    return fields


def resolve_items(items: list, adapter: InventoryAdapter) -> list:
    """Fill name/sku/unit_price of catalog-backed items from the inventory."""
    resolved = []
    for item in items:
        if not isinstance(item, dict):
            raise HTTPException(status_code=400, detail="Each line item must be an object")
        data = dict(item)
        if data.get("item_id") is not None:
            material = adapter.lock_material(data["item_id"])
            if not material:
                raise HTTPException(status_code=404, detail=f"Inventory item {data['item_id']} not found")
            if data.get("unit_price") is None:
                data["unit_price"] = material["unit_price"]
            data["name"] = data.get("name") or material["name"]
            data["sku"] = data.get("sku") or material["sku"]
        resolved.append(data)
    return resolved


def price_itemized(payload: dict, user: models.User, db: Session) -> tuple:
    """
    Resolve items (from the payload, or from a template when none are given)
    and price them. Returns (fields, items, result).
    """
    fields = {k: v for k, v in payload.items() if k != "items"}
    items = list(payload.get("items") or [])

    template_id = payload.get("template_id")
    if template_id is not None:
        template = SqlTemplateStore(db, user.id).get_template(template_id)
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")
        prefilled = apply_template(template)
        if not items:
            items = prefilled["items"]
        for side in EDGE_SIDES:
            key = f"pp_{side}_mm"
            if fields.get(key) is None and prefilled["default_edges"].get(side) is not None:
                fields[key] = prefilled["default_edges"][side]

    items = resolve_items(items, InventoryAdapter(db))
    try:
        result = pricing_engine.price_itemized_order(fields, items, **tenant_pricing(user))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return fields, items, result


def apply_result(frame: models.FrameOrder, fields: dict, result: dict):
    """Copy a PriceCalculationResult onto the row and replace its line items."""
    frame.quantity = result["quantity"]
    frame.calculation_method = result["calculation_method"]
    frame.inputs_json = {k: v for k, v in fields.items() if k != "selections"}
    frame.selections_json = fields.get("selections") or {}
    frame.width_mm = result["outer_width_mm"]
    frame.height_mm = result["outer_height_mm"]
    frame.circumference_mm = result["perimeter_mm"]
    frame.outer_area_sqm = result["outer_area_sqm"]
    for column in RESULT_COLUMNS:
        setattr(frame, column, result.get(column, 0.0))
    frame.total_cost_excl_vat = result["total_excl_vat"]
    frame.total_cost_incl_vat = result["total_incl_vat"]
    frame.vat_rate = result["vat_rate"]
    frame.currency = result["currency"]
    frame.price_result_json = result
    frame.items = [
        models.FrameOrderItem(
            item_type=line["type"],
            item_id=line.get("item_id"),
            item_name=line.get("name"),
            item_sku=line.get("sku"),
            quantity=line["quantity"],
            unit=line.get("unit"),
            unit_price=line["unit_price"],
            total_cost=line["total_cost"],
            metadata_json={**(line.get("metadata") or {}), **({"slot": line["slot"]} if line.get("slot") else {})},
            sort_order=index,
        )
        for index, line in enumerate(result["line_items"])
    ]
    frame.updated_at = datetime.utcnow()


def refresh_order_totals(order: models.CustomerOrder):
    summary = aggregator.summarize_customer_order([
        {"total_excl_vat": f.total_cost_excl_vat, "total_incl_vat": f.total_cost_incl_vat}
        for f in order.frame_orders
    ])
    order.total_price_excl_vat = summary["total_excl_vat"]
    order.total_price_incl_vat = summary["total_incl_vat"]
    order.updated_at = datetime.utcnow()


def commit_or_rollback(db: Session, what: str):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save %s", what)
        raise HTTPException(status_code=500, detail=f"Could not save {what}")


# --- Orders ---

@router.post("/")
def create_order(
    order: OrderCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    get_tenant_customer(order.customer_id, current_user, db)
    status = models.OrderStatus.OFFERT
    if order.status:
        try:
            status = models.parse_order_status(order.status)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    db_order = models.CustomerOrder(
        user_id=current_user.id,
        order_number=generate_order_number(db),
        customer_id=order.customer_id,
        status=status.value,
        order_date=datetime.utcnow(),
        delivery_date=order.delivery_date,
        notes=order.notes,
    )
    db.add(db_order)
    commit_or_rollback(db, "order")
    db.refresh(db_order)
    logger.info("Created order %s for customer %d", db_order.order_number, db_order.customer_id)
    return _order_to_dict(db_order)


@router.get("/")
def list_orders(
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    query = db.query(models.CustomerOrder).filter(models.CustomerOrder.user_id == current_user.id)
    if status:
        try:
            query = query.filter(models.CustomerOrder.status == models.parse_order_status(status).value)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    orders = query.order_by(models.CustomerOrder.created_at.desc()).offset(skip).limit(limit).all()
    return [_order_to_dict(o, include_frames=False) for o in orders]


@router.post("/calculate-price", response_model=schemas.PriceCalculationResult)
def calculate_price(
    payload: dict,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Live price preview. Nothing is stored.

    A payload with an ``items`` list (or a ``template_id``) is priced as an
    itemized order, anything else as a fixed-slot order.
    """
    if "items" in payload or payload.get("template_id") is not None:
        _, _, result = price_itemized(payload, current_user, db)
        return result
    _, result = price_fixed_slot(with_preview_defaults(payload), current_user, db)
    return result


@router.get("/{order_id}")
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return _order_to_dict(get_tenant_order(order_id, current_user, db))


@router.patch("/{order_id}")
def update_order(
    order_id: int,
    update: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)

    changes = update.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        try:
            target = models.parse_order_status(changes["status"])
            allowed = models.can_transition(order.status, target)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not allowed:
            raise HTTPException(status_code=403, detail="Order status can no longer change")
        logger.info("Order %s: %s -> %s", order.order_number, order.status, target.value)
        changes["status"] = target.value

    for field, value in changes.items():
        if field == "status" and value is None:
            continue
        setattr(order, field, value)
    order.updated_at = datetime.utcnow()
    commit_or_rollback(db, "order")
    db.refresh(order)
    return _order_to_dict(order)


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)
    db.delete(order)
    commit_or_rollback(db, "order")
    return {"ok": True}


# --- Frame orders (fixed material slots) ---

@router.post("/{order_id}/frames")
def create_frame_order(
    order_id: int,
    frame_input: FrameOrderInput,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)

    fields, result = price_fixed_slot(frame_input.model_dump(), current_user, db)
    frame = models.FrameOrder(motif=frame_input.motif, notes=frame_input.notes)
    apply_result(frame, fields, result)
    order.frame_orders.append(frame)
    refresh_order_totals(order)
    commit_or_rollback(db, "frame order")
    db.refresh(frame)
    return _frame_to_dict(frame)


@router.put("/{order_id}/frames/{frame_id}")
def update_frame_order(
    order_id: int,
    frame_id: int,
    frame_input: FrameOrderInput,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Recalculates with the current catalog prices of the selected items."""
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)
    frame = get_order_frame(order, frame_id)

    fields, result = price_fixed_slot(frame_input.model_dump(), current_user, db)
    frame.motif = frame_input.motif
    frame.notes = frame_input.notes
    apply_result(frame, fields, result)
    refresh_order_totals(order)
    commit_or_rollback(db, "frame order")
    db.refresh(frame)
    return _frame_to_dict(frame)


@router.delete("/{order_id}/frames/{frame_id}")
def delete_frame_order(
    order_id: int,
    frame_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)
    frame = get_order_frame(order, frame_id)
    order.frame_orders.remove(frame)
    refresh_order_totals(order)
    commit_or_rollback(db, "frame order")
    return {"ok": True}


# --- Frame orders (itemized) ---

def _save_itemized(order, frame, payload, fields, items, result, current_user, db) -> dict:
    """Frame order, its line items and the optional template go in one transaction."""
    template = None
    try:
        apply_result(frame, fields, result)
        if frame.id is None:
            order.frame_orders.append(frame)
        refresh_order_totals(order)
        if payload.get("save_as_template"):
            edges = {side: fields.get(f"pp_{side}_mm") for side in EDGE_SIDES}
            template = SqlTemplateStore(db, current_user.id).save_template(
                payload["save_as_template"], items,
                description=payload.get("template_description"),
                default_edges=edges,
            )
        db.commit()
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save itemized frame order on %s", order.order_number)
        raise HTTPException(status_code=500, detail="Could not save frame order")

    db.refresh(frame)
    return {**_frame_to_dict(frame), "template": template}


@router.post("/{order_id}/frames/itemized")
def create_itemized_frame_order(
    order_id: int,
    frame_input: ItemizedFrameOrderInput,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)

    payload = frame_input.model_dump()
    fields, items, result = price_itemized(payload, current_user, db)
    frame = models.FrameOrder(motif=frame_input.motif, notes=frame_input.notes)
    return _save_itemized(order, frame, payload, fields, items, result, current_user, db)


@router.put("/{order_id}/frames/itemized/{frame_id}")
def update_itemized_frame_order(
    order_id: int,
    frame_id: int,
    frame_input: ItemizedFrameOrderInput,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    order = get_tenant_order(order_id, current_user, db)
    ensure_editable(order)
    frame = get_order_frame(order, frame_id)

    payload = frame_input.model_dump()
    fields, items, result = price_itemized(payload, current_user, db)
    frame.motif = frame_input.motif
    frame.notes = frame_input.notes
    return _save_itemized(order, frame, payload, fields, items, result, current_user, db)


# --- Serialization ---

def _order_to_dict(o: models.CustomerOrder, include_frames: bool = True) -> dict:
    data = {
        "id": o.id,
        "order_number": o.order_number,
        "status": o.status,
        "locked": models.is_locked_status(o.status),
        "customer_id": o.customer_id,
        "customer": {
            "id": o.customer.id,
            "name": o.customer.name,
            "email": o.customer.email,
            "phone": o.customer.phone,
        } if o.customer else None,
        "order_date": o.order_date.isoformat() if o.order_date else None,
        "delivery_date": o.delivery_date.isoformat() if o.delivery_date else None,
        "notes": o.notes,
        "frame_order_count": len(o.frame_orders),
        "total_price_excl_vat": o.total_price_excl_vat,
        "total_price_incl_vat": o.total_price_incl_vat,
        "created_at": o.created_at.isoformat() if o.created_at else None,
        "updated_at": o.updated_at.isoformat() if o.updated_at else None,
    }
    if include_frames:
        data["frame_orders"] = [_frame_to_dict(f) for f in o.frame_orders]
    return data


def _frame_to_dict(f: models.FrameOrder) -> dict:
    return {
        "id": f.id,
        "customer_order_id": f.customer_order_id,
        "motif": f.motif,
        "quantity": f.quantity,
        "calculation_method": f.calculation_method,
        "width_mm": f.width_mm,
        "height_mm": f.height_mm,
        "circumference_mm": f.circumference_mm,
        "outer_area_sqm": f.outer_area_sqm,
        "selections": f.selections_json or {},
        "total_cost_excl_vat": f.total_cost_excl_vat,
        "total_cost_incl_vat": f.total_cost_incl_vat,
        "vat_rate": f.vat_rate,
        "currency": f.currency,
        "price": f.price_result_json,
        "items": [_item_to_dict(i) for i in f.items],
        "notes": f.notes,
    }


def _item_to_dict(i: models.FrameOrderItem) -> dict:
    return {
        "id": i.id,
        "type": i.item_type,
        "item_id": i.item_id,
        "name": i.item_name,
        "sku": i.item_sku,
        "quantity": i.quantity,
        "unit": i.unit,
        "unit_price": i.unit_price,
        "total_cost": i.total_cost,
        "metadata": i.metadata_json or {},
    }
