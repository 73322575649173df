"""
Itemized frame orders — an ordered list of heterogeneous line items.

Replaces the fixed material slots with a tagged item type and a
type → quantity rule table. Quantities for frame, glass, passepartout and
backing come from the order geometry; labor and custom items keep the
quantity the user typed in (hours, pieces).

Line item contract:
    {type, item_id, name, sku, quantity, unit, unit_price, total_cost, metadata}
"""

import enum

from .dimensions import parse_mm
from .rounding import LEGACY, round_intermediate


class LineItemType(str, enum.Enum):
    FRAME = "frame"
    GLASS = "glass"
    PASSEPARTOUT = "passepartout"
    BACKING = "backing"
    LABOR = "labor"
    CUSTOM = "custom"


DEFAULT_UNITS = {
    LineItemType.FRAME: "meter",
    LineItemType.GLASS: "sqm",
    LineItemType.PASSEPARTOUT: "sqm",
    LineItemType.BACKING: "sqm",
    LineItemType.LABOR: "hour",
    LineItemType.CUSTOM: "piece",
}


def _perimeter_quantity(geometry: dict, order_quantity: int) -> float:
    return geometry["perimeter_meters"] * order_quantity


def _area_quantity(geometry: dict, order_quantity: int) -> float:
    return geometry["outer_area_sqm"] * order_quantity


# None = user-supplied quantity, never derived
QUANTITY_RULES = {
    LineItemType.FRAME: _perimeter_quantity,
    LineItemType.GLASS: _area_quantity,
    LineItemType.PASSEPARTOUT: _area_quantity,
    LineItemType.BACKING: _area_quantity,
    LineItemType.LABOR: None,
    LineItemType.CUSTOM: None,
}


def parse_item_type(value) -> LineItemType:
    """Raises ValueError for anything that is not a known item type."""
    try:
        return LineItemType(str(value or "").strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown line item type: {value}. "
            f"Available: {[t.value for t in LineItemType]}"
        )


def is_auto_quantity(item_type: LineItemType) -> bool:
    return QUANTITY_RULES[item_type] is not None


def item_metadata(item: dict) -> dict:
    """Free-form metadata of an item. Anything that is not a mapping is dropped."""
    metadata = item.get("metadata")
    return dict(metadata) if isinstance(metadata, dict) else {}


def derive_quantity(item_type: LineItemType, geometry: dict, order_quantity: int,
                    supplied_quantity=None) -> float:
    """Quantity for one line item according to the rule table."""
    rule = QUANTITY_RULES[item_type]
    if rule is None:
        return parse_mm(supplied_quantity)
    return rule(geometry, order_quantity)


def build_line_item(item: dict, geometry: dict, order_quantity: int,
                    rounding: str = LEGACY) -> dict:
    """Price one item. ``item`` is not modified."""
    item_type = parse_item_type(item.get("type"))
    quantity = derive_quantity(item_type, geometry, order_quantity, item.get("quantity"))
    # Stored quantities have two decimals; legacy totals were computed from those
    quantity = round_intermediate(quantity, 2, rounding)
    unit_price = parse_mm(item.get("unit_price"))
    return {
        "type": item_type.value,
        "item_id": item.get("item_id"),
        "name": item.get("name"),
        "sku": item.get("sku"),
        "quantity": quantity,
        "unit": item.get("unit") or DEFAULT_UNITS[item_type],
        "unit_price": unit_price,
        "total_cost": quantity * unit_price,
        "metadata": item_metadata(item),
    }


def build_line_items(items: list, geometry: dict, order_quantity: int,
                     rounding: str = LEGACY) -> list:
    """Price every item in order. An itemized order needs at least one item."""
    if not items:
        raise ValueError("An itemized frame order needs at least one line item")
    return [build_line_item(item, geometry, order_quantity, rounding) for item in items]


def apply_template(template: dict) -> dict:
    """
    Pre-populate a new itemized order from a template.

    Copies the item list (without computed quantities for auto items) and the
    default passepartout edges. Calculation rules are untouched.
    """
    items = []
    for item in template.get("items") or []:
        item_type = parse_item_type(item.get("type"))
        copied = {
            "type": item_type.value,
            "item_id": item.get("item_id"),
            "name": item.get("name"),
            "sku": item.get("sku"),
            "unit": item.get("unit") or DEFAULT_UNITS[item_type],
            "unit_price": item.get("unit_price"),
            "metadata": item_metadata(item),
        }
        if not is_auto_quantity(item_type):
            copied["quantity"] = item.get("quantity")
        items.append(copied)

    return {
        "template_id": template.get("id"),
        "items": items,
        "default_edges": dict(template.get("default_edges") or {}),
    }
