"""
Inventory adapter — reads framing materials from the catalog.

The pricing engine never fetches prices itself. The HTTP layer uses this
adapter to resolve the selected inventory items into MaterialSelection
snapshots ({id, name, sku, unit_price}) and passes the unit prices on.
Those snapshots are stored on the frame order, so the price is locked.

Catalog items can belong to a price group (a named markup). The group
derives the sales price from the purchase price.
"""

import logging

from sqlalchemy.orm import Session

from . import models
from .calculators.rounding import round_half_up

logger = logging.getLogger(__name__)

FRAME_CATEGORIES = ["Frame", "Ramlist"]
GLASS_CATEGORIES = ["Glass", "Glas"]
BACKING_CATEGORIES = ["Backing"]
PASSEPARTOUT_CATEGORIES = ["Passepartout"]
LABOR_CATEGORIES = ["Arbete", "arbete"]

# SKU prefixes per category, anything else uses the first three letters
CATEGORY_PREFIXES = {
    "Frame": "RAM",
    "Ramlist": "RAM",
    "Glass": "GLA",
    "Glas": "GLA",
    "Backing": "BAK",
    "Passepartout": "PAS",
    "Arbete": "ARB",
}

# Slot on a fixed-slot frame order -> price field the strategies read
SLOT_PRICE_FIELDS = {
    "frame": "frame_price_per_meter",
    "glass": "glass_price_per_sqm",
    "backing": "backing_price_per_sqm",
    "passepartout": "passepartout_price_per_sqm",
    "passepartout2": "passepartout2_price_per_sqm",
    "labor": "labor_price_per_meter",
}

# Starter catalog, seeded once via /inventory/seed or on startup
DEFAULT_ITEMS = [
    {"name": "Ramlist Ek 20 mm", "category": "Frame", "unit": "meter", "sales_price": 320.0},
    {"name": "Ramlist Svart Aluminium 15 mm", "category": "Frame", "unit": "meter", "sales_price": 260.0},
    {"name": "Floatglas 2 mm", "category": "Glass", "unit": "sqm", "sales_price": 450.0},
    {"name": "Museiglas UV", "category": "Glass", "unit": "sqm", "sales_price": 1800.0},
    {"name": "Bakskiva MDF 3 mm", "category": "Backing", "unit": "sqm", "sales_price": 180.0},
    {"name": "Passepartout Vit 1.4 mm", "category": "Passepartout", "unit": "sqm", "sales_price": 520.0},
    {"name": "Passepartout Svart 1.4 mm", "category": "Passepartout", "unit": "sqm", "sales_price": 540.0},
    {"name": "Inramning arbete", "category": "Arbete", "unit": "meter", "sales_price": 150.0},
]

# Markups from the shop's price list, seeded together with the catalog
DEFAULT_PRICE_GROUPS = [
    {"name": "A", "markup_percentage": 200.0, "description": "Standard markup - 200%"},
    {"name": "B", "markup_percentage": 225.0, "description": "Premium markup - 225%"},
    {"name": "C", "markup_percentage": 250.0, "description": "High-end markup - 250%"},
]


def validate_new_item(name, category) -> tuple:
    """
    Name and category are required for a new catalog item
    (category drives SKU generation). Raises ValueError.
    """
    if not name or not str(name).strip():
        raise ValueError("name is required for new items")
    if not category or not str(category).strip():
        raise ValueError("category is required for new items (needed for SKU generation)")
    return str(name).strip(), str(category).strip()


def validate_markup(markup_percentage) -> float:
    if markup_percentage is None or markup_percentage < 0:
        raise ValueError("markup_percentage must be zero or positive")
    return float(markup_percentage)


def markup_price(purchase_price: float, markup_percentage: float) -> float:
    """Sales price derived from a purchase price, two decimals like the stored prices."""
    return round_half_up(purchase_price * markup_percentage / 100.0, 2)


def sku_prefix(category: str) -> str:
    return CATEGORY_PREFIXES.get(category, category.strip()[:3].upper())


def material_to_dict(item: models.InventoryItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "sku": item.sku,
        "category": item.category,
        "sales_price": item.sales_price,
    }


def to_material_selection(material: dict) -> dict:
    """Snapshot of a catalog item at calculation time."""
    return {
        "id": material["id"],
        "name": material["name"],
        "sku": material["sku"],
        "unit_price": material["sales_price"] or 0.0,
    }


class InventoryAdapter:
    """Catalog lookups used while pricing frame orders."""

    def __init__(self, db: Session):
        self.db = db

    def get_materials_by_categories(self, categories: list) -> list:
        items = (
            self.db.query(models.InventoryItem)
            .filter(models.InventoryItem.category.in_(categories))
            .order_by(models.InventoryItem.name)
            .all()
        )
        return [material_to_dict(i) for i in items]

    def get_material_by_id(self, item_id) -> dict:
        """Returns {id, name, sku, category, sales_price} or None."""
        if item_id in (None, ""):
            return None
        try:
            item_id = int(item_id)
        except (ValueError, TypeError):
            logger.warning("Ignoring non-numeric inventory id %r", item_id)
            return None
        item = self.db.query(models.InventoryItem).filter(models.InventoryItem.id == item_id).first()
        return material_to_dict(item) if item else None

    def get_frames(self) -> list:
        return self.get_materials_by_categories(FRAME_CATEGORIES)

    def get_glass(self) -> list:
        return self.get_materials_by_categories(GLASS_CATEGORIES)

    def get_backings(self) -> list:
        return self.get_materials_by_categories(BACKING_CATEGORIES)

    def get_passepartouts(self) -> list:
        return self.get_materials_by_categories(PASSEPARTOUT_CATEGORIES)

    def get_labor(self) -> list:
        return self.get_materials_by_categories(LABOR_CATEGORIES)

    def lock_material(self, item_id) -> dict:
        """MaterialSelection for an inventory id, or None when it does not exist."""
        material = self.get_material_by_id(item_id)
        return to_material_selection(material) if material else None

    def resolve_material_prices(self, payload: dict) -> dict:
        """
        Turn ``{slot}_item_id`` references into locked prices.

        Returns a copy of ``payload`` with the strategy price fields filled
        in and a ``selections`` dict of MaterialSelection snapshots.
        """
        fields = dict(payload)
        selections = {}
        for slot, price_field in SLOT_PRICE_FIELDS.items():
            selection = self.lock_material(payload.get(f"{slot}_item_id"))
            if selection:
                selections[slot] = selection
                fields[price_field] = selection["unit_price"]
            else:
                fields[price_field] = None
        fields["selections"] = selections
        return fields

    def next_sku(self, category: str) -> str:
        prefix = sku_prefix(category)
        count = (
            self.db.query(models.InventoryItem)
            .filter(models.InventoryItem.sku.like(f"{prefix}-%"))
            .count()
        )
        return f"{prefix}-{str(count + 1).zfill(4)}"

    def get_price_group(self, name) -> models.PriceGroup:
        if not name:
            return None
        return self.db.query(models.PriceGroup).filter(models.PriceGroup.name == name).first()

    def require_price_group(self, name) -> models.PriceGroup:
        group = self.get_price_group(name)
        if not group:
            raise ValueError(f"Unknown price group: {name}")
        return group

    def create_item(self, name, category, **extra) -> models.InventoryItem:
        """
        Validate, assign a SKU and add a catalog item. Caller commits.

        An item in a price group with a purchase price but no sales price
        gets its sales price from the group's markup.
        """
        name, category = validate_new_item(name, category)
        if "price_group" in extra:
            extra["price_group"] = extra["price_group"] or None
        if extra.get("price_group"):
            group = self.require_price_group(extra["price_group"])
            if extra.get("purchase_price") and not extra.get("sales_price"):
                extra["sales_price"] = markup_price(extra["purchase_price"], group.markup_percentage)
        item = models.InventoryItem(name=name, category=category, sku=self.next_sku(category), **extra)
        self.db.add(item)
        self.db.flush()
        logger.info("Created inventory item %s (%s)", item.sku, item.name)
        return item

    def update_item(self, item: models.InventoryItem, changes: dict) -> models.InventoryItem:
        """
        Apply field changes. The sales price is re-derived from the group
        markup when the purchase price or the group changed, or when the
        item has no sales price. Caller commits.
        """
        changes = dict(changes)
        if "price_group" in changes:
            changes["price_group"] = changes["price_group"] or None
        old_purchase, old_group = item.purchase_price, item.price_group
        if changes.get("price_group"):
            self.require_price_group(changes["price_group"])
        for field, value in changes.items():
            setattr(item, field, value)

        group = self.get_price_group(item.price_group)
        if group and item.purchase_price:
            if (item.purchase_price != old_purchase or item.price_group != old_group
                    or not item.sales_price):
                item.sales_price = markup_price(item.purchase_price, group.markup_percentage)
        self.db.flush()
        return item

    def reprice_group(self, group: models.PriceGroup) -> int:
        """Recalculate the sales price of every item in the group that has a purchase price."""
        items = (
            self.db.query(models.InventoryItem)
            .filter(models.InventoryItem.price_group == group.name,
                    models.InventoryItem.purchase_price.isnot(None))
            .all()
        )
        for item in items:
            item.sales_price = markup_price(item.purchase_price, group.markup_percentage)
        self.db.flush()
        logger.info("Repriced %d items in price group %s", len(items), group.name)
        return len(items)

    def rename_group_items(self, old_name: str, new_name) -> int:
        """Move items to a renamed group, or out of a deleted one (``new_name=None``)."""
        return (
            self.db.query(models.InventoryItem)
            .filter(models.InventoryItem.price_group == old_name)
            .update({models.InventoryItem.price_group: new_name})
        )

