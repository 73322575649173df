"""
Abstract base class for the frame-order pricing strategies.

Input: flat frame-order fields (raw form/JSON values, unit prices already
       resolved from the inventory catalog) + geometry from build_geometry().
Output: list of material line dicts for ONE framed piece. The aggregator
        scales them by the order quantity.
"""

from abc import ABC, abstractmethod

from .dimensions import parse_mm
from .rounding import LEGACY


class BasePricingStrategy(ABC):
    """All pricing strategies inherit from this."""

    method = ""

    @abstractmethod
    def price_materials(self, geometry: dict, fields: dict, rounding: str = LEGACY) -> list:
        """
        Returns a list of material line dicts (see make_material_line).
        Must not mutate ``fields`` or ``geometry``.
        """
        pass

    # --- Helper methods for all strategies ---

    def parse_number(self, value, default: float = 0.0) -> float:
        """Parse a numeric value from user input."""
        return parse_mm(value, default)

    def parse_price(self, value):
        """
        Unit price, or None when the material is not selected.
        A price of 0 counts as "not selected", same as the stored orders.
        """
        price = self.parse_number(value)
        return price if price else None

    def make_material_line(self, fields: dict, slot: str, item_type: str,
                           quantity: float, unit: str, unit_price: float,
                           total_cost: float = None, metadata: dict = None) -> dict:
        """Build a material line matching the FrameOrderLineItem shape."""
        if total_cost is None:
            total_cost = quantity * unit_price
        selection = (fields.get("selections") or {}).get(slot) or {}
        return {
            "type": item_type,
            "slot": slot,
            "item_id": selection.get("id"),
            "name": selection.get("name"),
            "sku": selection.get("sku"),
            "quantity": quantity,
            "unit": unit,
            "unit_price": unit_price,
            "total_cost": total_cost,
            "metadata": metadata or {},
        }
