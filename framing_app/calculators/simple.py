"""
Simple pricing — perimeter × manual price per meter.

Nothing else is priced. Labor is deliberately zero under this method.
"""

from .base import BasePricingStrategy
from .rounding import LEGACY


class SimplePricingStrategy(BasePricingStrategy):

    method = "simple"

    def price_materials(self, geometry: dict, fields: dict, rounding: str = LEGACY) -> list:
        price_per_meter = self.parse_number(fields.get("simple_price_per_meter"))
        length_m = geometry["perimeter_mm"] / 1000
        return [
            self.make_material_line(
                fields, "frame", "frame",
                quantity=length_m,
                unit="meter",
                unit_price=price_per_meter,
                metadata={"method": self.method},
            )
        ]
