"""
Frame-order pricing engine.

Combines dimension resolution, geometry, the selected pricing strategy and
the cost aggregation into one PriceCalculationResult dict.
Pure math, no I/O or global state. VAT rate and currency are always passed
in by the caller so concurrent requests for different tenants never mix.

Input: flat frame-order fields (prices already resolved from inventory)
Output: PriceCalculationResult dict, every numeric field rounded to 2 decimals
"""

import logging

from .calculators.dimensions import parse_mm, resolve_outer_dimensions
from .calculators.geometry import build_geometry
from .calculators.line_items import build_line_items
from .calculators.registry import get_strategy, normalize_method
from .calculators.rounding import LEGACY, normalize_rounding, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_VAT_RATE = 25.0
DEFAULT_CURRENCY = "SEK"


def parse_quantity(value) -> int:
    """Order quantity (antal). Anything below 1 or unparseable counts as 1."""
    try:
        quantity = int(float(str(value).strip()))
    except (ValueError, TypeError):
        quantity = 1
    return max(1, quantity)


class OrderCostAggregator:
    """
    Combines per-material lines into the order totals.

    Quantity scales consumption and cost, never the per-unit dimensions.
    One unit is priced and rounded first, then every scaled field is
    multiplied by the quantity, so cost(n) is always n × cost(1).
    """

    # slot -> (consumption field, cost field)
    SLOT_FIELDS = {
        "frame": ("frame_length_meters", "frame_cost"),
        "glass": ("glass_area_sqm", "glass_cost"),
        "backing": ("backing_area_sqm", "backing_cost"),
        "passepartout": ("passepartout_area_sqm", "passepartout_cost"),
        "passepartout2": ("passepartout2_area_sqm", "passepartout2_cost"),
        "labor": (None, "labor_cost"),
    }

    # Per-unit fields, never multiplied by quantity
    UNSCALED_FIELDS = ("outer_width_mm", "outer_height_mm", "perimeter_mm", "outer_area_sqm")

    # Totals scaled together with the slot fields
    SCALED_TOTALS = ("total_excl_vat", "total_incl_vat")

    def scaled_fields(self) -> list:
        fields = []
        for consumption_field, cost_field in self.SLOT_FIELDS.values():
            if consumption_field:
                fields.append(consumption_field)
            fields.append(cost_field)
        return fields + list(self.SCALED_TOTALS)

    def scale_result(self, unit_result: dict, quantity: int) -> dict:
        """
        Multiply a rounded one-unit result by the order quantity.

        Works on already-rounded values: each scaled field is exactly
        ``quantity`` times its one-unit value.
        """
        if quantity == 1:
            return dict(unit_result)
        scaled = dict(unit_result)
        for field in self.scaled_fields():
            if field in unit_result:
                scaled[field] = round_half_up(unit_result[field] * quantity, 2)
        scaled["line_items"] = [
            {**line, "quantity": round_half_up(line["quantity"] * quantity, 2),
             "total_cost": round_half_up(line["total_cost"] * quantity, 2)}
            for line in unit_result.get("line_items", [])
        ]
        return scaled

    def slot_totals(self, lines: list) -> dict:
        """Fill the fixed material fields from the lines."""
        totals = {}
        for consumption_field, cost_field in self.SLOT_FIELDS.values():
            if consumption_field:
                totals[consumption_field] = 0.0
            totals[cost_field] = 0.0

        for line in lines:
            consumption_field, cost_field = self.SLOT_FIELDS[line["slot"]]
            if consumption_field:
                totals[consumption_field] += line["quantity"]
            totals[cost_field] += line["total_cost"]
        return totals

    def subtotal(self, lines: list) -> float:
        """Sum of all line costs, excluding VAT."""
        return sum(line["total_cost"] for line in lines)

    def apply_vat(self, amount: float, vat_rate: float) -> float:
        return amount * (1 + vat_rate / 100.0)

    def round_line(self, line: dict) -> dict:
        return {
            **line,
            "quantity": round_half_up(line["quantity"], 2),
            "unit_price": round_half_up(line["unit_price"], 2),
            "total_cost": round_half_up(line["total_cost"], 2),
        }

    def round_result(self, result: dict) -> dict:
        """Round every float in the result to 2 decimals. Quantity stays an int."""
        rounded = {}
        for key, value in result.items():
            if key == "line_items":
                rounded[key] = [self.round_line(line) for line in value]
            elif isinstance(value, float):
                rounded[key] = round_half_up(value, 2)
            else:
                rounded[key] = value
        return rounded

    def summarize_customer_order(self, frame_order_results: list) -> dict:
        """Customer order totals = sum of its frame-order totals."""
        total_excl = sum(r.get("total_excl_vat") or 0 for r in frame_order_results)
        total_incl = sum(r.get("total_incl_vat") or 0 for r in frame_order_results)
        return {
            "frame_order_count": len(frame_order_results),
            "total_excl_vat": round_half_up(total_excl, 2),
            "total_incl_vat": round_half_up(total_incl, 2),
        }


class PricingEngine:
    """
    Prices one frame order, either with fixed material slots
    (simple/standard strategies) or as an itemized line-item list.
    """

    def __init__(self):
        self.aggregator = OrderCostAggregator()

    def calculate_frame_order_price(self, fields: dict, vat_rate: float = DEFAULT_VAT_RATE,
                                    currency: str = DEFAULT_CURRENCY, rounding: str = LEGACY,
                                    legacy_truthiness: bool = True) -> dict:
        """
        Full price breakdown for a fixed-slot frame order.

        Args:
            fields: {
                "quantity": int-like,
                "calculation_method": "simple" | "standard",
                "width_mm"/"height_mm" or "motif_width_mm"/"motif_height_mm",
                "pp_left_mm" ... "pp_bottom_mm", "pp2_left_mm" ... "pp2_bottom_mm",
                "passepartout_width_mm", "frame_profile_width_mm",
                "simple_price_per_meter", "frame_price_per_meter",
                "glass_price_per_sqm", "backing_price_per_sqm",
                "passepartout_price_per_sqm", "passepartout2_price_per_sqm",
                "labor_price_per_meter",
                "selections": {slot: MaterialSelection}  # optional
            }
            vat_rate: percent, e.g. 25
            currency: ISO code, carried through to the result
            rounding: "legacy" | "once"
            legacy_truthiness: treat an explicit 0 mm dimension as unset

        Returns:
            PriceCalculationResult dict
        """
        rounding = normalize_rounding(rounding)
        vat_rate = parse_mm(vat_rate, DEFAULT_VAT_RATE)
        quantity = parse_quantity(fields.get("quantity"))
        method = normalize_method(fields.get("calculation_method"))

        dimension = resolve_outer_dimensions(fields, legacy_truthiness)
        geometry = build_geometry(dimension, rounding)

        strategy = get_strategy(method)
        lines = [
            self.aggregator.round_line(line)
            for line in strategy.price_materials(geometry, fields, rounding)
        ]

        outer_area = geometry["outer_area_sqm"]
        if rounding == LEGACY:
            # Stored orders kept four decimals of the outer area
            outer_area = round_half_up(outer_area, 4)

        # Priced for one unit here, scaled below
        total_excl = self.aggregator.subtotal(lines)
        result = {
            "quantity": quantity,
            "calculation_method": method,
            "outer_width_mm": float(geometry["outer_width_mm"]),
            "outer_height_mm": float(geometry["outer_height_mm"]),
            "perimeter_mm": float(geometry["perimeter_mm"]),
            "outer_area_sqm": outer_area,
            **self.aggregator.slot_totals(lines),
            "total_excl_vat": total_excl,
            "total_incl_vat": self.aggregator.apply_vat(total_excl, vat_rate),
            "vat_rate": float(vat_rate),
            "currency": currency,
            "rounding": rounding,
            "line_items": lines,
        }

        result = self.aggregator.scale_result(self.aggregator.round_result(result), quantity)
        logger.debug(
            "Priced %s frame order: %sx%s mm x%d = %.2f excl. VAT",
            method, geometry["outer_width_mm"], geometry["outer_height_mm"],
            quantity, result["total_excl_vat"],
        )
        return result

    def price_itemized_order(self, fields: dict, items: list, vat_rate: float = DEFAULT_VAT_RATE,
                             currency: str = DEFAULT_CURRENCY, rounding: str = LEGACY,
                             legacy_truthiness: bool = True) -> dict:
        """
        Price an itemized frame order.

        Frame/glass/passepartout/backing quantities already include the order
        quantity (see line_items.QUANTITY_RULES); labor/custom keep the
        supplied quantity. Raises ValueError when ``items`` is empty.
        """
        rounding = normalize_rounding(rounding)
        vat_rate = parse_mm(vat_rate, DEFAULT_VAT_RATE)
        quantity = parse_quantity(fields.get("quantity"))

        dimension = resolve_outer_dimensions(fields, legacy_truthiness)
        geometry = build_geometry(dimension, rounding)
        line_items = build_line_items(items, geometry, quantity, rounding)

        total_excl = self.aggregator.subtotal(line_items)
        result = {
            "quantity": quantity,
            "calculation_method": "itemized",
            "outer_width_mm": float(geometry["outer_width_mm"]),
            "outer_height_mm": float(geometry["outer_height_mm"]),
            "perimeter_mm": float(geometry["perimeter_mm"]),
            "outer_area_sqm": geometry["outer_area_sqm"],
            "total_excl_vat": total_excl,
            "total_incl_vat": self.aggregator.apply_vat(total_excl, vat_rate),
            "vat_rate": float(vat_rate),
            "currency": currency,
            "rounding": rounding,
            "line_items": line_items,
        }
        return self.aggregator.round_result(result)
