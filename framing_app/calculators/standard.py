"""
Standard pricing — itemized material consumption.

Frame: mitered length × price/m
Glass, backing: outer area × price/m²
Passepartout (1 or 2 layers): annulus area × price/m², each layer on its own
Labor: frame length × price/m (uses the frame length even without a frame)

A material without a price contributes no cost and no consumption.
"""

from .base import BasePricingStrategy
from .dimensions import BorderEdges, edges_from_fields
from .geometry import passepartout_area_sqm, standard_frame_length_meters
from .rounding import LEGACY, round_intermediate


class StandardPricingStrategy(BasePricingStrategy):

    method = "standard"

    def price_materials(self, geometry: dict, fields: dict, rounding: str = LEGACY) -> list:
        w = geometry["outer_width_mm"]
        h = geometry["outer_height_mm"]
        area = geometry["outer_area_sqm"]
        lines = []

        # 1. Frame: length is always reported, labor depends on it
        profile_mm = self.parse_number(fields.get("frame_profile_width_mm"))
        length_raw = standard_frame_length_meters(w, h, profile_mm, round_result=False)
        frame_length = round_intermediate(length_raw, 2, rounding)

        frame_price = self.parse_price(fields.get("frame_price_per_meter"))
        frame_cost = 0.0
        if frame_price:
            frame_cost = round_intermediate(length_raw * frame_price, 2, rounding)
        lines.append(self.make_material_line(
            fields, "frame", "frame",
            quantity=frame_length,
            unit="meter",
            unit_price=frame_price or 0.0,
            total_cost=frame_cost,
            metadata={"frame_profile_width_mm": profile_mm},
        ))

        # 2. Glass + backing, same area, different slot
        for slot, price_field in (("glass", "glass_price_per_sqm"),
                                  ("backing", "backing_price_per_sqm")):
            price = self.parse_price(fields.get(price_field))
            if price:
                lines.append(self.make_material_line(
                    fields, slot, slot, quantity=area, unit="sqm", unit_price=price,
                ))

        # 3. Passepartout layer 1: edges, or a uniform border as fallback
        pp_price = self.parse_price(fields.get("passepartout_price_per_sqm"))
        if pp_price:
            edges = edges_from_fields(fields, layer=1)
            if not edges.any_set():
                uniform_mm = self.parse_number(fields.get("passepartout_width_mm"))
                edges = BorderEdges.uniform(uniform_mm)
            pp_area = passepartout_area_sqm(w, h, edges)
            lines.append(self.make_material_line(
                fields, "passepartout", "passepartout",
                quantity=pp_area, unit="sqm", unit_price=pp_price,
                metadata={"edges": edges.as_dict(), "layer": 1},
            ))

        # 4. Passepartout layer 2, only when at least one edge is set
        pp2_price = self.parse_price(fields.get("passepartout2_price_per_sqm"))
        pp2_edges = edges_from_fields(fields, layer=2)
        if pp2_price and pp2_edges.any_set():
            pp2_area = round_intermediate(passepartout_area_sqm(w, h, pp2_edges), 4, rounding)
            lines.append(self.make_material_line(
                fields, "passepartout2", "passepartout",
                quantity=pp2_area, unit="sqm", unit_price=pp2_price,
                metadata={"edges": pp2_edges.as_dict(), "layer": 2},
            ))

        # 5. Labor, priced per meter of frame
        labor_price = self.parse_price(fields.get("labor_price_per_meter"))
        if labor_price:
            lines.append(self.make_material_line(
                fields, "labor", "labor",
                quantity=frame_length, unit="meter", unit_price=labor_price,
            ))

        return lines
