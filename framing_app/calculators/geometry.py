"""
Geometry for a resolved frame order. All inputs in mm.

perimeter in mm, areas in m², frame lengths in m.
"""

from .dimensions import BorderEdges, Dimension
from .rounding import LEGACY, round_half_up, round_intermediate


def perimeter_mm(width_mm: float, height_mm: float) -> float:
    return 2 * (width_mm + height_mm)


def outer_area_sqm(width_mm: float, height_mm: float) -> float:
    return (width_mm / 1000) * (height_mm / 1000)


def passepartout_area_sqm(outer_width_mm: float, outer_height_mm: float,
                          edges: BorderEdges) -> float:
    """
    Mat board consumed by one passepartout layer: outer area minus the opening.

    The opening is clamped per axis, so edges wider than the outer size give
    an opening of 0 on that axis and the area never goes negative.
    """
    inner_width = max(0.0, outer_width_mm - edges.left - edges.right)
    inner_height = max(0.0, outer_height_mm - edges.top - edges.bottom)
    area = outer_area_sqm(outer_width_mm, outer_height_mm) - outer_area_sqm(inner_width, inner_height)
    return max(0.0, area)


def standard_frame_length_meters(width_mm: float, height_mm: float,
                                 frame_profile_width_mm: float = 0.0,
                                 round_result: bool = True) -> float:
    """
    Moulding consumed with 45° mitered corners.

    Each leg is cut to its side length plus the profile width at both ends.
    """
    horizontal = 2 * (width_mm + 2 * frame_profile_width_mm)
    vertical = 2 * (height_mm + 2 * frame_profile_width_mm)
    length_m = (horizontal + vertical) / 1000
    return round_half_up(length_m, 2) if round_result else length_m


def build_geometry(dimension: Dimension, rounding: str = LEGACY) -> dict:
    """Bundle everything the strategies need from one resolved dimension."""
    w = dimension.outer_width_mm
    h = dimension.outer_height_mm
    perimeter = round_intermediate(perimeter_mm(w, h), 2, rounding)
    return {
        "outer_width_mm": w,
        "outer_height_mm": h,
        "perimeter_mm": perimeter,
        "perimeter_meters": perimeter / 1000,
        "outer_area_sqm": outer_area_sqm(w, h),
    }
