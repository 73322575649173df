"""
Dimension resolver — one canonical outer width/height per frame order.

A frame order arrives with either the finished outer dimensions, or a
motif (artwork) size plus passepartout edges. Everything downstream only
ever sees the resolved outer pair, in millimetres.

Parsing is lenient: missing or non-numeric values become 0 so a live
price preview always returns something while the user is still typing.
"""

import math
from dataclasses import dataclass

EDGE_SIDES = ("left", "right", "top", "bottom")

# Field prefixes for the two passepartout layers
LAYER_PREFIXES = {1: "pp_", 2: "pp2_"}


@dataclass(frozen=True)
class BorderEdges:
    """Passepartout border widths for one layer, in mm."""

    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    @classmethod
    def uniform(cls, width_mm: float) -> "BorderEdges":
        return cls(width_mm, width_mm, width_mm, width_mm)

    @property
    def horizontal(self) -> float:
        return self.left + self.right

    @property
    def vertical(self) -> float:
        return self.top + self.bottom

    def any_set(self) -> bool:
        return any((self.left, self.right, self.top, self.bottom))

    def as_dict(self) -> dict:
        return {side: getattr(self, side) for side in EDGE_SIDES}


@dataclass(frozen=True)
class Dimension:
    outer_width_mm: float
    outer_height_mm: float


def parse_mm(value, default: float = 0.0) -> float:
    """Parse a numeric form value. None, blanks and junk all give ``default``."""
    if value is None:
        return default
    try:
        number = float(str(value).strip())
    except (ValueError, TypeError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def is_provided(value, legacy_truthiness: bool = True) -> bool:
    """
    Whether a dimension counts as set.

    Legacy behaviour: any falsy number (including an explicit 0) counts as
    "not provided". With ``legacy_truthiness=False`` only a missing or
    unparseable value is unset, so 0 mm is honoured.
    """
    if legacy_truthiness:
        return bool(parse_mm(value))
    if value is None or str(value).strip() == "":
        return False
    return parse_mm(value, default=None) is not None


def edges_from_fields(fields: dict, layer: int = 1) -> BorderEdges:
    """Build the BorderEdges for passepartout layer 1 or 2 from flat fields."""
    prefix = LAYER_PREFIXES[layer]
    return BorderEdges(**{
        side: parse_mm(fields.get(f"{prefix}{side}_mm")) for side in EDGE_SIDES
    })


def resolve_outer_dimensions(fields: dict, legacy_truthiness: bool = True) -> Dimension:
    """
    Outer dimensions for a frame order.

    If both ``width_mm`` and ``height_mm`` are set they win. Otherwise,
    when both motif dimensions are set, the outer size is the motif plus
    the layer-1 passepartout edges. Results are clamped to >= 0.
    """
    width = parse_mm(fields.get("width_mm"))
    height = parse_mm(fields.get("height_mm"))

    outer_given = (
        is_provided(fields.get("width_mm"), legacy_truthiness)
        and is_provided(fields.get("height_mm"), legacy_truthiness)
    )
    motif_given = (
        is_provided(fields.get("motif_width_mm"), legacy_truthiness)
        and is_provided(fields.get("motif_height_mm"), legacy_truthiness)
    )

    if not outer_given and motif_given:
        edges = edges_from_fields(fields, layer=1)
        width = parse_mm(fields.get("motif_width_mm")) + edges.horizontal
        height = parse_mm(fields.get("motif_height_mm")) + edges.vertical

    return Dimension(outer_width_mm=max(0.0, width), outer_height_mm=max(0.0, height))
