"""
Rounding helpers shared by the strategies and the cost aggregator.

Two disciplines are supported:

- ``legacy``: rounds the same intermediate values the historical invoices
  were produced with (standard frame length, frame cost, second passepartout
  area, stored item quantities). Use this to reproduce old totals exactly.
- ``once``: keeps full precision until the final result is rounded.

The two are not numerically interchangeable; pick one per tenant and keep it.
"""

import math

LEGACY = "legacy"
ONCE = "once"
ROUNDING_MODES = (LEGACY, ONCE)


def round_half_up(value: float, places: int = 2) -> float:
    """Round halves away from zero for positives (matches the stored invoice data)."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def normalize_rounding(mode) -> str:
    """Validate a rounding mode name. ``None``/empty means legacy."""
    if mode is None or str(mode).strip() == "":
        return LEGACY
    mode = str(mode).strip().lower()
    if mode not in ROUNDING_MODES:
        raise ValueError(
            f"Unknown rounding mode: {mode}. Available: {list(ROUNDING_MODES)}"
        )
    return mode


def round_intermediate(value: float, places: int, rounding: str) -> float:
    """Round an intermediate value only under the legacy discipline."""
    if rounding == LEGACY:
        return round_half_up(value, places)
    return value
