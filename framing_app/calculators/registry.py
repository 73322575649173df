"""
Strategy registry — maps calculation_method strings to strategy classes.
"""

from .base import BasePricingStrategy
from .simple import SimplePricingStrategy
from .standard import StandardPricingStrategy

STRATEGY_REGISTRY: dict[str, type] = {
    "simple": SimplePricingStrategy,
    "standard": StandardPricingStrategy,
}

DEFAULT_METHOD = "simple"


def normalize_method(value) -> str:
    """Case-insensitive method name. Unknown or empty falls back to simple."""
    method = str(value or "").strip().lower()
    return method if method in STRATEGY_REGISTRY else DEFAULT_METHOD


def get_strategy(method: str) -> BasePricingStrategy:
    """Returns an instance of the strategy for a method, or raises ValueError."""
    if method not in STRATEGY_REGISTRY:
        raise ValueError(
            f"No pricing strategy registered for method: {method}. "
            f"Available: {list(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[method]()


def has_strategy(method: str) -> bool:
    """Check if a strategy exists for a method."""
    return method in STRATEGY_REGISTRY


def list_strategies() -> list[str]:
    """List all registered calculation methods."""
    return list(STRATEGY_REGISTRY.keys())
