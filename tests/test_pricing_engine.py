"""
Pricing engine tests — strategies, cost aggregation, VAT, rounding modes.

Tests:
1-4.   Strategy registry
5-11.  Simple + standard strategies (scenarios B and C)
12-18. Quantity scaling (exact at non-round sizes), VAT, currency, purity
19-21. Legacy vs once rounding
22-25. Itemized orders + customer order summary

No I/O, the engine is pure math.
"""

import copy

import pytest

from framing_app.calculators.registry import get_strategy, has_strategy, list_strategies, normalize_method
from framing_app.calculators.rounding import round_half_up
from framing_app.calculators.simple import SimplePricingStrategy
from framing_app.calculators.standard import StandardPricingStrategy
from framing_app.pricing_engine import OrderCostAggregator, PricingEngine, parse_quantity

COST_FIELDS = [
    "frame_cost", "glass_cost", "backing_cost",
    "passepartout_cost", "passepartout2_cost", "labor_cost",
]


def _fields(**overrides):
    fields = {"width_mm": 400, "height_mm": 500, "quantity": 1}
    fields.update(overrides)
    return fields


@pytest.fixture
def engine():
    return PricingEngine()


# ============================================================
# Registry
# ============================================================

def test_registry_lists_both_strategies():
    assert list_strategies() == ["simple", "standard"]
    assert has_strategy("standard")
    assert not has_strategy("itemized")


def test_get_strategy_returns_instances():
    assert isinstance(get_strategy("simple"), SimplePricingStrategy)
    assert isinstance(get_strategy("standard"), StandardPricingStrategy)


def test_get_strategy_unknown_raises():
    with pytest.raises(ValueError):
        get_strategy("deluxe")


def test_normalize_method_falls_back_to_simple():
    assert normalize_method("Standard ") == "standard"
    assert normalize_method("deluxe") == "simple"
    assert normalize_method(None) == "simple"


# ============================================================
# Strategies
# ============================================================

def test_simple_scenario_b(engine):
    """400×500 at 250/m: 1.8 m × 250 = 450, 562.50 incl. 25 % VAT."""
    result = engine.calculate_frame_order_price(_fields(simple_price_per_meter=250))
    assert result["calculation_method"] == "simple"
    assert result["perimeter_mm"] == 1800
    assert result["outer_area_sqm"] == 0.2
    assert result["frame_length_meters"] == 1.8
    assert result["frame_cost"] == 450.0
    assert result["labor_cost"] == 0.0
    assert result["total_excl_vat"] == 450.0
    assert result["total_incl_vat"] == 562.5
    assert result["currency"] == "SEK"


def test_simple_ignores_material_prices(engine):
    result = engine.calculate_frame_order_price(_fields(
        simple_price_per_meter=100, glass_price_per_sqm=500, labor_price_per_meter=80,
    ))
    assert result["glass_cost"] == 0.0
    assert result["labor_cost"] == 0.0
    assert result["total_excl_vat"] == 180.0


def test_standard_scenario_c(engine):
    """Quantity 2 doubles consumption and cost, never the dimensions."""
    result = engine.calculate_frame_order_price(_fields(
        calculation_method="standard", quantity=2,
        frame_price_per_meter=100, glass_price_per_sqm=200,
    ))
    assert result["outer_width_mm"] == 400.0
    assert result["outer_area_sqm"] == 0.2
    assert result["frame_length_meters"] == 3.6
    assert result["frame_cost"] == 360.0
    assert result["glass_area_sqm"] == 0.4
    assert result["glass_cost"] == 80.0
    assert result["total_excl_vat"] == 440.0
    assert result["total_incl_vat"] == 550.0


def test_standard_reports_frame_length_without_frame_price(engine):
    result = engine.calculate_frame_order_price(_fields(
        calculation_method="standard", labor_price_per_meter=150,
    ))
    assert result["frame_length_meters"] == 1.8
    assert result["frame_cost"] == 0.0
    assert result["labor_cost"] == 270.0


def test_standard_passepartout_uniform_fallback(engine):
    result = engine.calculate_frame_order_price(_fields(
        calculation_method="standard",
        passepartout_price_per_sqm=500, passepartout_width_mm=50,
    ))
    assert result["passepartout_area_sqm"] == 0.08
    assert result["passepartout_cost"] == 40.0
    pp_line = [l for l in result["line_items"] if l["slot"] == "passepartout"][0]
    assert pp_line["metadata"]["edges"] == {"left": 50.0, "right": 50.0, "top": 50.0, "bottom": 50.0}


def test_standard_second_passepartout_needs_edges(engine):
    without_edges = engine.calculate_frame_order_price(_fields(
        calculation_method="standard", passepartout2_price_per_sqm=600,
    ))
    assert without_edges["passepartout2_cost"] == 0.0

    with_edges = engine.calculate_frame_order_price(_fields(
        calculation_method="standard", passepartout2_price_per_sqm=600,
        pp2_left_mm=20, pp2_right_mm=20, pp2_top_mm=20, pp2_bottom_mm=20,
    ))
    # 0.2 - 0.36 × 0.46 = 0.0344 m²
    assert with_edges["passepartout2_area_sqm"] == 0.03
    assert with_edges["passepartout2_cost"] == 20.64


def test_zero_price_means_not_selected(engine):
    result = engine.calculate_frame_order_price(_fields(
        calculation_method="standard", glass_price_per_sqm=0, backing_price_per_sqm="",
    ))
    assert result["glass_area_sqm"] == 0.0
    assert result["backing_area_sqm"] == 0.0
    assert result["total_excl_vat"] == 0.0


# ============================================================
# Aggregation
# ============================================================

def test_parse_quantity():
    assert parse_quantity("3") == 3
    assert parse_quantity("2.7") == 2
    assert parse_quantity(0) == 1
    assert parse_quantity("-4") == 1
    assert parse_quantity("abc") == 1
    assert parse_quantity(None) == 1


def test_total_is_sum_of_costs(engine):
    result = engine.calculate_frame_order_price(_fields(
        calculation_method="standard", quantity=3,
        width_mm=611, height_mm=457, frame_profile_width_mm=18,
        frame_price_per_meter=289, glass_price_per_sqm=449, backing_price_per_sqm=129,
        passepartout_price_per_sqm=529, pp_left_mm=61, pp_right_mm=61, pp_top_mm=70, pp_bottom_mm=80,
        labor_price_per_meter=99,
    ))
    assert result["total_excl_vat"] == pytest.approx(sum(result[f] for f in COST_FIELDS), abs=0.01)
    # VAT is rounded per unit before scaling
    assert result["total_incl_vat"] == pytest.approx(result["total_excl_vat"] * 1.25, abs=0.02)


def test_linear_in_quantity(engine):
    base = _fields(calculation_method="standard", frame_price_per_meter=120, glass_price_per_sqm=300)
    one = engine.calculate_frame_order_price(base)
    five = engine.calculate_frame_order_price({**base, "quantity": 5})
    assert five["total_excl_vat"] == pytest.approx(one["total_excl_vat"] * 5, abs=0.01)
    assert five["perimeter_mm"] == one["perimeter_mm"]


SCALED_FIELDS = [
    "frame_length_meters", "glass_area_sqm", "backing_area_sqm",
    "passepartout_area_sqm", "passepartout2_area_sqm",
    *COST_FIELDS, "total_excl_vat", "total_incl_vat",
]


@pytest.mark.parametrize("rounding", ["legacy", "once"])
def test_quantity_doubles_every_field_exactly(engine, rounding):
    """355×355 gives a glass area of 0.126025 m², which must not drift when doubled."""
    base = _fields(calculation_method="standard", width_mm=355, height_mm=355,
                   frame_price_per_meter=100, glass_price_per_sqm=200)
    one = engine.calculate_frame_order_price(base, rounding=rounding)
    two = engine.calculate_frame_order_price({**base, "quantity": 2}, rounding=rounding)
    assert one["glass_area_sqm"] == 0.13
    assert two["glass_area_sqm"] == 0.26
    for field in SCALED_FIELDS:
        assert two[field] == 2 * one[field], field
    assert two["outer_area_sqm"] == one["outer_area_sqm"]
    for line_one, line_two in zip(one["line_items"], two["line_items"]):
        assert line_two["quantity"] == 2 * line_one["quantity"]
        assert line_two["total_cost"] == 2 * line_one["total_cost"]
        assert line_two["unit_price"] == line_one["unit_price"]


def test_quantity_scales_rounded_unit_values(engine):
    base = _fields(calculation_method="standard", width_mm=355, height_mm=355,
                   frame_price_per_meter=100, glass_price_per_sqm=200, labor_price_per_meter=37)
    one = engine.calculate_frame_order_price(base)
    seven = engine.calculate_frame_order_price({**base, "quantity": 7})
    for field in SCALED_FIELDS:
        assert seven[field] == round_half_up(7 * one[field], 2), field
    assert seven["total_excl_vat"] == pytest.approx(sum(seven[f] for f in COST_FIELDS), abs=1e-9)


def test_vat_and_currency_are_parameters(engine):
    result = engine.calculate_frame_order_price(
        _fields(simple_price_per_meter=250), vat_rate=12, currency="EUR",
    )
    assert result["vat_rate"] == 12.0
    assert result["currency"] == "EUR"
    assert result["total_incl_vat"] == 504.0


def test_engine_does_not_mutate_input(engine):
    fields = _fields(calculation_method="standard", frame_price_per_meter=100,
                     selections={"frame": {"id": 1, "name": "Ek", "sku": "RAM-0001", "unit_price": 100}})
    before = copy.deepcopy(fields)
    first = engine.calculate_frame_order_price(fields)
    second = engine.calculate_frame_order_price(fields)
    assert fields == before
    assert first == second
    assert first["line_items"][0]["sku"] == "RAM-0001"


# ============================================================
# Rounding modes
# ============================================================

def test_legacy_rounds_frame_length_before_labor(engine):
    fields = _fields(calculation_method="standard", width_mm=333, height_mm=333, labor_price_per_meter=100)
    legacy = engine.calculate_frame_order_price(fields, rounding="legacy")
    once = engine.calculate_frame_order_price(fields, rounding="once")
    assert legacy["labor_cost"] == 133.0
    assert once["labor_cost"] == 133.2
    assert legacy["rounding"] == "legacy"
    assert once["rounding"] == "once"


def test_unknown_rounding_raises(engine):
    with pytest.raises(ValueError):
        engine.calculate_frame_order_price(_fields(), rounding="bankers")


def test_legacy_rounds_itemized_quantities(engine):
    items = [{"type": "frame", "unit_price": 100}]
    fields = _fields(width_mm=333, height_mm=333)
    assert engine.price_itemized_order(fields, items)["total_excl_vat"] == 133.0
    assert engine.price_itemized_order(fields, items, rounding="once")["total_excl_vat"] == 133.2


# ============================================================
# Itemized orders
# ============================================================

def test_itemized_order(engine):
    items = [
        {"type": "frame", "name": "Ramlist Ek", "unit_price": 100},
        {"type": "glass", "unit_price": 200},
        {"type": "labor", "quantity": 1.5, "unit_price": 400},
        {"type": "custom", "name": "Upphängning", "quantity": 2, "unit_price": 25},
    ]
    result = engine.price_itemized_order(_fields(quantity=2), items)
    assert result["calculation_method"] == "itemized"
    lines = result["line_items"]
    assert [l["quantity"] for l in lines] == [3.6, 0.4, 1.5, 2.0]
    assert [l["unit"] for l in lines] == ["meter", "sqm", "hour", "piece"]
    assert [l["total_cost"] for l in lines] == [360.0, 80.0, 600.0, 50.0]
    assert result["total_excl_vat"] == 1090.0
    assert result["total_incl_vat"] == 1362.5
    assert "frame_cost" not in result


def test_itemized_order_without_items_is_rejected(engine):
    with pytest.raises(ValueError):
        engine.price_itemized_order(_fields(), [])


def test_itemized_unknown_type_is_rejected(engine):
    with pytest.raises(ValueError):
        engine.price_itemized_order(_fields(), [{"type": "hammer", "unit_price": 10}])


def test_summarize_customer_order():
    summary = OrderCostAggregator().summarize_customer_order([
        {"total_excl_vat": 100.0, "total_incl_vat": 125.0},
        {"total_excl_vat": 50.1, "total_incl_vat": 62.63},
        {"total_excl_vat": None, "total_incl_vat": None},
    ])
    assert summary == {"frame_order_count": 3, "total_excl_vat": 150.1, "total_incl_vat": 187.63}
