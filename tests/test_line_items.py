"""
Itemized order model — quantity rules, units, templates.

Tests:
1-3. Item type parsing + quantity rule table
4-6. build_line_item / build_line_items, metadata coercion
7-8. apply_template pre-population
"""

import pytest

from framing_app.calculators.dimensions import Dimension
from framing_app.calculators.geometry import build_geometry
from framing_app.calculators.line_items import (
    DEFAULT_UNITS, LineItemType, apply_template, build_line_item, build_line_items,
    derive_quantity, is_auto_quantity, item_metadata, parse_item_type,
)

GEOMETRY = build_geometry(Dimension(400.0, 500.0))


def test_parse_item_type():
    assert parse_item_type("Frame") == LineItemType.FRAME
    assert parse_item_type(" labor ") == LineItemType.LABOR
    with pytest.raises(ValueError):
        parse_item_type("screws")
    with pytest.raises(ValueError):
        parse_item_type(None)


def test_auto_quantity_types():
    auto = [t for t in LineItemType if is_auto_quantity(t)]
    assert auto == [LineItemType.FRAME, LineItemType.GLASS, LineItemType.PASSEPARTOUT, LineItemType.BACKING]
    assert DEFAULT_UNITS[LineItemType.LABOR] == "hour"


def test_derive_quantity_rules():
    assert derive_quantity(LineItemType.FRAME, GEOMETRY, 3) == pytest.approx(5.4)
    assert derive_quantity(LineItemType.BACKING, GEOMETRY, 2) == pytest.approx(0.4)
    # supplied quantity is ignored for auto types, used as-is otherwise
    assert derive_quantity(LineItemType.GLASS, GEOMETRY, 1, supplied_quantity=99) == pytest.approx(0.2)
    assert derive_quantity(LineItemType.LABOR, GEOMETRY, 3, supplied_quantity="1.25") == 1.25
    assert derive_quantity(LineItemType.CUSTOM, GEOMETRY, 3) == 0.0


def test_build_line_item_keeps_catalog_identity():
    item = {"type": "passepartout", "item_id": 7, "name": "Passepartout Vit", "sku": "PAS-0001",
            "unit_price": 500, "metadata": {"color": "white"}}
    line = build_line_item(item, GEOMETRY, 1)
    assert line["item_id"] == 7
    assert line["sku"] == "PAS-0001"
    assert line["unit"] == "sqm"
    assert line["quantity"] == 0.2
    assert line["total_cost"] == pytest.approx(100.0)
    assert line["metadata"] == {"color": "white"}
    assert "quantity" not in item


def test_build_line_items_requires_items():
    with pytest.raises(ValueError, match="at least one line item"):
        build_line_items([], GEOMETRY, 1)


def test_non_mapping_metadata_is_dropped():
    assert item_metadata({"metadata": "fragile"}) == {}
    assert item_metadata({"metadata": ["a"]}) == {}
    assert item_metadata({}) == {}
    line = build_line_item({"type": "glass", "unit_price": 100, "metadata": 42}, GEOMETRY, 1)
    assert line["metadata"] == {}
    prefill = apply_template({"id": 2, "items": [{"type": "custom", "quantity": 1, "metadata": "x"}]})
    assert prefill["items"][0]["metadata"] == {}


def test_apply_template_drops_auto_quantities():
    template = {
        "id": 4,
        "name": "Standardram",
        "items": [
            {"type": "frame", "item_id": 1, "quantity": 12.0, "unit_price": 320},
            {"type": "labor", "quantity": 0.5, "unit_price": 600},
        ],
        "default_edges": {"left": 40, "right": 40, "top": 40, "bottom": 60},
    }
    prefill = apply_template(template)
    assert prefill["template_id"] == 4
    assert "quantity" not in prefill["items"][0]
    assert prefill["items"][0]["unit"] == "meter"
    assert prefill["items"][1]["quantity"] == 0.5
    assert prefill["default_edges"]["bottom"] == 60


def test_apply_template_leaves_template_untouched():
    template = {"id": 1, "items": [{"type": "custom", "quantity": 1, "unit_price": 10}], "default_edges": None}
    prefill = apply_template(template)
    prefill["items"][0]["quantity"] = 5
    assert template["items"][0]["quantity"] == 1
    assert prefill["default_edges"] == {}
