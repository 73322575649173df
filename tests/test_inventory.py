"""
Inventory adapter — catalog lookups, material locking, item validation, SKUs,
price-group markups.
"""

import pytest

from framing_app import models
from framing_app.inventory import InventoryAdapter, markup_price, sku_prefix, validate_markup, validate_new_item


@pytest.fixture
def adapter(db):
    adapter = InventoryAdapter(db)
    adapter.create_item("Ramlist Ek", "Frame", unit="meter", sales_price=320.0)
    adapter.create_item("Ramlist Valnöt", "Ramlist", unit="meter", sales_price=410.0)
    adapter.create_item("Floatglas", "Glass", unit="sqm", sales_price=450.0)
    adapter.create_item("Inramning", "Arbete", unit="meter", sales_price=150.0)
    db.commit()
    return adapter


def _item_id(db, name):
    return db.query(models.InventoryItem).filter(models.InventoryItem.name == name).first().id


def test_validate_new_item():
    assert validate_new_item(" Museiglas ", "Glass") == ("Museiglas", "Glass")
    with pytest.raises(ValueError, match="name"):
        validate_new_item("", "Glass")
    with pytest.raises(ValueError, match="category"):
        validate_new_item("Museiglas", "  ")


def test_sku_prefixes():
    assert sku_prefix("Frame") == "RAM"
    assert sku_prefix("Glas") == "GLA"
    assert sku_prefix("Verktyg") == "VER"


def test_sku_sequence_per_prefix(adapter, db):
    skus = sorted(i.sku for i in db.query(models.InventoryItem).all())
    assert skus == ["ARB-0001", "GLA-0001", "RAM-0001", "RAM-0002"]


def test_category_lookups(adapter):
    assert [m["name"] for m in adapter.get_frames()] == ["Ramlist Ek", "Ramlist Valnöt"]
    assert [m["name"] for m in adapter.get_glass()] == ["Floatglas"]
    assert [m["name"] for m in adapter.get_labor()] == ["Inramning"]
    assert adapter.get_backings() == []


def test_get_material_by_id(adapter, db):
    material = adapter.get_material_by_id(_item_id(db, "Floatglas"))
    assert material["sku"] == "GLA-0001"
    assert material["sales_price"] == 450.0
    assert adapter.get_material_by_id(9999) is None
    assert adapter.get_material_by_id("abc") is None
    assert adapter.get_material_by_id(None) is None


def test_resolve_material_prices_locks_selection(adapter, db):
    frame_id = _item_id(db, "Ramlist Ek")
    payload = {"width_mm": 400, "frame_item_id": frame_id, "glass_item_id": 9999}
    fields = adapter.resolve_material_prices(payload)

    assert fields["frame_price_per_meter"] == 320.0
    assert fields["glass_price_per_sqm"] is None
    assert fields["selections"] == {
        "frame": {"id": frame_id, "name": "Ramlist Ek", "sku": "RAM-0001", "unit_price": 320.0},
    }
    assert "selections" not in payload


# ============================================================
# Price groups
# ============================================================

@pytest.fixture
def group_b(db):
    group = models.PriceGroup(name="B", markup_percentage=225.0)
    db.add(group)
    db.commit()
    return group


def test_markup_price():
    assert markup_price(100, 200) == 200.0
    assert markup_price(33.33, 225) == 74.99
    assert validate_markup(0) == 0.0
    with pytest.raises(ValueError):
        validate_markup(-5)


def test_create_item_derives_sales_price(db, group_b):
    adapter = InventoryAdapter(db)
    derived = adapter.create_item("Ramlist Björk", "Frame", purchase_price=80.0, price_group="B")
    typed = adapter.create_item("Ramlist Tall", "Frame", purchase_price=80.0, sales_price=150.0, price_group="B")
    loose = adapter.create_item("Ramlist Gran", "Frame", purchase_price=80.0, price_group="")
    assert derived.sales_price == 180.0
    assert typed.sales_price == 150.0
    assert loose.sales_price is None
    assert loose.price_group is None


def test_create_item_unknown_group_rejected(db):
    with pytest.raises(ValueError, match="price group"):
        InventoryAdapter(db).create_item("Ramlist Björk", "Frame", purchase_price=80.0, price_group="Z")


def test_update_item_rederives_on_purchase_change(db, group_b):
    adapter = InventoryAdapter(db)
    item = adapter.create_item("Ramlist Björk", "Frame", purchase_price=80.0, price_group="B")

    adapter.update_item(item, {"sales_price": 175.0})
    assert item.sales_price == 175.0

    adapter.update_item(item, {"purchase_price": 100.0})
    assert item.sales_price == 225.0

    adapter.update_item(item, {"price_group": None})
    assert item.price_group is None
    assert item.sales_price == 225.0


def test_reprice_group(db, group_b):
    adapter = InventoryAdapter(db)
    adapter.create_item("Ramlist Björk", "Frame", purchase_price=80.0, price_group="B")
    adapter.create_item("Passepartout Grå", "Passepartout", sales_price=300.0, price_group="B")
    adapter.create_item("Floatglas", "Glass", purchase_price=100.0, sales_price=450.0)

    group_b.markup_percentage = 250.0
    assert adapter.reprice_group(group_b) == 1
    prices = {i.name: i.sales_price for i in db.query(models.InventoryItem).all()}
    assert prices == {"Ramlist Björk": 200.0, "Passepartout Grå": 300.0, "Floatglas": 450.0}
