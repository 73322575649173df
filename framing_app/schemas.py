from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class CustomerBase(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

class CustomerCreate(CustomerBase):
    pass

class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

class Customer(CustomerBase):
    id: int
    created_at: datetime
    class Config:
        from_attributes = True


class PriceGroupBase(BaseModel):
    name: str
    markup_percentage: float
    description: Optional[str] = None

class PriceGroupCreate(PriceGroupBase):
    pass

class PriceGroupUpdate(BaseModel):
    name: Optional[str] = None
    markup_percentage: Optional[float] = None
    description: Optional[str] = None
    update_items: bool = False  # reprice every item in the group

class PriceGroup(PriceGroupBase):
    id: int
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True


class InventoryItemCreate(BaseModel):
    # Both required, validated in inventory.validate_new_item so the 400 carries our message
    name: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    purchase_price: Optional[float] = None
    sales_price: Optional[float] = None
    price_group: Optional[str] = None
    supplier: Optional[str] = None
    color: Optional[str] = None

class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    purchase_price: Optional[float] = None
    sales_price: Optional[float] = None
    price_group: Optional[str] = None
    supplier: Optional[str] = None
    color: Optional[str] = None

class InventoryItem(BaseModel):
    id: int
    sku: str
    name: str
    category: str
    unit: Optional[str] = None
    purchase_price: Optional[float] = None
    sales_price: Optional[float] = None
    price_group: Optional[str] = None
    supplier: Optional[str] = None
    color: Optional[str] = None
    class Config:
        from_attributes = True


class LineItem(BaseModel):
    type: str
    slot: Optional[str] = None
    item_id: Optional[int] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: float
    unit: Optional[str] = None
    unit_price: float
    total_cost: float
    metadata: dict = {}


class PriceCalculationResult(BaseModel):
    quantity: int
    calculation_method: str
    outer_width_mm: float
    outer_height_mm: float
    perimeter_mm: float
    outer_area_sqm: float
    frame_length_meters: float = 0.0
    frame_cost: float = 0.0
    glass_area_sqm: float = 0.0
    glass_cost: float = 0.0
    backing_area_sqm: float = 0.0
    backing_cost: float = 0.0
    passepartout_area_sqm: float = 0.0
    passepartout_cost: float = 0.0
    passepartout2_area_sqm: float = 0.0
    passepartout2_cost: float = 0.0
    labor_cost: float = 0.0
    total_excl_vat: float
    total_incl_vat: float
    vat_rate: float
    currency: str
    rounding: str
    line_items: List[LineItem] = []


class TemplateItem(BaseModel):
    type: str
    item_id: Optional[int] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    metadata: dict = {}

class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    items: Optional[List[TemplateItem]] = None
    default_edges: Optional[dict] = None
