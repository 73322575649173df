from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


# --- Enums ---

class OrderStatus(str, enum.Enum):
    """Customer order workflow. UTLAMNAD (delivered) is terminal."""
    OFFERT = "Offert"
    EJ_PABORJAD = "Ej påbörjad"
    PABORJAD = "Påbörjad"
    KLART = "Klart"
    UTLAMNAD = "Utlämnad"


ORDER_STATUS_FLOW = [
    OrderStatus.OFFERT,
    OrderStatus.EJ_PABORJAD,
    OrderStatus.PABORJAD,
    OrderStatus.KLART,
    OrderStatus.UTLAMNAD,
]

# Values written by older versions of the order screens
LEGACY_STATUS_ALIASES = {
    "draft": OrderStatus.OFFERT,
    "confirmed": OrderStatus.EJ_PABORJAD,
}


def parse_order_status(value) -> OrderStatus:
    """Accepts current values and legacy aliases. Raises ValueError otherwise."""
    raw = str(value or "").strip()
    if raw.lower() in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[raw.lower()]
    try:
        return OrderStatus(raw)
    except ValueError:
        raise ValueError(
            f"Unknown order status: {value}. Available: {[s.value for s in ORDER_STATUS_FLOW]}"
        )


def is_locked_status(status) -> bool:
    """Delivered orders can no longer be edited or deleted."""
    return parse_order_status(status) == OrderStatus.UTLAMNAD


def can_transition(current, target) -> bool:
    """Any non-terminal status may move to any status. Raises ValueError for unknown values."""
    parse_order_status(target)
    return not is_locked_status(current)


# --- Tenant / auth ---

class User(Base):
    """Multi-tenant shop accounts. Pricing settings live here, not in globals."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    is_verified = Column(Boolean, default=False)
    shop_name = Column(String, nullable=True)
    shop_address = Column(Text, nullable=True)
    shop_phone = Column(String, nullable=True)
    shop_email = Column(String, nullable=True)
    vat_percentage = Column(Float, nullable=True)  # falls back to settings.VAT_PERCENTAGE
    currency = Column(String, nullable=True)  # falls back to settings.CURRENCY
    price_rounding = Column(String, nullable=True)  # 'legacy' | 'once'
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")


class AuthToken(Base):
    """JWT refresh token storage. Access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


# --- Inventory catalog ---

class PriceGroup(Base):
    """Named markup. Sales price = purchase price × markup_percentage / 100."""
    __tablename__ = "price_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    markup_percentage = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class InventoryItem(Base):
    """Catalog material. sales_price is per meter, per m² or per hour depending on category."""
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    unit = Column(String, nullable=True)
    purchase_price = Column(Float, nullable=True)
    sales_price = Column(Float, nullable=True)
    price_group = Column(String, nullable=True, index=True)  # PriceGroup.name
    supplier = Column(String, nullable=True)
    color = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# --- Customers + orders ---

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    orders = relationship("CustomerOrder", back_populates="customer")


class CustomerOrder(Base):
    __tablename__ = "customer_orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    order_number = Column(String, unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    # DECISION: status stored as VARCHAR holding the Swedish display value
    status = Column(String, default=OrderStatus.OFFERT.value)
    order_date = Column(DateTime, nullable=True)
    delivery_date = Column(DateTime, nullable=True)
    notes = Column(Text)
    total_price_excl_vat = Column(Float, default=0.0)
    total_price_incl_vat = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="orders")
    frame_orders = relationship(
        "FrameOrder", back_populates="customer_order",
        cascade="all, delete-orphan", order_by="FrameOrder.id",
    )


class FrameOrder(Base):
    """
    One framed piece. Inputs, locked material snapshots and the computed
    price breakdown are all stored, so later catalog changes never move
    the price of an existing order.
    """
    __tablename__ = "frame_orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_order_id = Column(Integer, ForeignKey("customer_orders.id"), nullable=False)
    motif = Column(String, nullable=True)  # description of the artwork
    quantity = Column(Integer, default=1)
    calculation_method = Column(String, default="simple")  # 'simple' | 'standard' | 'itemized'

    # Inputs (mm)
    inputs_json = Column(JSON, default=dict)
    width_mm = Column(Float, default=0.0)
    height_mm = Column(Float, default=0.0)
    circumference_mm = Column(Float, default=0.0)
    outer_area_sqm = Column(Float, default=0.0)

    # Locked MaterialSelection snapshots {slot: {id, name, sku, unit_price}}
    selections_json = Column(JSON, default=dict)

    # Computed (per order, scaled by quantity)
    frame_length_meters = Column(Float, default=0.0)
    frame_cost = Column(Float, default=0.0)
    glass_area_sqm = Column(Float, default=0.0)
    glass_cost = Column(Float, default=0.0)
    backing_area_sqm = Column(Float, default=0.0)
    backing_cost = Column(Float, default=0.0)
    passepartout_area_sqm = Column(Float, default=0.0)
    passepartout_cost = Column(Float, default=0.0)
    passepartout2_area_sqm = Column(Float, default=0.0)
    passepartout2_cost = Column(Float, default=0.0)
    labor_cost = Column(Float, default=0.0)
    total_cost_excl_vat = Column(Float, default=0.0)
    total_cost_incl_vat = Column(Float, default=0.0)
    vat_rate = Column(Float, nullable=True)
    currency = Column(String, nullable=True)
    price_result_json = Column(JSON, nullable=True)  # full PriceCalculationResult

    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer_order = relationship("CustomerOrder", back_populates="frame_orders")
    items = relationship(
        "FrameOrderItem", back_populates="frame_order",
        cascade="all, delete-orphan", order_by="FrameOrderItem.sort_order",
    )


class FrameOrderItem(Base):
    """Line item of a frame order. Both itemized and fixed-slot orders store these."""
    __tablename__ = "frame_order_items"

    id = Column(Integer, primary_key=True, index=True)
    frame_order_id = Column(Integer, ForeignKey("frame_orders.id"), nullable=False, index=True)
    item_type = Column(String, nullable=False, index=True)  # frame | glass | passepartout | backing | labor | custom
    item_id = Column(Integer, nullable=True)  # inventory item, null for custom lines
    item_name = Column(String, nullable=True)
    item_sku = Column(String, nullable=True)
    quantity = Column(Float, default=1.0)
    unit = Column(String, nullable=True)  # meter | sqm | piece | hour
    unit_price = Column(Float, default=0.0)
    total_cost = Column(Float, default=0.0)
    metadata_json = Column(JSON, default=dict)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    frame_order = relationship("FrameOrder", back_populates="items")


class FrameOrderTemplate(Base):
    """Reusable item preset for itemized frame orders."""
    __tablename__ = "frame_order_templates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    items = Column(JSON, default=list)
    default_passepartout_edges = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
