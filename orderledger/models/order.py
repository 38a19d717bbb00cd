"""
Order and order item models for the purchase/sale ledger.

An order keeps denormalized copies of its first line item at the top level so
single-item consumers (and legacy rows that never had items) keep working.
"""
from typing import Optional
from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, Float, Text, ForeignKey, Index
)
from sqlalchemy.orm import relationship
import enum

from ..config.database import Base
from .base import BaseModel


class OrderStage(str, enum.Enum):
    """Fulfillment stage, set by the operator."""
    RECEIVED = "poruceno"
    IN_STOCK = "na_stanju"
    SHIPPED = "poslato"
    ARRIVED = "stiglo"
    PAID = "legle_pare"
    RETURNED = "vraceno"


class OrderScope(str, enum.Enum):
    """Independent logical ledgers sharing one schema."""
    DEFAULT = "default"
    KALABA = "kalaba"


class TransportMode(str, enum.Enum):
    """Transport modes accepted on writes."""
    KOL = "Kol"
    JOE = "Joe"
    SMG = "Smg"


class ShippingMode(str, enum.Enum):
    """Carrier accounts money is collected through."""
    POSTA = "Posta"
    AKS = "Aks"
    BEX = "Bex"


PICKUP_TRANSPORT_MODES = (TransportMode.KOL.value, TransportMode.JOE.value)


def normalize_scope(scope: Optional[str]) -> str:
    """Unknown or missing scopes fall back to the default ledger."""
    value = scope.value if isinstance(scope, OrderScope) else scope
    if value == OrderScope.KALABA.value:
        return OrderScope.KALABA.value
    return OrderScope.DEFAULT.value


def normalize_stage(stage: Optional[str]) -> str:
    value = stage.value if isinstance(stage, OrderStage) else stage
    allowed = {member.value for member in OrderStage}
    return value if value in allowed else OrderStage.RECEIVED.value


class Order(BaseModel):
    """
    Purchase/sale order owned by a tenant inside one scope.
    """
    __tablename__ = 'orders'

    user_id = Column(String(64), nullable=False, index=True)
    scope = Column(String(20), nullable=False, default=OrderScope.DEFAULT.value, index=True)
    stage = Column(String(20), nullable=False, default=OrderStage.RECEIVED.value, index=True)

    # Mirror of the first line item
    product_id = Column(Integer, nullable=True, index=True)
    variant_id = Column(String(64), nullable=True)
    variant_label = Column(String(255), nullable=True)
    supplier_id = Column(Integer, nullable=True)
    title = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    nabavna_cena = Column(Float, nullable=False, default=0.0)
    prodajna_cena = Column(Float, nullable=False, default=0.0)

    # Shipping and accounting
    transport_cost = Column(Float, nullable=True)
    transport_mode = Column(String(20), nullable=True)
    slanje_mode = Column(String(20), nullable=True)
    slanje_owner = Column(String(255), nullable=True)
    broj_posiljke = Column(String(100), nullable=True)
    povrat_vracen = Column(Boolean, nullable=False, default=False)
    pickup = Column(Boolean, nullable=False, default=False)
    my_profit_percent = Column(Float, nullable=True)

    # Customer
    customer_name = Column(String(255), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    phone = Column(String(64), nullable=False, default="")
    napomena = Column(Text, nullable=True)

    # Epoch milliseconds
    ordered_at = Column(BigInteger, nullable=False, index=True)
    sort_index = Column(BigInteger, nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (
        Index('ix_orders_user_scope_ordered', 'user_id', 'scope', 'ordered_at'),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, scope={self.scope}, stage={self.stage})>"


class OrderItem(Base):
    """
    Line item owned by exactly one order. Ids are unique within their order.
    """
    __tablename__ = 'order_items'

    order_id = Column(Integer, ForeignKey('orders.id', ondelete="CASCADE"), primary_key=True)
    id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    product_id = Column(Integer, nullable=True, index=True)
    variant_id = Column(String(64), nullable=True)
    variant_label = Column(String(255), nullable=True)
    supplier_id = Column(Integer, nullable=True)
    title = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    nabavna_cena = Column(Float, nullable=False, default=0.0)
    prodajna_cena = Column(Float, nullable=False, default=0.0)
    manual_prodajna = Column(Boolean, nullable=False, default=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem(order_id={self.order_id}, id={self.id})>"
