"""
Shipping account registry: manually entered starting balances per carrier account owner.
"""
from sqlalchemy import Column, String, Float, UniqueConstraint

from .base import BaseModel


class ShippingAccount(BaseModel):
    """
    One row per normalized owner key per tenant and scope.
    `value` is the display string, `value_normalized` the merge key.
    """
    __tablename__ = 'shipping_accounts'

    user_id = Column(String(64), nullable=False, index=True)
    scope = Column(String(20), nullable=False, default="default")
    value = Column(String(255), nullable=False)
    value_normalized = Column(String(255), nullable=False)
    starting_amount = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint('user_id', 'scope', 'value_normalized', name='uq_shipping_account_owner'),
    )

    def __repr__(self):
        return f"<ShippingAccount(id={self.id}, value={self.value!r})>"
