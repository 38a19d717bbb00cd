"""
Customer side-records derived from orders, used for autocomplete.
"""
from sqlalchemy import Column, String, Boolean, BigInteger, Text, UniqueConstraint, Index

from .base import BaseModel


class Customer(BaseModel):
    """Keyed by normalized phone digits per tenant and scope."""
    __tablename__ = 'customers'

    user_id = Column(String(64), nullable=False, index=True)
    scope = Column(String(20), nullable=False, default="default")
    name = Column(String(255), nullable=False)
    name_normalized = Column(String(255), nullable=False, default="")
    phone = Column(String(64), nullable=False)
    phone_normalized = Column(String(64), nullable=False)
    address = Column(Text, nullable=False, default="")
    pickup = Column(Boolean, nullable=False, default=False)
    last_used_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'scope', 'phone_normalized', name='uq_customer_phone'),
        Index('ix_customers_user_scope_last_used', 'user_id', 'scope', 'last_used_at'),
    )

    def __repr__(self):
        return f"<Customer(id={self.id}, phone={self.phone_normalized})>"
