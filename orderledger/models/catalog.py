"""
Read-only catalog records: products, their variants, suppliers and supplier offers.
The ledger only reads these tables.
"""
from sqlalchemy import Column, Integer, String, Boolean, Float, ForeignKey
from sqlalchemy.orm import relationship

from ..config.database import Base
from .base import BaseModel


class Supplier(BaseModel):
    __tablename__ = 'suppliers'

    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)


class Product(BaseModel):
    """Catalog product with default prices and optional variants."""
    __tablename__ = 'products'

    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    kp_name = Column(String(255), nullable=True)
    nabavna_cena = Column(Float, nullable=False, default=0.0)
    prodajna_cena = Column(Float, nullable=False, default=0.0)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.position",
    )
    supplier_offers = relationship(
        "SupplierOffer",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="SupplierOffer.id",
    )

    @property
    def display_name(self) -> str:
        return (self.kp_name or "").strip() or self.name

    def default_variant(self):
        """Designated default variant, else the first one."""
        for variant in self.variants:
            if variant.is_default:
                return variant
        return self.variants[0] if self.variants else None

    def find_variant(self, variant_id):
        if not variant_id:
            return None
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None


class ProductVariant(Base):
    __tablename__ = 'product_variants'

    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), primary_key=True)
    id = Column(String(64), primary_key=True)
    label = Column(String(255), nullable=False)
    nabavna_cena = Column(Float, nullable=False, default=0.0)
    prodajna_cena = Column(Float, nullable=False, default=0.0)
    is_default = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")


class SupplierOffer(BaseModel):
    """Price a supplier asks for a product, optionally for one variant."""
    __tablename__ = 'supplier_offers'

    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey('suppliers.id'), nullable=False)
    variant_id = Column(String(64), nullable=True)
    price = Column(Float, nullable=False)

    product = relationship("Product", back_populates="supplier_offers")
