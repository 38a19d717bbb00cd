from typing import Optional
from sqlalchemy.orm import Session, selectinload

from ..models.catalog import Product, Supplier


class CatalogRepository:
    """Read-only access to catalog records. Ownership is checked by callers."""

    def get_product(self, db: Session, product_id: Optional[int]) -> Optional[Product]:
        """Get a product with its variants and supplier offers loaded"""
        if product_id is None:
            return None
        return (
            db.query(Product)
            .options(selectinload(Product.variants), selectinload(Product.supplier_offers))
            .filter(Product.id == product_id)
            .first()
        )

    def get_supplier(self, db: Session, supplier_id: Optional[int]) -> Optional[Supplier]:
        if supplier_id is None:
            return None
        return db.get(Supplier, supplier_id)
