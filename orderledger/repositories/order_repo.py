from typing import List, Optional, Sequence
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import and_, or_, func, desc, select

from ..models.order import Order, OrderItem, OrderStage
from ..utils.search import normalize_search_text, text_contains
from .base import CRUDBase


def order_matches_search(order: Order, needle: str) -> bool:
    """Normalized substring match over order and item text fields."""
    if not needle:
        return True
    fields = [order.title, order.variant_label, order.customer_name, order.address, order.phone]
    for item in order.items:
        fields.append(item.title)
        fields.append(item.variant_label)
    return any(text_contains(value, needle) for value in fields if value)


class OrderRepository(CRUDBase[Order]):
    def __init__(self):
        super().__init__(Order)

    def _scoped(self, db: Session, user_id: str, scope: str):
        return (
            db.query(self.model)
            .options(selectinload(self.model.items))
            .filter(and_(self.model.user_id == user_id, self.model.scope == scope))
        )

    def get_with_items(self, db: Session, order_id: int) -> Optional[Order]:
        """Get an order with its items, regardless of owner"""
        return (
            db.query(self.model)
            .options(selectinload(self.model.items))
            .filter(self.model.id == order_id)
            .first()
        )

    def get_scoped(self, db: Session, user_id: str, scope: str) -> List[Order]:
        """Get all orders of a tenant scope"""
        return self._scoped(db, user_id, scope).order_by(self.model.ordered_at, self.model.id).all()

    def get_paid(self, db: Session, user_id: str, scope: str) -> List[Order]:
        """Get paid orders of a tenant scope"""
        return (
            self._scoped(db, user_id, scope)
            .filter(self.model.stage == OrderStage.PAID.value)
            .order_by(self.model.ordered_at, self.model.id)
            .all()
        )

    def search(
        self,
        db: Session,
        *,
        user_id: str,
        scope: str,
        search: Optional[str] = None,
        stages: Optional[Sequence[str]] = None,
        returned_only: bool = False,
        unreturned_only: bool = False,
        pickup_only: bool = False,
        start_ms: Optional[int] = None,
        end_ms: Optional[int] = None
    ) -> List[Order]:
        """
        Filtered orders in manual order: sort index (or creation time) desc,
        then creation time desc. Text search runs in Python on normalized text.
        """
        query = self._scoped(db, user_id, scope)

        if stages:
            query = query.filter(self.model.stage.in_(list(stages)))

        if returned_only:
            query = query.filter(self.model.povrat_vracen.is_(True))
        elif unreturned_only:
            query = query.filter(self.model.povrat_vracen.is_(False))

        if pickup_only:
            query = query.filter(self.model.pickup.is_(True))

        if start_ms is not None:
            query = query.filter(self.model.ordered_at >= start_ms)
        if end_ms is not None:
            query = query.filter(self.model.ordered_at <= end_ms)

        orders = query.order_by(
            desc(func.coalesce(self.model.sort_index, self.model.ordered_at)),
            desc(self.model.ordered_at),
            desc(self.model.id),
        ).all()

        needle = normalize_search_text((search or "").strip())
        if needle:
            orders = [order for order in orders if order_matches_search(order, needle)]
        return orders

    def get_by_product(self, db: Session, user_id: str, scope: str, product_id: int) -> List[Order]:
        """Orders whose first item or any item references the product, newest first"""
        item_match = select(OrderItem.order_id).where(OrderItem.product_id == product_id)
        return (
            self._scoped(db, user_id, scope)
            .filter(or_(self.model.product_id == product_id, self.model.id.in_(item_match)))
            .order_by(desc(self.model.ordered_at), desc(self.model.id))
            .all()
        )

    def get_owned_ids(self, db: Session, user_id: str, scope: str, ids: Sequence[int]) -> List[Order]:
        """Orders among ``ids`` that belong to the tenant scope"""
        if not ids:
            return []
        return (
            db.query(self.model)
            .filter(and_(
                self.model.id.in_(list(ids)),
                self.model.user_id == user_id,
                self.model.scope == scope,
            ))
            .all()
        )
