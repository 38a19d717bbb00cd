from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
import math

from ..config.logging import get_logger, log_performance, log_security_event
from ..core.exceptions import (
    EmptyOrderError, ForbiddenError, InvalidPickupTransportError,
    InvalidProfitPercentError, InvalidShippingSelectionError, NotFoundError
)
from ..models.catalog import Product
from ..models.order import (
    Order, OrderItem, PICKUP_TRANSPORT_MODES, normalize_scope, normalize_stage
)
from ..repositories.base import paginate
from ..repositories.catalog_repo import CatalogRepository
from ..repositories.order_repo import OrderRepository
from ..schemas.catalog import ProductOut
from ..schemas.order import OrderItemOut, OrderListFilters, OrderOut, OrderWrite
from ..utils.date_utils import get_day_range_ms, now_ms
from .customer_service import CustomerService
from .item_normalizer import ItemNormalizer
from .totals import LineItem, finite, list_totals, order_totals, paid_summary

logger = get_logger(__name__)

MIN_SHIPPING_OWNER_LENGTH = 2


def _enum_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "value", value)


def serialize_order(order: Order, products: Optional[Dict[int, Product]] = None) -> OrderOut:
    """Order with resolved line items and freshly computed totals."""
    totals = order_totals(order)
    products = products or {}
    items = []
    for item in totals.items:
        product = products.get(item.product_id) if item.product_id is not None else None
        items.append(OrderItemOut(
            id=item.id,
            product_id=item.product_id,
            variant_id=item.variant_id,
            variant_label=item.variant_label,
            supplier_id=item.supplier_id,
            title=item.title,
            quantity=item.quantity,
            nabavna_cena=item.nabavna_cena,
            prodajna_cena=item.prodajna_cena,
            manual_prodajna=item.manual_prodajna,
            product=ProductOut.model_validate(product) if product is not None else None,
        ))

    return OrderOut(
        id=order.id,
        scope=order.scope,
        stage=order.stage,
        title=order.title,
        product_id=order.product_id,
        variant_id=order.variant_id,
        variant_label=order.variant_label,
        supplier_id=order.supplier_id,
        quantity=order.quantity,
        nabavna_cena=finite(order.nabavna_cena),
        prodajna_cena=finite(order.prodajna_cena),
        items=items,
        transport_cost=order.transport_cost,
        transport_mode=order.transport_mode,
        slanje_mode=order.slanje_mode,
        slanje_owner=order.slanje_owner,
        broj_posiljke=order.broj_posiljke,
        povrat_vracen=bool(order.povrat_vracen),
        pickup=bool(order.pickup),
        my_profit_percent=order.my_profit_percent,
        customer_name=order.customer_name or "",
        address=order.address or "",
        phone=order.phone or "",
        napomena=order.napomena,
        ordered_at=order.ordered_at,
        sort_index=order.sort_index,
        total_qty=totals.totals.total_qty,
        total_prodajno=totals.totals.total_prodajno,
        total_nabavno=totals.totals.total_nabavno,
        transport=totals.transport,
        profit=totals.profit,
        my_share=totals.my_share,
    )


class OrderService:
    """
    Order writes and reads for one session. Each mutating call is one
    transaction: committed on success, rolled back on any error.
    """

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository()
        self.catalog_repo = CatalogRepository()
        self.customer_service = CustomerService(db)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_profit_percent(self, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        if not math.isfinite(value) or value < 0 or value > 100:
            raise InvalidProfitPercentError(value)
        return float(value)

    def _normalize_transport_cost(self, value: Optional[float]) -> Optional[float]:
        if value is None or not math.isfinite(value):
            return None
        return max(float(value), 0.0)

    def _validate_shipping(self, payload: OrderWrite) -> Dict[str, Any]:
        transport_mode = _enum_value(payload.transport_mode)
        if payload.pickup:
            if transport_mode and transport_mode not in PICKUP_TRANSPORT_MODES:
                raise InvalidPickupTransportError(transport_mode)
            return {
                "transport_mode": transport_mode,
                "transport_cost": None,
                "slanje_mode": None,
                "slanje_owner": None,
            }

        slanje_mode = _enum_value(payload.slanje_mode)
        slanje_owner = (payload.slanje_owner or "").strip() or None
        if slanje_mode and not slanje_owner:
            raise InvalidShippingSelectionError("Shipping account owner is required for the selected mode", "slanje_owner")
        if slanje_owner and not slanje_mode:
            raise InvalidShippingSelectionError("Shipping mode is required when an owner is given", "slanje_mode")
        if slanje_owner and len(slanje_owner) < MIN_SHIPPING_OWNER_LENGTH:
            raise InvalidShippingSelectionError("Shipping account owner needs at least 2 characters", "slanje_owner")

        return {
            "transport_mode": transport_mode,
            "transport_cost": self._normalize_transport_cost(payload.transport_cost),
            "slanje_mode": slanje_mode,
            "slanje_owner": slanje_owner,
        }

    def _prepare(self, user_id: str, payload: OrderWrite) -> Dict[str, Any]:
        """Validate and normalize a write payload; raises before anything is written."""
        fields = {
            "stage": normalize_stage(_enum_value(payload.stage)),
            "my_profit_percent": self._validate_profit_percent(payload.my_profit_percent),
            "broj_posiljke": (payload.broj_posiljke or "").strip() or None,
            "povrat_vracen": payload.povrat_vracen,
            "pickup": payload.pickup,
            "customer_name": payload.customer_name.strip(),
            "address": payload.address.strip(),
            "phone": payload.phone.strip(),
            "napomena": (payload.napomena or "").strip() or None,
        }
        fields.update(self._validate_shipping(payload))

        items = ItemNormalizer(self.db, user_id, self.catalog_repo).normalize(
            payload.raw_items(), payload.title or ""
        )
        if not items:
            raise EmptyOrderError()

        first = items[0]
        fields.update({
            "title": first.title,
            "product_id": first.product_id,
            "variant_id": first.variant_id,
            "variant_label": first.variant_label,
            "supplier_id": first.supplier_id,
            "quantity": first.quantity,
            "nabavna_cena": first.nabavna_cena,
            "prodajna_cena": first.prodajna_cena,
        })
        fields["_items"] = items
        return fields

    def _apply(self, order: Order, fields: Dict[str, Any]) -> Order:
        items: List[LineItem] = fields.pop("_items")
        for field, value in fields.items():
            setattr(order, field, value)

        # Items keep their row when the id survives the edit
        existing = {item.id: item for item in order.items}
        synced = []
        for position, line in enumerate(items):
            row = existing.get(line.id) or OrderItem(id=line.id)
            row.position = position
            row.product_id = line.product_id
            row.variant_id = line.variant_id
            row.variant_label = line.variant_label
            row.supplier_id = line.supplier_id
            row.title = line.title
            row.quantity = line.quantity
            row.nabavna_cena = line.nabavna_cena
            row.prodajna_cena = line.prodajna_cena
            row.manual_prodajna = line.manual_prodajna
            synced.append(row)
        order.items = synced
        return order

    def _check_access(self, order: Order, user_id: str, scope: str, action: str):
        if order.user_id != user_id or order.scope != scope:
            log_security_event(
                "ORDER_ACCESS_DENIED",
                tenant_id=user_id,
                details=f"{action} on order {order.id}",
                scope=scope,
            )
            raise ForbiddenError("Order does not belong to this workspace")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, user_id: str, payload: OrderWrite) -> Order:
        """Create an order"""
        scope = normalize_scope(payload.scope)
        fields = self._prepare(user_id, payload)
        try:
            timestamp = now_ms()
            order = Order(user_id=user_id, scope=scope, ordered_at=timestamp, sort_index=timestamp)
            self._apply(order, fields)
            self.db.add(order)
            self.db.flush()
            self.customer_service.upsert_from_order(order)
            self.db.commit()
            self.db.refresh(order)
            logger.info(f"Created order {order.id} for tenant {user_id} ({scope})")
            return order
        except Exception:
            self.db.rollback()
            raise

    def update(self, user_id: str, order_id: int, payload: OrderWrite) -> Order:
        """Rewrite every field of an order, items included"""
        scope = normalize_scope(payload.scope)
        order = self.order_repo.get_with_items(self.db, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        self._check_access(order, user_id, scope, "update")

        fields = self._prepare(user_id, payload)
        try:
            self._apply(order, fields)
            self.db.flush()
            self.customer_service.upsert_from_order(order)
            self.db.commit()
            self.db.refresh(order)
            logger.info(f"Updated order {order.id} for tenant {user_id} ({scope})")
            return order
        except Exception:
            self.db.rollback()
            raise

    def remove(self, user_id: str, order_id: int, scope: Optional[str] = None) -> bool:
        """Delete an order; a missing order is a no-op"""
        scope = normalize_scope(scope)
        order = self.order_repo.get_with_items(self.db, order_id)
        if order is None:
            return False
        self._check_access(order, user_id, scope, "remove")

        try:
            self.order_repo.delete(self.db, db_obj=order)
            self.db.commit()
            logger.info(f"Removed order {order_id} for tenant {user_id} ({scope})")
            return True
        except Exception:
            self.db.rollback()
            raise

    def reorder(self, user_id: str, ids: List[int], base: Optional[int] = None, scope: Optional[str] = None) -> List[int]:
        """Assign strictly decreasing sort indices following ``ids``"""
        scope = normalize_scope(scope)
        unique_ids = list(dict.fromkeys(ids))
        owned = {order.id: order for order in self.order_repo.get_owned_ids(self.db, user_id, scope, unique_ids)}
        if len(owned) != len(unique_ids):
            log_security_event(
                "REORDER_REJECTED",
                tenant_id=user_id,
                details=f"{len(unique_ids) - len(owned)} foreign or missing orders",
                scope=scope,
            )
            raise ForbiddenError("Every reordered order must belong to this workspace")

        start = base if base is not None else now_ms()
        try:
            for offset, order_id in enumerate(unique_ids):
                owned[order_id].sort_index = start - offset
            self.db.commit()
            logger.info(f"Reordered {len(unique_ids)} orders for tenant {user_id} ({scope})")
            return unique_ids
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _owned_products(self, user_id: str, order: Order) -> Dict[int, Product]:
        products = {}
        for item in order_totals(order).items:
            if item.product_id is None or item.product_id in products:
                continue
            product = self.catalog_repo.get_product(self.db, item.product_id)
            if product is not None and product.user_id == user_id:
                products[item.product_id] = product
        return products

    def get(self, user_id: str, order_id: int, scope: Optional[str] = None) -> Optional[OrderOut]:
        """Get an order with resolved items; None when missing or not owned"""
        scope = normalize_scope(scope)
        order = self.order_repo.get_with_items(self.db, order_id)
        if order is None or order.user_id != user_id or order.scope != scope:
            return None
        return serialize_order(order, self._owned_products(user_id, order))

    @log_performance("orderledger.performance")
    def list(self, user_id: str, filters: OrderListFilters, page: int = 1, page_size: int = 20) -> Dict[str, Any]:
        """Filtered, manually ordered page plus totals over the whole filtered set"""
        scope = normalize_scope(filters.scope)
        start_ms, end_ms = get_day_range_ms(filters.date_from, filters.date_to)
        orders = self.order_repo.search(
            self.db,
            user_id=user_id,
            scope=scope,
            search=filters.search,
            stages=[_enum_value(stage) for stage in filters.stages],
            returned_only=filters.returned_only,
            unreturned_only=filters.unreturned_only,
            pickup_only=filters.pickup_only,
            start_ms=start_ms,
            end_ms=end_ms,
        )

        totals = list_totals(orders)
        result = paginate(orders, page, page_size)
        result["items"] = [serialize_order(order) for order in result["items"]]
        result["totals"] = {
            "nabavno": totals.nabavno,
            "transport": totals.transport,
            "prodajno": totals.prodajno,
            "profit": totals.profit,
            "povrat": totals.povrat,
        }
        return result

    def by_product(self, user_id: str, product_id: int, scope: Optional[str] = None) -> List[OrderOut]:
        """Orders that sold the product, newest first"""
        scope = normalize_scope(scope)
        orders = self.order_repo.get_by_product(self.db, user_id, scope, product_id)
        return [serialize_order(order) for order in orders]

    @log_performance("orderledger.performance")
    def summary(self, user_id: str, scope: Optional[str] = None) -> Dict[str, Any]:
        """Aggregate totals across all paid orders of a scope"""
        scope = normalize_scope(scope)
        return paid_summary(self.order_repo.get_paid(self.db, user_id, scope))
