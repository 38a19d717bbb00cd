from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..config.logging import get_logger, log_database_operation
from ..models.customer import Customer
from ..models.order import Order, normalize_scope
from ..repositories.customer_repo import CustomerRepository
from ..repositories.order_repo import OrderRepository
from ..utils.date_utils import now_ms
from ..utils.search import (
    matches_all_tokens, normalize_phone, normalize_search_text, to_search_tokens
)

logger = get_logger(__name__)
settings = get_settings()


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        limit = settings.CUSTOMER_LIST_LIMIT
    return min(max(limit, 1), settings.CUSTOMER_LIST_MAX)


class CustomerService:
    """Autocomplete side-records derived from orders. Never authoritative."""

    def __init__(self, db: Session):
        self.db = db
        self.customer_repo = CustomerRepository()
        self.order_repo = OrderRepository()

    def upsert_from_order(self, order: Order) -> Optional[Customer]:
        """Refresh the customer keyed by the order's phone digits; no commit."""
        phone_normalized = normalize_phone(order.phone)
        name = (order.customer_name or "").strip()
        if not phone_normalized or not name:
            return None

        data = {
            "name": name,
            "name_normalized": normalize_search_text(name),
            "phone": (order.phone or "").strip(),
            "address": (order.address or "").strip(),
            "pickup": bool(order.pickup),
            "last_used_at": now_ms(),
        }
        customer = self.customer_repo.get_by_phone(self.db, order.user_id, order.scope, phone_normalized)
        if customer is None:
            data.update({"user_id": order.user_id, "scope": order.scope, "phone_normalized": phone_normalized})
            return self.customer_repo.create(self.db, obj_in=data)
        return self.customer_repo.update(self.db, db_obj=customer, obj_in=data)

    def list_customers(
        self,
        user_id: str,
        scope: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Customer]:
        """Token match on name and address, or digit match on phone"""
        scope = normalize_scope(scope)
        limit = clamp_limit(limit)
        tokens = to_search_tokens((search or "").strip())
        phone_needle = normalize_phone(search)

        customers = self.customer_repo.get_recent(self.db, user_id, scope)
        if tokens or phone_needle:
            matched = []
            for customer in customers:
                name_value = customer.name_normalized or normalize_search_text(customer.name)
                text_value = f"{name_value} {normalize_search_text(customer.address)}"
                name_match = bool(tokens) and matches_all_tokens(text_value, tokens)
                phone_match = bool(phone_needle) and phone_needle in (customer.phone_normalized or "")
                if name_match or phone_match:
                    matched.append(customer)
            customers = matched

        return customers[:limit]

    def sync_from_orders(self, user_id: str, scope: Optional[str] = None) -> int:
        """Create customers from the newest order of every unregistered phone."""
        scope = normalize_scope(scope)
        try:
            known = self.customer_repo.get_known_phones(self.db, user_id, scope)
            candidates: Dict[str, Order] = {}
            for order in self.order_repo.get_scoped(self.db, user_id, scope):
                phone_normalized = normalize_phone(order.phone)
                if not phone_normalized or phone_normalized in known:
                    continue
                current = candidates.get(phone_normalized)
                if current is None or order.ordered_at > current.ordered_at:
                    candidates[phone_normalized] = order

            created = 0
            for phone_normalized, order in candidates.items():
                name = (order.customer_name or "").strip()
                phone = (order.phone or "").strip()
                address = (order.address or "").strip()
                if not name or not phone or not address:
                    continue
                self.customer_repo.create(self.db, obj_in={
                    "user_id": user_id,
                    "scope": scope,
                    "name": name,
                    "name_normalized": normalize_search_text(name),
                    "phone": phone,
                    "phone_normalized": phone_normalized,
                    "address": address,
                    "pickup": bool(order.pickup),
                    "last_used_at": order.ordered_at,
                })
                created += 1

            self.db.commit()
            log_database_operation("sync_from_orders", "customers", row_count=created)
            logger.info(f"Synced {created} customers from orders for tenant {user_id} ({scope})")
            return created
        except Exception:
            self.db.rollback()
            raise
