"""
Shipping ledger: per-owner totals of paid orders merged with manually
registered starting balances.

Both reports are built as a two-phase reduce. Phase one folds orders into a
map keyed by the normalized owner string, phase two overlays the account
registry on top of it. Ledger rows may exist without orders and the other way
round, so the merge is never a database join.
"""
from dataclasses import dataclass
from typing import Dict, Optional
from sqlalchemy.orm import Session
import math

from ..config.logging import get_logger
from ..core.exceptions import InvalidShippingOwnerError, InvalidStartingAmountError
from ..models.order import Order, ShippingMode, normalize_scope
from ..models.shipping import ShippingAccount
from ..repositories.order_repo import OrderRepository
from ..repositories.shipping_repo import ShippingAccountRepository
from ..utils.search import normalize_owner_key
from .totals import finite, order_totals, resolve_shipping_mode

logger = get_logger(__name__)

MIN_OWNER_KEY_LENGTH = 2


def resolve_shipping_owner(order: Order, mode: Optional[str]) -> Optional[str]:
    """Explicit owner, else the legacy mode name stands in for the owner."""
    owner = (order.slanje_owner or "").strip()
    return owner or mode


@dataclass
class _AksBexBucket:
    owner: str
    orders_total: float = 0.0
    aks: float = 0.0
    bex: float = 0.0
    count: int = 0
    starting_amount: float = 0.0

    @property
    def total(self) -> float:
        return self.orders_total + self.starting_amount


@dataclass
class _PostaBucket:
    owner: str
    total: float = 0.0
    count: int = 0


@dataclass
class _Suggestion:
    value: str
    count: int = 0
    starting_amount: float = 0.0


def _by_total(row: dict) -> tuple:
    return (-row["total"], row["owner"].lower())


def _by_count(row: dict) -> tuple:
    return (-row["count"], row["value"].lower())


class ShippingLedgerService:
    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository()
        self.account_repo = ShippingAccountRepository()

    def obracun(self, user_id: str, scope: Optional[str] = None) -> dict:
        """Settlement report of paid orders per carrier account owner"""
        scope = normalize_scope(scope)
        orders = self.order_repo.get_paid(self.db, user_id, scope)
        accounts = self.account_repo.get_scoped(self.db, user_id, scope)

        # Phase one: orders
        aks_bex: Dict[str, _AksBexBucket] = {}
        posta: Dict[str, _PostaBucket] = {}
        for order in orders:
            if order.pickup:
                continue
            mode = resolve_shipping_mode(order)
            owner = resolve_shipping_owner(order, mode)
            key = normalize_owner_key(owner)
            if not mode or not key:
                continue
            amount = order_totals(order).totals.total_prodajno

            if mode == ShippingMode.POSTA.value:
                bucket = posta.setdefault(key, _PostaBucket(owner=owner))
                bucket.total += amount
                bucket.count += 1
                continue

            bucket = aks_bex.setdefault(key, _AksBexBucket(owner=owner))
            bucket.orders_total += amount
            bucket.count += 1
            if mode == ShippingMode.AKS.value:
                bucket.aks += amount
            else:
                bucket.bex += amount

        # Phase two: registry overlay
        for account in accounts:
            key = account.value_normalized or normalize_owner_key(account.value)
            bucket = aks_bex.setdefault(key, _AksBexBucket(owner=account.value))
            bucket.owner = account.value
            bucket.starting_amount = finite(account.starting_amount)

        aks_bex_rows = sorted(
            (
                {
                    "owner": bucket.owner,
                    "total": finite(bucket.total),
                    "starting_amount": bucket.starting_amount,
                    "orders_total": finite(bucket.orders_total),
                    "aks": finite(bucket.aks),
                    "bex": finite(bucket.bex),
                    "count": bucket.count,
                }
                for bucket in aks_bex.values()
            ),
            key=_by_total,
        )
        posta_rows = sorted(
            ({"owner": bucket.owner, "total": finite(bucket.total), "count": bucket.count} for bucket in posta.values()),
            key=_by_total,
        )

        aks_bex_orders = sum(row["orders_total"] for row in aks_bex_rows)
        total_starting = sum(row["starting_amount"] for row in aks_bex_rows)
        total_with_starting = aks_bex_orders + total_starting
        posta_total = sum(row["total"] for row in posta_rows)

        return {
            "aks_bex": {
                "by_owner": aks_bex_rows,
                "total": finite(aks_bex_orders),
                "total_aks": finite(sum(row["aks"] for row in aks_bex_rows)),
                "total_bex": finite(sum(row["bex"] for row in aks_bex_rows)),
                "total_starting": finite(total_starting),
                "total_with_starting": finite(total_with_starting),
            },
            "posta": {
                "by_owner": posta_rows,
                "total": finite(posta_total),
            },
            "meta": {
                "orders_count": len(orders),
                "total_legle": finite(total_with_starting + posta_total),
            },
        }

    def shipping_owners(self, user_id: str, scope: Optional[str] = None) -> dict:
        """Known owner names with usage counts, for the order form"""
        scope = normalize_scope(scope)
        orders = self.order_repo.get_scoped(self.db, user_id, scope)
        accounts = self.account_repo.get_scoped(self.db, user_id, scope)

        posta_names: Dict[str, _Suggestion] = {}
        aks_bex_accounts: Dict[str, _Suggestion] = {}
        for order in orders:
            owner = (order.slanje_owner or "").strip()
            mode = resolve_shipping_mode(order)
            key = normalize_owner_key(owner)
            if not owner or not mode or not key:
                continue
            target = posta_names if mode == ShippingMode.POSTA.value else aks_bex_accounts
            target.setdefault(key, _Suggestion(value=owner)).count += 1

        for account in accounts:
            key = account.value_normalized or normalize_owner_key(account.value)
            suggestion = aks_bex_accounts.setdefault(key, _Suggestion(value=account.value))
            suggestion.value = account.value
            suggestion.starting_amount = finite(account.starting_amount)

        return {
            "posta_names": sorted(
                ({"value": item.value, "count": item.count} for item in posta_names.values()),
                key=_by_count,
            ),
            "aks_bex_accounts": sorted(
                (
                    {"value": item.value, "count": item.count, "starting_amount": item.starting_amount}
                    for item in aks_bex_accounts.values()
                ),
                key=_by_count,
            ),
        }

    def upsert_shipping_account(
        self,
        user_id: str,
        owner_name: Optional[str],
        starting_amount: float,
        scope: Optional[str] = None
    ) -> ShippingAccount:
        """Register or overwrite the starting balance of a carrier account owner"""
        scope = normalize_scope(scope)
        value = (owner_name or "").strip()
        key = normalize_owner_key(value)
        if len(key) < MIN_OWNER_KEY_LENGTH:
            raise InvalidShippingOwnerError(owner_name)

        amount = finite(starting_amount, default=math.nan)
        if math.isnan(amount) or amount < 0:
            raise InvalidStartingAmountError(starting_amount)

        try:
            account = self.account_repo.get_by_key(self.db, user_id, scope, key)
            if account is None:
                account = self.account_repo.create(self.db, obj_in={
                    "user_id": user_id,
                    "scope": scope,
                    "value": value,
                    "value_normalized": key,
                    "starting_amount": amount,
                })
                logger.info(f"Registered shipping account '{value}' for tenant {user_id} ({scope})")
            else:
                account = self.account_repo.update(self.db, db_obj=account, obj_in={
                    "value": value,
                    "starting_amount": amount,
                })
                logger.info(f"Updated shipping account '{value}' for tenant {user_id} ({scope})")
            self.db.commit()
            self.db.refresh(account)
            return account
        except Exception:
            self.db.rollback()
            raise
