"""
Totals aggregation for orders and order collections.

Everything here is a pure function of the rows passed in; report endpoints
recompute on every call and never trust stored aggregates.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional
import math

from ..config.settings import get_settings
from ..models.order import Order, OrderStage, ShippingMode

settings = get_settings()

LEGACY_ITEM_ID = "legacy"
SHIPPING_MODE_VALUES = tuple(mode.value for mode in ShippingMode)


def finite(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


@dataclass
class LineItem:
    """Normalized line item, detached from the ORM."""
    id: str
    title: str
    quantity: int
    nabavna_cena: float
    prodajna_cena: float
    product_id: Optional[int] = None
    variant_id: Optional[str] = None
    variant_label: Optional[str] = None
    supplier_id: Optional[int] = None
    manual_prodajna: bool = False

    @classmethod
    def from_model(cls, item) -> "LineItem":
        return cls(
            id=item.id,
            title=item.title,
            quantity=item.quantity,
            nabavna_cena=finite(item.nabavna_cena),
            prodajna_cena=finite(item.prodajna_cena),
            product_id=item.product_id,
            variant_id=item.variant_id,
            variant_label=item.variant_label,
            supplier_id=item.supplier_id,
            manual_prodajna=bool(item.manual_prodajna),
        )


@dataclass
class ItemsSummary:
    total_qty: int = 0
    total_prodajno: float = 0.0
    total_nabavno: float = 0.0
    avg_prodajna: float = 0.0
    avg_nabavna: float = 0.0


@dataclass
class OrderTotals:
    items: List[LineItem] = field(default_factory=list)
    totals: ItemsSummary = field(default_factory=ItemsSummary)
    transport: float = 0.0
    profit: float = 0.0
    my_share: float = 0.0


@dataclass
class ListTotals:
    nabavno: float = 0.0
    transport: float = 0.0
    prodajno: float = 0.0
    profit: float = 0.0
    povrat: float = 0.0


def order_line_items(order: Order) -> List[LineItem]:
    """
    Line items of an order. Legacy rows without items get one implicit item
    built from the top-level fields; nothing is written back.
    """
    if order.items:
        return [LineItem.from_model(item) for item in order.items]

    quantity = order.quantity if order.quantity and order.quantity > 0 else 1
    return [
        LineItem(
            id=LEGACY_ITEM_ID,
            title=order.title or "",
            quantity=quantity,
            nabavna_cena=finite(order.nabavna_cena),
            prodajna_cena=finite(order.prodajna_cena),
            product_id=order.product_id,
            variant_id=order.variant_id,
            variant_label=order.variant_label,
            supplier_id=order.supplier_id,
        )
    ]


def summarize_items(items: Iterable[LineItem]) -> ItemsSummary:
    """Exact sums; per-unit averages are 0 when there is no quantity."""
    total_qty = 0
    total_prodajno = 0.0
    total_nabavno = 0.0
    for item in items:
        quantity = item.quantity if item.quantity and item.quantity > 0 else 0
        total_qty += quantity
        total_prodajno += finite(item.prodajna_cena) * quantity
        total_nabavno += finite(item.nabavna_cena) * quantity

    avg_prodajna = finite(total_prodajno / total_qty) if total_qty else 0.0
    avg_nabavna = finite(total_nabavno / total_qty) if total_qty else 0.0
    return ItemsSummary(
        total_qty=total_qty,
        total_prodajno=finite(total_prodajno),
        total_nabavno=finite(total_nabavno),
        avg_prodajna=avg_prodajna,
        avg_nabavna=avg_nabavna,
    )


def my_profit_share(profit: float, percent: Optional[float], stage: Optional[str]) -> float:
    """Operator share of the profit; only realized once the order is paid."""
    if stage != OrderStage.PAID.value:
        return 0.0
    return finite(finite(profit) * finite(percent) / 100)


def transport_amount(order: Order) -> float:
    if order.pickup:
        return 0.0
    return max(finite(order.transport_cost), 0.0)


def order_totals(order: Order) -> OrderTotals:
    items = order_line_items(order)
    summary = summarize_items(items)
    transport = transport_amount(order)
    profit = finite(summary.total_prodajno - summary.total_nabavno - transport)
    return OrderTotals(
        items=items,
        totals=summary,
        transport=transport,
        profit=profit,
        my_share=my_profit_share(profit, order.my_profit_percent, order.stage),
    )


def resolve_shipping_mode(order: Order) -> Optional[str]:
    """Explicit shipping mode, else a legacy transport mode that named a carrier."""
    if order.slanje_mode in SHIPPING_MODE_VALUES:
        return order.slanje_mode
    if order.transport_mode in SHIPPING_MODE_VALUES:
        return order.transport_mode
    return None


def carrier_fee(order: Order) -> float:
    """Fixed deduction for paid orders routed through the fee-bearing carrier account."""
    if order.stage != OrderStage.PAID.value or order.pickup:
        return 0.0
    if resolve_shipping_mode(order) != settings.CARRIER_FEE_MODE:
        return 0.0
    return settings.CARRIER_FEE_AMOUNT


def list_totals(orders: Iterable[Order]) -> ListTotals:
    """Totals over a whole filtered set, not just one page."""
    result = ListTotals()
    for order in orders:
        totals = order_totals(order)
        result.nabavno += totals.totals.total_nabavno
        result.transport += totals.transport
        result.prodajno += totals.totals.total_prodajno
        result.profit += totals.my_share

    result.povrat = finite(
        result.nabavno + result.transport + settings.RETURN_PROFIT_SHARE_RATIO * result.profit
    )
    return result


def paid_summary(orders: Iterable[Order]) -> dict:
    """Aggregate totals over the paid orders in ``orders``."""
    count = 0
    prodajno = 0.0
    nabavno = 0.0
    transport = 0.0
    fees = 0.0
    gross_profit = 0.0
    my_profit = 0.0

    for order in orders:
        if order.stage != OrderStage.PAID.value:
            continue
        totals = order_totals(order)
        count += 1
        prodajno += totals.totals.total_prodajno
        nabavno += totals.totals.total_nabavno
        transport += totals.transport
        gross_profit += totals.profit
        my_profit += totals.my_share
        fees += carrier_fee(order)

    return {
        "broj_narudzbina": count,
        "ukupno_prodajno": finite(prodajno),
        "ukupno_nabavno": finite(nabavno),
        "transport": finite(transport),
        "carrier_fees": finite(fees),
        "profit": finite(gross_profit - fees),
        "moj_profit": finite(my_profit),
    }
