import math

import pytest

from orderledger.models import Order, OrderItem
from orderledger.services.totals import (
    LineItem,
    carrier_fee,
    list_totals,
    my_profit_share,
    order_line_items,
    order_totals,
    paid_summary,
    summarize_items,
)


def line(quantity, nabavna, prodajna, item_id="i"):
    return LineItem(id=item_id, title="x", quantity=quantity, nabavna_cena=nabavna, prodajna_cena=prodajna)


def build_order(stage="poruceno", items=None, **fields):
    defaults = {
        "title": "Lampa",
        "quantity": 1,
        "nabavna_cena": 0.0,
        "prodajna_cena": 0.0,
        "pickup": False,
        "stage": stage,
        "ordered_at": 0,
    }
    defaults.update(fields)
    order = Order(**defaults)
    for position, (quantity, nabavna, prodajna) in enumerate(items or []):
        order.items.append(OrderItem(
            id=f"item-{position}",
            position=position,
            title=f"Item {position}",
            quantity=quantity,
            nabavna_cena=nabavna,
            prodajna_cena=prodajna,
            manual_prodajna=False,
        ))
    return order


def test_summarize_items_sums_price_times_quantity():
    summary = summarize_items([line(2, 10.0, 25.0), line(3, 4.0, 7.5)])
    assert summary.total_qty == 5
    assert summary.total_prodajno == pytest.approx(2 * 25.0 + 3 * 7.5)
    assert summary.total_nabavno == pytest.approx(2 * 10.0 + 3 * 4.0)
    assert summary.avg_prodajna * summary.total_qty == pytest.approx(summary.total_prodajno)
    assert summary.avg_nabavna * summary.total_qty == pytest.approx(summary.total_nabavno)


def test_summarize_empty_items_is_zero():
    summary = summarize_items([])
    assert summary.total_qty == 0
    assert summary.avg_prodajna == 0
    assert summary.avg_nabavna == 0


def test_summarize_never_returns_non_finite():
    summary = summarize_items([line(1, math.inf, math.nan)])
    assert summary.total_prodajno == 0
    assert summary.total_nabavno == 0
    assert math.isfinite(summary.avg_prodajna)


def test_paid_order_share():
    order = build_order(stage="legle_pare", items=[(1, 50.0, 150.0)], my_profit_percent=40)
    totals = order_totals(order)
    assert totals.profit == pytest.approx(100)
    assert totals.my_share == pytest.approx(40)


def test_unpaid_order_has_no_share():
    order = build_order(stage="poruceno", items=[(1, 50.0, 150.0)], my_profit_percent=40)
    assert order_totals(order).my_share == 0


def test_missing_percent_counts_as_zero():
    assert my_profit_share(100, None, "legle_pare") == 0


def test_transport_is_subtracted_unless_pickup():
    order = build_order(items=[(1, 50.0, 150.0)], transport_cost=10.0)
    assert order_totals(order).profit == pytest.approx(90)

    order.pickup = True
    totals = order_totals(order)
    assert totals.transport == 0
    assert totals.profit == pytest.approx(100)


def test_legacy_order_synthesizes_one_item():
    order = build_order(title="Stara lampa", quantity=2, nabavna_cena=5.0, prodajna_cena=9.0, product_id=7)
    items = order_line_items(order)
    assert len(items) == 1
    assert items[0].title == "Stara lampa"
    assert items[0].product_id == 7
    assert order_totals(order).totals.total_prodajno == pytest.approx(18.0)
    assert order.items == []


def test_carrier_fee_only_for_paid_fee_account_orders():
    assert carrier_fee(build_order(stage="legle_pare", slanje_mode="Aks", slanje_owner="Racun")) == 2.0
    assert carrier_fee(build_order(stage="legle_pare", slanje_mode="Bex", slanje_owner="Racun")) == 0
    assert carrier_fee(build_order(stage="stiglo", slanje_mode="Aks", slanje_owner="Racun")) == 0
    # Legacy rows carried the carrier in transport_mode
    assert carrier_fee(build_order(stage="legle_pare", transport_mode="Aks")) == 2.0


def test_list_totals_povrat():
    orders = [
        build_order(stage="legle_pare", items=[(1, 50.0, 150.0)], transport_cost=10.0, my_profit_percent=50),
        build_order(stage="poruceno", items=[(2, 5.0, 10.0)], my_profit_percent=50),
    ]
    totals = list_totals(orders)
    assert totals.nabavno == pytest.approx(60)
    assert totals.transport == pytest.approx(10)
    assert totals.prodajno == pytest.approx(170)
    assert totals.profit == pytest.approx(45)
    assert totals.povrat == pytest.approx(60 + 10 + 0.5 * 45)


def test_paid_summary_deducts_carrier_fees():
    orders = [
        build_order(stage="legle_pare", items=[(1, 50.0, 150.0)], slanje_mode="Aks", slanje_owner="Racun", my_profit_percent=10),
        build_order(stage="legle_pare", items=[(1, 10.0, 20.0)], slanje_mode="Posta", slanje_owner="Pera"),
        build_order(stage="poslato", items=[(1, 10.0, 20.0)]),
    ]
    summary = paid_summary(orders)
    assert summary["broj_narudzbina"] == 2
    assert summary["ukupno_prodajno"] == pytest.approx(170)
    assert summary["carrier_fees"] == pytest.approx(2.0)
    assert summary["profit"] == pytest.approx(110 - 2.0)
    assert summary["moj_profit"] == pytest.approx(10)
