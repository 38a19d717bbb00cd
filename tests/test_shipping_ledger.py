import pytest

from orderledger.core.exceptions import InvalidShippingOwnerError, InvalidStartingAmountError
from orderledger.models import Order, ShippingAccount
from orderledger.schemas.order import OrderWrite
from orderledger.schemas.shipping import ShippingAccountOut
from orderledger.services.order_service import OrderService
from orderledger.services.shipping_ledger import ShippingLedgerService

from conftest import OTHER_TENANT, TENANT


def paid_order(service, mode, owner, prodajna=100.0, **fields):
    data = {
        "title": "Lampa",
        "stage": "legle_pare",
        "prodajna_cena": prodajna,
        "nabavna_cena": 40.0,
        "slanje_mode": mode,
        "slanje_owner": owner,
    }
    data.update(fields)
    return service.create(TENANT, OrderWrite(**data))


@pytest.fixture()
def orders(db):
    return OrderService(db)


@pytest.fixture()
def ledger(db):
    return ShippingLedgerService(db)


def test_owner_keys_merge_into_one_bucket(orders, ledger):
    paid_order(orders, "Aks", "Racun A", prodajna=100)
    paid_order(orders, "Bex", "racun a", prodajna=50)
    ledger.upsert_shipping_account(TENANT, "RAČUN A", 30)

    report = ledger.obracun(TENANT)

    rows = report["aks_bex"]["by_owner"]
    assert len(rows) == 1
    row = rows[0]
    assert row["owner"] == "RAČUN A"
    assert row["orders_total"] == pytest.approx(150)
    assert row["aks"] == pytest.approx(100)
    assert row["bex"] == pytest.approx(50)
    assert row["starting_amount"] == pytest.approx(30)
    assert row["total"] == pytest.approx(180)
    assert row["count"] == 2


def test_display_name_is_first_seen_without_registry(orders, ledger):
    paid_order(orders, "Aks", "Racun A")
    paid_order(orders, "Aks", "racun a")
    assert ledger.obracun(TENANT)["aks_bex"]["by_owner"][0]["owner"] == "Racun A"


def test_report_totals(orders, ledger):
    paid_order(orders, "Aks", "Marko", prodajna=100)
    paid_order(orders, "Bex", "Jovan", prodajna=60)
    paid_order(orders, "Posta", "Pera", prodajna=20)
    paid_order(orders, "Posta", "pera", prodajna=10)
    ledger.upsert_shipping_account(TENANT, "Nikola", 500)
    paid_order(orders, "Aks", "Marko", prodajna=1000, stage="poslato")

    report = ledger.obracun(TENANT)
    aks_bex = report["aks_bex"]

    assert aks_bex["total"] == pytest.approx(160)
    assert aks_bex["total_aks"] == pytest.approx(100)
    assert aks_bex["total_bex"] == pytest.approx(60)
    assert aks_bex["total_starting"] == pytest.approx(500)
    assert aks_bex["total_with_starting"] == pytest.approx(660)
    assert {row["owner"] for row in aks_bex["by_owner"]} == {"Marko", "Jovan", "Nikola"}

    nikola = next(row for row in aks_bex["by_owner"] if row["owner"] == "Nikola")
    assert nikola["count"] == 0
    assert nikola["total"] == pytest.approx(500)

    assert report["posta"]["total"] == pytest.approx(30)
    assert report["posta"]["by_owner"] == [{"owner": "Pera", "total": 30.0, "count": 2}]
    assert report["meta"]["orders_count"] == 4
    assert report["meta"]["total_legle"] == pytest.approx(690)


def test_legacy_transport_mode_is_owner(db, ledger):
    db.add(Order(
        user_id=TENANT, scope="default", stage="legle_pare", title="Stara", quantity=1,
        nabavna_cena=1.0, prodajna_cena=12.0, transport_mode="Bex", ordered_at=1,
        customer_name="", address="", phone="",
    ))
    db.commit()

    row = ledger.obracun(TENANT)["aks_bex"]["by_owner"][0]
    assert row["owner"] == "Bex"
    assert row["bex"] == pytest.approx(12)


def test_scopes_and_tenants_are_separate(orders, ledger):
    paid_order(orders, "Aks", "Marko", scope="kalaba")
    ledger.upsert_shipping_account(OTHER_TENANT, "Marko", 50)

    assert ledger.obracun(TENANT)["aks_bex"]["by_owner"] == []
    assert len(ledger.obracun(TENANT, "kalaba")["aks_bex"]["by_owner"]) == 1


def test_upsert_overwrites_by_normalized_key(ledger, db):
    first = ledger.upsert_shipping_account(TENANT, "Miloš", 10)
    second = ledger.upsert_shipping_account(TENANT, " MILOS ", 25)

    assert first.id == second.id
    assert second.value == "MILOS"
    assert second.starting_amount == 25
    assert db.query(ShippingAccount).count() == 1


@pytest.mark.parametrize("name", ["", " ", "a", None])
def test_upsert_rejects_short_owner(ledger, name):
    with pytest.raises(InvalidShippingOwnerError):
        ledger.upsert_shipping_account(TENANT, name, 10)


@pytest.mark.parametrize("amount", [-1, float("nan"), float("inf")])
def test_upsert_rejects_bad_amount(ledger, amount):
    with pytest.raises(InvalidStartingAmountError):
        ledger.upsert_shipping_account(TENANT, "Marko", amount)


def test_shipping_owners(orders, ledger):
    paid_order(orders, "Posta", "Pera")
    paid_order(orders, "Posta", "pera", stage="poruceno")
    paid_order(orders, "Aks", "Marko")
    paid_order(orders, "Bex", "Jovan")
    paid_order(orders, "Bex", "Jovan")
    ledger.upsert_shipping_account(TENANT, "Nikola", 40)

    owners = ledger.shipping_owners(TENANT)

    assert owners["posta_names"] == [{"value": "Pera", "count": 2}]
    assert owners["aks_bex_accounts"] == [
        {"value": "Jovan", "count": 2, "starting_amount": 0.0},
        {"value": "Marko", "count": 1, "starting_amount": 0.0},
        {"value": "Nikola", "count": 0, "starting_amount": 40.0},
    ]


def test_account_serializes_from_model(ledger):
    account = ledger.upsert_shipping_account(TENANT, "Racun B", 12.5)

    out = ShippingAccountOut.model_validate(account)

    assert ShippingAccountOut.model_config["from_attributes"] is True
    assert out.id == account.id
    assert out.value == "Racun B"
    assert out.starting_amount == 12.5
