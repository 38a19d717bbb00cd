import pytest

from orderledger.models import Customer, Order
from orderledger.schemas.order import OrderWrite
from orderledger.services.customer_service import CustomerService, clamp_limit
from orderledger.services.order_service import OrderService

from conftest import TENANT


def create_order(db, name, phone, address="Novi Sad", **fields):
    data = {"title": "Lampa", "customer_name": name, "phone": phone, "address": address}
    data.update(fields)
    return OrderService(db).create(TENANT, OrderWrite(**data))


def test_clamp_limit():
    assert clamp_limit(None) == 10
    assert clamp_limit(0) == 1
    assert clamp_limit(500) == 50


def test_orders_without_phone_digits_make_no_customer(db):
    create_order(db, "Petar", "nema")
    assert db.query(Customer).count() == 0


def test_list_matches_tokens_or_phone(db):
    create_order(db, "Đorđe Jovanović", "064 111 222", address="Bulevar 5, Novi Sad")
    create_order(db, "Marija Petrović", "065 333 444", address="Beograd")
    service = CustomerService(db)

    assert [c.name for c in service.list_customers(TENANT, search="djordje sad")] == ["Đorđe Jovanović"]
    assert [c.name for c in service.list_customers(TENANT, search="333")] == ["Marija Petrović"]
    assert service.list_customers(TENANT, search="nepostoji") == []
    assert len(service.list_customers(TENANT)) == 2
    assert len(service.list_customers(TENANT, limit=1)) == 1


def test_list_is_most_recent_first(db):
    create_order(db, "Prvi", "111")
    create_order(db, "Drugi", "222")
    customers = db.query(Customer).all()
    for index, customer in enumerate(sorted(customers, key=lambda c: c.name)):
        customer.last_used_at = 1000 + index
    db.commit()

    names = [c.name for c in CustomerService(db).list_customers(TENANT)]
    assert names == ["Prvi", "Drugi"]


def test_sync_from_orders_uses_newest_order(db):
    for name, phone, address, ordered_at in [
        ("Stari Petar", "064 1", "Stara adresa", 1),
        ("Novi Petar", "0641", "Nova adresa", 2),
        ("Bez adrese", "0659", "", 3),
    ]:
        db.add(Order(
            user_id=TENANT, scope="default", stage="poruceno", title="Lampa", quantity=1,
            nabavna_cena=0.0, prodajna_cena=0.0, ordered_at=ordered_at,
            customer_name=name, phone=phone, address=address,
        ))
    db.commit()

    created = CustomerService(db).sync_from_orders(TENANT)

    assert created == 1
    customer = db.query(Customer).one()
    assert customer.name == "Novi Petar"
    assert customer.address == "Nova adresa"
    assert customer.last_used_at == 2

    assert CustomerService(db).sync_from_orders(TENANT) == 0


@pytest.mark.parametrize("scope", ["kalaba", "default"])
def test_customers_are_scoped(db, scope):
    create_order(db, "Petar", "064 555", scope="kalaba")
    expected = 1 if scope == "kalaba" else 0
    assert len(CustomerService(db).list_customers(TENANT, scope=scope)) == expected
