import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderledger.config.database import Base, get_db
from orderledger.config.settings import get_settings
from orderledger.core.dependencies import get_current_user
from orderledger.core.security import AuthContext
from orderledger.main import app
from orderledger.models import Product, ProductVariant, Supplier, SupplierOffer

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"


@pytest.fixture()
def engine():
    engine = create_engine(
        get_settings().TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: AuthContext(tenant_id=TENANT)
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_supplier(db, name="Veletrgovina", user_id=TENANT) -> Supplier:
    supplier = Supplier(user_id=user_id, name=name)
    db.add(supplier)
    db.commit()
    return supplier


def make_product(
    db,
    name="Lampa",
    user_id=TENANT,
    nabavna_cena=10.0,
    prodajna_cena=25.0,
    kp_name=None,
    variants=None,
    offers=None,
) -> Product:
    """
    Seed a catalog product.
    `variants` are dicts of ProductVariant columns, `offers` are
    (supplier, price, variant_id) tuples.
    """
    product = Product(
        user_id=user_id,
        name=name,
        kp_name=kp_name,
        nabavna_cena=nabavna_cena,
        prodajna_cena=prodajna_cena,
    )
    for position, variant in enumerate(variants or []):
        product.variants.append(ProductVariant(position=position, **variant))
    db.add(product)
    db.flush()
    for supplier, price, variant_id in offers or []:
        db.add(SupplierOffer(product_id=product.id, supplier_id=supplier.id, price=price, variant_id=variant_id))
    db.commit()
    db.refresh(product)
    return product
