"""
Pytest fixtures for the shop ledger test suite.

Provides:
- an in-memory SQLite database, rebuilt for every test
- a `db` session for calling crud operations directly
- a FastAPI TestClient wired to the same database
- small factories for the records most tests start from
"""
import os
import tempfile

# Must be set before `database` is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "shop_ledger_test_logs"))

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine, get_db
import models  # noqa: F401
from crud import accounts as crud_accounts
from crud import currency as crud_currency
from crud import parties as crud_parties
from crud import product as crud_product
from crud import purchases as crud_purchases
from crud import unit as crud_unit
from schemas.accounts import AccountCreate
from schemas.currency import CurrencyCreate
from schemas.parties import CustomerCreate, SupplierCreate
from schemas.product import ProductCreate
from schemas.purchases import PurchaseCreate, PurchaseItemCreateRequest
from schemas.unit import UnitCreate, UnitGroupCreate

TODAY = date(2025, 1, 15)


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    from main import app

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def usd(db):
    return crud_currency.create_currency(db, CurrencyCreate(name="USD", is_base=True, rate=Decimal(1)))


@pytest.fixture
def eur(db, usd):
    return crud_currency.create_currency(db, CurrencyCreate(name="EUR", rate=Decimal(2)))


@pytest.fixture
def count_group(db):
    return crud_unit.create_unit_group(db, UnitGroupCreate(name="Count"))


@pytest.fixture
def pcs(db, count_group):
    return crud_unit.create_unit(db, UnitCreate(name="pcs", group_id=count_group.id, ratio=Decimal(1), is_base=True))


@pytest.fixture
def dozen(db, count_group):
    return crud_unit.create_unit(db, UnitCreate(name="dozen", group_id=count_group.id, ratio=Decimal(12)))


@pytest.fixture
def supplier(db):
    return crud_parties.create_supplier(db, SupplierCreate(full_name="Acme Wholesale", phone="0700000001",
                                                           address="Main road 1"))


@pytest.fixture
def customer(db):
    return crud_parties.create_customer(db, CustomerCreate(full_name="Sara Ahmadi", phone="0700000002",
                                                           address="Market street 5"))


@pytest.fixture
def product(db):
    return crud_product.create_product(db, ProductCreate(name="Widget", bar_code="WID-001"))


@pytest.fixture
def make_account(db):
    def _make(name="Cash", initial_balance=0, account_code=None, **kwargs):
        return crud_accounts.create_account(db, AccountCreate(
            name=name, initial_balance=Decimal(initial_balance), account_code=account_code, **kwargs
        ))
    return _make


@pytest.fixture
def account(make_account, usd):
    return make_account()


@pytest.fixture
def make_purchase(db, supplier, product, pcs):
    """Purchase of `amount` units of the default product; its single item is the batch."""
    def _make(amount=100, per_price=10, unit_id=None, product_id=None, additional_costs=()):
        return crud_purchases.create_purchase(db, PurchaseCreate(
            supplier_id=supplier.id,
            date=TODAY,
            items=[PurchaseItemCreateRequest(
                product_id=product_id or product.id,
                unit_id=unit_id or pcs.id,
                per_price=Decimal(per_price),
                amount=Decimal(amount),
            )],
            additional_costs=list(additional_costs),
        ))
    return _make


@pytest.fixture
def batch(make_purchase):
    return make_purchase().items[0]
