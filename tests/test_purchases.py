from decimal import Decimal

import pytest

from crud import ledger
from crud import purchase_payments as crud_purchase_payments
from crud import purchases as crud_purchases
from crud import sales as crud_sales
from exceptions import InsufficientFunds, NotFound, ReferentialConflict, InsufficientStock, ValidationFailed
from models.purchases import Purchase
from schemas.accounts import AccountMovementRequest
from schemas.purchases import (
    AdditionalCostCreate,
    AdditionalCostUpdate,
    PurchaseCreate,
    PurchaseItemCreateRequest,
    PurchaseItemUpdate,
    PurchasePaymentCreate,
    PurchasePaymentUpdate,
    PurchaseUpdate,
)
from schemas.sales import SaleCreate, SaleItemCreateRequest
from conftest import TODAY


@pytest.fixture
def item(product, pcs):
    def _item(per_price=10, amount=100):
        return PurchaseItemCreateRequest(product_id=product.id, unit_id=pcs.id, per_price=Decimal(per_price),
                                         amount=Decimal(amount))
    return _item


@pytest.fixture
def funded_account(db, account):
    ledger.deposit_account(db, account.id, AccountMovementRequest(
        amount=Decimal(500), currency="USD", transaction_date=TODAY
    ))
    return account


def sell(db, customer, product, pcs, batch, amount):
    return crud_sales.create_sale(db, SaleCreate(customer_id=customer.id, date=TODAY, items=[
        SaleItemCreateRequest(product_id=product.id, unit_id=pcs.id, per_price=Decimal(15), amount=Decimal(amount),
                              purchase_item_id=batch.id)
    ]))


def pay(purchase, account, amount, **kwargs):
    return PurchasePaymentCreate(purchase_id=purchase.id, account_id=account.id, amount=Decimal(amount),
                                 currency="USD", date=TODAY, **kwargs)


def test_total_includes_additional_costs(db, make_purchase):
    purchase = make_purchase(amount=100, per_price=10, additional_costs=[
        AdditionalCostCreate(name="Freight", amount=Decimal(50)),
        AdditionalCostCreate(name="Customs", amount=Decimal("12.5")),
    ])

    assert purchase.items[0].total == Decimal(1000)
    assert purchase.additional_cost == Decimal("62.5")
    assert purchase.total_amount == Decimal("1062.5")


def test_batch_numbers_are_sequential(db, make_purchase):
    first = make_purchase()
    second = make_purchase()

    assert first.batch_number == "BATCH-000001"
    assert second.batch_number == "BATCH-000002"


def test_batch_numbering_continues_from_existing_numbers(db, make_purchase, supplier):
    # rows numbered before the counter existed
    db.add(Purchase(supplier_id=supplier.id, date=TODAY, batch_number="BATCH-000041"))
    db.add(Purchase(supplier_id=supplier.id, date=TODAY, batch_number="BATCH-000007"))
    db.commit()

    assert make_purchase().batch_number == "BATCH-000042"


def test_purchase_needs_an_item(db, supplier):
    with pytest.raises(ValidationFailed):
        crud_purchases.create_purchase(db, PurchaseCreate(supplier_id=supplier.id, date=TODAY, items=[]))
    assert db.query(Purchase).count() == 0


def test_unknown_supplier(db, item):
    with pytest.raises(NotFound):
        crud_purchases.create_purchase(db, PurchaseCreate(supplier_id=999, date=TODAY, items=[item()]))


def test_update_replaces_items_and_keeps_batch_number(db, make_purchase, supplier, item):
    purchase = make_purchase()

    updated = crud_purchases.update_purchase(db, purchase.id, PurchaseUpdate(
        supplier_id=supplier.id, date=TODAY, items=[item(5, 10), item(2, 30)],
        additional_costs=[AdditionalCostCreate(name="Freight", amount=Decimal(4))],
    ))

    assert len(updated.items) == 2
    assert updated.total_amount == Decimal(114)
    assert updated.batch_number == purchase.batch_number


def test_sold_purchase_cannot_be_replaced_or_deleted(db, make_purchase, supplier, item, customer, product, pcs):
    purchase = make_purchase()
    sell(db, customer, product, pcs, purchase.items[0], 5)

    with pytest.raises(ReferentialConflict):
        crud_purchases.update_purchase(db, purchase.id, PurchaseUpdate(supplier_id=supplier.id, date=TODAY,
                                                                       items=[item()]))
    with pytest.raises(ReferentialConflict):
        crud_purchases.delete_purchase(db, purchase.id)
    with pytest.raises(ReferentialConflict):
        crud_purchases.delete_purchase_item(db, purchase.items[0].id)


def test_sold_item_cannot_shrink_below_what_was_sold(db, batch, item, customer, product, pcs):
    sell(db, customer, product, pcs, batch, 60)

    with pytest.raises(InsufficientStock):
        crud_purchases.update_purchase_item(db, batch.id, PurchaseItemUpdate(**item(10, 59).model_dump()))

    updated = crud_purchases.update_purchase_item(db, batch.id, PurchaseItemUpdate(**item(12, 60).model_dump()))
    assert updated.total == Decimal(720)
    assert crud_purchases.get_purchase(db, batch.purchase_id).total_amount == Decimal(720)


def test_item_and_cost_edits_recompute_the_total(db, make_purchase, item):
    purchase = make_purchase(amount=10, per_price=10)

    extra = crud_purchases.create_purchase_item(db, purchase.id, item(3, 10))
    assert crud_purchases.get_purchase(db, purchase.id).total_amount == Decimal(130)

    cost = crud_purchases.create_purchase_additional_cost(db, purchase.id,
                                                          AdditionalCostCreate(name="Freight", amount=Decimal(20)))
    assert crud_purchases.get_purchase(db, purchase.id).total_amount == Decimal(150)

    crud_purchases.update_purchase_additional_cost(db, cost.id, AdditionalCostUpdate(name="Freight", amount=Decimal(5)))
    crud_purchases.delete_purchase_item(db, extra.id)
    refreshed = crud_purchases.get_purchase(db, purchase.id)
    assert refreshed.additional_cost == Decimal(5)
    assert refreshed.total_amount == Decimal(105)

    with pytest.raises(ValidationFailed):
        crud_purchases.delete_purchase_item(db, purchase.items[0].id)


def test_payment_from_account(db, make_purchase, funded_account, usd):
    purchase = make_purchase(amount=10, per_price=10)

    payment = crud_purchase_payments.create_purchase_payment(db, pay(purchase, funded_account, 100))

    assert payment.total == Decimal(100)
    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(400)
    db.refresh(funded_account)
    assert funded_account.current_balance == Decimal(400)


def test_payment_larger_than_the_account_is_rejected(db, make_purchase, funded_account, usd):
    purchase = make_purchase()

    with pytest.raises(InsufficientFunds):
        crud_purchase_payments.create_purchase_payment(db, pay(purchase, funded_account, 600))
    assert crud_purchase_payments.get_purchase_payments(db, purchase.id) == []
    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(500)


def test_payment_without_account_moves_no_money(db, make_purchase, funded_account, usd):
    purchase = make_purchase()

    crud_purchase_payments.create_purchase_payment(db, PurchasePaymentCreate(
        purchase_id=purchase.id, amount=Decimal(5000), currency="USD", date=TODAY
    ))

    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(500)


def test_payment_update_returns_the_old_amount_first(db, make_purchase, funded_account, usd):
    purchase = make_purchase()
    payment = crud_purchase_payments.create_purchase_payment(db, pay(purchase, funded_account, 300))

    # 200 are left, but the 300 already paid come back before the new 450 go out
    crud_purchase_payments.update_purchase_payment(db, payment.id, PurchasePaymentUpdate(
        amount=Decimal(450), currency="USD", date=TODAY
    ))

    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(50)


def test_payment_delete_and_purchase_delete_restore_the_account(db, make_purchase, funded_account, usd):
    first = make_purchase()
    second = make_purchase()
    payment = crud_purchase_payments.create_purchase_payment(db, pay(first, funded_account, 100))
    crud_purchase_payments.create_purchase_payment(db, pay(second, funded_account, 150))
    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(250)

    crud_purchase_payments.delete_purchase_payment(db, payment.id)
    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(350)

    crud_purchases.delete_purchase(db, second.id)
    assert ledger.get_balance(db, funded_account.id, usd.id) == Decimal(500)
    assert crud_purchases.get_purchase(db, second.id) is None
