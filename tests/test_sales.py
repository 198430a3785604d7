from decimal import Decimal

import pytest

from crud import discount_codes as crud_discount_codes
from crud import inventory
from crud import ledger
from crud import product as crud_product
from crud import sale_payments as crud_sale_payments
from crud import sales as crud_sales
from exceptions import CurrencyNotFound, NotFound, ValidationFailed
from models.accounts import AccountTransaction
from models.audit_log import AuditLog
from models.sale_payments import SalePayment
from schemas.discount_codes import DiscountCodeCreate
from schemas.product import ServiceCreate
from schemas.sales import (
    SaleAdditionalCostCreate,
    SaleAdditionalCostUpdate,
    SaleCreate,
    SaleItemCreateRequest,
    SalePaymentCreate,
    SaleServiceItemCreateRequest,
    SaleUpdate,
)
from utils.money import FIXED, PERCENT
from conftest import TODAY


@pytest.fixture
def line(product, pcs):
    def _line(price=100, amount=1, batch=None, **kwargs):
        return SaleItemCreateRequest(product_id=product.id, unit_id=pcs.id, per_price=Decimal(price),
                                     amount=Decimal(amount), purchase_item_id=batch.id if batch else None, **kwargs)
    return _line


@pytest.fixture
def service(db):
    return crud_product.create_service(db, ServiceCreate(name="Delivery", price=Decimal(20)))


def new_sale(customer, items=(), **kwargs):
    return SaleCreate(customer_id=customer.id, date=TODAY, items=list(items), **kwargs)


def test_order_discount(db, customer, line):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)], order_discount_type=PERCENT,
                                               order_discount_value=Decimal(10)))

    assert sale.order_discount_amount == Decimal(10)
    assert sale.total_amount == Decimal(90)


def test_totals_combine_lines_services_discount_and_costs(db, customer, line, service, usd, eur):
    sale = crud_sales.create_sale(db, new_sale(
        customer,
        [line(50, 2, discount_type=PERCENT, discount_value=Decimal(10))],
        service_items=[SaleServiceItemCreateRequest(service_id=service.id, name="Delivery", price=Decimal(20),
                                                    quantity=Decimal(1), discount_type=FIXED,
                                                    discount_value=Decimal(5))],
        additional_costs=[SaleAdditionalCostCreate(name="Packing", amount=Decimal("2.5"))],
        order_discount_type=FIXED,
        order_discount_value=Decimal(15),
        currency_id=eur.id,
        exchange_rate=Decimal(2),
    ))

    assert sale.items[0].total == Decimal(90)
    assert sale.service_items[0].total == Decimal(15)
    assert sale.additional_cost == Decimal("2.5")
    # 90 + 15 - 15 + 2.5
    assert sale.total_amount == Decimal("92.5")
    assert sale.base_amount == Decimal(185)


def test_sale_needs_a_line(db, customer):
    with pytest.raises(ValidationFailed):
        crud_sales.create_sale(db, new_sale(customer))


def test_service_only_sale_is_allowed(db, customer, service):
    sale = crud_sales.create_sale(db, new_sale(customer, service_items=[
        SaleServiceItemCreateRequest(service_id=service.id, name="Delivery", price=Decimal(20), quantity=Decimal(3))
    ]))

    assert sale.total_amount == Decimal(60)


def test_unknown_customer(db, line):
    with pytest.raises(NotFound):
        crud_sales.create_sale(db, SaleCreate(customer_id=999, date=TODAY, items=[line()]))


def test_recompute_is_idempotent(db, customer, line):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100), line(25, 2)], order_discount_type=PERCENT,
                                               order_discount_value=Decimal(10)))

    first = crud_sales.recompute_sale_total(db, sale.id)
    second = crud_sales.recompute_sale_total(db, sale.id)

    assert first == second == Decimal(135)


def test_item_edits_recompute_the_total(db, customer, line):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)],
                                               additional_costs=[SaleAdditionalCostCreate(name="Fee", amount=Decimal(5))]))
    assert sale.total_amount == Decimal(105)

    item = crud_sales.create_sale_item(db, sale.id, line(40))
    assert crud_sales.get_sale(db, sale.id).total_amount == Decimal(145)

    crud_sales.delete_sale_item(db, item.id)
    assert crud_sales.get_sale(db, sale.id).total_amount == Decimal(105)


def test_last_line_cannot_be_deleted(db, customer, line):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)]))

    with pytest.raises(ValidationFailed):
        crud_sales.delete_sale_item(db, sale.items[0].id)


def test_additional_cost_edits_recompute_the_total(db, customer, line):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)]))

    cost = crud_sales.create_sale_additional_cost(db, sale.id, SaleAdditionalCostCreate(name="Fee", amount=Decimal(8)))
    assert crud_sales.get_sale(db, sale.id).total_amount == Decimal(108)

    crud_sales.update_sale_additional_cost(db, cost.id, SaleAdditionalCostUpdate(name="Fee", amount=Decimal(3)))
    refreshed = crud_sales.get_sale(db, sale.id)
    assert refreshed.additional_cost == Decimal(3)
    assert refreshed.total_amount == Decimal(103)

    crud_sales.delete_sale_additional_cost(db, cost.id)
    assert crud_sales.get_sale(db, sale.id).total_amount == Decimal(100)


def test_update_replaces_lines_and_ignores_its_own_consumption(db, customer, line, batch):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(10, 80, batch)]))

    updated = crud_sales.update_sale(db, sale.id, SaleUpdate(customer_id=customer.id, date=TODAY,
                                                             items=[line(10, 90, batch)]))

    assert len(updated.items) == 1
    assert updated.total_amount == Decimal(900)
    assert inventory.remaining_base(db, batch.id) == Decimal(10)
    audit = db.query(AuditLog).filter(AuditLog.table_name == "sales", AuditLog.action == "UPDATE").one()
    assert audit.record_id == sale.id


def test_initial_payment_has_no_account(db, customer, line, usd, account):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)], paid_amount=Decimal(40)))

    assert sale.paid_amount == Decimal(40)
    assert len(sale.payments) == 1
    payment = sale.payments[0]
    assert payment.account_id is None
    assert payment.currency_id == usd.id
    assert payment.exchange_rate == Decimal(1)
    assert db.query(AccountTransaction).count() == 0


def test_payment_into_account(db, customer, line, usd, account):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)]))

    payment = crud_sale_payments.create_sale_payment(db, SalePaymentCreate(
        sale_id=sale.id, account_id=account.id, amount=Decimal(60), date=TODAY
    ))

    assert payment.currency_id == usd.id
    assert payment.base_amount == Decimal(60)
    assert crud_sales.get_sale(db, sale.id).paid_amount == Decimal(60)
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(60)
    txn = db.query(AccountTransaction).one()
    assert txn.transaction_type == ledger.DEPOSIT
    assert txn.notes == f"Sale payment: Sale #{sale.id}"


def test_payment_uses_the_sale_currency(db, customer, line, eur, account):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)], currency_id=eur.id, exchange_rate=Decimal(2)))

    payment = crud_sale_payments.create_sale_payment(db, SalePaymentCreate(
        sale_id=sale.id, account_id=account.id, amount=Decimal(10), date=TODAY
    ))

    assert payment.currency_id == eur.id
    assert payment.base_amount == Decimal(20)
    db.refresh(account)
    assert account.current_balance == Decimal(20)


def test_payment_without_any_currency(db, customer, line, make_account):
    account = make_account()
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)]))

    with pytest.raises(CurrencyNotFound):
        crud_sale_payments.create_sale_payment(db, SalePaymentCreate(
            sale_id=sale.id, account_id=account.id, amount=Decimal(10), date=TODAY
        ))
    assert db.query(SalePayment).count() == 0


def test_deleting_a_payment_reverses_it(db, customer, line, usd, account):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(100)]))
    payment = crud_sale_payments.create_sale_payment(db, SalePaymentCreate(
        sale_id=sale.id, account_id=account.id, amount=Decimal(60), date=TODAY
    ))

    crud_sale_payments.delete_sale_payment(db, payment.id)

    assert crud_sales.get_sale(db, sale.id).paid_amount == Decimal(0)
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(0)
    db.refresh(account)
    assert account.current_balance == Decimal(0)
    assert [t.transaction_type for t in ledger.get_account_transactions(db, account.id)] == [
        ledger.WITHDRAW, ledger.DEPOSIT
    ]


def test_deleting_a_sale_reverses_payments_and_frees_stock(db, customer, line, usd, account, batch):
    sale = crud_sales.create_sale(db, new_sale(customer, [line(10, 30, batch)]))
    crud_sale_payments.create_sale_payment(db, SalePaymentCreate(
        sale_id=sale.id, account_id=account.id, amount=Decimal(300), date=TODAY
    ))

    crud_sales.delete_sale(db, sale.id)

    assert crud_sales.get_sale(db, sale.id) is None
    assert db.query(SalePayment).count() == 0
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(0)
    assert inventory.remaining_base(db, batch.id) == Decimal(100)


def test_discount_code_is_applied_and_counted_once(db, customer, line):
    code = crud_discount_codes.create_discount_code(db, DiscountCodeCreate(
        code="save10", type=PERCENT, value=Decimal(10), max_uses=5
    ))

    sale = crud_sales.create_sale(db, new_sale(customer, [line(200)], discount_code=" SAVE10 "))
    assert sale.discount_code_id == code.id
    assert sale.total_amount == Decimal(180)

    crud_sales.update_sale(db, sale.id, SaleUpdate(customer_id=customer.id, date=TODAY, items=[line(300)],
                                                   discount_code="SAVE10"))
    db.refresh(code)
    assert code.use_count == 1
    assert crud_sales.get_sale(db, sale.id).total_amount == Decimal(270)


def test_rejected_discount_code_rolls_back_the_sale(db, customer, line):
    crud_discount_codes.create_discount_code(db, DiscountCodeCreate(
        code="BIG", type=FIXED, value=Decimal(50), min_purchase=Decimal(500)
    ))

    with pytest.raises(ValidationFailed):
        crud_sales.create_sale(db, new_sale(customer, [line(100)], discount_code="BIG"))
    assert crud_sales.get_sales(db) == []
