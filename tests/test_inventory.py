from decimal import Decimal

import pytest

from crud import inventory
from crud import product as crud_product
from crud import sales as crud_sales
from exceptions import InsufficientStock, NotFound, ValidationFailed
from models.sales import Sale
from schemas.product import ProductCreate
from schemas.sales import SaleCreate, SaleItemCreateRequest, SaleItemUpdate
from conftest import TODAY


def sale_line(product, unit, amount, batch=None, price=15):
    return SaleItemCreateRequest(
        product_id=product.id,
        unit_id=unit.id,
        per_price=Decimal(price),
        amount=Decimal(amount),
        purchase_item_id=batch.id if batch is not None else None,
    )


def make_sale(db, customer, *lines):
    return crud_sales.create_sale(db, SaleCreate(customer_id=customer.id, date=TODAY, items=list(lines)))


def test_unit_conversion(db, pcs, dozen):
    assert inventory.unit_ratio(db, dozen.id) == Decimal(12)
    assert inventory.to_base(db, Decimal(3), dozen.id) == Decimal(36)
    assert inventory.to_base(db, Decimal(3), pcs.id) == Decimal(3)


def test_unit_ratio_of_missing_unit(db):
    with pytest.raises(NotFound):
        inventory.unit_ratio(db, 999)


def test_purchase_creates_batch(db, make_purchase, product):
    purchase = make_purchase(amount=100, per_price=10)

    assert purchase.total_amount == Decimal(1000)
    batches = inventory.get_product_batches(db, product.id)
    assert len(batches) == 1
    assert batches[0].purchase_item_id == purchase.items[0].id
    assert batches[0].batch_number == purchase.batch_number
    assert batches[0].remaining_quantity == Decimal(100)


def test_sale_depletes_batch_and_oversell_is_rejected(db, batch, product, pcs, customer):
    sale = make_sale(db, customer, sale_line(product, pcs, 30, batch))
    assert inventory.remaining_base(db, batch.id) == Decimal(70)

    with pytest.raises(InsufficientStock):
        crud_sales.create_sale_item(db, sale.id, sale_line(product, pcs, 80, batch))

    # the rejected line left nothing behind
    assert len(crud_sales.get_sale(db, sale.id).items) == 1
    assert inventory.remaining_base(db, batch.id) == Decimal(70)


def test_lines_of_one_sale_cannot_jointly_oversell(db, batch, product, pcs, customer):
    with pytest.raises(InsufficientStock):
        make_sale(db, customer, sale_line(product, pcs, 60, batch), sale_line(product, pcs, 50, batch))

    assert db.query(Sale).count() == 0
    assert inventory.remaining_base(db, batch.id) == Decimal(100)


def test_exact_remaining_quantity_can_be_sold(db, batch, product, pcs, customer):
    make_sale(db, customer, sale_line(product, pcs, 60, batch), sale_line(product, pcs, 40, batch))

    assert inventory.remaining_base(db, batch.id) == Decimal(0)
    assert inventory.get_product_batches(db, product.id) == []


def test_sale_in_other_unit_is_converted(db, make_purchase, product, pcs, dozen, customer):
    batch = make_purchase(amount=10, unit_id=dozen.id).items[0]
    make_sale(db, customer, sale_line(product, pcs, 30, batch))

    assert inventory.remaining_base(db, batch.id) == Decimal(90)
    assert inventory.get_product_stock(db, product.id) == Decimal(90)
    assert inventory.get_product_stock(db, product.id, dozen.id) == Decimal("7.5")

    with pytest.raises(InsufficientStock):
        make_sale(db, customer, sale_line(product, dozen, 8, batch))


def test_item_update_gives_back_its_own_consumption(db, batch, product, pcs, customer):
    sale = make_sale(db, customer, sale_line(product, pcs, 60, batch))
    item = sale.items[0]

    updated = crud_sales.update_sale_item(db, item.id, SaleItemUpdate(**sale_line(product, pcs, 90, batch).model_dump()))
    assert updated.amount == Decimal(90)
    assert inventory.remaining_base(db, batch.id) == Decimal(10)

    with pytest.raises(InsufficientStock):
        crud_sales.update_sale_item(db, item.id, SaleItemUpdate(**sale_line(product, pcs, 101, batch).model_dump()))
    assert inventory.remaining_base(db, batch.id) == Decimal(10)


def test_item_moved_to_another_batch_is_checked_against_that_batch(db, make_purchase, product, pcs, customer):
    first = make_purchase(amount=100).items[0]
    second = make_purchase(amount=50).items[0]
    sale = make_sale(db, customer, sale_line(product, pcs, 90, first))
    item = sale.items[0]

    with pytest.raises(InsufficientStock):
        crud_sales.update_sale_item(db, item.id, SaleItemUpdate(**sale_line(product, pcs, 90, second).model_dump()))

    crud_sales.update_sale_item(db, item.id, SaleItemUpdate(**sale_line(product, pcs, 50, second).model_dump()))
    assert inventory.remaining_base(db, first.id) == Decimal(100)
    assert inventory.remaining_base(db, second.id) == Decimal(0)


def test_deleting_a_sale_item_restores_stock(db, batch, product, pcs, customer):
    sale = make_sale(db, customer, sale_line(product, pcs, 30, batch), sale_line(product, pcs, 20, batch))

    crud_sales.delete_sale_item(db, sale.items[0].id)

    assert inventory.remaining_base(db, batch.id) == Decimal(80)


def test_batch_must_hold_the_sold_product(db, batch, pcs, customer):
    other = crud_product.create_product(db, ProductCreate(name="Gadget"))

    with pytest.raises(ValidationFailed):
        make_sale(db, customer, sale_line(other, pcs, 1, batch))


def test_unknown_batch(db, product, pcs, customer, batch):
    with pytest.raises(NotFound):
        make_sale(db, customer, SaleItemCreateRequest(
            product_id=product.id, unit_id=pcs.id, per_price=Decimal(1), amount=Decimal(1), purchase_item_id=999
        ))


def test_stock_by_batches_skips_exhausted_batches(db, make_purchase, product, pcs, customer):
    first = make_purchase(amount=10).items[0]
    second = make_purchase(amount=20).items[0]
    make_sale(db, customer, sale_line(product, pcs, 10, first))

    batches = inventory.get_stock_by_batches(db)

    assert [b.purchase_item_id for b in batches] == [second.id]
    assert batches[0].remaining_quantity == Decimal(20)


def test_sale_without_batch_does_not_touch_stock(db, batch, product, pcs, customer):
    make_sale(db, customer, sale_line(product, pcs, 500))

    assert inventory.get_product_stock(db, product.id) == Decimal(100)
