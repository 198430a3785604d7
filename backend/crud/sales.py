"""
Sale orchestrator.

A sale is written as one unit: lines are priced and checked against their
batches first, then the header and all child rows are inserted and committed
together. Item-level edits re-derive the sale total from the stored lines.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud import discount_codes as crud_discount_codes
from crud.audit_log import log_change, snapshot
from crud.inventory import validate_sale_lines, ensure_item_available, get_batch, unit_ratio
from crud.ledger import get_base_currency, get_currency_or_404, disburse_funds
from exceptions import NotFound, ValidationFailed
from models.parties import Customer
from models.product import Product, Service
from models.sales import Sale as SaleModel, SaleAdditionalCost as SaleAdditionalCostModel
from models.sale_items import SaleItem as SaleItemModel, SaleServiceItem as SaleServiceItemModel
from models.sale_payments import SalePayment as SalePaymentModel
from schemas.sales import (
    SaleCreate,
    SaleUpdate,
    SaleItemCreateRequest,
    SaleItemUpdate,
    SaleServiceItemCreateRequest,
    SaleAdditionalCostCreate,
    SaleAdditionalCostUpdate,
)
from utils.money import compute_discount, line_total, round2, to_decimal
from utils.transaction import atomic

logger = logging.getLogger("sales")


def get_sale(db: Session, sale_id: int):
    return db.query(SaleModel).options(
        selectinload(SaleModel.items),
        selectinload(SaleModel.service_items),
        selectinload(SaleModel.additional_costs),
        selectinload(SaleModel.payments),
    ).filter(SaleModel.id == sale_id).first()


def get_sale_or_404(db: Session, sale_id: int) -> SaleModel:
    db_sale = db.query(SaleModel).filter(SaleModel.id == sale_id).first()
    if db_sale is None:
        raise NotFound(f"Sale with ID {sale_id} not found.")
    return db_sale


def get_sales(db: Session, customer_id: Optional[int] = None, start_date: Optional[date] = None,
              end_date: Optional[date] = None, skip: int = 0, limit: int = 100):
    query = db.query(SaleModel)
    if customer_id:
        query = query.filter(SaleModel.customer_id == customer_id)
    if start_date:
        query = query.filter(SaleModel.date >= start_date)
    if end_date:
        query = query.filter(SaleModel.date <= end_date)
    return query.order_by(SaleModel.date.desc(), SaleModel.id.desc()).offset(skip).limit(limit).all()


def _check_sale_header(db: Session, customer_id: int, currency_id: Optional[int]):
    if db.query(Customer).filter(Customer.id == customer_id).first() is None:
        raise NotFound(f"Customer with ID {customer_id} not found.")
    if currency_id is not None:
        get_currency_or_404(db, currency_id)


def _build_item(db: Session, item: SaleItemCreateRequest) -> SaleItemModel:
    if db.query(Product).filter(Product.id == item.product_id).first() is None:
        raise NotFound(f"Product with ID {item.product_id} not found.")
    unit_ratio(db, item.unit_id)
    if item.purchase_item_id is not None:
        batch = get_batch(db, item.purchase_item_id)
        if batch.product_id != item.product_id:
            raise ValidationFailed(
                f"Batch {item.purchase_item_id} holds product {batch.product_id}, not product {item.product_id}."
            )
    return SaleItemModel(
        product_id=item.product_id,
        unit_id=item.unit_id,
        per_price=item.per_price,
        amount=item.amount,
        total=line_total(item.per_price, item.amount, item.discount_type, item.discount_value),
        purchase_item_id=item.purchase_item_id,
        sale_type=item.sale_type,
        discount_type=item.discount_type,
        discount_value=item.discount_value,
    )


def _build_service_item(db: Session, item: SaleServiceItemCreateRequest) -> SaleServiceItemModel:
    if db.query(Service).filter(Service.id == item.service_id).first() is None:
        raise NotFound(f"Service with ID {item.service_id} not found.")
    return SaleServiceItemModel(
        service_id=item.service_id,
        name=item.name,
        price=item.price,
        quantity=item.quantity,
        total=line_total(item.price, item.quantity, item.discount_type, item.discount_value),
        discount_type=item.discount_type,
        discount_value=item.discount_value,
    )


def _resolve_order_discount(db: Session, sale_in, subtotal: Decimal, current_code_id: Optional[int] = None):
    """
    Returns (discount_type, discount_value, code_row_or_None, newly_applied).

    A code already applied to the sale being updated is reused as is; a new code
    must pass validation and counts as one use.
    """
    if not sale_in.discount_code:
        return sale_in.order_discount_type, sale_in.order_discount_value, None, False
    existing = crud_discount_codes.get_discount_code_by_code(db, sale_in.discount_code)
    if existing is not None and existing.id == current_code_id:
        return existing.type, existing.value, existing, False
    db_code = crud_discount_codes.check_discount_code(db, sale_in.discount_code, subtotal)
    return db_code.type, db_code.value, db_code, True


def _price_sale(db: Session, sale_in, current_code_id: Optional[int] = None):
    if not sale_in.items and not sale_in.service_items:
        raise ValidationFailed("A sale must contain at least one item or service.")

    items = [_build_item(db, item) for item in sale_in.items]
    service_items = [_build_service_item(db, item) for item in sale_in.service_items]
    costs = [SaleAdditionalCostModel(name=cost.name, amount=cost.amount) for cost in sale_in.additional_costs]

    subtotal = sum((to_decimal(line.total) for line in items + service_items), Decimal(0))
    discount_type, discount_value, db_code, newly_applied = _resolve_order_discount(
        db, sale_in, subtotal, current_code_id
    )
    discount_amount = compute_discount(subtotal, discount_type, discount_value)
    additional_cost = sum((to_decimal(cost.amount) for cost in costs), Decimal(0))
    total_amount = round2(subtotal - discount_amount + additional_cost)

    return {
        "items": items,
        "service_items": service_items,
        "additional_costs": costs,
        "order_discount_type": discount_type,
        "order_discount_value": to_decimal(discount_value),
        "order_discount_amount": discount_amount,
        "additional_cost": additional_cost,
        "total_amount": total_amount,
        "base_amount": total_amount * to_decimal(sale_in.exchange_rate),
        "discount_code": db_code,
        "code_newly_applied": newly_applied,
    }


def _initial_payment(db: Session, sale_in: SaleCreate) -> SalePaymentModel:
    """Opening payment recorded with the sale; it has no account, so no balance moves."""
    if sale_in.currency_id is not None:
        currency_id, rate = sale_in.currency_id, to_decimal(sale_in.exchange_rate)
    else:
        base = get_base_currency(db)
        currency_id, rate = (base.id if base else None), Decimal(1)
    return SalePaymentModel(
        account_id=None,
        currency_id=currency_id,
        exchange_rate=rate,
        amount=sale_in.paid_amount,
        base_amount=to_decimal(sale_in.paid_amount) * rate,
        date=sale_in.date,
    )


def create_sale(db: Session, sale: SaleCreate, user_id: Optional[str] = None):
    with atomic(db):
        _check_sale_header(db, sale.customer_id, sale.currency_id)
        priced = _price_sale(db, sale)
        validate_sale_lines(db, sale.items)

        db_sale = SaleModel(
            customer_id=sale.customer_id,
            date=sale.date,
            notes=sale.notes,
            currency_id=sale.currency_id,
            exchange_rate=sale.exchange_rate,
            total_amount=priced["total_amount"],
            base_amount=priced["base_amount"],
            paid_amount=Decimal(0),
            additional_cost=priced["additional_cost"],
            order_discount_type=priced["order_discount_type"],
            order_discount_value=priced["order_discount_value"],
            order_discount_amount=priced["order_discount_amount"],
            discount_code_id=priced["discount_code"].id if priced["discount_code"] else None,
            items=priced["items"],
            service_items=priced["service_items"],
            additional_costs=priced["additional_costs"],
            created_by=user_id,
        )
        if sale.paid_amount > 0:
            db_sale.payments.append(_initial_payment(db, sale))
            db_sale.paid_amount = sale.paid_amount
        db.add(db_sale)
        db.flush()

        if priced["code_newly_applied"]:
            crud_discount_codes.mark_used(db, priced["discount_code"])

    logger.info(f"Sale (ID: {db_sale.id}) created for Customer ID {db_sale.customer_id} by {user_id}")
    return get_sale(db, db_sale.id)


def update_sale(db: Session, sale_id: int, sale: SaleUpdate, user_id: Optional[str] = None):
    """Replace header, items, service items and additional costs; payments are left alone."""
    with atomic(db):
        db_sale = get_sale_or_404(db, sale_id)
        old_values = snapshot(db_sale)
        _check_sale_header(db, sale.customer_id, sale.currency_id)
        priced = _price_sale(db, sale, current_code_id=db_sale.discount_code_id)
        # the lines being replaced no longer count against their batches
        validate_sale_lines(db, sale.items, exclude_sale_id=sale_id)

        db_sale.items.clear()
        db_sale.service_items.clear()
        db_sale.additional_costs.clear()
        db.flush()

        db_sale.customer_id = sale.customer_id
        db_sale.date = sale.date
        db_sale.notes = sale.notes
        db_sale.currency_id = sale.currency_id
        db_sale.exchange_rate = sale.exchange_rate
        db_sale.items.extend(priced["items"])
        db_sale.service_items.extend(priced["service_items"])
        db_sale.additional_costs.extend(priced["additional_costs"])
        db_sale.additional_cost = priced["additional_cost"]
        db_sale.order_discount_type = priced["order_discount_type"]
        db_sale.order_discount_value = priced["order_discount_value"]
        db_sale.order_discount_amount = priced["order_discount_amount"]
        db_sale.total_amount = priced["total_amount"]
        db_sale.base_amount = priced["base_amount"]
        db_sale.discount_code_id = priced["discount_code"].id if priced["discount_code"] else None
        db_sale.updated_by = user_id
        db.flush()

        if priced["code_newly_applied"]:
            crud_discount_codes.mark_used(db, priced["discount_code"])
        log_change(db, "sales", db_sale.id, "UPDATE", user_id, old_values, snapshot(db_sale))

    logger.info(f"Sale (ID: {sale_id}) updated by {user_id}")
    return get_sale(db, sale_id)


def delete_sale(db: Session, sale_id: int, user_id: Optional[str] = None):
    """Hard delete; payments that reached an account are taken back out of it first."""
    with atomic(db):
        db_sale = get_sale_or_404(db, sale_id)
        old_values = snapshot(db_sale)
        for payment in db_sale.payments:
            if payment.account_id is not None:
                reverse_sale_payment(db, payment, user_id)
        log_change(db, "sales", db_sale.id, "DELETE", user_id, old_values, None)
        db.delete(db_sale)

    logger.info(f"Sale (ID: {sale_id}) deleted by {user_id}")
    return True


def reverse_sale_payment(db: Session, payment: SalePaymentModel, user_id: Optional[str] = None):
    currency = get_currency_or_404(db, payment.currency_id)
    disburse_funds(
        db, payment.account_id, currency, payment.amount, payment.exchange_rate, payment.date,
        notes=f"Reversal of sale payment #{payment.id}: Sale #{payment.sale_id}",
        check_funds=False, user_id=user_id,
    )


def recompute_sale_total(db: Session, sale_id: int) -> Decimal:
    """
    total_amount = sum(item totals) + sum(service totals) - order_discount_amount + additional_cost

    Derived from the stored rows every time, so calling it twice gives the same answer.
    """
    db_sale = get_sale_or_404(db, sale_id)
    items_total = db.query(func.coalesce(func.sum(SaleItemModel.total), 0)).filter(
        SaleItemModel.sale_id == sale_id
    ).scalar()
    services_total = db.query(func.coalesce(func.sum(SaleServiceItemModel.total), 0)).filter(
        SaleServiceItemModel.sale_id == sale_id
    ).scalar()
    total = (to_decimal(items_total) + to_decimal(services_total)
             - to_decimal(db_sale.order_discount_amount) + to_decimal(db_sale.additional_cost))
    db_sale.total_amount = total
    db_sale.base_amount = total * to_decimal(db_sale.exchange_rate)
    db.flush()
    return total


def recompute_additional_cost(db: Session, sale_id: int) -> Decimal:
    db_sale = get_sale_or_404(db, sale_id)
    db_sale.additional_cost = to_decimal(db.query(func.coalesce(func.sum(SaleAdditionalCostModel.amount), 0)).filter(
        SaleAdditionalCostModel.sale_id == sale_id
    ).scalar())
    db.flush()
    return recompute_sale_total(db, sale_id)


def _line_count(db: Session, sale_id: int) -> int:
    items = db.query(func.count(SaleItemModel.id)).filter(SaleItemModel.sale_id == sale_id).scalar()
    services = db.query(func.count(SaleServiceItemModel.id)).filter(SaleServiceItemModel.sale_id == sale_id).scalar()
    return (items or 0) + (services or 0)


def get_sale_item(db: Session, item_id: int) -> SaleItemModel:
    db_item = db.query(SaleItemModel).filter(SaleItemModel.id == item_id).first()
    if db_item is None:
        raise NotFound(f"Sale item with ID {item_id} not found.")
    return db_item


def create_sale_item(db: Session, sale_id: int, item: SaleItemCreateRequest, user_id: Optional[str] = None):
    with atomic(db):
        db_sale = get_sale_or_404(db, sale_id)
        db_item = _build_item(db, item)
        ensure_item_available(db, item.purchase_item_id, item.amount, item.unit_id)
        db_item.sale_id = db_sale.id
        db.add(db_item)
        db.flush()
        recompute_sale_total(db, sale_id)
        db_sale.updated_by = user_id
    db.refresh(db_item)
    logger.info(f"Sale item (ID: {db_item.id}) added to Sale ID {sale_id} by {user_id}")
    return db_item


def update_sale_item(db: Session, item_id: int, item: SaleItemUpdate, user_id: Optional[str] = None):
    with atomic(db):
        db_item = get_sale_item(db, item_id)
        priced = _build_item(db, item)
        ensure_item_available(db, item.purchase_item_id, item.amount, item.unit_id, previous=db_item)
        for field in ("product_id", "unit_id", "per_price", "amount", "total", "purchase_item_id",
                      "sale_type", "discount_type", "discount_value"):
            setattr(db_item, field, getattr(priced, field))
        db.flush()
        recompute_sale_total(db, db_item.sale_id)
    db.refresh(db_item)
    logger.info(f"Sale item (ID: {item_id}) of Sale ID {db_item.sale_id} updated by {user_id}")
    return db_item


def delete_sale_item(db: Session, item_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_item = get_sale_item(db, item_id)
        sale_id = db_item.sale_id
        if _line_count(db, sale_id) <= 1:
            raise ValidationFailed("A sale must contain at least one item or service.")
        db.delete(db_item)
        db.flush()
        recompute_sale_total(db, sale_id)
    logger.info(f"Sale item (ID: {item_id}) removed from Sale ID {sale_id} by {user_id}")
    return True


def get_sale_additional_costs(db: Session, sale_id: int) -> List[SaleAdditionalCostModel]:
    get_sale_or_404(db, sale_id)
    return db.query(SaleAdditionalCostModel).filter(
        SaleAdditionalCostModel.sale_id == sale_id
    ).order_by(SaleAdditionalCostModel.id.asc()).all()


def _get_sale_cost(db: Session, cost_id: int) -> SaleAdditionalCostModel:
    db_cost = db.query(SaleAdditionalCostModel).filter(SaleAdditionalCostModel.id == cost_id).first()
    if db_cost is None:
        raise NotFound(f"Sale additional cost with ID {cost_id} not found.")
    return db_cost


def create_sale_additional_cost(db: Session, sale_id: int, cost: SaleAdditionalCostCreate,
                                user_id: Optional[str] = None):
    with atomic(db):
        get_sale_or_404(db, sale_id)
        db_cost = SaleAdditionalCostModel(sale_id=sale_id, name=cost.name, amount=cost.amount)
        db.add(db_cost)
        db.flush()
        recompute_additional_cost(db, sale_id)
    db.refresh(db_cost)
    logger.info(f"Additional cost (ID: {db_cost.id}) added to Sale ID {sale_id} by {user_id}")
    return db_cost


def update_sale_additional_cost(db: Session, cost_id: int, cost: SaleAdditionalCostUpdate,
                                user_id: Optional[str] = None):
    with atomic(db):
        db_cost = _get_sale_cost(db, cost_id)
        db_cost.name = cost.name
        db_cost.amount = cost.amount
        db.flush()
        recompute_additional_cost(db, db_cost.sale_id)
    db.refresh(db_cost)
    return db_cost


def delete_sale_additional_cost(db: Session, cost_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_cost = _get_sale_cost(db, cost_id)
        sale_id = db_cost.sale_id
        db.delete(db_cost)
        db.flush()
        recompute_additional_cost(db, sale_id)
    logger.info(f"Additional cost (ID: {cost_id}) removed from Sale ID {sale_id} by {user_id}")
    return True
