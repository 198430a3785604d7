"""
Purchase orchestrator.

Each purchase item becomes a batch that sales deplete, so a purchase whose
items have been sold from can no longer be replaced or deleted, and a sold
item can only be edited in ways that keep what was sold covered.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import log_change, snapshot
from crud.inventory import consumed_base, to_base, unit_ratio, STOCK_EPSILON
from crud.ledger import get_currency_or_404, receive_funds, resolve_currency
from crud.sequences import next_number, BATCH_SERIES
from exceptions import NotFound, ValidationFailed, ReferentialConflict, InsufficientStock
from models.parties import Supplier
from models.product import Product
from models.purchases import Purchase as PurchaseModel, PurchaseAdditionalCost as PurchaseAdditionalCostModel
from models.purchase_items import PurchaseItem as PurchaseItemModel
from models.sale_items import SaleItem as SaleItemModel
from schemas.purchases import (
    PurchaseCreate,
    PurchaseUpdate,
    PurchaseItemCreateRequest,
    PurchaseItemUpdate,
    AdditionalCostCreate,
    AdditionalCostUpdate,
)
from utils.money import round6, to_decimal
from utils.transaction import atomic

logger = logging.getLogger("purchases")

BATCH_PREFIX = "BATCH-"


def get_purchase(db: Session, purchase_id: int):
    return db.query(PurchaseModel).options(
        selectinload(PurchaseModel.items),
        selectinload(PurchaseModel.additional_costs),
        selectinload(PurchaseModel.payments),
    ).filter(PurchaseModel.id == purchase_id).first()


def get_purchase_or_404(db: Session, purchase_id: int) -> PurchaseModel:
    db_purchase = db.query(PurchaseModel).filter(PurchaseModel.id == purchase_id).first()
    if db_purchase is None:
        raise NotFound(f"Purchase with ID {purchase_id} not found.")
    return db_purchase


def get_purchases(db: Session, supplier_id: Optional[int] = None, start_date: Optional[date] = None,
                  end_date: Optional[date] = None, skip: int = 0, limit: int = 100):
    query = db.query(PurchaseModel)
    if supplier_id:
        query = query.filter(PurchaseModel.supplier_id == supplier_id)
    if start_date:
        query = query.filter(PurchaseModel.date >= start_date)
    if end_date:
        query = query.filter(PurchaseModel.date <= end_date)
    return query.order_by(PurchaseModel.date.desc(), PurchaseModel.id.desc()).offset(skip).limit(limit).all()


def _check_purchase_header(db: Session, purchase_in):
    if db.query(Supplier).filter(Supplier.id == purchase_in.supplier_id).first() is None:
        raise NotFound(f"Supplier with ID {purchase_in.supplier_id} not found.")
    if purchase_in.currency_id is not None:
        get_currency_or_404(db, purchase_in.currency_id)
    if not purchase_in.items:
        raise ValidationFailed("Purchase must contain at least one item.")


def _build_item(db: Session, item: PurchaseItemCreateRequest) -> PurchaseItemModel:
    if db.query(Product).filter(Product.id == item.product_id).first() is None:
        raise NotFound(f"Product with ID {item.product_id} not found.")
    unit_ratio(db, item.unit_id)
    return PurchaseItemModel(
        product_id=item.product_id,
        unit_id=item.unit_id,
        per_price=item.per_price,
        amount=item.amount,
        total=to_decimal(item.per_price) * to_decimal(item.amount),
        per_unit=item.per_unit,
        cost_price=item.cost_price,
        wholesale_price=item.wholesale_price,
        retail_price=item.retail_price,
        expiry_date=item.expiry_date,
    )


def _totals(items, costs):
    items_total = sum((to_decimal(item.total) for item in items), Decimal(0))
    additional_cost = sum((to_decimal(cost.amount) for cost in costs), Decimal(0))
    return items_total + additional_cost, additional_cost


def _is_sold(db: Session, purchase_item_ids) -> bool:
    ids = list(purchase_item_ids)
    if not ids:
        return False
    return db.query(SaleItemModel.id).filter(SaleItemModel.purchase_item_id.in_(ids)).first() is not None


def _ensure_unsold(db: Session, db_purchase: PurchaseModel, action: str):
    if _is_sold(db, [item.id for item in db_purchase.items]):
        raise ReferentialConflict(
            f"Cannot {action} purchase {db_purchase.id}: items from its batch have already been sold."
        )


def create_purchase(db: Session, purchase: PurchaseCreate, user_id: Optional[str] = None):
    with atomic(db):
        _check_purchase_header(db, purchase)
        items = [_build_item(db, item) for item in purchase.items]
        costs = [PurchaseAdditionalCostModel(name=cost.name, amount=cost.amount) for cost in purchase.additional_costs]
        total_amount, additional_cost = _totals(items, costs)

        db_purchase = PurchaseModel(
            supplier_id=purchase.supplier_id,
            date=purchase.date,
            notes=purchase.notes,
            currency_id=purchase.currency_id,
            total_amount=total_amount,
            additional_cost=additional_cost,
            batch_number=next_number(db, BATCH_SERIES, PurchaseModel.batch_number, BATCH_PREFIX),
            items=items,
            additional_costs=costs,
            created_by=user_id,
        )
        db.add(db_purchase)
        db.flush()

    logger.info(f"Purchase (ID: {db_purchase.id}, batch {db_purchase.batch_number}) created for Supplier ID {db_purchase.supplier_id} by {user_id}")
    return get_purchase(db, db_purchase.id)


def update_purchase(db: Session, purchase_id: int, purchase: PurchaseUpdate, user_id: Optional[str] = None):
    """Replace header, items and additional costs. Payments and the batch number are kept."""
    with atomic(db):
        db_purchase = get_purchase_or_404(db, purchase_id)
        old_values = snapshot(db_purchase)
        _ensure_unsold(db, db_purchase, "update")
        _check_purchase_header(db, purchase)
        items = [_build_item(db, item) for item in purchase.items]
        costs = [PurchaseAdditionalCostModel(name=cost.name, amount=cost.amount) for cost in purchase.additional_costs]
        total_amount, additional_cost = _totals(items, costs)

        db_purchase.items.clear()
        db_purchase.additional_costs.clear()
        db.flush()

        db_purchase.supplier_id = purchase.supplier_id
        db_purchase.date = purchase.date
        db_purchase.notes = purchase.notes
        db_purchase.currency_id = purchase.currency_id
        db_purchase.items.extend(items)
        db_purchase.additional_costs.extend(costs)
        db_purchase.total_amount = total_amount
        db_purchase.additional_cost = additional_cost
        db_purchase.updated_by = user_id
        db.flush()
        log_change(db, "purchases", db_purchase.id, "UPDATE", user_id, old_values, snapshot(db_purchase))

    logger.info(f"Purchase (ID: {purchase_id}) updated by {user_id}")
    return get_purchase(db, purchase_id)


def delete_purchase(db: Session, purchase_id: int, user_id: Optional[str] = None):
    """Hard delete; payments made from an account are returned to it first."""
    with atomic(db):
        db_purchase = get_purchase_or_404(db, purchase_id)
        _ensure_unsold(db, db_purchase, "delete")
        old_values = snapshot(db_purchase)
        for payment in db_purchase.payments:
            if payment.account_id is not None:
                reverse_purchase_payment(db, payment, user_id)
        log_change(db, "purchases", db_purchase.id, "DELETE", user_id, old_values, None)
        db.delete(db_purchase)

    logger.info(f"Purchase (ID: {purchase_id}) deleted by {user_id}")
    return True


def reverse_purchase_payment(db: Session, payment, user_id: Optional[str] = None):
    """Put a purchase payment's money back into the account it was paid from."""
    receive_funds(
        db, payment.account_id, resolve_currency(db, payment.currency), payment.amount, payment.rate, payment.date,
        notes=f"Reversal of purchase payment #{payment.id}: Purchase #{payment.purchase_id}", user_id=user_id,
    )


def recompute_purchase_total(db: Session, purchase_id: int) -> Decimal:
    db_purchase = get_purchase_or_404(db, purchase_id)
    items_total = db.query(func.coalesce(func.sum(PurchaseItemModel.total), 0)).filter(
        PurchaseItemModel.purchase_id == purchase_id
    ).scalar()
    additional_cost = db.query(func.coalesce(func.sum(PurchaseAdditionalCostModel.amount), 0)).filter(
        PurchaseAdditionalCostModel.purchase_id == purchase_id
    ).scalar()
    db_purchase.additional_cost = to_decimal(additional_cost)
    db_purchase.total_amount = to_decimal(items_total) + to_decimal(additional_cost)
    db.flush()
    return to_decimal(db_purchase.total_amount)


def get_purchase_item(db: Session, item_id: int) -> PurchaseItemModel:
    db_item = db.query(PurchaseItemModel).filter(PurchaseItemModel.id == item_id).first()
    if db_item is None:
        raise NotFound(f"Purchase item with ID {item_id} not found.")
    return db_item


def create_purchase_item(db: Session, purchase_id: int, item: PurchaseItemCreateRequest,
                         user_id: Optional[str] = None):
    with atomic(db):
        get_purchase_or_404(db, purchase_id)
        db_item = _build_item(db, item)
        db_item.purchase_id = purchase_id
        db.add(db_item)
        db.flush()
        recompute_purchase_total(db, purchase_id)
    db.refresh(db_item)
    logger.info(f"Purchase item (ID: {db_item.id}) added to Purchase ID {purchase_id} by {user_id}")
    return db_item


def update_purchase_item(db: Session, item_id: int, item: PurchaseItemUpdate, user_id: Optional[str] = None):
    with atomic(db):
        db_item = db.query(PurchaseItemModel).filter(PurchaseItemModel.id == item_id).with_for_update().first()
        if db_item is None:
            raise NotFound(f"Purchase item with ID {item_id} not found.")
        priced = _build_item(db, item)

        sold = consumed_base(db, item_id)
        if sold > 0:
            if priced.product_id != db_item.product_id:
                raise ReferentialConflict(
                    f"Cannot change the product of purchase item {item_id}: it has already been sold from."
                )
            new_base = to_base(db, priced.amount, priced.unit_id)
            if new_base + STOCK_EPSILON < sold:
                logger.warning(f"Rejected purchase item {item_id} update: {new_base} would not cover {sold} sold")
                raise InsufficientStock(
                    f"Purchase item {item_id} has {round6(sold)} already sold; it cannot be reduced to {round6(new_base)}."
                )

        for field in ("product_id", "unit_id", "per_price", "amount", "total", "per_unit", "cost_price",
                      "wholesale_price", "retail_price", "expiry_date"):
            setattr(db_item, field, getattr(priced, field))
        db.flush()
        recompute_purchase_total(db, db_item.purchase_id)
    db.refresh(db_item)
    logger.info(f"Purchase item (ID: {item_id}) of Purchase ID {db_item.purchase_id} updated by {user_id}")
    return db_item


def delete_purchase_item(db: Session, item_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_item = get_purchase_item(db, item_id)
        purchase_id = db_item.purchase_id
        if _is_sold(db, [item_id]):
            raise ReferentialConflict(f"Cannot delete purchase item {item_id}: it has already been sold from.")
        remaining = db.query(func.count(PurchaseItemModel.id)).filter(
            PurchaseItemModel.purchase_id == purchase_id
        ).scalar()
        if remaining <= 1:
            raise ValidationFailed("Purchase must contain at least one item.")
        db.delete(db_item)
        db.flush()
        recompute_purchase_total(db, purchase_id)
    logger.info(f"Purchase item (ID: {item_id}) removed from Purchase ID {purchase_id} by {user_id}")
    return True


def get_purchase_additional_costs(db: Session, purchase_id: int):
    get_purchase_or_404(db, purchase_id)
    return db.query(PurchaseAdditionalCostModel).filter(
        PurchaseAdditionalCostModel.purchase_id == purchase_id
    ).order_by(PurchaseAdditionalCostModel.id.asc()).all()


def _get_purchase_cost(db: Session, cost_id: int) -> PurchaseAdditionalCostModel:
    db_cost = db.query(PurchaseAdditionalCostModel).filter(PurchaseAdditionalCostModel.id == cost_id).first()
    if db_cost is None:
        raise NotFound(f"Purchase additional cost with ID {cost_id} not found.")
    return db_cost


def create_purchase_additional_cost(db: Session, purchase_id: int, cost: AdditionalCostCreate,
                                    user_id: Optional[str] = None):
    with atomic(db):
        get_purchase_or_404(db, purchase_id)
        db_cost = PurchaseAdditionalCostModel(purchase_id=purchase_id, name=cost.name, amount=cost.amount)
        db.add(db_cost)
        db.flush()
        recompute_purchase_total(db, purchase_id)
    db.refresh(db_cost)
    logger.info(f"Additional cost (ID: {db_cost.id}) added to Purchase ID {purchase_id} by {user_id}")
    return db_cost


def update_purchase_additional_cost(db: Session, cost_id: int, cost: AdditionalCostUpdate,
                                    user_id: Optional[str] = None):
    with atomic(db):
        db_cost = _get_purchase_cost(db, cost_id)
        db_cost.name = cost.name
        db_cost.amount = cost.amount
        db.flush()
        recompute_purchase_total(db, db_cost.purchase_id)
    db.refresh(db_cost)
    return db_cost


def delete_purchase_additional_cost(db: Session, cost_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_cost = _get_purchase_cost(db, cost_id)
        purchase_id = db_cost.purchase_id
        db.delete(db_cost)
        db.flush()
        recompute_purchase_total(db, purchase_id)
    logger.info(f"Additional cost (ID: {cost_id}) removed from Purchase ID {purchase_id} by {user_id}")
    return True
