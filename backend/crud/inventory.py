"""
Unit conversion and the batch inventory ledger.

Every purchase item is a batch. What is left of a batch is never stored: it is
the purchased quantity in base units minus the base-unit quantity of every
sale item pointing at it, aggregated from the current rows.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from exceptions import NotFound, InsufficientStock
from models.unit import Unit
from models.purchases import Purchase
from models.purchase_items import PurchaseItem
from models.sale_items import SaleItem
from schemas.inventory import ProductBatch
from utils.money import to_decimal, round6

logger = logging.getLogger("inventory")

STOCK_EPSILON = Decimal("1e-9")


def unit_ratio(db: Session, unit_id: int) -> Decimal:
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if unit is None:
        raise NotFound(f"Unit with ID {unit_id} not found.")
    return to_decimal(unit.ratio) if unit.ratio is not None else Decimal(1)


def to_base(db: Session, amount, unit_id: int) -> Decimal:
    return to_decimal(amount) * unit_ratio(db, unit_id)


def purchased_base(db: Session, batch: PurchaseItem) -> Decimal:
    return to_base(db, batch.amount, batch.unit_id)


def consumed_base(db: Session, purchase_item_id: int, exclude_sale_id: Optional[int] = None,
                  exclude_sale_item_id: Optional[int] = None) -> Decimal:
    """Base-unit quantity sold out of a batch, optionally ignoring one sale or one sale line."""
    query = db.query(func.coalesce(func.sum(SaleItem.amount * Unit.ratio), 0)).join(
        Unit, Unit.id == SaleItem.unit_id
    ).filter(SaleItem.purchase_item_id == purchase_item_id)
    if exclude_sale_id is not None:
        query = query.filter(SaleItem.sale_id != exclude_sale_id)
    if exclude_sale_item_id is not None:
        query = query.filter(SaleItem.id != exclude_sale_item_id)
    return to_decimal(query.scalar())


def remaining_base(db: Session, purchase_item_id: int, exclude_sale_id: Optional[int] = None) -> Decimal:
    batch = get_batch(db, purchase_item_id)
    return purchased_base(db, batch) - consumed_base(db, purchase_item_id, exclude_sale_id=exclude_sale_id)


def get_batch(db: Session, purchase_item_id: int, lock: bool = False) -> PurchaseItem:
    query = db.query(PurchaseItem).filter(PurchaseItem.id == purchase_item_id)
    if lock:
        query = query.with_for_update()
    batch = query.first()
    if batch is None:
        raise NotFound(f"Batch (purchase item) with ID {purchase_item_id} not found.")
    return batch


def lock_batches(db: Session, purchase_item_ids: Iterable[int]):
    """Row-lock the batches a sale is about to deplete so concurrent sales queue behind this one."""
    for purchase_item_id in sorted(set(purchase_item_ids)):
        get_batch(db, purchase_item_id, lock=True)


def validate_sale_lines(db: Session, items, exclude_sale_id: Optional[int] = None) -> Dict[int, Decimal]:
    """
    Check a whole set of sale lines against their batches before anything is written.

    Lines are accumulated per batch, so several lines of one sale cannot jointly
    oversell a batch. When replacing the lines of an existing sale, pass its id
    as exclude_sale_id so the lines being replaced are not counted as consumed.
    Returns the requested base quantity per batch.
    """
    requested: Dict[int, Decimal] = {}
    batch_ids = [item.purchase_item_id for item in items if item.purchase_item_id is not None]
    lock_batches(db, batch_ids)

    for item in items:
        if item.purchase_item_id is None:
            continue
        requested[item.purchase_item_id] = requested.get(item.purchase_item_id, Decimal(0)) + to_base(
            db, item.amount, item.unit_id
        )

    for purchase_item_id, wanted in requested.items():
        available = remaining_base(db, purchase_item_id, exclude_sale_id=exclude_sale_id)
        if wanted > available + STOCK_EPSILON:
            logger.warning(f"Rejected sale lines: batch {purchase_item_id} has {available}, requested {wanted}")
            raise InsufficientStock(
                f"Insufficient stock in batch {purchase_item_id}. Available: {round6(available)}, Requested: {round6(wanted)}"
            )
    return requested


def ensure_item_available(db: Session, purchase_item_id: Optional[int], amount, unit_id: int,
                          previous: Optional[SaleItem] = None):
    """
    Single-line check for incremental item create/update.

    On update the line's previous consumption is given back, but only when it
    pointed at the same batch; a line moved to another batch leaves its old
    batch to recompute on its own.
    """
    if purchase_item_id is None:
        return
    get_batch(db, purchase_item_id, lock=True)
    wanted = to_base(db, amount, unit_id)
    allowed = remaining_base(db, purchase_item_id)
    if previous is not None and previous.purchase_item_id == purchase_item_id:
        allowed += to_base(db, previous.amount, previous.unit_id)
    if wanted > allowed + STOCK_EPSILON:
        logger.warning(f"Rejected sale item: batch {purchase_item_id} allows {allowed}, requested {wanted}")
        raise InsufficientStock(
            f"Insufficient stock in batch {purchase_item_id}. Available: {round6(allowed)}, Requested: {round6(wanted)}"
        )


def _consumption_subquery(db: Session):
    return db.query(
        SaleItem.purchase_item_id.label("purchase_item_id"),
        func.sum(SaleItem.amount * Unit.ratio).label("consumed"),
    ).join(Unit, Unit.id == SaleItem.unit_id).filter(
        SaleItem.purchase_item_id.isnot(None)
    ).group_by(SaleItem.purchase_item_id).subquery()


def _batches(db: Session, product_id: Optional[int] = None):
    consumed = _consumption_subquery(db)
    query = db.query(PurchaseItem, Purchase, Unit.ratio, consumed.c.consumed).join(
        Purchase, Purchase.id == PurchaseItem.purchase_id
    ).join(Unit, Unit.id == PurchaseItem.unit_id).outerjoin(
        consumed, consumed.c.purchase_item_id == PurchaseItem.id
    )
    if product_id is not None:
        query = query.filter(PurchaseItem.product_id == product_id)
    query = query.order_by(Purchase.date.asc(), PurchaseItem.id.asc())

    batches = []
    for item, purchase, ratio, used in query.all():
        ratio = to_decimal(ratio) if ratio is not None else Decimal(1)
        remaining = round6(to_decimal(item.amount) * ratio - to_decimal(used))
        if remaining <= 0:
            continue
        batches.append(ProductBatch(
            purchase_item_id=item.id,
            purchase_id=purchase.id,
            product_id=item.product_id,
            batch_number=purchase.batch_number,
            purchase_date=purchase.date,
            expiry_date=item.expiry_date,
            unit_id=item.unit_id,
            per_price=item.per_price,
            per_unit=item.per_unit,
            cost_price=item.cost_price,
            wholesale_price=item.wholesale_price,
            retail_price=item.retail_price,
            amount=item.amount,
            remaining_quantity=remaining,
        ))
    return batches


def get_product_batches(db: Session, product_id: int):
    """Batches of a product that still have stock, oldest purchase first."""
    return _batches(db, product_id)


def get_stock_by_batches(db: Session):
    return _batches(db)


def get_product_stock(db: Session, product_id: int, unit_id: Optional[int] = None) -> Decimal:
    total = sum((batch.remaining_quantity for batch in _batches(db, product_id)), Decimal(0))
    if unit_id is not None:
        total = total / unit_ratio(db, unit_id)
    return round6(total)
