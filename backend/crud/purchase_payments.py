import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.audit_log import log_change, snapshot
from crud.ledger import resolve_currency, disburse_funds
from crud.purchases import get_purchase_or_404, reverse_purchase_payment
from exceptions import NotFound
from models.purchase_payments import PurchasePayment as PurchasePaymentModel
from schemas.purchases import PurchasePaymentCreate, PurchasePaymentUpdate
from utils.money import to_decimal
from utils.transaction import atomic

logger = logging.getLogger("purchase_payments")


def _pay_from_account(db: Session, payment: PurchasePaymentModel, currency, user_id: Optional[str] = None):
    disburse_funds(
        db, payment.account_id, currency, payment.amount, payment.rate, payment.date,
        notes=f"Purchase payment: Purchase #{payment.purchase_id}", user_id=user_id,
    )


def get_purchase_payment(db: Session, payment_id: int) -> PurchasePaymentModel:
    db_payment = db.query(PurchasePaymentModel).filter(PurchasePaymentModel.id == payment_id).first()
    if db_payment is None:
        raise NotFound(f"Purchase payment with ID {payment_id} not found.")
    return db_payment


def get_purchase_payments(db: Session, purchase_id: int):
    get_purchase_or_404(db, purchase_id)
    return db.query(PurchasePaymentModel).filter(
        PurchasePaymentModel.purchase_id == purchase_id
    ).order_by(PurchasePaymentModel.date.asc(), PurchasePaymentModel.id.asc()).all()


def create_purchase_payment(db: Session, payment: PurchasePaymentCreate, user_id: Optional[str] = None):
    """Record a payment to the supplier; paying from an account requires it to hold the funds."""
    with atomic(db):
        get_purchase_or_404(db, payment.purchase_id)
        currency = resolve_currency(db, payment.currency)
        db_payment = PurchasePaymentModel(
            **payment.model_dump(),
            total=to_decimal(payment.amount) * to_decimal(payment.rate),
            created_by=user_id,
        )
        db.add(db_payment)
        db.flush()
        if db_payment.account_id is not None:
            _pay_from_account(db, db_payment, currency, user_id)

    db.refresh(db_payment)
    logger.info(f"Payment (ID: {db_payment.id}) of {db_payment.amount} {db_payment.currency} made for Purchase ID {db_payment.purchase_id} by {user_id}")
    return db_payment


def update_purchase_payment(db: Session, payment_id: int, payment: PurchasePaymentUpdate,
                            user_id: Optional[str] = None):
    """The old payment is returned to its account before the new figures are paid out."""
    with atomic(db):
        db_payment = get_purchase_payment(db, payment_id)
        old_values = snapshot(db_payment)
        currency = resolve_currency(db, payment.currency)
        if db_payment.account_id is not None:
            reverse_purchase_payment(db, db_payment, user_id)

        for key, value in payment.model_dump().items():
            setattr(db_payment, key, value)
        db_payment.total = to_decimal(payment.amount) * to_decimal(payment.rate)
        db_payment.updated_by = user_id
        db.flush()

        if db_payment.account_id is not None:
            _pay_from_account(db, db_payment, currency, user_id)
        log_change(db, "purchase_payments", db_payment.id, "UPDATE", user_id, old_values, snapshot(db_payment))

    db.refresh(db_payment)
    logger.info(f"Purchase payment (ID: {payment_id}) updated by {user_id}")
    return db_payment


def delete_purchase_payment(db: Session, payment_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_payment = get_purchase_payment(db, payment_id)
        old_values = snapshot(db_payment)
        if db_payment.account_id is not None:
            reverse_purchase_payment(db, db_payment, user_id)
        log_change(db, "purchase_payments", db_payment.id, "DELETE", user_id, old_values, None)
        db.delete(db_payment)
    logger.info(f"Purchase payment (ID: {payment_id}) deleted by {user_id}")
    return True
