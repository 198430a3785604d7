import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.ledger import get_base_currency, get_currency_or_404, receive_funds
from crud.sales import get_sale_or_404, reverse_sale_payment
from exceptions import NotFound, CurrencyNotFound
from models.sale_payments import SalePayment as SalePaymentModel
from schemas.sales import SalePaymentCreate
from utils.money import to_decimal
from utils.transaction import atomic

logger = logging.getLogger("sale_payments")


def _resolve_payment_currency(db: Session, payment: SalePaymentCreate, sale):
    """Explicit currency, then the sale's currency, then the base currency."""
    if payment.currency_id is not None:
        return get_currency_or_404(db, payment.currency_id)
    if sale.currency_id is not None:
        return get_currency_or_404(db, sale.currency_id)
    return get_base_currency(db)


def recompute_paid_amount(db: Session, sale_id: int) -> Decimal:
    db_sale = get_sale_or_404(db, sale_id)
    paid = db.query(func.coalesce(func.sum(SalePaymentModel.amount), 0)).filter(
        SalePaymentModel.sale_id == sale_id
    ).scalar()
    db_sale.paid_amount = to_decimal(paid)
    db.flush()
    return db_sale.paid_amount


def get_sale_payments(db: Session, sale_id: int):
    get_sale_or_404(db, sale_id)
    return db.query(SalePaymentModel).filter(
        SalePaymentModel.sale_id == sale_id
    ).order_by(SalePaymentModel.date.asc(), SalePaymentModel.id.asc()).all()


def create_sale_payment(db: Session, payment: SalePaymentCreate, user_id: Optional[str] = None):
    """Record a payment against a sale; with an account it is also deposited there."""
    with atomic(db):
        db_sale = get_sale_or_404(db, payment.sale_id)
        currency = _resolve_payment_currency(db, payment, db_sale)
        if currency is None and payment.account_id is not None:
            raise CurrencyNotFound("No currency given for the payment and no base currency is configured.")

        if payment.exchange_rate is not None:
            rate = to_decimal(payment.exchange_rate)
        elif currency is not None:
            rate = to_decimal(currency.rate)
        else:
            rate = Decimal(1)

        db_payment = SalePaymentModel(
            sale_id=db_sale.id,
            account_id=payment.account_id,
            currency_id=currency.id if currency else None,
            exchange_rate=rate,
            amount=payment.amount,
            base_amount=to_decimal(payment.amount) * rate,
            date=payment.date,
            created_by=user_id,
        )
        db.add(db_payment)
        db.flush()

        if payment.account_id is not None:
            receive_funds(db, payment.account_id, currency, payment.amount, rate, payment.date,
                          notes=f"Sale payment: Sale #{db_sale.id}", user_id=user_id)
        recompute_paid_amount(db, db_sale.id)

    db.refresh(db_payment)
    logger.info(f"Payment (ID: {db_payment.id}) of {db_payment.amount} recorded for Sale ID {db_payment.sale_id} by {user_id}")
    return db_payment


def delete_sale_payment(db: Session, payment_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_payment = db.query(SalePaymentModel).filter(SalePaymentModel.id == payment_id).first()
        if db_payment is None:
            raise NotFound(f"Sale payment with ID {payment_id} not found.")
        sale_id = db_payment.sale_id
        if db_payment.account_id is not None:
            reverse_sale_payment(db, db_payment, user_id)
        db.delete(db_payment)
        db.flush()
        recompute_paid_amount(db, sale_id)
    logger.info(f"Payment (ID: {payment_id}) removed from Sale ID {sale_id} by {user_id}")
    return True
