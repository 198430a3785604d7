import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from exceptions import CurrencyNotFound, DuplicateKey, ReferentialConflict
from models.accounts import AccountCurrencyBalance
from models.currency import Currency as CurrencyModel, CurrencyExchangeRate as CurrencyExchangeRateModel
from models.journal_entry_line import JournalEntryLine
from models.purchases import Purchase
from models.sale_payments import SalePayment
from models.sales import Sale
from schemas.currency import CurrencyCreate, CurrencyUpdate, ExchangeRateCreate
from utils.transaction import atomic

logger = logging.getLogger("currencies")


def get_currency(db: Session, currency_id: int):
    return db.query(CurrencyModel).filter(CurrencyModel.id == currency_id).first()


def get_currencies(db: Session):
    return db.query(CurrencyModel).order_by(CurrencyModel.name.asc()).all()


def _clear_base_flags(db: Session, keep_id: Optional[int] = None):
    query = db.query(CurrencyModel).filter(CurrencyModel.is_base.is_(True))
    if keep_id is not None:
        query = query.filter(CurrencyModel.id != keep_id)
    for other in query.all():
        other.is_base = False
    db.flush()


def create_currency(db: Session, currency: CurrencyCreate, user_id: Optional[str] = None):
    with atomic(db):
        if db.query(CurrencyModel).filter(CurrencyModel.name == currency.name).first():
            raise DuplicateKey(f"Currency '{currency.name}' already exists.")
        if currency.is_base:
            _clear_base_flags(db)
        db_currency = CurrencyModel(**currency.model_dump(), created_by=user_id)
        db.add(db_currency)
    db.refresh(db_currency)
    logger.info(f"Currency {db_currency.name} (ID: {db_currency.id}) created by {user_id}")
    return db_currency


def update_currency(db: Session, currency_id: int, currency: CurrencyUpdate, user_id: Optional[str] = None):
    db_currency = get_currency(db, currency_id)
    if not db_currency:
        return None
    with atomic(db):
        clash = db.query(CurrencyModel).filter(
            CurrencyModel.name == currency.name, CurrencyModel.id != currency_id
        ).first()
        if clash:
            raise DuplicateKey(f"Currency '{currency.name}' already exists.")
        if currency.is_base:
            _clear_base_flags(db, keep_id=currency_id)
        for key, value in currency.model_dump().items():
            setattr(db_currency, key, value)
        db_currency.updated_by = user_id
    db.refresh(db_currency)
    return db_currency


def set_base_currency(db: Session, currency_id: int, user_id: Optional[str] = None):
    """Make one currency the base; every other currency loses the flag."""
    db_currency = get_currency(db, currency_id)
    if not db_currency:
        raise CurrencyNotFound(f"Currency with ID {currency_id} not found.")
    with atomic(db):
        _clear_base_flags(db, keep_id=currency_id)
        db_currency.is_base = True
        db_currency.updated_by = user_id
    db.refresh(db_currency)
    logger.info(f"Currency {db_currency.name} (ID: {currency_id}) set as base by {user_id}")
    return db_currency


def delete_currency(db: Session, currency_id: int, user_id: Optional[str] = None):
    db_currency = get_currency(db, currency_id)
    if not db_currency:
        return False
    references = (
        (AccountCurrencyBalance, AccountCurrencyBalance.currency_id, "account balances"),
        (SalePayment, SalePayment.currency_id, "sale payments"),
        (Sale, Sale.currency_id, "sales"),
        (Purchase, Purchase.currency_id, "purchases"),
        (JournalEntryLine, JournalEntryLine.currency_id, "journal lines"),
    )
    for model, column, label in references:
        if db.query(model).filter(column == currency_id).first():
            raise ReferentialConflict(f"Cannot delete currency '{db_currency.name}': it is used by {label}.")
    with atomic(db):
        db.query(CurrencyExchangeRateModel).filter(
            (CurrencyExchangeRateModel.from_currency_id == currency_id)
            | (CurrencyExchangeRateModel.to_currency_id == currency_id)
        ).delete(synchronize_session=False)
        db.delete(db_currency)
    logger.info(f"Currency ID {currency_id} deleted by {user_id}")
    return True


def create_exchange_rate(db: Session, exchange_rate: ExchangeRateCreate, user_id: Optional[str] = None):
    """
    Append a rate to the history. A rate quoted against the base currency also
    becomes the from-currency's current rate.
    """
    from_currency = get_currency(db, exchange_rate.from_currency_id)
    to_currency = get_currency(db, exchange_rate.to_currency_id)
    if from_currency is None:
        raise CurrencyNotFound(f"Currency with ID {exchange_rate.from_currency_id} not found.")
    if to_currency is None:
        raise CurrencyNotFound(f"Currency with ID {exchange_rate.to_currency_id} not found.")
    with atomic(db):
        db_rate = CurrencyExchangeRateModel(**exchange_rate.model_dump())
        db.add(db_rate)
        if to_currency.is_base:
            from_currency.rate = exchange_rate.rate
            from_currency.updated_by = user_id
    db.refresh(db_rate)
    logger.info(f"Exchange rate {from_currency.name}->{to_currency.name} = {db_rate.rate} on {db_rate.date} recorded by {user_id}")
    return db_rate


def get_exchange_rate(db: Session, from_currency_id: int, to_currency_id: int) -> Optional[Decimal]:
    """Latest recorded rate between two currencies, 1 for a currency against itself."""
    if from_currency_id == to_currency_id:
        return Decimal(1)
    latest = db.query(CurrencyExchangeRateModel).filter(
        CurrencyExchangeRateModel.from_currency_id == from_currency_id,
        CurrencyExchangeRateModel.to_currency_id == to_currency_id
    ).order_by(CurrencyExchangeRateModel.date.desc(), CurrencyExchangeRateModel.id.desc()).first()
    return latest.rate if latest else None


def get_exchange_rate_history(db: Session, from_currency_id: int, to_currency_id: int,
                              skip: int = 0, limit: int = 100):
    return db.query(CurrencyExchangeRateModel).filter(
        CurrencyExchangeRateModel.from_currency_id == from_currency_id,
        CurrencyExchangeRateModel.to_currency_id == to_currency_id
    ).order_by(CurrencyExchangeRateModel.date.desc(), CurrencyExchangeRateModel.id.desc()).offset(skip).limit(limit).all()
