"""
Multi-currency balance ledger.

All money movement on an account goes through here. `apply_delta` is the only
code that changes an account_currency_balances row and
`recompute_current_balance` is the only code that writes
accounts.current_balance; deposits, withdrawals, payments, expenses and journal
lines are all expressed in terms of those two.

current_balance = initial_balance + sum(currency balance * currency.rate)
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from exceptions import NotFound, CurrencyNotFound, InsufficientFunds, ValidationFailed
from models.accounts import Account, AccountCurrencyBalance, AccountTransaction
from models.currency import Currency
from models.journal_entry_line import JournalEntryLine
from schemas.accounts import AccountMovementRequest, AccountReconciliation
from utils.money import to_decimal
from utils.transaction import atomic

logger = logging.getLogger("ledger")

DEPOSIT = "deposit"
WITHDRAW = "withdraw"


def get_account_or_404(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise NotFound(f"Account with ID {account_id} not found.")
    return account


def resolve_currency(db: Session, name: str) -> Currency:
    """Exact-name lookup used by every money-moving operation that names its currency."""
    currency = db.query(Currency).filter(Currency.name == name).first()
    if currency is None:
        raise CurrencyNotFound(f"Currency '{name}' not found.")
    return currency


def get_base_currency(db: Session) -> Optional[Currency]:
    return db.query(Currency).filter(Currency.is_base.is_(True)).first()


def get_currency_or_404(db: Session, currency_id: int) -> Currency:
    currency = db.query(Currency).filter(Currency.id == currency_id).first()
    if currency is None:
        raise CurrencyNotFound(f"Currency with ID {currency_id} not found.")
    return currency


def get_balance(db: Session, account_id: int, currency_id: int) -> Decimal:
    row = db.query(AccountCurrencyBalance).filter(
        AccountCurrencyBalance.account_id == account_id,
        AccountCurrencyBalance.currency_id == currency_id
    ).first()
    return to_decimal(row.balance) if row else Decimal(0)


def apply_delta(db: Session, account_id: int, currency_id: int, delta) -> AccountCurrencyBalance:
    """Add delta to the (account, currency) balance, creating the row on first movement."""
    delta = to_decimal(delta)
    row = db.query(AccountCurrencyBalance).filter(
        AccountCurrencyBalance.account_id == account_id,
        AccountCurrencyBalance.currency_id == currency_id
    ).with_for_update().first()
    if row is None:
        row = AccountCurrencyBalance(account_id=account_id, currency_id=currency_id, balance=delta)
        db.add(row)
    else:
        row.balance = to_decimal(row.balance) + delta
    db.flush()
    logger.debug(f"Balance of account {account_id} in currency {currency_id} moved by {delta}")
    return row


def recompute_current_balance(db: Session, account_id: int) -> Decimal:
    account = get_account_or_404(db, account_id)
    held = db.query(
        func.coalesce(func.sum(AccountCurrencyBalance.balance * Currency.rate), 0)
    ).join(Currency, Currency.id == AccountCurrencyBalance.currency_id).filter(
        AccountCurrencyBalance.account_id == account_id
    ).scalar()
    account.current_balance = to_decimal(account.initial_balance) + to_decimal(held)
    db.flush()
    return to_decimal(account.current_balance)


def ensure_sufficient_funds(db: Session, account: Account, currency: Currency, amount, rate):
    """Both the base-equivalent current balance and the currency's own holding must cover the amount."""
    amount = to_decimal(amount)
    needed = amount * to_decimal(rate)
    current = recompute_current_balance(db, account.id)
    if needed > current:
        logger.warning(f"Insufficient funds on account {account.id}: needs {needed}, current balance {current}")
        raise InsufficientFunds(
            f"Insufficient balance in account '{account.name}'. Available: {current}, Required: {needed}"
        )
    held = get_balance(db, account.id, currency.id)
    if amount > held:
        logger.warning(f"Insufficient {currency.name} on account {account.id}: needs {amount}, holds {held}")
        raise InsufficientFunds(
            f"Insufficient {currency.name} balance in account '{account.name}'. Available: {held}, Required: {amount}"
        )


def _record(db: Session, account: Account, transaction_type: str, currency: Currency, amount, rate,
            transaction_date: date, is_full: bool = False, notes: Optional[str] = None,
            user_id: Optional[str] = None) -> AccountTransaction:
    amount = to_decimal(amount)
    rate = to_decimal(rate)
    txn = AccountTransaction(
        account_id=account.id,
        transaction_type=transaction_type,
        amount=amount,
        currency=currency.name,
        rate=rate,
        total=amount * rate,
        transaction_date=transaction_date,
        is_full=is_full,
        notes=notes,
        created_by=user_id,
    )
    db.add(txn)
    db.flush()
    return txn


def receive_funds(db: Session, account_id: int, currency: Currency, amount, rate, transaction_date: date,
                  notes: Optional[str] = None, is_full: bool = False, user_id: Optional[str] = None) -> AccountTransaction:
    """Credit an account in one currency and log a deposit row."""
    account = get_account_or_404(db, account_id)
    apply_delta(db, account.id, currency.id, amount)
    txn = _record(db, account, DEPOSIT, currency, amount, rate, transaction_date, is_full, notes, user_id)
    recompute_current_balance(db, account.id)
    return txn


def disburse_funds(db: Session, account_id: int, currency: Currency, amount, rate, transaction_date: date,
                   notes: Optional[str] = None, is_full: bool = False, check_funds: bool = True,
                   user_id: Optional[str] = None) -> AccountTransaction:
    """Debit an account in one currency and log a withdraw row, refusing to overdraw when check_funds is set."""
    account = get_account_or_404(db, account_id)
    if check_funds:
        ensure_sufficient_funds(db, account, currency, amount, rate)
    apply_delta(db, account.id, currency.id, -to_decimal(amount))
    txn = _record(db, account, WITHDRAW, currency, amount, rate, transaction_date, is_full, notes, user_id)
    recompute_current_balance(db, account.id)
    return txn


def _full_amount(db: Session, account: Account, currency: Currency, rate) -> Decimal:
    current = max(recompute_current_balance(db, account.id), Decimal(0))
    return current / to_decimal(rate)


def deposit_account(db: Session, account_id: int, request: AccountMovementRequest, user_id: Optional[str] = None):
    with atomic(db):
        account = get_account_or_404(db, account_id)
        currency = resolve_currency(db, request.currency)
        if request.is_full:
            amount = _full_amount(db, account, currency, request.rate)
        else:
            amount = to_decimal(request.amount)
            if amount <= 0:
                raise ValidationFailed("Deposit amount must be greater than zero.")
        txn = receive_funds(db, account.id, currency, amount, request.rate, request.transaction_date,
                            notes=request.notes, is_full=request.is_full, user_id=user_id)
    db.refresh(txn)
    logger.info(f"Deposit {txn.id} of {txn.amount} {txn.currency} into account {account_id}")
    return txn


def withdraw_account(db: Session, account_id: int, request: AccountMovementRequest, user_id: Optional[str] = None):
    with atomic(db):
        account = get_account_or_404(db, account_id)
        currency = resolve_currency(db, request.currency)
        if request.is_full:
            # the drain never takes a currency below zero
            amount = min(_full_amount(db, account, currency, request.rate),
                         max(get_balance(db, account.id, currency.id), Decimal(0)))
            txn = disburse_funds(db, account.id, currency, amount, request.rate, request.transaction_date,
                                 notes=request.notes, is_full=True, check_funds=False, user_id=user_id)
        else:
            amount = to_decimal(request.amount)
            if amount <= 0:
                raise ValidationFailed("Withdrawal amount must be greater than zero.")
            txn = disburse_funds(db, account.id, currency, amount, request.rate, request.transaction_date,
                                 notes=request.notes, user_id=user_id)
    db.refresh(txn)
    logger.info(f"Withdrawal {txn.id} of {txn.amount} {txn.currency} from account {account_id}")
    return txn


def get_account_transactions(db: Session, account_id: int, skip: int = 0, limit: int = 100):
    get_account_or_404(db, account_id)
    return db.query(AccountTransaction).filter(
        AccountTransaction.account_id == account_id
    ).order_by(AccountTransaction.transaction_date.desc(), AccountTransaction.id.desc()).offset(skip).limit(limit).all()


def get_all_account_balances(db: Session, account_id: int):
    get_account_or_404(db, account_id)
    return db.query(AccountCurrencyBalance).filter(
        AccountCurrencyBalance.account_id == account_id
    ).order_by(AccountCurrencyBalance.currency_id.asc()).all()


def get_account_balance(db: Session, account_id: int) -> Decimal:
    return to_decimal(get_account_or_404(db, account_id).current_balance)


def get_account_balance_by_currency(db: Session, account_id: int, currency_id: int) -> Decimal:
    get_account_or_404(db, account_id)
    return get_balance(db, account_id, currency_id)


def reconcile_account_balance(db: Session, account_id: int, currency_id: int) -> AccountReconciliation:
    """Compare the ledger balance of one (account, currency) pair with what its journal lines add up to."""
    get_account_or_404(db, account_id)
    debits, credits = db.query(
        func.coalesce(func.sum(JournalEntryLine.debit_amount), 0),
        func.coalesce(func.sum(JournalEntryLine.credit_amount), 0),
    ).filter(
        JournalEntryLine.account_id == account_id,
        JournalEntryLine.currency_id == currency_id
    ).one()
    debits = to_decimal(debits)
    credits = to_decimal(credits)
    balance = get_balance(db, account_id, currency_id)
    journal_balance = debits - credits
    difference = balance - journal_balance
    return AccountReconciliation(
        account_id=account_id,
        currency_id=currency_id,
        account_balance=balance,
        journal_debits=debits,
        journal_credits=credits,
        journal_balance=journal_balance,
        difference=difference,
        is_balanced=abs(difference) < Decimal("0.01"),
    )
