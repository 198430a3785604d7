import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.audit_log import log_change, snapshot
from crud.ledger import recompute_current_balance, get_currency_or_404
from exceptions import NotFound, DuplicateKey, ReferentialConflict
from models.accounts import Account as AccountModel, AccountCurrencyBalance, AccountTransaction
from models.chart_of_accounts import CoaCategory
from models.expenses import Expense
from models.journal_entry_line import JournalEntryLine
from models.purchase_payments import PurchasePayment
from models.sale_payments import SalePayment
from schemas.accounts import AccountCreate, AccountUpdate
from utils.transaction import atomic

logger = logging.getLogger("accounts")


def get_account(db: Session, account_id: int):
    return db.query(AccountModel).filter(AccountModel.id == account_id).first()


def get_accounts(db: Session, account_type: Optional[str] = None, coa_category_id: Optional[int] = None,
                 active_only: bool = False, skip: int = 0, limit: int = 100):
    query = db.query(AccountModel)
    if account_type:
        query = query.filter(AccountModel.account_type == account_type)
    if coa_category_id:
        query = query.filter(AccountModel.coa_category_id == coa_category_id)
    if active_only:
        query = query.filter(AccountModel.is_active.is_(True))
    return query.order_by(AccountModel.name.asc()).offset(skip).limit(limit).all()


def _check_account(db: Session, account, exclude_id: Optional[int] = None):
    if account.account_code:
        query = db.query(AccountModel).filter(AccountModel.account_code == account.account_code)
        if exclude_id is not None:
            query = query.filter(AccountModel.id != exclude_id)
        if query.first():
            raise DuplicateKey(f"Account with code {account.account_code} already exists.")
    if account.currency_id is not None:
        get_currency_or_404(db, account.currency_id)
    if account.coa_category_id is not None and \
            db.query(CoaCategory.id).filter(CoaCategory.id == account.coa_category_id).first() is None:
        raise NotFound(f"COA category with ID {account.coa_category_id} not found.")


def create_account(db: Session, account: AccountCreate, user_id: Optional[str] = None):
    """A new account's current balance starts at its initial balance."""
    _check_account(db, account)
    with atomic(db):
        account_data = account.model_dump()
        account_data["account_code"] = account.account_code or None
        db_account = AccountModel(
            **account_data,
            current_balance=account.initial_balance,
            is_active=True,
            created_by=user_id,
        )
        db.add(db_account)
    db.refresh(db_account)
    logger.info(f"Account {db_account.name} (ID: {db_account.id}) created by {user_id}")
    return db_account


def update_account(db: Session, account_id: int, account: AccountUpdate, user_id: Optional[str] = None):
    db_account = get_account(db, account_id)
    if not db_account:
        return None
    _check_account(db, account, exclude_id=account_id)
    with atomic(db):
        old_values = snapshot(db_account)
        for key, value in account.model_dump().items():
            setattr(db_account, key, value)
        db_account.account_code = account.account_code or None
        db_account.updated_by = user_id
        db.flush()
        # a changed initial balance flows into the cached current balance
        recompute_current_balance(db, account_id)
        log_change(db, "accounts", db_account.id, "UPDATE", user_id, old_values, snapshot(db_account))
    db.refresh(db_account)
    logger.info(f"Account (ID: {account_id}) updated by {user_id}")
    return db_account


def delete_account(db: Session, account_id: int, user_id: Optional[str] = None):
    db_account = get_account(db, account_id)
    if not db_account:
        return False
    references = (
        (JournalEntryLine.id, JournalEntryLine.account_id, "journal entries"),
        (AccountTransaction.id, AccountTransaction.account_id, "deposits or withdrawals"),
        (SalePayment.id, SalePayment.account_id, "sale payments"),
        (PurchasePayment.id, PurchasePayment.account_id, "purchase payments"),
        (Expense.id, Expense.account_id, "expenses"),
    )
    for column, account_column, label in references:
        if db.query(column).filter(account_column == account_id).first():
            raise ReferentialConflict(f"Cannot delete account '{db_account.name}': {label} reference it.")
    held = db.query(AccountCurrencyBalance.id).filter(
        AccountCurrencyBalance.account_id == account_id, AccountCurrencyBalance.balance != 0
    ).first()
    if held:
        raise ReferentialConflict(f"Cannot delete account '{db_account.name}': it still holds a balance.")
    with atomic(db):
        log_change(db, "accounts", db_account.id, "DELETE", user_id, snapshot(db_account), None)
        db.delete(db_account)
    logger.info(f"Account (ID: {account_id}) deleted by {user_id}")
    return True
