import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from crud.audit_log import log_change, snapshot
from crud.ledger import resolve_currency, receive_funds, disburse_funds
from exceptions import NotFound, DuplicateKey, ReferentialConflict
from models import expenses as models
from schemas import expenses as schemas
from utils.money import to_decimal
from utils.transaction import atomic

logger = logging.getLogger("expenses")


def get_expense_type(db: Session, expense_type_id: int):
    return db.query(models.ExpenseType).filter(models.ExpenseType.id == expense_type_id).first()


def get_expense_types(db: Session) -> List[models.ExpenseType]:
    return db.query(models.ExpenseType).order_by(models.ExpenseType.name.asc()).all()


def create_expense_type(db: Session, expense_type: schemas.ExpenseTypeCreate, user_id: Optional[str] = None):
    if db.query(models.ExpenseType).filter(models.ExpenseType.name == expense_type.name).first():
        raise DuplicateKey(f"Expense type '{expense_type.name}' already exists.")
    with atomic(db):
        db_type = models.ExpenseType(**expense_type.model_dump(), created_by=user_id)
        db.add(db_type)
    db.refresh(db_type)
    return db_type


def update_expense_type(db: Session, expense_type_id: int, expense_type: schemas.ExpenseTypeUpdate,
                        user_id: Optional[str] = None):
    db_type = get_expense_type(db, expense_type_id)
    if not db_type:
        return None
    clash = db.query(models.ExpenseType).filter(
        models.ExpenseType.name == expense_type.name, models.ExpenseType.id != expense_type_id
    ).first()
    if clash:
        raise DuplicateKey(f"Expense type '{expense_type.name}' already exists.")
    with atomic(db):
        db_type.name = expense_type.name
        db_type.updated_by = user_id
    db.refresh(db_type)
    return db_type


def delete_expense_type(db: Session, expense_type_id: int, user_id: Optional[str] = None):
    db_type = get_expense_type(db, expense_type_id)
    if not db_type:
        return False
    if db.query(models.Expense.id).filter(models.Expense.expense_type_id == expense_type_id).first():
        raise ReferentialConflict(f"Cannot delete expense type '{db_type.name}': expenses use it.")
    with atomic(db):
        db.delete(db_type)
    return True


def get_expense(db: Session, expense_id: int):
    return db.query(models.Expense).filter(models.Expense.id == expense_id).first()


def get_expenses(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None,
                 expense_type_id: Optional[int] = None, skip: int = 0, limit: int = 100) -> List[models.Expense]:
    query = db.query(models.Expense)
    if start_date:
        query = query.filter(models.Expense.date >= start_date)
    if end_date:
        query = query.filter(models.Expense.date <= end_date)
    if expense_type_id:
        query = query.filter(models.Expense.expense_type_id == expense_type_id)
    return query.order_by(models.Expense.date.desc(), models.Expense.id.desc()).offset(skip).limit(limit).all()


def _charge(db: Session, db_expense: models.Expense, user_id: Optional[str]):
    disburse_funds(
        db, db_expense.account_id, resolve_currency(db, db_expense.currency), db_expense.amount, db_expense.rate,
        db_expense.date, notes=f"Expense #{db_expense.id}", user_id=user_id,
    )


def _refund(db: Session, db_expense: models.Expense, user_id: Optional[str]):
    receive_funds(
        db, db_expense.account_id, resolve_currency(db, db_expense.currency), db_expense.amount, db_expense.rate,
        db_expense.date, notes=f"Reversal of expense #{db_expense.id}", user_id=user_id,
    )


def _check_expense(db: Session, expense):
    if get_expense_type(db, expense.expense_type_id) is None:
        raise NotFound(f"Expense type with ID {expense.expense_type_id} not found.")
    resolve_currency(db, expense.currency)


def create_expense(db: Session, expense: schemas.ExpenseCreate, user_id: Optional[str] = None):
    """Record an expense; when it names an account the money is taken out of that account."""
    _check_expense(db, expense)
    with atomic(db):
        db_expense = models.Expense(
            **expense.model_dump(),
            total=to_decimal(expense.amount) * to_decimal(expense.rate),
            created_by=user_id,
        )
        db.add(db_expense)
        db.flush()
        if db_expense.account_id is not None:
            _charge(db, db_expense, user_id)
    db.refresh(db_expense)
    logger.info(f"Expense (ID: {db_expense.id}) of {db_expense.amount} {db_expense.currency} recorded by {user_id}")
    return db_expense


def update_expense(db: Session, expense_id: int, expense: schemas.ExpenseUpdate, user_id: Optional[str] = None):
    db_expense = get_expense(db, expense_id)
    if not db_expense:
        return None
    _check_expense(db, expense)
    with atomic(db):
        old_values = snapshot(db_expense)
        if db_expense.account_id is not None:
            _refund(db, db_expense, user_id)
        for key, value in expense.model_dump().items():
            setattr(db_expense, key, value)
        db_expense.total = to_decimal(expense.amount) * to_decimal(expense.rate)
        db_expense.updated_by = user_id
        db.flush()
        if db_expense.account_id is not None:
            _charge(db, db_expense, user_id)
        log_change(db, "expenses", expense_id, "UPDATE", user_id, old_values, snapshot(db_expense))
    db.refresh(db_expense)
    logger.info(f"Expense (ID: {expense_id}) updated by {user_id}")
    return db_expense


def delete_expense(db: Session, expense_id: int, user_id: Optional[str] = None):
    db_expense = get_expense(db, expense_id)
    if not db_expense:
        return False
    with atomic(db):
        old_values = snapshot(db_expense)
        if db_expense.account_id is not None:
            _refund(db, db_expense, user_id)
        log_change(db, "expenses", expense_id, "DELETE", user_id, old_values, None)
        db.delete(db_expense)
    logger.info(f"Expense (ID: {expense_id}) deleted by {user_id}")
    return True
