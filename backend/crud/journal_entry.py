import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud.audit_log import log_change, snapshot
from crud.ledger import apply_delta, recompute_current_balance, get_account_or_404, get_currency_or_404
from crud.sequences import next_number, JOURNAL_SERIES
from exceptions import NotFound, ValidationFailed
from models.journal_entry import JournalEntry as JournalEntryModel
from models.journal_entry_line import JournalEntryLine as JournalEntryLineModel
from schemas.journal_entry import JournalEntryCreate, JournalEntryUpdate
from utils.money import to_decimal
from utils.transaction import atomic

logger = logging.getLogger("journal_entries")

ENTRY_PREFIX = "J"


def _line_base_amount(debit, credit, exchange_rate) -> Decimal:
    debit = to_decimal(debit)
    amount = debit if debit > 0 else to_decimal(credit)
    return amount * to_decimal(exchange_rate)


def _post_lines(db: Session, db_entry: JournalEntryModel, lines):
    """
    Insert the lines of an entry and move each (account, currency) balance by +debit - credit.
    """
    touched = set()
    for line in lines:
        get_account_or_404(db, line.account_id)
        get_currency_or_404(db, line.currency_id)
        db_line = JournalEntryLineModel(
            **line.model_dump(),
            base_amount=_line_base_amount(line.debit_amount, line.credit_amount, line.exchange_rate),
        )
        db_entry.lines.append(db_line)
        apply_delta(db, line.account_id, line.currency_id,
                    to_decimal(line.debit_amount) - to_decimal(line.credit_amount))
        touched.add(line.account_id)
    db.flush()
    return touched


def _unpost_lines(db: Session, db_entry: JournalEntryModel):
    """Undo the balance effect of the entry's current lines and drop them."""
    touched = set()
    for db_line in db_entry.lines:
        apply_delta(db, db_line.account_id, db_line.currency_id,
                    to_decimal(db_line.credit_amount) - to_decimal(db_line.debit_amount))
        touched.add(db_line.account_id)
    db_entry.lines.clear()
    db.flush()
    return touched


def create_journal_entry(db: Session, entry: JournalEntryCreate, user_id: Optional[str] = None):
    """
    Creates a new journal entry and its lines, posting each line to the balance ledger.

    Debits and credits are not required to balance.
    """
    if not entry.lines:
        raise ValidationFailed("A journal entry must have at least one line.")
    with atomic(db):
        db_entry = JournalEntryModel(
            entry_number=next_number(db, JOURNAL_SERIES, JournalEntryModel.entry_number, ENTRY_PREFIX),
            entry_date=entry.entry_date,
            description=entry.description,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            created_by=user_id,
        )
        db.add(db_entry)
        db.flush()  # Flush to get the ID for the parent entry before creating children

        for account_id in _post_lines(db, db_entry, entry.lines):
            recompute_current_balance(db, account_id)

    logger.info(f"Journal entry {db_entry.entry_number} (ID: {db_entry.id}) created by {user_id}")
    return get_journal_entry(db, db_entry.id)


def update_journal_entry(db: Session, entry_id: int, entry: JournalEntryUpdate, user_id: Optional[str] = None):
    """Reverse every old line, then post the new lines exactly as create does."""
    if not entry.lines:
        raise ValidationFailed("A journal entry must have at least one line.")
    with atomic(db):
        db_entry = db.query(JournalEntryModel).filter(JournalEntryModel.id == entry_id).first()
        if db_entry is None:
            raise NotFound(f"Journal entry with ID {entry_id} not found.")
        old_values = snapshot(db_entry)
        old_values["lines"] = [snapshot(line) for line in db_entry.lines]

        touched = _unpost_lines(db, db_entry)
        if entry.entry_date is not None:
            db_entry.entry_date = entry.entry_date
        if entry.description is not None:
            db_entry.description = entry.description
        db_entry.updated_by = user_id
        touched |= _post_lines(db, db_entry, entry.lines)
        for account_id in touched:
            recompute_current_balance(db, account_id)

        new_values = snapshot(db_entry)
        new_values["lines"] = [snapshot(line) for line in db_entry.lines]
        log_change(db, "journal_entries", db_entry.id, "UPDATE", user_id, old_values, new_values)

    logger.info(f"Journal entry (ID: {entry_id}) updated by {user_id}")
    return get_journal_entry(db, entry_id)


def delete_journal_entry(db: Session, entry_id: int, user_id: Optional[str] = None):
    with atomic(db):
        db_entry = db.query(JournalEntryModel).filter(JournalEntryModel.id == entry_id).first()
        if db_entry is None:
            raise NotFound(f"Journal entry with ID {entry_id} not found.")
        old_values = snapshot(db_entry)
        old_values["lines"] = [snapshot(line) for line in db_entry.lines]
        for account_id in _unpost_lines(db, db_entry):
            recompute_current_balance(db, account_id)
        log_change(db, "journal_entries", db_entry.id, "DELETE", user_id, old_values, None)
        db.delete(db_entry)
    logger.info(f"Journal entry (ID: {entry_id}) deleted by {user_id}")
    return True


def get_journal_entry(db: Session, entry_id: int):
    """
    Retrieves a single journal entry by its ID.
    """
    return db.query(JournalEntryModel).options(
        selectinload(JournalEntryModel.lines)
    ).filter(JournalEntryModel.id == entry_id).first()


def get_journal_entries(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
):
    """
    Retrieves a list of journal entries with optional date filtering.
    """
    query = db.query(JournalEntryModel)

    if start_date:
        query = query.filter(JournalEntryModel.entry_date >= start_date)
    if end_date:
        query = query.filter(JournalEntryModel.entry_date <= end_date)
    if account_id:
        query = query.filter(JournalEntryModel.lines.any(JournalEntryLineModel.account_id == account_id))

    return query.order_by(JournalEntryModel.entry_date.desc(), JournalEntryModel.id.desc()).offset(skip).limit(limit).all()
