from decimal import Decimal

import pytest
from pydantic import ValidationError

from crud import journal_entry as crud_journal
from crud import ledger
from exceptions import NotFound, ValidationFailed
from models.audit_log import AuditLog
from schemas.journal_entry import JournalEntryCreate, JournalEntryLineCreate, JournalEntryUpdate
from conftest import TODAY


def debit(account, currency, amount, rate=1):
    return JournalEntryLineCreate(account_id=account.id, currency_id=currency.id, debit_amount=Decimal(amount),
                                  exchange_rate=Decimal(rate))


def credit(account, currency, amount, rate=1):
    return JournalEntryLineCreate(account_id=account.id, currency_id=currency.id, credit_amount=Decimal(amount),
                                  exchange_rate=Decimal(rate))


@pytest.fixture
def bank(make_account, usd):
    return make_account(name="Bank")


def test_entry_numbers(db, account, usd):
    first = crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[debit(account, usd, 1)]))
    second = crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[debit(account, usd, 1)]))

    assert first.entry_number == "J000001"
    assert second.entry_number == "J000002"


def test_lines_move_balances(db, account, bank, usd, eur):
    entry = crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[
        debit(account, usd, 100),
        credit(bank, usd, 100),
        debit(account, eur, 10, rate=2),
    ]))

    assert len(entry.lines) == 3
    assert [line.base_amount for line in entry.lines] == [Decimal(100), Decimal(100), Decimal(20)]
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(100)
    assert ledger.get_balance(db, account.id, eur.id) == Decimal(10)
    assert ledger.get_balance(db, bank.id, usd.id) == Decimal(-100)
    db.refresh(account)
    db.refresh(bank)
    assert account.current_balance == Decimal(120)
    assert bank.current_balance == Decimal(-100)


def test_unbalanced_entries_are_accepted(db, account, usd):
    entry = crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[
        debit(account, usd, 70),
    ]))

    assert entry.id is not None
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(70)


def test_update_reverses_old_lines(db, account, bank, usd):
    entry = crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[
        debit(account, usd, 100), credit(bank, usd, 100),
    ]))

    updated = crud_journal.update_journal_entry(db, entry.id, JournalEntryUpdate(
        description="corrected", lines=[debit(bank, usd, 30)]
    ))

    assert updated.description == "corrected"
    assert len(updated.lines) == 1
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(0)
    assert ledger.get_balance(db, bank.id, usd.id) == Decimal(30)
    db.refresh(account)
    assert account.current_balance == Decimal(0)
    audit = db.query(AuditLog).filter(AuditLog.table_name == "journal_entries").one()
    assert len(audit.old_values["lines"]) == 2
    assert len(audit.new_values["lines"]) == 1


def test_delete_reverses_every_line(db, account, bank, usd):
    entry = crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[
        debit(account, usd, 100), credit(bank, usd, 40),
    ]))

    crud_journal.delete_journal_entry(db, entry.id)

    assert crud_journal.get_journal_entry(db, entry.id) is None
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(0)
    assert ledger.get_balance(db, bank.id, usd.id) == Decimal(0)


def test_entry_needs_a_line(db):
    with pytest.raises(ValidationFailed):
        crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[]))


def test_line_is_debit_or_credit(account, usd):
    with pytest.raises(ValidationError):
        JournalEntryLineCreate(account_id=account.id, currency_id=usd.id, debit_amount=Decimal(5),
                               credit_amount=Decimal(5))


def test_line_with_unknown_account_rolls_back(db, account, usd):
    with pytest.raises(NotFound):
        crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[
            debit(account, usd, 100),
            JournalEntryLineCreate(account_id=999, currency_id=usd.id, credit_amount=Decimal(100)),
        ]))

    assert crud_journal.get_journal_entries(db) == []
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(0)


def test_list_filters(db, account, bank, usd):
    crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[debit(account, usd, 1)]))
    crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[debit(bank, usd, 1)]))

    assert len(crud_journal.get_journal_entries(db)) == 2
    assert len(crud_journal.get_journal_entries(db, account_id=bank.id)) == 1
