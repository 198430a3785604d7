from decimal import Decimal

import pytest

from crud import journal_entry as crud_journal
from crud import ledger
from exceptions import CurrencyNotFound, InsufficientFunds, NotFound, ValidationFailed
from models.accounts import AccountTransaction
from schemas.accounts import AccountMovementRequest
from schemas.journal_entry import JournalEntryCreate, JournalEntryLineCreate
from conftest import TODAY


def movement(amount, currency="USD", rate=1, is_full=False):
    return AccountMovementRequest(amount=Decimal(amount), currency=currency, rate=Decimal(rate),
                                  transaction_date=TODAY, is_full=is_full)


def current_balance(db, account):
    db.refresh(account)
    return account.current_balance


def test_deposit_then_withdraw(db, account, usd):
    ledger.deposit_account(db, account.id, movement(50))
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(50)
    assert current_balance(db, account) == Decimal(50)

    ledger.withdraw_account(db, account.id, movement(20))
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(30)
    assert current_balance(db, account) == Decimal(30)

    with pytest.raises(InsufficientFunds):
        ledger.withdraw_account(db, account.id, movement(100))
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(30)
    assert current_balance(db, account) == Decimal(30)


@pytest.mark.parametrize("deposit, withdrawal", [(10, 10), (75, 25), ("12.5", "0.5")])
def test_balance_additivity(db, account, usd, deposit, withdrawal):
    ledger.deposit_account(db, account.id, movement(deposit))
    ledger.withdraw_account(db, account.id, movement(withdrawal))

    assert ledger.get_balance(db, account.id, usd.id) == Decimal(str(deposit)) - Decimal(str(withdrawal))


def test_movements_are_logged(db, account):
    ledger.deposit_account(db, account.id, movement(50))
    ledger.withdraw_account(db, account.id, movement(20))

    rows = db.query(AccountTransaction).order_by(AccountTransaction.id).all()
    assert [(r.transaction_type, r.amount, r.total) for r in rows] == [
        (ledger.DEPOSIT, Decimal(50), Decimal(50)),
        (ledger.WITHDRAW, Decimal(20), Decimal(20)),
    ]
    assert len(ledger.get_account_transactions(db, account.id)) == 2


def test_current_balance_converts_every_currency_to_base(db, make_account, usd, eur):
    account = make_account(initial_balance=5)
    ledger.deposit_account(db, account.id, movement(10, "USD"))
    ledger.deposit_account(db, account.id, movement(10, "EUR", rate=2))

    assert ledger.get_balance(db, account.id, eur.id) == Decimal(10)
    assert current_balance(db, account) == Decimal(35)
    assert {b.currency_id: b.balance for b in ledger.get_all_account_balances(db, account.id)} == {
        usd.id: Decimal(10), eur.id: Decimal(10)
    }


def test_withdrawal_needs_the_currency_itself(db, account, eur):
    ledger.deposit_account(db, account.id, movement(100, "USD"))

    # overall balance covers 10 EUR * 2, but no EUR is held
    with pytest.raises(InsufficientFunds):
        ledger.withdraw_account(db, account.id, movement(10, "EUR", rate=2))


def test_withdrawal_needs_the_overall_balance(db, make_account, usd):
    account = make_account(initial_balance=-80)
    ledger.deposit_account(db, account.id, movement(50))

    with pytest.raises(InsufficientFunds):
        ledger.withdraw_account(db, account.id, movement(10))


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amounts_are_rejected(db, account, amount):
    with pytest.raises(ValidationFailed):
        ledger.deposit_account(db, account.id, movement(amount))
    with pytest.raises(ValidationFailed):
        ledger.withdraw_account(db, account.id, movement(amount))


def test_unknown_currency(db, account):
    with pytest.raises(CurrencyNotFound):
        ledger.deposit_account(db, account.id, movement(10, "XYZ"))
    assert db.query(AccountTransaction).count() == 0


def test_unknown_account(db, usd):
    with pytest.raises(NotFound):
        ledger.deposit_account(db, 999, movement(10))


def test_full_deposit_moves_the_current_balance(db, make_account, usd):
    account = make_account(initial_balance=40)

    txn = ledger.deposit_account(db, account.id, movement(0, is_full=True))

    assert txn.amount == Decimal(40)
    assert txn.is_full is True
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(40)
    assert current_balance(db, account) == Decimal(80)


def test_full_deposit_of_negative_balance_is_zero(db, make_account, usd):
    account = make_account(initial_balance=-10)

    txn = ledger.deposit_account(db, account.id, movement(0, is_full=True))

    assert txn.amount == Decimal(0)
    assert current_balance(db, account) == Decimal(-10)


def test_full_withdrawal_drains_the_currency(db, account, usd):
    ledger.deposit_account(db, account.id, movement(30))

    txn = ledger.withdraw_account(db, account.id, movement(0, is_full=True))

    assert txn.amount == Decimal(30)
    assert ledger.get_balance(db, account.id, usd.id) == Decimal(0)
    assert current_balance(db, account) == Decimal(0)


def test_full_withdrawal_never_takes_a_currency_below_zero(db, make_account, usd, eur):
    account = make_account(initial_balance=100)
    ledger.deposit_account(db, account.id, movement(5, "EUR", rate=2))

    txn = ledger.withdraw_account(db, account.id, movement(0, "EUR", rate=2, is_full=True))

    assert txn.amount == Decimal(5)
    assert ledger.get_balance(db, account.id, eur.id) == Decimal(0)


def test_apply_delta_creates_then_adds(db, account, usd):
    ledger.apply_delta(db, account.id, usd.id, Decimal(7))
    ledger.apply_delta(db, account.id, usd.id, Decimal(-2))
    db.commit()

    assert ledger.get_balance(db, account.id, usd.id) == Decimal(5)
    assert ledger.get_account_balance_by_currency(db, account.id, usd.id) == Decimal(5)


def test_reconcile_against_journal_lines(db, account, usd):
    crud_journal.create_journal_entry(db, JournalEntryCreate(entry_date=TODAY, lines=[
        JournalEntryLineCreate(account_id=account.id, currency_id=usd.id, debit_amount=Decimal(40)),
        JournalEntryLineCreate(account_id=account.id, currency_id=usd.id, credit_amount=Decimal(15)),
    ]))

    report = ledger.reconcile_account_balance(db, account.id, usd.id)
    assert report.journal_balance == Decimal(25)
    assert report.account_balance == Decimal(25)
    assert report.is_balanced

    ledger.deposit_account(db, account.id, movement(10))
    report = ledger.reconcile_account_balance(db, account.id, usd.id)
    assert report.difference == Decimal(10)
    assert not report.is_balanced
