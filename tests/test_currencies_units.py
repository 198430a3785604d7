from decimal import Decimal

import pytest

from crud import currency as crud_currency
from crud import inventory
from crud import ledger
from crud import sales as crud_sales
from crud import unit as crud_unit
from exceptions import CurrencyNotFound, DuplicateKey, ReferentialConflict
from models.currency import Currency
from schemas.accounts import AccountMovementRequest
from schemas.currency import CurrencyCreate, ExchangeRateCreate
from schemas.sales import SaleCreate, SaleItemCreateRequest
from schemas.unit import UnitCreate, UnitUpdate
from conftest import TODAY


def base_ids(db):
    return [c.id for c in db.query(Currency).filter(Currency.is_base.is_(True)).all()]


def test_set_base_is_exclusive(db, usd, eur):
    afn = crud_currency.create_currency(db, CurrencyCreate(name="AFN", rate=Decimal("0.014")))

    crud_currency.set_base_currency(db, eur.id)
    assert base_ids(db) == [eur.id]

    crud_currency.set_base_currency(db, afn.id)
    assert base_ids(db) == [afn.id]
    assert ledger.get_base_currency(db).id == afn.id


def test_creating_a_base_currency_clears_the_old_one(db, usd):
    gbp = crud_currency.create_currency(db, CurrencyCreate(name="GBP", is_base=True))

    assert base_ids(db) == [gbp.id]


def test_set_base_of_unknown_currency(db, usd):
    with pytest.raises(CurrencyNotFound):
        crud_currency.set_base_currency(db, 999)
    assert base_ids(db) == [usd.id]


def test_duplicate_currency_name(db, usd):
    with pytest.raises(DuplicateKey):
        crud_currency.create_currency(db, CurrencyCreate(name="USD"))


def test_rate_against_base_updates_currency_rate(db, usd, eur):
    crud_currency.create_exchange_rate(db, ExchangeRateCreate(
        from_currency_id=eur.id, to_currency_id=usd.id, rate=Decimal("1.1"), date=TODAY
    ))

    db.refresh(eur)
    assert eur.rate == Decimal("1.1")
    assert crud_currency.get_exchange_rate(db, eur.id, usd.id) == Decimal("1.1")


def test_rate_between_non_base_currencies_is_history_only(db, usd, eur):
    gbp = crud_currency.create_currency(db, CurrencyCreate(name="GBP", rate=Decimal("2.5")))

    crud_currency.create_exchange_rate(db, ExchangeRateCreate(
        from_currency_id=gbp.id, to_currency_id=eur.id, rate=Decimal("1.2"), date=TODAY
    ))

    db.refresh(gbp)
    assert gbp.rate == Decimal("2.5")
    assert len(crud_currency.get_exchange_rate_history(db, gbp.id, eur.id)) == 1


def test_latest_rate_wins(db, usd, eur):
    for day, rate in ((1, "1.05"), (3, "1.08"), (2, "1.07")):
        crud_currency.create_exchange_rate(db, ExchangeRateCreate(
            from_currency_id=eur.id, to_currency_id=usd.id, rate=Decimal(rate), date=TODAY.replace(day=day)
        ))

    assert crud_currency.get_exchange_rate(db, eur.id, usd.id) == Decimal("1.08")
    assert crud_currency.get_exchange_rate(db, usd.id, usd.id) == Decimal(1)
    assert crud_currency.get_exchange_rate(db, usd.id, eur.id) is None


def test_currency_in_use_cannot_be_deleted(db, usd, eur, account):
    ledger.deposit_account(db, account.id, AccountMovementRequest(
        amount=Decimal(5), currency="EUR", rate=Decimal(2), transaction_date=TODAY
    ))

    with pytest.raises(ReferentialConflict):
        crud_currency.delete_currency(db, eur.id)

    gbp = crud_currency.create_currency(db, CurrencyCreate(name="GBP"))
    assert crud_currency.delete_currency(db, gbp.id) is True
    assert crud_currency.get_currency(db, gbp.id) is None


def test_one_base_unit_per_group(db, pcs, dozen, count_group):
    crud_unit.update_unit(db, dozen.id, UnitUpdate(name="dozen", group_id=count_group.id, ratio=Decimal(12),
                                                   is_base=True))

    db.refresh(pcs)
    assert pcs.is_base is False
    assert [u.name for u in crud_unit.get_units(db, group_id=count_group.id) if u.is_base] == ["dozen"]


def test_unit_ratio_must_be_positive():
    with pytest.raises(ValueError):
        UnitCreate(name="broken", ratio=Decimal(0))


def test_unit_in_use_cannot_be_deleted(db, batch, pcs, count_group):
    with pytest.raises(ReferentialConflict):
        crud_unit.delete_unit(db, pcs.id)

    box = crud_unit.create_unit(db, UnitCreate(name="box", group_id=count_group.id, ratio=Decimal(24)))
    assert crud_unit.delete_unit(db, box.id) is True


def test_ratio_of_a_used_unit_is_frozen(db, batch, pcs, dozen, count_group, customer, product):
    crud_sales.create_sale(db, SaleCreate(customer_id=customer.id, date=TODAY, items=[
        SaleItemCreateRequest(product_id=product.id, unit_id=pcs.id, per_price=Decimal(2), amount=Decimal(100),
                              purchase_item_id=batch.id)
    ]))

    with pytest.raises(ReferentialConflict):
        crud_unit.update_unit(db, pcs.id, UnitUpdate(name="pcs", group_id=count_group.id, ratio=Decimal(2),
                                                     is_base=True))

    db.refresh(pcs)
    assert pcs.ratio == Decimal(1)
    assert inventory.remaining_base(db, batch.id) == Decimal(0)

    renamed = crud_unit.update_unit(db, pcs.id, UnitUpdate(name="piece", group_id=count_group.id, ratio=Decimal(1),
                                                           is_base=True))
    assert renamed.name == "piece"
    assert crud_unit.update_unit(db, dozen.id, UnitUpdate(name="dozen", group_id=count_group.id,
                                                          ratio=Decimal(10))).ratio == Decimal(10)
