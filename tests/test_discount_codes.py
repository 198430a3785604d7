from datetime import timedelta
from decimal import Decimal

import pytest

from crud import discount_codes as crud
from exceptions import DuplicateKey, NotFound, ValidationFailed
from schemas.discount_codes import DiscountCodeCreate, DiscountCodeUpdate
from utils.clock import today
from utils.money import FIXED, PERCENT


def code_in(code="WELCOME", type=PERCENT, value=10, **kwargs):
    return DiscountCodeCreate(code=code, type=type, value=Decimal(value), **kwargs)


def test_minimum_purchase(db):
    crud.create_discount_code(db, code_in(min_purchase=Decimal(200)))

    with pytest.raises(ValidationFailed) as excinfo:
        crud.validate_discount_code(db, "WELCOME", Decimal(100))
    assert "Minimum purchase" in excinfo.value.message

    result = crud.validate_discount_code(db, "WELCOME", Decimal(250))
    assert result.discount_amount == Decimal(25)
    assert result.type == PERCENT


def test_codes_are_stored_upper_trimmed(db):
    created = crud.create_discount_code(db, code_in(code="  spring "))

    assert created.code == "SPRING"
    assert crud.validate_discount_code(db, " Spring", Decimal(50)).discount_code_id == created.id


def test_duplicate_code(db):
    crud.create_discount_code(db, code_in(code="DUP"))

    with pytest.raises(DuplicateKey):
        crud.create_discount_code(db, code_in(code=" dup "))


def test_update_to_a_taken_code(db):
    crud.create_discount_code(db, code_in(code="ONE"))
    two = crud.create_discount_code(db, code_in(code="TWO"))

    with pytest.raises(DuplicateKey):
        crud.update_discount_code(db, two.id, DiscountCodeUpdate(code="one", type=FIXED, value=Decimal(1)))


def test_fixed_code_is_capped_at_subtotal(db):
    crud.create_discount_code(db, code_in(code="FLAT", type=FIXED, value=50))

    assert crud.validate_discount_code(db, "FLAT", Decimal(30)).discount_amount == Decimal(30)


@pytest.mark.parametrize("code", [None, "", "   "])
def test_empty_code(db, code):
    with pytest.raises(ValidationFailed):
        crud.validate_discount_code(db, code, Decimal(100))


def test_unknown_code(db):
    with pytest.raises(NotFound):
        crud.validate_discount_code(db, "NOPE", Decimal(100))


def test_validity_window_is_inclusive(db):
    current = today()
    crud.create_discount_code(db, code_in(code="EDGE", valid_from=current, valid_to=current))
    crud.create_discount_code(db, code_in(code="LATER", valid_from=current + timedelta(days=1)))
    crud.create_discount_code(db, code_in(code="OLD", valid_to=current - timedelta(days=1)))

    assert crud.validate_discount_code(db, "EDGE", Decimal(100)).discount_amount == Decimal(10)
    with pytest.raises(ValidationFailed):
        crud.validate_discount_code(db, "LATER", Decimal(100))
    with pytest.raises(ValidationFailed):
        crud.validate_discount_code(db, "OLD", Decimal(100))


def test_exhausted_code(db):
    created = crud.create_discount_code(db, code_in(code="ONCE", max_uses=1))
    crud.validate_discount_code(db, "ONCE", Decimal(100))
    db.refresh(created)
    assert created.use_count == 0

    crud.mark_used(db, created)
    db.commit()

    with pytest.raises(ValidationFailed):
        crud.validate_discount_code(db, "ONCE", Decimal(100))


def test_search(db):
    crud.create_discount_code(db, code_in(code="SUMMER"))
    crud.create_discount_code(db, code_in(code="WINTER"))

    assert [c.code for c in crud.get_discount_codes(db, search="umm")] == ["SUMMER"]
    assert len(crud.get_discount_codes(db)) == 2
