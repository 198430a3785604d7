import logging
from typing import Optional

from sqlalchemy.orm import Session

from exceptions import NotFound, ValidationFailed, DuplicateKey
from models.discount_codes import SaleDiscountCode
from schemas.discount_codes import DiscountCodeCreate, DiscountCodeUpdate, DiscountCodeValidation
from utils.clock import today
from utils.money import compute_discount, to_decimal
from utils.transaction import atomic

logger = logging.getLogger("discount_codes")


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def get_discount_code(db: Session, discount_code_id: int):
    return db.query(SaleDiscountCode).filter(SaleDiscountCode.id == discount_code_id).first()


def get_discount_code_by_code(db: Session, code: str):
    return db.query(SaleDiscountCode).filter(SaleDiscountCode.code == normalize_code(code)).first()


def get_discount_codes(db: Session, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(SaleDiscountCode)
    if search:
        query = query.filter(SaleDiscountCode.code.ilike(f"%{search.strip()}%"))
    return query.order_by(SaleDiscountCode.id.desc()).offset(skip).limit(limit).all()


def _ensure_unique(db: Session, code: str, exclude_id: Optional[int] = None):
    query = db.query(SaleDiscountCode).filter(SaleDiscountCode.code == code)
    if exclude_id is not None:
        query = query.filter(SaleDiscountCode.id != exclude_id)
    if query.first():
        raise DuplicateKey(f"Discount code '{code}' already exists.")


def create_discount_code(db: Session, discount_code: DiscountCodeCreate, user_id: Optional[str] = None):
    if not discount_code.code:
        raise ValidationFailed("Discount code is required.")
    with atomic(db):
        _ensure_unique(db, discount_code.code)
        db_code = SaleDiscountCode(**discount_code.model_dump(), use_count=0, created_by=user_id)
        db.add(db_code)
    db.refresh(db_code)
    logger.info(f"Discount code {db_code.code} (ID: {db_code.id}) created by {user_id}")
    return db_code


def update_discount_code(db: Session, discount_code_id: int, discount_code: DiscountCodeUpdate,
                         user_id: Optional[str] = None):
    db_code = get_discount_code(db, discount_code_id)
    if db_code is None:
        raise NotFound(f"Discount code with ID {discount_code_id} not found.")
    if not discount_code.code:
        raise ValidationFailed("Discount code is required.")
    with atomic(db):
        _ensure_unique(db, discount_code.code, exclude_id=discount_code_id)
        for key, value in discount_code.model_dump().items():
            setattr(db_code, key, value)
        db_code.updated_by = user_id
    db.refresh(db_code)
    logger.info(f"Discount code {db_code.code} (ID: {db_code.id}) updated by {user_id}")
    return db_code


def delete_discount_code(db: Session, discount_code_id: int, user_id: Optional[str] = None):
    db_code = get_discount_code(db, discount_code_id)
    if db_code is None:
        raise NotFound(f"Discount code with ID {discount_code_id} not found.")
    with atomic(db):
        db.delete(db_code)
    logger.info(f"Discount code ID {discount_code_id} deleted by {user_id}")
    return True


def check_discount_code(db: Session, code: Optional[str], subtotal) -> SaleDiscountCode:
    """Return the usable code row for this subtotal or raise with the reason it cannot be used."""
    code = normalize_code(code)
    if not code:
        raise ValidationFailed("Discount code is required.")

    db_code = get_discount_code_by_code(db, code)
    if db_code is None:
        raise NotFound(f"Discount code '{code}' not found.")

    current = today()
    if db_code.valid_from and current < db_code.valid_from:
        raise ValidationFailed(f"Discount code '{code}' is not valid until {db_code.valid_from.isoformat()}.")
    if db_code.valid_to and current > db_code.valid_to:
        raise ValidationFailed(f"Discount code '{code}' expired on {db_code.valid_to.isoformat()}.")
    if db_code.max_uses is not None and (db_code.use_count or 0) >= db_code.max_uses:
        raise ValidationFailed(f"Discount code '{code}' has reached its maximum number of uses.")

    subtotal = to_decimal(subtotal)
    min_purchase = to_decimal(db_code.min_purchase)
    if subtotal < min_purchase:
        raise ValidationFailed(f"Minimum purchase of {min_purchase} is required to use discount code '{code}'.")
    return db_code


def validate_discount_code(db: Session, code: Optional[str], subtotal) -> DiscountCodeValidation:
    """Read-only check; use_count is only bumped when a sale applies the code."""
    db_code = check_discount_code(db, code, subtotal)
    return DiscountCodeValidation(
        discount_code_id=db_code.id,
        code=db_code.code,
        type=db_code.type,
        value=db_code.value,
        discount_amount=compute_discount(subtotal, db_code.type, db_code.value),
    )


def mark_used(db: Session, db_code: SaleDiscountCode):
    db_code.use_count = (db_code.use_count or 0) + 1
    db.flush()
