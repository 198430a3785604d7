import logging
from typing import Optional

from sqlalchemy.orm import Session

from exceptions import NotFound, DuplicateKey, ReferentialConflict
from models.purchase_items import PurchaseItem
from models.sale_items import SaleItem
from models.unit import Unit as UnitModel, UnitGroup as UnitGroupModel
from schemas.unit import UnitGroupCreate, UnitCreate, UnitUpdate
from utils.money import to_decimal
from utils.transaction import atomic

logger = logging.getLogger("units")


def get_unit_groups(db: Session):
    return db.query(UnitGroupModel).order_by(UnitGroupModel.name.asc()).all()


def create_unit_group(db: Session, group: UnitGroupCreate, user_id: Optional[str] = None):
    with atomic(db):
        if db.query(UnitGroupModel).filter(UnitGroupModel.name == group.name).first():
            raise DuplicateKey(f"Unit group '{group.name}' already exists.")
        db_group = UnitGroupModel(name=group.name, created_by=user_id)
        db.add(db_group)
    db.refresh(db_group)
    return db_group


def get_unit(db: Session, unit_id: int):
    return db.query(UnitModel).filter(UnitModel.id == unit_id).first()


def get_units(db: Session, group_id: Optional[int] = None):
    query = db.query(UnitModel)
    if group_id:
        query = query.filter(UnitModel.group_id == group_id)
    return query.order_by(UnitModel.name.asc()).all()


def _check_group(db: Session, group_id: Optional[int]):
    if group_id is not None and db.query(UnitGroupModel).filter(UnitGroupModel.id == group_id).first() is None:
        raise NotFound(f"Unit group with ID {group_id} not found.")


def _clear_group_base(db: Session, group_id: Optional[int], keep_id: Optional[int] = None):
    """One base unit per group."""
    if group_id is None:
        return
    query = db.query(UnitModel).filter(UnitModel.group_id == group_id, UnitModel.is_base.is_(True))
    if keep_id is not None:
        query = query.filter(UnitModel.id != keep_id)
    for other in query.all():
        other.is_base = False
    db.flush()


def create_unit(db: Session, unit: UnitCreate, user_id: Optional[str] = None):
    _check_group(db, unit.group_id)
    with atomic(db):
        if unit.is_base:
            _clear_group_base(db, unit.group_id)
        db_unit = UnitModel(**unit.model_dump(), created_by=user_id)
        db.add(db_unit)
    db.refresh(db_unit)
    logger.info(f"Unit {db_unit.name} (ID: {db_unit.id}, ratio {db_unit.ratio}) created by {user_id}")
    return db_unit


def _in_use(db: Session, unit_id: int) -> bool:
    return bool(
        db.query(PurchaseItem.id).filter(PurchaseItem.unit_id == unit_id).first()
        or db.query(SaleItem.id).filter(SaleItem.unit_id == unit_id).first()
    )


def update_unit(db: Session, unit_id: int, unit: UnitUpdate, user_id: Optional[str] = None):
    """A unit that purchase or sale items already use keeps its ratio."""
    db_unit = get_unit(db, unit_id)
    if not db_unit:
        return None
    _check_group(db, unit.group_id)
    if to_decimal(unit.ratio) != to_decimal(db_unit.ratio) and _in_use(db, unit_id):
        raise ReferentialConflict(
            f"Cannot change the ratio of unit '{db_unit.name}': it is used by purchase or sale items."
        )
    with atomic(db):
        if unit.is_base:
            _clear_group_base(db, unit.group_id, keep_id=unit_id)
        for key, value in unit.model_dump().items():
            setattr(db_unit, key, value)
        db_unit.updated_by = user_id
    db.refresh(db_unit)
    return db_unit


def delete_unit(db: Session, unit_id: int, user_id: Optional[str] = None):
    db_unit = get_unit(db, unit_id)
    if not db_unit:
        return False
    if _in_use(db, unit_id):
        raise ReferentialConflict(f"Cannot delete unit '{db_unit.name}': it is used by purchase or sale items.")
    with atomic(db):
        db.delete(db_unit)
    logger.info(f"Unit ID {unit_id} deleted by {user_id}")
    return True
