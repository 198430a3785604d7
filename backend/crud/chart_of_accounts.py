import logging
from typing import Optional

from sqlalchemy.orm import Session

from exceptions import NotFound, ValidationFailed, DuplicateKey, ReferentialConflict
from models.accounts import Account
from models.chart_of_accounts import CoaCategory as CoaCategoryModel
from schemas.chart_of_accounts import CoaCategory, CoaCategoryCreate, CoaCategoryUpdate, CoaCategoryNode
from utils.transaction import atomic

logger = logging.getLogger("coa_categories")

CATEGORY_TYPES = ("Asset", "Liability", "Equity", "Revenue", "Expense")

# (code, name, category_type, parent_code)
STANDARD_CATEGORIES = [
    ("1000", "Assets", "Asset", None),
    ("1100", "Current Assets", "Asset", "1000"),
    ("1110", "Cash", "Asset", "1100"),
    ("1120", "Bank", "Asset", "1100"),
    ("1130", "Accounts Receivable", "Asset", "1100"),
    ("1140", "Inventory", "Asset", "1100"),
    ("1200", "Fixed Assets", "Asset", "1000"),
    ("2000", "Liabilities", "Liability", None),
    ("2100", "Current Liabilities", "Liability", "2000"),
    ("2110", "Accounts Payable", "Liability", "2100"),
    ("2120", "Salaries Payable", "Liability", "2100"),
    ("2200", "Long-term Liabilities", "Liability", "2000"),
    ("3000", "Equity", "Equity", None),
    ("3100", "Owner's Capital", "Equity", "3000"),
    ("3200", "Retained Earnings", "Equity", "3000"),
    ("4000", "Revenue", "Revenue", None),
    ("4100", "Sales Revenue", "Revenue", "4000"),
    ("4200", "Service Revenue", "Revenue", "4000"),
    ("5000", "Expenses", "Expense", None),
    ("5100", "Cost of Goods Sold", "Expense", "5000"),
    ("5200", "Operating Expenses", "Expense", "5000"),
    ("5300", "Salaries and Wages", "Expense", "5000"),
]


def get_category(db: Session, category_id: int):
    return db.query(CoaCategoryModel).filter(CoaCategoryModel.id == category_id).first()


def get_category_by_code(db: Session, code: str):
    return db.query(CoaCategoryModel).filter(CoaCategoryModel.code == code).first()


def get_categories(db: Session, category_type: Optional[str] = None):
    query = db.query(CoaCategoryModel)
    if category_type:
        query = query.filter(CoaCategoryModel.category_type == category_type)
    return query.order_by(CoaCategoryModel.code.asc()).all()


def _level_for(db: Session, parent_id: Optional[int]) -> int:
    if parent_id is None:
        return 0
    parent = get_category(db, parent_id)
    if parent is None:
        raise NotFound(f"Parent category with ID {parent_id} not found.")
    return parent.level + 1


def _check_category(db: Session, category, exclude_id: Optional[int] = None):
    if category.category_type not in CATEGORY_TYPES:
        raise ValidationFailed(f"Category type must be one of {', '.join(CATEGORY_TYPES)}.")
    clash = get_category_by_code(db, category.code)
    if clash is not None and clash.id != exclude_id:
        raise DuplicateKey(f"Category code '{category.code}' already exists.")


def create_category(db: Session, category: CoaCategoryCreate, user_id: Optional[str] = None):
    _check_category(db, category)
    with atomic(db):
        db_category = CoaCategoryModel(
            **category.model_dump(), level=_level_for(db, category.parent_id), created_by=user_id
        )
        db.add(db_category)
    db.refresh(db_category)
    logger.info(f"COA category {db_category.code} (ID: {db_category.id}) created by {user_id}")
    return db_category


def _relevel(category: CoaCategoryModel):
    for child in category.children:
        child.level = category.level + 1
        _relevel(child)


def update_category(db: Session, category_id: int, category: CoaCategoryUpdate, user_id: Optional[str] = None):
    """Moving a category under a new parent re-levels its whole subtree."""
    db_category = get_category(db, category_id)
    if not db_category:
        return None
    _check_category(db, category, exclude_id=category_id)

    ancestor_id = category.parent_id
    while ancestor_id is not None:
        if ancestor_id == category_id:
            raise ValidationFailed("A category cannot be moved under itself or one of its descendants.")
        ancestor = get_category(db, ancestor_id)
        if ancestor is None:
            raise NotFound(f"Parent category with ID {ancestor_id} not found.")
        ancestor_id = ancestor.parent_id

    with atomic(db):
        for key, value in category.model_dump().items():
            setattr(db_category, key, value)
        db_category.level = _level_for(db, category.parent_id)
        db_category.updated_by = user_id
        _relevel(db_category)
    db.refresh(db_category)
    return db_category


def delete_category(db: Session, category_id: int, user_id: Optional[str] = None):
    db_category = get_category(db, category_id)
    if not db_category:
        return False
    if db.query(CoaCategoryModel.id).filter(CoaCategoryModel.parent_id == category_id).first():
        raise ReferentialConflict(f"Cannot delete category '{db_category.name}': it has child categories.")
    if db.query(Account.id).filter(Account.coa_category_id == category_id).first():
        raise ReferentialConflict(f"Cannot delete category '{db_category.name}': accounts are linked to it.")
    with atomic(db):
        db.delete(db_category)
    logger.info(f"COA category ID {category_id} deleted by {user_id}")
    return True


def get_category_tree(db: Session):
    categories = get_categories(db)
    # children are attached here, not read from the ORM relationship
    nodes = {c.id: CoaCategoryNode(**CoaCategory.model_validate(c).model_dump()) for c in categories}
    roots = []
    for c in categories:
        node = nodes[c.id]
        if c.parent_id is not None and c.parent_id in nodes:
            nodes[c.parent_id].children.append(node)
        else:
            roots.append(node)
    return roots


def init_standard_coa_categories(db: Session, user_id: Optional[str] = None) -> int:
    """Seed the standard category hierarchy; codes that already exist are left alone. Returns how many were added."""
    created = 0
    with atomic(db):
        by_code = {c.code: c for c in get_categories(db)}
        for code, name, category_type, parent_code in STANDARD_CATEGORIES:
            if code in by_code:
                continue
            parent = by_code.get(parent_code) if parent_code else None
            db_category = CoaCategoryModel(
                code=code,
                name=name,
                category_type=category_type,
                parent_id=parent.id if parent else None,
                level=parent.level + 1 if parent else 0,
                created_by=user_id,
            )
            db.add(db_category)
            db.flush()
            by_code[code] = db_category
            created += 1
    logger.info(f"Standard COA categories initialized: {created} added by {user_id}")
    return created
