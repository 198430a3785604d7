import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from exceptions import ReferentialConflict
from models.parties import Supplier as SupplierModel, Customer as CustomerModel
from models.product import Product
from models.purchases import Purchase
from models.sales import Sale
from schemas.parties import SupplierCreate, SupplierUpdate, CustomerCreate, CustomerUpdate
from utils.transaction import atomic

logger = logging.getLogger("parties")


def _search(query, model, search: Optional[str]):
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(model.full_name.ilike(pattern), model.phone.ilike(pattern)))
    return query


def get_supplier(db: Session, supplier_id: int):
    return db.query(SupplierModel).filter(SupplierModel.id == supplier_id).first()


def get_suppliers(db: Session, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = _search(db.query(SupplierModel), SupplierModel, search)
    return query.order_by(SupplierModel.id.desc()).offset(skip).limit(limit).all()


def create_supplier(db: Session, supplier: SupplierCreate, user_id: Optional[str] = None):
    with atomic(db):
        db_supplier = SupplierModel(**supplier.model_dump(), created_by=user_id)
        db.add(db_supplier)
    db.refresh(db_supplier)
    logger.info(f"Supplier {db_supplier.full_name} (ID: {db_supplier.id}) created by {user_id}")
    return db_supplier


def update_supplier(db: Session, supplier_id: int, supplier: SupplierUpdate, user_id: Optional[str] = None):
    db_supplier = get_supplier(db, supplier_id)
    if not db_supplier:
        return None
    with atomic(db):
        for key, value in supplier.model_dump().items():
            setattr(db_supplier, key, value)
        db_supplier.updated_by = user_id
    db.refresh(db_supplier)
    return db_supplier


def delete_supplier(db: Session, supplier_id: int, user_id: Optional[str] = None):
    db_supplier = get_supplier(db, supplier_id)
    if not db_supplier:
        return False
    if db.query(Purchase.id).filter(Purchase.supplier_id == supplier_id).first():
        raise ReferentialConflict(f"Cannot delete supplier '{db_supplier.full_name}': purchases reference it.")
    with atomic(db):
        db.query(Product).filter(Product.supplier_id == supplier_id).update(
            {Product.supplier_id: None}, synchronize_session=False
        )
        db.delete(db_supplier)
    logger.info(f"Supplier ID {supplier_id} deleted by {user_id}")
    return True


def get_customer(db: Session, customer_id: int):
    return db.query(CustomerModel).filter(CustomerModel.id == customer_id).first()


def get_customers(db: Session, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = _search(db.query(CustomerModel), CustomerModel, search)
    return query.order_by(CustomerModel.id.desc()).offset(skip).limit(limit).all()


def create_customer(db: Session, customer: CustomerCreate, user_id: Optional[str] = None):
    with atomic(db):
        db_customer = CustomerModel(**customer.model_dump(), created_by=user_id)
        db.add(db_customer)
    db.refresh(db_customer)
    logger.info(f"Customer {db_customer.full_name} (ID: {db_customer.id}) created by {user_id}")
    return db_customer


def update_customer(db: Session, customer_id: int, customer: CustomerUpdate, user_id: Optional[str] = None):
    db_customer = get_customer(db, customer_id)
    if not db_customer:
        return None
    with atomic(db):
        for key, value in customer.model_dump().items():
            setattr(db_customer, key, value)
        db_customer.updated_by = user_id
    db.refresh(db_customer)
    return db_customer


def delete_customer(db: Session, customer_id: int, user_id: Optional[str] = None):
    db_customer = get_customer(db, customer_id)
    if not db_customer:
        return False
    if db.query(Sale.id).filter(Sale.customer_id == customer_id).first():
        raise ReferentialConflict(f"Cannot delete customer '{db_customer.full_name}': sales reference it.")
    with atomic(db):
        db.delete(db_customer)
    logger.info(f"Customer ID {customer_id} deleted by {user_id}")
    return True
