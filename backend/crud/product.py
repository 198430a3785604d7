import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from exceptions import ReferentialConflict
from models.product import Product as ProductModel, Service as ServiceModel
from models.purchase_items import PurchaseItem
from models.sale_items import SaleItem, SaleServiceItem
from schemas.product import ProductCreate, ProductUpdate, ServiceCreate, ServiceUpdate
from utils.transaction import atomic

logger = logging.getLogger("products")


def get_product(db: Session, product_id: int):
    return db.query(ProductModel).filter(ProductModel.id == product_id).first()


def get_products(db: Session, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(ProductModel)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(ProductModel.name.ilike(pattern), ProductModel.bar_code.ilike(pattern)))
    return query.order_by(ProductModel.id.desc()).offset(skip).limit(limit).all()


def create_product(db: Session, product: ProductCreate, user_id: Optional[str] = None):
    with atomic(db):
        db_product = ProductModel(**product.model_dump(), created_by=user_id)
        db.add(db_product)
    db.refresh(db_product)
    logger.info(f"Product {db_product.name} (ID: {db_product.id}) created by {user_id}")
    return db_product


def update_product(db: Session, product_id: int, product: ProductUpdate, user_id: Optional[str] = None):
    db_product = get_product(db, product_id)
    if not db_product:
        return None
    with atomic(db):
        for key, value in product.model_dump().items():
            setattr(db_product, key, value)
        db_product.updated_by = user_id
    db.refresh(db_product)
    return db_product


def delete_product(db: Session, product_id: int, user_id: Optional[str] = None):
    db_product = get_product(db, product_id)
    if not db_product:
        return False
    in_use = (
        db.query(PurchaseItem.id).filter(PurchaseItem.product_id == product_id).first()
        or db.query(SaleItem.id).filter(SaleItem.product_id == product_id).first()
    )
    if in_use:
        raise ReferentialConflict(
            f"Cannot delete product '{db_product.name}': it is referenced by purchase or sale items."
        )
    with atomic(db):
        db.delete(db_product)
    logger.info(f"Product ID {product_id} deleted by {user_id}")
    return True


def get_service(db: Session, service_id: int):
    return db.query(ServiceModel).filter(ServiceModel.id == service_id).first()


def get_services(db: Session, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(ServiceModel)
    if search:
        query = query.filter(ServiceModel.name.ilike(f"%{search.strip()}%"))
    return query.order_by(ServiceModel.id.desc()).offset(skip).limit(limit).all()


def create_service(db: Session, service: ServiceCreate, user_id: Optional[str] = None):
    with atomic(db):
        db_service = ServiceModel(**service.model_dump(), created_by=user_id)
        db.add(db_service)
    db.refresh(db_service)
    logger.info(f"Service {db_service.name} (ID: {db_service.id}) created by {user_id}")
    return db_service


def update_service(db: Session, service_id: int, service: ServiceUpdate, user_id: Optional[str] = None):
    db_service = get_service(db, service_id)
    if not db_service:
        return None
    with atomic(db):
        for key, value in service.model_dump().items():
            setattr(db_service, key, value)
        db_service.updated_by = user_id
    db.refresh(db_service)
    return db_service


def delete_service(db: Session, service_id: int, user_id: Optional[str] = None):
    db_service = get_service(db, service_id)
    if not db_service:
        return False
    if db.query(SaleServiceItem.id).filter(SaleServiceItem.service_id == service_id).first():
        raise ReferentialConflict(f"Cannot delete service '{db_service.name}': it is referenced by sales.")
    with atomic(db):
        db.delete(db_service)
    logger.info(f"Service ID {service_id} deleted by {user_id}")
    return True
