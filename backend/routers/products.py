from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import product as crud
from crud import inventory
from schemas.inventory import ProductBatch, ProductStock
from schemas.product import Product, ProductCreate, ProductUpdate, Service, ServiceCreate, ServiceUpdate
from utils.request_context import get_actor

products_router = APIRouter(prefix="/products", tags=["Products"])
services_router = APIRouter(prefix="/services", tags=["Services"])
inventory_router = APIRouter(prefix="/inventory", tags=["Inventory"])


@products_router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(product: ProductCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_product(db, product, user_id)


@products_router.get("/", response_model=List[Product])
def read_products(search: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_products(db, search=search, skip=skip, limit=limit)


@products_router.get("/{product_id}", response_model=Product)
def read_product(product_id: int, db: Session = Depends(get_db)):
    db_product = crud.get_product(db, product_id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product


@products_router.put("/{product_id}", response_model=Product)
def update_product(product_id: int, product: ProductUpdate, db: Session = Depends(get_db),
                   user_id: str = Depends(get_actor)):
    db_product = crud.update_product(db, product_id, product, user_id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product


@products_router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_product(db, product_id, user_id):
        raise HTTPException(status_code=404, detail="Product not found")


@products_router.get("/{product_id}/batches", response_model=List[ProductBatch])
def read_product_batches(product_id: int, db: Session = Depends(get_db)):
    """Batches of the product with stock left, oldest first."""
    return inventory.get_product_batches(db, product_id)


@products_router.get("/{product_id}/stock", response_model=ProductStock)
def read_product_stock(product_id: int, unit_id: Optional[int] = None, db: Session = Depends(get_db)):
    quantity = inventory.get_product_stock(db, product_id, unit_id)
    return ProductStock(product_id=product_id, unit_id=unit_id, quantity=quantity)


@inventory_router.get("/batches", response_model=List[ProductBatch])
def read_stock_by_batches(db: Session = Depends(get_db)):
    return inventory.get_stock_by_batches(db)


@services_router.post("/", response_model=Service, status_code=status.HTTP_201_CREATED)
def create_service(service: ServiceCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_service(db, service, user_id)


@services_router.get("/", response_model=List[Service])
def read_services(search: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_services(db, search=search, skip=skip, limit=limit)


@services_router.get("/{service_id}", response_model=Service)
def read_service(service_id: int, db: Session = Depends(get_db)):
    db_service = crud.get_service(db, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return db_service


@services_router.put("/{service_id}", response_model=Service)
def update_service(service_id: int, service: ServiceUpdate, db: Session = Depends(get_db),
                   user_id: str = Depends(get_actor)):
    db_service = crud.update_service(db, service_id, service, user_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return db_service


@services_router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(service_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_service(db, service_id, user_id):
        raise HTTPException(status_code=404, detail="Service not found")
