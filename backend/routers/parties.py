from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import parties as crud
from schemas.parties import Supplier, SupplierCreate, SupplierUpdate, Customer, CustomerCreate, CustomerUpdate
from utils.request_context import get_actor

suppliers_router = APIRouter(prefix="/suppliers", tags=["Suppliers"])
customers_router = APIRouter(prefix="/customers", tags=["Customers"])


@suppliers_router.post("/", response_model=Supplier, status_code=status.HTTP_201_CREATED)
def create_supplier(supplier: SupplierCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_supplier(db, supplier, user_id)


@suppliers_router.get("/", response_model=List[Supplier])
def read_suppliers(search: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_suppliers(db, search=search, skip=skip, limit=limit)


@suppliers_router.get("/{supplier_id}", response_model=Supplier)
def read_supplier(supplier_id: int, db: Session = Depends(get_db)):
    db_supplier = crud.get_supplier(db, supplier_id)
    if db_supplier is None:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return db_supplier


@suppliers_router.put("/{supplier_id}", response_model=Supplier)
def update_supplier(supplier_id: int, supplier: SupplierUpdate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    db_supplier = crud.update_supplier(db, supplier_id, supplier, user_id)
    if db_supplier is None:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return db_supplier


@suppliers_router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(supplier_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_supplier(db, supplier_id, user_id):
        raise HTTPException(status_code=404, detail="Supplier not found")


@customers_router.post("/", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(customer: CustomerCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_customer(db, customer, user_id)


@customers_router.get("/", response_model=List[Customer])
def read_customers(search: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_customers(db, search=search, skip=skip, limit=limit)


@customers_router.get("/{customer_id}", response_model=Customer)
def read_customer(customer_id: int, db: Session = Depends(get_db)):
    db_customer = crud.get_customer(db, customer_id)
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return db_customer


@customers_router.put("/{customer_id}", response_model=Customer)
def update_customer(customer_id: int, customer: CustomerUpdate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    db_customer = crud.update_customer(db, customer_id, customer, user_id)
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return db_customer


@customers_router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_customer(db, customer_id, user_id):
        raise HTTPException(status_code=404, detail="Customer not found")
