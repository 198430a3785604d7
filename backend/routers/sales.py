from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import sales as crud
from crud import sale_payments as crud_payments
from schemas.sales import (
    Sale as SaleSchema,
    SaleCreate,
    SaleUpdate,
    SaleItem as SaleItemSchema,
    SaleItemCreateRequest,
    SaleItemUpdate,
    SaleAdditionalCost as SaleAdditionalCostSchema,
    SaleAdditionalCostCreate,
    SaleAdditionalCostUpdate,
    SalePayment as SalePaymentSchema,
)
from utils.request_context import get_actor

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("/", response_model=SaleSchema, status_code=status.HTTP_201_CREATED)
def create_sale(sale: SaleCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    """Create a sale with its items, service items, additional costs and optional opening payment."""
    return crud.create_sale(db, sale, user_id)


@router.get("/", response_model=List[SaleSchema])
def read_sales(
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return crud.get_sales(db, customer_id=customer_id, start_date=start_date, end_date=end_date, skip=skip, limit=limit)


@router.get("/{sale_id}", response_model=SaleSchema)
def read_sale(sale_id: int, db: Session = Depends(get_db)):
    db_sale = crud.get_sale(db, sale_id)
    if db_sale is None:
        raise HTTPException(status_code=404, detail="Sale not found")
    return db_sale


@router.put("/{sale_id}", response_model=SaleSchema)
def update_sale(sale_id: int, sale: SaleUpdate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.update_sale(db, sale_id, sale, user_id)


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(sale_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_sale(db, sale_id, user_id)


@router.post("/{sale_id}/items", response_model=SaleItemSchema, status_code=status.HTTP_201_CREATED)
def add_sale_item(sale_id: int, item: SaleItemCreateRequest, db: Session = Depends(get_db),
                  user_id: str = Depends(get_actor)):
    return crud.create_sale_item(db, sale_id, item, user_id)


@router.put("/{sale_id}/items/{item_id}", response_model=SaleItemSchema)
def update_sale_item(sale_id: int, item_id: int, item: SaleItemUpdate, db: Session = Depends(get_db),
                     user_id: str = Depends(get_actor)):
    if crud.get_sale_item(db, item_id).sale_id != sale_id:
        raise HTTPException(status_code=404, detail="Sale item not found in this sale")
    return crud.update_sale_item(db, item_id, item, user_id)


@router.delete("/{sale_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale_item(sale_id: int, item_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if crud.get_sale_item(db, item_id).sale_id != sale_id:
        raise HTTPException(status_code=404, detail="Sale item not found in this sale")
    crud.delete_sale_item(db, item_id, user_id)


@router.get("/{sale_id}/additional-costs", response_model=List[SaleAdditionalCostSchema])
def read_sale_additional_costs(sale_id: int, db: Session = Depends(get_db)):
    return crud.get_sale_additional_costs(db, sale_id)


@router.post("/{sale_id}/additional-costs", response_model=SaleAdditionalCostSchema,
             status_code=status.HTTP_201_CREATED)
def add_sale_additional_cost(sale_id: int, cost: SaleAdditionalCostCreate, db: Session = Depends(get_db),
                             user_id: str = Depends(get_actor)):
    return crud.create_sale_additional_cost(db, sale_id, cost, user_id)


@router.put("/additional-costs/{cost_id}", response_model=SaleAdditionalCostSchema)
def update_sale_additional_cost(cost_id: int, cost: SaleAdditionalCostUpdate, db: Session = Depends(get_db),
                                user_id: str = Depends(get_actor)):
    return crud.update_sale_additional_cost(db, cost_id, cost, user_id)


@router.delete("/additional-costs/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale_additional_cost(cost_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_sale_additional_cost(db, cost_id, user_id)


@router.get("/{sale_id}/payments", response_model=List[SalePaymentSchema])
def read_sale_payments(sale_id: int, db: Session = Depends(get_db)):
    return crud_payments.get_sale_payments(db, sale_id)
