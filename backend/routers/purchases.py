from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import purchases as crud
from schemas.purchases import (
    Purchase as PurchaseSchema,
    PurchaseCreate,
    PurchaseUpdate,
    PurchaseItem as PurchaseItemSchema,
    PurchaseItemCreateRequest,
    PurchaseItemUpdate,
    PurchaseAdditionalCost as PurchaseAdditionalCostSchema,
    AdditionalCostCreate,
    AdditionalCostUpdate,
)
from utils.request_context import get_actor

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post("/", response_model=PurchaseSchema, status_code=status.HTTP_201_CREATED)
def create_purchase(purchase: PurchaseCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    """Create a purchase; every item becomes a batch that sales can draw from."""
    return crud.create_purchase(db, purchase, user_id)


@router.get("/", response_model=List[PurchaseSchema])
def read_purchases(
    supplier_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return crud.get_purchases(db, supplier_id=supplier_id, start_date=start_date, end_date=end_date,
                              skip=skip, limit=limit)


@router.get("/{purchase_id}", response_model=PurchaseSchema)
def read_purchase(purchase_id: int, db: Session = Depends(get_db)):
    db_purchase = crud.get_purchase(db, purchase_id)
    if db_purchase is None:
        raise HTTPException(status_code=404, detail="Purchase not found")
    return db_purchase


@router.put("/{purchase_id}", response_model=PurchaseSchema)
def update_purchase(purchase_id: int, purchase: PurchaseUpdate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    return crud.update_purchase(db, purchase_id, purchase, user_id)


@router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase(purchase_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_purchase(db, purchase_id, user_id)


@router.post("/{purchase_id}/items", response_model=PurchaseItemSchema, status_code=status.HTTP_201_CREATED)
def add_purchase_item(purchase_id: int, item: PurchaseItemCreateRequest, db: Session = Depends(get_db),
                      user_id: str = Depends(get_actor)):
    return crud.create_purchase_item(db, purchase_id, item, user_id)


@router.put("/{purchase_id}/items/{item_id}", response_model=PurchaseItemSchema)
def update_purchase_item(purchase_id: int, item_id: int, item: PurchaseItemUpdate, db: Session = Depends(get_db),
                         user_id: str = Depends(get_actor)):
    if crud.get_purchase_item(db, item_id).purchase_id != purchase_id:
        raise HTTPException(status_code=404, detail="Purchase item not found in this purchase")
    return crud.update_purchase_item(db, item_id, item, user_id)


@router.delete("/{purchase_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_item(purchase_id: int, item_id: int, db: Session = Depends(get_db),
                         user_id: str = Depends(get_actor)):
    if crud.get_purchase_item(db, item_id).purchase_id != purchase_id:
        raise HTTPException(status_code=404, detail="Purchase item not found in this purchase")
    crud.delete_purchase_item(db, item_id, user_id)


@router.get("/{purchase_id}/additional-costs", response_model=List[PurchaseAdditionalCostSchema])
def read_purchase_additional_costs(purchase_id: int, db: Session = Depends(get_db)):
    return crud.get_purchase_additional_costs(db, purchase_id)


@router.post("/{purchase_id}/additional-costs", response_model=PurchaseAdditionalCostSchema,
             status_code=status.HTTP_201_CREATED)
def add_purchase_additional_cost(purchase_id: int, cost: AdditionalCostCreate, db: Session = Depends(get_db),
                                 user_id: str = Depends(get_actor)):
    return crud.create_purchase_additional_cost(db, purchase_id, cost, user_id)


@router.put("/additional-costs/{cost_id}", response_model=PurchaseAdditionalCostSchema)
def update_purchase_additional_cost(cost_id: int, cost: AdditionalCostUpdate, db: Session = Depends(get_db),
                                    user_id: str = Depends(get_actor)):
    return crud.update_purchase_additional_cost(db, cost_id, cost, user_id)


@router.delete("/additional-costs/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_additional_cost(cost_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_purchase_additional_cost(db, cost_id, user_id)
