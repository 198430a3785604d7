from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import purchase_payments as crud
from schemas.purchases import PurchasePayment as PurchasePaymentSchema, PurchasePaymentCreate, PurchasePaymentUpdate
from utils.request_context import get_actor

router = APIRouter(prefix="/purchase-payments", tags=["Purchase Payments"])


@router.post("/", response_model=PurchasePaymentSchema, status_code=status.HTTP_201_CREATED)
def create_purchase_payment(payment: PurchasePaymentCreate, db: Session = Depends(get_db),
                            user_id: str = Depends(get_actor)):
    """Pay a supplier; with an account_id the account must hold enough of the currency."""
    return crud.create_purchase_payment(db, payment, user_id)


@router.get("/purchase/{purchase_id}", response_model=List[PurchasePaymentSchema])
def read_purchase_payments(purchase_id: int, db: Session = Depends(get_db)):
    return crud.get_purchase_payments(db, purchase_id)


@router.get("/{payment_id}", response_model=PurchasePaymentSchema)
def read_purchase_payment(payment_id: int, db: Session = Depends(get_db)):
    return crud.get_purchase_payment(db, payment_id)


@router.put("/{payment_id}", response_model=PurchasePaymentSchema)
def update_purchase_payment(payment_id: int, payment: PurchasePaymentUpdate, db: Session = Depends(get_db),
                            user_id: str = Depends(get_actor)):
    return crud.update_purchase_payment(db, payment_id, payment, user_id)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_payment(payment_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_purchase_payment(db, payment_id, user_id)
