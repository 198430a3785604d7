from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from crud import sale_payments as crud
from schemas.sales import SalePayment as SalePaymentSchema, SalePaymentCreate
from utils.request_context import get_actor

router = APIRouter(prefix="/sale-payments", tags=["Sale Payments"])


@router.post("/", response_model=SalePaymentSchema, status_code=status.HTTP_201_CREATED)
def create_sale_payment(payment: SalePaymentCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    """Record a customer payment; with an account_id the money is deposited into that account."""
    return crud.create_sale_payment(db, payment, user_id)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale_payment(payment_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_sale_payment(db, payment_id, user_id)
