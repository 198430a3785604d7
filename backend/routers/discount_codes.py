from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import discount_codes as crud
from schemas.discount_codes import (
    DiscountCode,
    DiscountCodeCreate,
    DiscountCodeUpdate,
    DiscountCodeValidateRequest,
    DiscountCodeValidation,
)
from utils.request_context import get_actor

router = APIRouter(prefix="/discount-codes", tags=["Discount Codes"])


@router.post("/validate", response_model=DiscountCodeValidation)
def validate_discount_code(request: DiscountCodeValidateRequest, db: Session = Depends(get_db)):
    """Check a code against a subtotal without consuming a use."""
    return crud.validate_discount_code(db, request.code, request.subtotal)


@router.post("/", response_model=DiscountCode, status_code=status.HTTP_201_CREATED)
def create_discount_code(discount_code: DiscountCodeCreate, db: Session = Depends(get_db),
                         user_id: str = Depends(get_actor)):
    return crud.create_discount_code(db, discount_code, user_id)


@router.get("/", response_model=List[DiscountCode])
def read_discount_codes(search: Optional[str] = None, skip: int = 0, limit: int = 100,
                        db: Session = Depends(get_db)):
    return crud.get_discount_codes(db, search=search, skip=skip, limit=limit)


@router.get("/{discount_code_id}", response_model=DiscountCode)
def read_discount_code(discount_code_id: int, db: Session = Depends(get_db)):
    db_code = crud.get_discount_code(db, discount_code_id)
    if db_code is None:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return db_code


@router.put("/{discount_code_id}", response_model=DiscountCode)
def update_discount_code(discount_code_id: int, discount_code: DiscountCodeUpdate, db: Session = Depends(get_db),
                         user_id: str = Depends(get_actor)):
    db_code = crud.update_discount_code(db, discount_code_id, discount_code, user_id)
    if db_code is None:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return db_code


@router.delete("/{discount_code_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_discount_code(discount_code_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_discount_code(db, discount_code_id, user_id):
        raise HTTPException(status_code=404, detail="Discount code not found")
