from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import expenses as crud
from schemas import expenses as schemas
from utils.request_context import get_actor

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("/types", response_model=schemas.ExpenseType, status_code=status.HTTP_201_CREATED)
def create_expense_type(expense_type: schemas.ExpenseTypeCreate, db: Session = Depends(get_db),
                        user_id: str = Depends(get_actor)):
    return crud.create_expense_type(db, expense_type, user_id)


@router.get("/types", response_model=List[schemas.ExpenseType])
def read_expense_types(db: Session = Depends(get_db)):
    return crud.get_expense_types(db)


@router.put("/types/{expense_type_id}", response_model=schemas.ExpenseType)
def update_expense_type(expense_type_id: int, expense_type: schemas.ExpenseTypeUpdate,
                        db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    db_type = crud.update_expense_type(db, expense_type_id, expense_type, user_id)
    if db_type is None:
        raise HTTPException(status_code=404, detail="Expense type not found")
    return db_type


@router.delete("/types/{expense_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense_type(expense_type_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_expense_type(db, expense_type_id, user_id):
        raise HTTPException(status_code=404, detail="Expense type not found")


@router.post("/", response_model=schemas.Expense, status_code=status.HTTP_201_CREATED)
def create_expense(expense: schemas.ExpenseCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    """Record an expense and pay it out of the chosen account."""
    return crud.create_expense(db, expense, user_id)


@router.get("/", response_model=List[schemas.Expense])
def read_expenses(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    expense_type_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return crud.get_expenses(db, start_date=start_date, end_date=end_date, expense_type_id=expense_type_id,
                             skip=skip, limit=limit)


@router.get("/{expense_id}", response_model=schemas.Expense)
def read_expense(expense_id: int, db: Session = Depends(get_db)):
    db_expense = crud.get_expense(db, expense_id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense


@router.put("/{expense_id}", response_model=schemas.Expense)
def update_expense(expense_id: int, expense: schemas.ExpenseUpdate, db: Session = Depends(get_db),
                   user_id: str = Depends(get_actor)):
    db_expense = crud.update_expense(db, expense_id, expense, user_id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(expense_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_expense(db, expense_id, user_id):
        raise HTTPException(status_code=404, detail="Expense not found")
