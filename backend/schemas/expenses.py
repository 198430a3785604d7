from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal

class ExpenseTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)

class ExpenseTypeUpdate(ExpenseTypeCreate):
    pass

class ExpenseType(ExpenseTypeCreate):
    id: int

    class Config:
        from_attributes = True

class ExpenseBase(BaseModel):
    expense_type_id: int
    account_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0)
    currency: str = Field(..., min_length=1)
    rate: Decimal = Field(Decimal(1), gt=0)
    date: date
    bill_no: Optional[str] = None
    description: Optional[str] = None

class ExpenseCreate(ExpenseBase):
    pass

class ExpenseUpdate(ExpenseBase):
    pass

class Expense(ExpenseBase):
    id: int
    total: Decimal
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
