from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

class AccountBase(BaseModel):
    name: str = Field(..., min_length=1)
    currency_id: Optional[int] = None
    coa_category_id: Optional[int] = None
    account_code: Optional[str] = None
    account_type: Optional[str] = None
    initial_balance: Decimal = Decimal(0)
    notes: Optional[str] = None

class AccountCreate(AccountBase):
    pass

class AccountUpdate(AccountBase):
    is_active: bool = True

class Account(AccountBase):
    id: int
    current_balance: Decimal
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AccountCurrencyBalance(BaseModel):
    id: int
    account_id: int
    currency_id: int
    balance: Decimal

    class Config:
        from_attributes = True

class AccountMovementRequest(BaseModel):
    """Deposit or withdraw request; `amount` is ignored when is_full is set."""
    amount: Decimal = Decimal(0)
    currency: str = Field(..., min_length=1)
    rate: Decimal = Field(Decimal(1), gt=0)
    transaction_date: date
    is_full: bool = False
    notes: Optional[str] = None

class AccountTransaction(BaseModel):
    id: int
    account_id: int
    transaction_type: str
    amount: Decimal
    currency: str
    rate: Decimal
    total: Decimal
    transaction_date: date
    is_full: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AccountReconciliation(BaseModel):
    account_id: int
    currency_id: int
    account_balance: Decimal
    journal_debits: Decimal
    journal_credits: Decimal
    journal_balance: Decimal
    difference: Decimal
    is_balanced: bool
