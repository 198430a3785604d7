from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

class CurrencyBase(BaseModel):
    name: str = Field(..., min_length=1)
    is_base: bool = False
    rate: Decimal = Field(Decimal(1), gt=0)

class CurrencyCreate(CurrencyBase):
    pass

class CurrencyUpdate(CurrencyBase):
    pass

class Currency(CurrencyBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ExchangeRateCreate(BaseModel):
    from_currency_id: int
    to_currency_id: int
    rate: Decimal = Field(..., gt=0)
    date: date

class ExchangeRate(ExchangeRateCreate):
    id: int

    class Config:
        from_attributes = True
