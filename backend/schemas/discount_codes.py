from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date
from decimal import Decimal
from utils.money import DISCOUNT_TYPES

class DiscountCodeBase(BaseModel):
    code: str
    type: str
    value: Decimal = Field(Decimal(0), ge=0)
    min_purchase: Decimal = Field(Decimal(0), ge=0)
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    max_uses: Optional[int] = Field(None, ge=0)

    @field_validator('code')
    @classmethod
    def normalize_code(cls, value):
        return value.strip().upper()

    @field_validator('type')
    @classmethod
    def check_type(cls, value):
        if value not in DISCOUNT_TYPES:
            raise ValueError(f"type must be one of {', '.join(DISCOUNT_TYPES)}")
        return value

class DiscountCodeCreate(DiscountCodeBase):
    pass

class DiscountCodeUpdate(DiscountCodeBase):
    pass

class DiscountCode(DiscountCodeBase):
    id: int
    use_count: int

    class Config:
        from_attributes = True

class DiscountCodeValidateRequest(BaseModel):
    code: Optional[str] = None
    subtotal: Decimal

class DiscountCodeValidation(BaseModel):
    discount_code_id: int
    code: str
    type: str
    value: Decimal
    discount_amount: Decimal
