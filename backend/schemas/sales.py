from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from utils.money import DISCOUNT_TYPES

def _check_discount_type(value):
    if value is not None and value not in DISCOUNT_TYPES:
        raise ValueError(f"discount type must be one of {', '.join(DISCOUNT_TYPES)}")
    return value

class SaleItemCreateRequest(BaseModel):
    product_id: int
    unit_id: int
    per_price: Decimal = Field(..., ge=0)
    amount: Decimal = Field(..., gt=0)
    purchase_item_id: Optional[int] = None
    sale_type: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Decimal = Field(Decimal(0), ge=0)

    check_discount_type = field_validator('discount_type')(_check_discount_type)

class SaleItemUpdate(SaleItemCreateRequest):
    pass

class SaleItem(SaleItemCreateRequest):
    id: int
    sale_id: int
    total: Decimal

    class Config:
        from_attributes = True

class SaleServiceItemCreateRequest(BaseModel):
    service_id: int
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: Decimal = Field(Decimal(1), gt=0)
    discount_type: Optional[str] = None
    discount_value: Decimal = Field(Decimal(0), ge=0)

    check_discount_type = field_validator('discount_type')(_check_discount_type)

class SaleServiceItem(SaleServiceItemCreateRequest):
    id: int
    sale_id: int
    total: Decimal

    class Config:
        from_attributes = True

class SaleAdditionalCostCreate(BaseModel):
    name: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)

class SaleAdditionalCostUpdate(SaleAdditionalCostCreate):
    pass

class SaleAdditionalCost(SaleAdditionalCostCreate):
    id: int
    sale_id: int

    class Config:
        from_attributes = True

class SalePaymentCreate(BaseModel):
    sale_id: int
    account_id: Optional[int] = None
    currency_id: Optional[int] = None
    exchange_rate: Optional[Decimal] = Field(None, gt=0)  # defaults to the currency's rate
    amount: Decimal = Field(..., gt=0)
    date: date

class SalePayment(BaseModel):
    id: int
    sale_id: int
    account_id: Optional[int] = None
    currency_id: Optional[int] = None
    exchange_rate: Decimal
    amount: Decimal
    base_amount: Decimal
    date: date

    class Config:
        from_attributes = True

class SaleBase(BaseModel):
    customer_id: int
    date: date
    notes: Optional[str] = None
    currency_id: Optional[int] = None
    exchange_rate: Decimal = Field(Decimal(1), gt=0)

class SaleCreate(SaleBase):
    paid_amount: Decimal = Field(Decimal(0), ge=0)
    additional_costs: List[SaleAdditionalCostCreate] = []
    items: List[SaleItemCreateRequest] = []
    service_items: List[SaleServiceItemCreateRequest] = []
    order_discount_type: Optional[str] = None
    order_discount_value: Decimal = Field(Decimal(0), ge=0)
    discount_code: Optional[str] = None  # overrides order_discount_type/value when given

    check_discount_type = field_validator('order_discount_type')(_check_discount_type)

class SaleUpdate(SaleBase):
    # full replace of items, service items and additional costs; payments are kept
    additional_costs: List[SaleAdditionalCostCreate] = []
    items: List[SaleItemCreateRequest] = []
    service_items: List[SaleServiceItemCreateRequest] = []
    order_discount_type: Optional[str] = None
    order_discount_value: Decimal = Field(Decimal(0), ge=0)
    discount_code: Optional[str] = None

    check_discount_type = field_validator('order_discount_type')(_check_discount_type)

class Sale(SaleBase):
    id: int
    total_amount: Decimal
    base_amount: Decimal
    paid_amount: Decimal
    additional_cost: Decimal
    order_discount_type: Optional[str] = None
    order_discount_value: Decimal
    order_discount_amount: Decimal
    discount_code_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[SaleItem] = []
    service_items: List[SaleServiceItem] = []
    additional_costs: List[SaleAdditionalCost] = []
    payments: List[SalePayment] = []

    class Config:
        from_attributes = True
