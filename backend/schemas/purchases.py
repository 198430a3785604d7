from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

class PurchaseItemCreateRequest(BaseModel):
    product_id: int
    unit_id: int
    per_price: Decimal = Field(..., ge=0)
    amount: Decimal = Field(..., gt=0)
    per_unit: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    wholesale_price: Optional[Decimal] = None
    retail_price: Optional[Decimal] = None
    expiry_date: Optional[date] = None

class PurchaseItemUpdate(PurchaseItemCreateRequest):
    pass

class PurchaseItem(PurchaseItemCreateRequest):
    id: int
    purchase_id: int
    total: Decimal

    class Config:
        from_attributes = True

class AdditionalCostCreate(BaseModel):
    name: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)

class AdditionalCostUpdate(AdditionalCostCreate):
    pass

class PurchaseAdditionalCost(AdditionalCostCreate):
    id: int
    purchase_id: int

    class Config:
        from_attributes = True

class PurchasePaymentBase(BaseModel):
    amount: Decimal = Field(..., gt=0)
    currency: str = Field(..., min_length=1)
    rate: Decimal = Field(Decimal(1), gt=0)
    date: date
    notes: Optional[str] = None

class PurchasePaymentCreate(PurchasePaymentBase):
    purchase_id: int
    account_id: Optional[int] = None

class PurchasePaymentUpdate(PurchasePaymentBase):
    pass

class PurchasePayment(PurchasePaymentBase):
    id: int
    purchase_id: int
    account_id: Optional[int] = None
    total: Decimal

    class Config:
        from_attributes = True

class PurchaseBase(BaseModel):
    supplier_id: int
    date: date
    notes: Optional[str] = None
    currency_id: Optional[int] = None

class PurchaseCreate(PurchaseBase):
    items: List[PurchaseItemCreateRequest]
    additional_costs: List[AdditionalCostCreate] = []

class PurchaseUpdate(PurchaseCreate):
    # full replace of items and additional costs
    pass

class Purchase(PurchaseBase):
    id: int
    total_amount: Decimal
    additional_cost: Decimal
    batch_number: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[PurchaseItem] = []
    additional_costs: List[PurchaseAdditionalCost] = []
    payments: List[PurchasePayment] = []

    class Config:
        from_attributes = True
