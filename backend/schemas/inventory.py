from pydantic import BaseModel
from typing import Optional
from datetime import date
from decimal import Decimal

class ProductBatch(BaseModel):
    purchase_item_id: int
    purchase_id: int
    product_id: int
    batch_number: Optional[str] = None
    purchase_date: date
    expiry_date: Optional[date] = None
    unit_id: int
    per_price: Decimal
    per_unit: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    wholesale_price: Optional[Decimal] = None
    retail_price: Optional[Decimal] = None
    amount: Decimal
    remaining_quantity: Decimal  # base units, 6 dp

class ProductStock(BaseModel):
    product_id: int
    unit_id: Optional[int] = None
    quantity: Decimal
