from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    price: Optional[Decimal] = None
    currency_id: Optional[int] = None
    supplier_id: Optional[int] = None
    stock_quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    image_path: Optional[str] = None
    bar_code: Optional[str] = None

class ProductCreate(ProductBase):
    pass

class ProductUpdate(ProductBase):
    pass

class Product(ProductBase):
    id: int

    class Config:
        from_attributes = True

class ServiceBase(BaseModel):
    name: str
    price: Decimal = Field(Decimal(0), ge=0)
    currency_id: Optional[int] = None
    description: Optional[str] = None

class ServiceCreate(ServiceBase):
    pass

class ServiceUpdate(ServiceBase):
    pass

class Service(ServiceBase):
    id: int

    class Config:
        from_attributes = True
