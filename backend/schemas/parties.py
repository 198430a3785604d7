from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class PartyBase(BaseModel):
    full_name: str
    phone: str
    address: str
    email: Optional[str] = None
    notes: Optional[str] = None

class SupplierCreate(PartyBase):
    pass

class SupplierUpdate(PartyBase):
    pass

class Supplier(PartyBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CustomerCreate(PartyBase):
    pass

class CustomerUpdate(PartyBase):
    pass

class Customer(PartyBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
