from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

class UnitGroupCreate(BaseModel):
    name: str = Field(..., min_length=1)

class UnitGroup(UnitGroupCreate):
    id: int

    class Config:
        from_attributes = True

class UnitBase(BaseModel):
    name: str = Field(..., min_length=1)
    group_id: Optional[int] = None
    ratio: Decimal = Field(Decimal(1), gt=0)
    is_base: bool = False

class UnitCreate(UnitBase):
    pass

class UnitUpdate(UnitBase):
    pass

class Unit(UnitBase):
    id: int

    class Config:
        from_attributes = True
