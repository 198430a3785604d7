from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from decimal import Decimal

class EmployeeBase(BaseModel):
    full_name: str
    phone: str
    email: Optional[str] = None
    address: str
    position: Optional[str] = None
    hire_date: Optional[date] = None
    base_salary: Optional[Decimal] = None
    photo_path: Optional[str] = None
    notes: Optional[str] = None

class EmployeeCreate(EmployeeBase):
    pass

class EmployeeUpdate(EmployeeBase):
    pass

class Employee(EmployeeBase):
    id: int

    class Config:
        from_attributes = True

class SalaryBase(BaseModel):
    employee_id: int
    year: int
    month: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    deductions: Decimal = Field(Decimal(0), ge=0)
    notes: Optional[str] = None

class SalaryCreate(SalaryBase):
    pass

class SalaryUpdate(SalaryBase):
    pass

class Salary(SalaryBase):
    id: int

    class Config:
        from_attributes = True

class DeductionBase(BaseModel):
    employee_id: int
    year: int
    month: str = Field(..., min_length=1)
    currency: str = Field(..., min_length=1)
    rate: Decimal = Field(Decimal(1), gt=0)
    amount: Decimal = Field(..., gt=0)

class DeductionCreate(DeductionBase):
    pass

class DeductionUpdate(DeductionBase):
    pass

class Deduction(DeductionBase):
    id: int

    class Config:
        from_attributes = True
