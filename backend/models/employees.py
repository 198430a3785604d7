from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Employee(Base, TimestampMixin):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    address = Column(Text, nullable=False)
    position = Column(String, nullable=True)
    hire_date = Column(Date, nullable=True)
    base_salary = Column(Numeric(18, 4), nullable=True)
    photo_path = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    salaries = relationship("Salary", back_populates="employee", cascade="all, delete-orphan")
    deductions = relationship("Deduction", back_populates="employee", cascade="all, delete-orphan")


class Salary(Base, TimestampMixin):
    __tablename__ = "salaries"
    __table_args__ = (UniqueConstraint('employee_id', 'year', 'month', name='_employee_year_month_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(String(64), nullable=False)
    amount = Column(Numeric(18, 4), nullable=False)
    deductions = Column(Numeric(18, 4), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    employee = relationship("Employee", back_populates="salaries")


class Deduction(Base, TimestampMixin):
    __tablename__ = "deductions"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(String(64), nullable=False)
    currency = Column(String, nullable=False)
    rate = Column(Numeric(18, 6), nullable=False, default=1)
    amount = Column(Numeric(18, 4), nullable=False)

    employee = relationship("Employee", back_populates="deductions")
