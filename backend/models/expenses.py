from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class ExpenseType(Base, TimestampMixin):
    __tablename__ = "expense_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)


class Expense(Base, TimestampMixin):
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True, index=True)
    expense_type_id = Column(Integer, ForeignKey("expense_types.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(18, 4), nullable=False)
    currency = Column(String, nullable=False)
    rate = Column(Numeric(18, 6), nullable=False, default=1)
    total = Column(Numeric(18, 4), nullable=False)  # amount * rate
    date = Column(Date, nullable=False)
    bill_no = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    expense_type = relationship("ExpenseType")
