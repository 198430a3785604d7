from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Sale(Base, TimestampMixin):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    exchange_rate = Column(Numeric(18, 6), nullable=False, default=1)
    total_amount = Column(Numeric(18, 4), nullable=False, default=0)
    base_amount = Column(Numeric(18, 4), nullable=False, default=0)  # total_amount * exchange_rate
    paid_amount = Column(Numeric(18, 4), nullable=False, default=0)  # sum(sale_payments.amount)
    additional_cost = Column(Numeric(18, 4), nullable=False, default=0)
    order_discount_type = Column(String(16), nullable=True)
    order_discount_value = Column(Numeric(18, 4), nullable=False, default=0)
    order_discount_amount = Column(Numeric(18, 4), nullable=False, default=0)
    discount_code_id = Column(Integer, ForeignKey("sale_discount_codes.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="sales")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")
    service_items = relationship("SaleServiceItem", back_populates="sale", cascade="all, delete-orphan")
    additional_costs = relationship("SaleAdditionalCost", back_populates="sale", cascade="all, delete-orphan")
    payments = relationship("SalePayment", back_populates="sale", cascade="all, delete-orphan")


class SaleAdditionalCost(Base):
    __tablename__ = "sale_additional_costs"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    amount = Column(Numeric(18, 4), nullable=False)

    sale = relationship("Sale", back_populates="additional_costs")
