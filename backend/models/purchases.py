from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Purchase(Base, TimestampMixin):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    total_amount = Column(Numeric(18, 4), nullable=False, default=0)  # sum(item totals) + additional_cost
    additional_cost = Column(Numeric(18, 4), nullable=False, default=0)
    batch_number = Column(String(32), nullable=True, unique=True, index=True)  # BATCH-NNNNNN

    # Relationships
    supplier = relationship("Supplier", back_populates="purchases")
    items = relationship("PurchaseItem", back_populates="purchase", cascade="all, delete-orphan")
    additional_costs = relationship("PurchaseAdditionalCost", back_populates="purchase", cascade="all, delete-orphan")
    payments = relationship("PurchasePayment", back_populates="purchase", cascade="all, delete-orphan")


class PurchaseAdditionalCost(Base):
    __tablename__ = "purchase_additional_costs"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    amount = Column(Numeric(18, 4), nullable=False)

    purchase = relationship("Purchase", back_populates="additional_costs")
