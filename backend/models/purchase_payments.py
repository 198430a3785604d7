from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class PurchasePayment(Base, TimestampMixin):
    __tablename__ = "purchase_payments"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(18, 4), nullable=False)
    currency = Column(String, nullable=False)  # currency name
    rate = Column(Numeric(18, 6), nullable=False)
    total = Column(Numeric(18, 4), nullable=False)  # amount * rate
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    purchase = relationship("Purchase", back_populates="payments")
