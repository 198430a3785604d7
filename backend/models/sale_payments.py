from sqlalchemy import Column, Integer, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class SalePayment(Base, TimestampMixin):
    __tablename__ = "sale_payments"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    exchange_rate = Column(Numeric(18, 6), nullable=False, default=1)
    amount = Column(Numeric(18, 4), nullable=False)
    base_amount = Column(Numeric(18, 4), nullable=False, default=0)  # amount * exchange_rate
    date = Column(Date, nullable=False)

    # Relationships
    sale = relationship("Sale", back_populates="payments")
