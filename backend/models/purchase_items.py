from sqlalchemy import Column, Integer, Numeric, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class PurchaseItem(Base):
    """One purchased line; every purchase item is an inventory batch that sale items can deplete."""
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False)
    per_price = Column(Numeric(18, 4), nullable=False)
    amount = Column(Numeric(18, 6), nullable=False)  # quantity, in unit_id
    total = Column(Numeric(18, 4), nullable=False)  # per_price * amount
    per_unit = Column(Numeric(18, 6), nullable=True)
    cost_price = Column(Numeric(18, 4), nullable=True)
    wholesale_price = Column(Numeric(18, 4), nullable=True)
    retail_price = Column(Numeric(18, 4), nullable=True)
    expiry_date = Column(Date, nullable=True)

    # Relationships
    purchase = relationship("Purchase", back_populates="items")
    product = relationship("Product")
    unit = relationship("Unit")
