from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False)
    per_price = Column(Numeric(18, 4), nullable=False)
    amount = Column(Numeric(18, 6), nullable=False)
    total = Column(Numeric(18, 4), nullable=False)  # after line discount
    purchase_item_id = Column(Integer, ForeignKey("purchase_items.id"), nullable=True, index=True)  # batch this line depletes
    sale_type = Column(String(16), nullable=True)  # retail | wholesale
    discount_type = Column(String(16), nullable=True)
    discount_value = Column(Numeric(18, 4), nullable=False, default=0)

    # Relationships
    sale = relationship("Sale", back_populates="items")
    unit = relationship("Unit")
    batch = relationship("PurchaseItem")


class SaleServiceItem(Base):
    __tablename__ = "sale_service_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(18, 4), nullable=False)
    quantity = Column(Numeric(18, 6), nullable=False, default=1)
    total = Column(Numeric(18, 4), nullable=False)
    discount_type = Column(String(16), nullable=True)
    discount_value = Column(Numeric(18, 4), nullable=False, default=0)

    sale = relationship("Sale", back_populates="service_items")
