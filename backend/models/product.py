from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey
from database import Base
from models.audit_mixin import TimestampMixin

class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(18, 4), nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    stock_quantity = Column(Numeric(18, 6), nullable=True)
    unit = Column(String, nullable=True)
    image_path = Column(String, nullable=True)
    bar_code = Column(String, nullable=True, index=True)


class Service(Base, TimestampMixin):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(18, 4), nullable=False, default=0)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    description = Column(Text, nullable=True)
