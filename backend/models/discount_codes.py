from sqlalchemy import Column, Integer, String, Numeric, Date
from database import Base
from models.audit_mixin import TimestampMixin

class SaleDiscountCode(Base, TimestampMixin):
    __tablename__ = "sale_discount_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(255), nullable=False, unique=True)  # stored upper-trimmed
    type = Column(String(16), nullable=False)  # percent | fixed
    value = Column(Numeric(18, 4), nullable=False, default=0)
    min_purchase = Column(Numeric(18, 4), nullable=False, default=0)
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)
    max_uses = Column(Integer, nullable=True)
    use_count = Column(Integer, nullable=False, default=0)
