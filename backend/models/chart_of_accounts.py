from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class CoaCategory(Base, TimestampMixin):
    __tablename__ = "coa_categories"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("coa_categories.id", ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    code = Column(String(255), nullable=False, unique=True, index=True)
    category_type = Column(String(32), nullable=False)  # Asset, Liability, Equity, Revenue, Expense
    level = Column(Integer, nullable=False, default=0)  # parent.level + 1, 0 for roots

    parent = relationship("CoaCategory", remote_side=[id], back_populates="children")
    children = relationship("CoaCategory", back_populates="parent")
