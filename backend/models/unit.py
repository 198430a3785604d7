from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class UnitGroup(Base, TimestampMixin):
    __tablename__ = "unit_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)

    units = relationship("Unit", back_populates="group")


class Unit(Base, TimestampMixin):
    __tablename__ = "units"
    __table_args__ = (CheckConstraint('ratio > 0', name='check_unit_ratio_positive'),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    group_id = Column(Integer, ForeignKey("unit_groups.id", ondelete="SET NULL"), nullable=True)
    ratio = Column(Numeric(18, 6), nullable=False, default=1)  # 1 of this unit = ratio base units of its group
    is_base = Column(Boolean, nullable=False, default=False)

    group = relationship("UnitGroup", back_populates="units")
