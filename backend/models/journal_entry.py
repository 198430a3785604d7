from sqlalchemy import Column, Integer, String, Text, Date
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class JournalEntry(Base, TimestampMixin):
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    entry_number = Column(String(32), nullable=False, unique=True)  # J + 6 digits
    entry_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    reference_type = Column(String, nullable=True)
    reference_id = Column(Integer, nullable=True)

    # Relationships
    lines = relationship("JournalEntryLine", back_populates="journal_entry", cascade="all, delete-orphan",
                         order_by="JournalEntryLine.id")
