from sqlalchemy import Column, Integer, Numeric, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base

class JournalEntryLine(Base):
    __tablename__ = "journal_entry_lines"

    id = Column(Integer, primary_key=True, index=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    debit_amount = Column(Numeric(18, 4), CheckConstraint('debit_amount >= 0'), nullable=False, default=0)
    credit_amount = Column(Numeric(18, 4), CheckConstraint('credit_amount >= 0'), nullable=False, default=0)
    exchange_rate = Column(Numeric(18, 6), nullable=False, default=1)
    base_amount = Column(Numeric(18, 4), nullable=False, default=0)  # (debit or credit) * exchange_rate
    description = Column(Text, nullable=True)

    # Relationships
    journal_entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account")
