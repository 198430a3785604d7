from sqlalchemy import Column, Integer, String
from database import Base

class DocumentSequence(Base):
    """Last issued number per document series (purchase batches, journal entries)."""
    __tablename__ = "document_sequences"

    name = Column(String(64), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
