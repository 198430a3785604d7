from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import date
from decimal import Decimal

class JournalEntryLineCreate(BaseModel):
    account_id: int
    currency_id: int
    debit_amount: Decimal = Field(Decimal(0), ge=0)
    credit_amount: Decimal = Field(Decimal(0), ge=0)
    exchange_rate: Decimal = Field(Decimal(1), gt=0)
    description: Optional[str] = None

    @model_validator(mode='after')
    def check_debit_or_credit(self):
        if self.debit_amount > 0 and self.credit_amount > 0:
            raise ValueError('A journal line is either a debit or a credit, not both.')
        return self

class JournalEntryLine(JournalEntryLineCreate):
    id: int
    journal_entry_id: int
    base_amount: Decimal

    class Config:
        from_attributes = True

class JournalEntryBase(BaseModel):
    entry_date: date
    description: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None

class JournalEntryCreate(JournalEntryBase):
    lines: List[JournalEntryLineCreate]

class JournalEntryUpdate(BaseModel):
    entry_date: Optional[date] = None
    description: Optional[str] = None
    lines: List[JournalEntryLineCreate]

class JournalEntry(JournalEntryBase):
    id: int
    entry_number: str
    lines: List[JournalEntryLine] = []

    class Config:
        from_attributes = True
