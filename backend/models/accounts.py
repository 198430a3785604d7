from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)  # preferred display currency
    coa_category_id = Column(Integer, ForeignKey("coa_categories.id"), nullable=True)
    account_code = Column(String(255), nullable=True, unique=True)
    account_type = Column(String(32), nullable=True)
    initial_balance = Column(Numeric(18, 4), nullable=False, default=0)
    # Cache of initial_balance + currency balances in base; only the ledger writes it
    current_balance = Column(Numeric(18, 4), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)

    # Relationships
    currency_balances = relationship("AccountCurrencyBalance", back_populates="account", cascade="all, delete-orphan")
    # append-only; an account with transactions cannot be deleted
    transactions = relationship("AccountTransaction", back_populates="account")


class AccountCurrencyBalance(Base):
    """Authoritative per-currency holding of an account, in that currency's own units."""
    __tablename__ = "account_currency_balances"
    __table_args__ = (UniqueConstraint('account_id', 'currency_id', name='_account_currency_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    balance = Column(Numeric(18, 4), nullable=False, default=0)

    account = relationship("Account", back_populates="currency_balances")
    currency = relationship("Currency")


class AccountTransaction(Base, TimestampMixin):
    """Append-only deposit/withdraw log; corrections are new compensating rows."""
    __tablename__ = "account_transactions"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    transaction_type = Column(String(16), nullable=False)  # deposit | withdraw
    amount = Column(Numeric(18, 4), nullable=False)
    currency = Column(String, nullable=False)
    rate = Column(Numeric(18, 6), nullable=False)
    total = Column(Numeric(18, 4), nullable=False)  # amount * rate
    transaction_date = Column(Date, nullable=False)
    is_full = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    account = relationship("Account", back_populates="transactions")
