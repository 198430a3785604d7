from sqlalchemy import Column, DateTime, String
from utils.clock import now


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    Records are hard-deleted; money movements are reversed by compensating
    ledger entries instead of soft-delete flags.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=now)
    updated_at = Column(DateTime(timezone=True), onupdate=now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
