from contextlib import contextmanager
import logging

from sqlalchemy.orm import Session

logger = logging.getLogger("transaction")


@contextmanager
def atomic(db: Session):
    """Run a multi-statement operation as one unit: commit at the end, roll back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("Rolling back unit of work")
        db.rollback()
        raise
