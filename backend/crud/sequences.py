import logging

from sqlalchemy.orm import Session

from models.document_sequence import DocumentSequence

logger = logging.getLogger("sequences")

BATCH_SERIES = "purchase_batch"
JOURNAL_SERIES = "journal_entry"


def _max_existing_suffix(db: Session, column, prefix: str) -> int:
    highest = 0
    for (value,) in db.query(column).filter(column.like(f"{prefix}%")).all():
        suffix = (value or "")[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def next_number(db: Session, series: str, column, prefix: str, width: int = 6) -> str:
    """
    Issue the next document number of a series, e.g. BATCH-000042.

    The counter row is locked for the rest of the transaction so concurrent
    writers queue instead of issuing the same number. On first use the counter
    is seeded from numbers already present in `column`.
    """
    seq = db.query(DocumentSequence).filter(DocumentSequence.name == series).with_for_update().first()
    if seq is None:
        seq = DocumentSequence(name=series, last_value=_max_existing_suffix(db, column, prefix))
        db.add(seq)
        logger.info(f"Sequence {series} seeded at {seq.last_value}")
    seq.last_value += 1
    db.flush()
    return f"{prefix}{seq.last_value:0{width}d}"
