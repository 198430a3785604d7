from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import audit_log as crud
from schemas.audit_log import AuditLog

router = APIRouter(prefix="/audit-logs", tags=["Audit Log"])


@router.get("/", response_model=List[AuditLog])
def read_audit_logs(table_name: str, record_id: int, db: Session = Depends(get_db)):
    """Change history of one record, oldest first."""
    return crud.get_audit_logs(db, table_name, record_id)
