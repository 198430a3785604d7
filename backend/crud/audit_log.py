from sqlalchemy.orm import Session
from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict

def create_audit_log(db: Session, log_entry: AuditLogCreate):
    """Stage an audit row; it is committed with the unit of work that produced it."""
    db_log_entry = AuditLog(**log_entry.model_dump())
    db.add(db_log_entry)
    return db_log_entry

def log_change(db: Session, table_name: str, record_id: int, action: str, user_id: str,
               old_values: dict = None, new_values: dict = None):
    return create_audit_log(db, AuditLogCreate(
        table_name=table_name,
        record_id=record_id,
        changed_by=user_id or "system",
        action=action,
        old_values=old_values,
        new_values=new_values,
    ))

def snapshot(obj):
    return sqlalchemy_to_dict(obj)

def get_audit_logs(db: Session, table_name: str, record_id: int):
    return db.query(AuditLog).filter(
        AuditLog.table_name == table_name,
        AuditLog.record_id == record_id
    ).order_by(AuditLog.id.asc()).all()
