import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from exceptions import NotFound, DuplicateKey
from models import employees as models
from schemas import employees as schemas
from utils.transaction import atomic

logger = logging.getLogger("employees")


def get_employee(db: Session, employee_id: int):
    return db.query(models.Employee).filter(models.Employee.id == employee_id).first()


def get_employees(db: Session, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(models.Employee)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(models.Employee.full_name.ilike(pattern), models.Employee.phone.ilike(pattern)))
    return query.order_by(models.Employee.id.desc()).offset(skip).limit(limit).all()


def create_employee(db: Session, employee: schemas.EmployeeCreate, user_id: Optional[str] = None):
    with atomic(db):
        db_employee = models.Employee(**employee.model_dump(), created_by=user_id)
        db.add(db_employee)
    db.refresh(db_employee)
    logger.info(f"Employee {db_employee.full_name} (ID: {db_employee.id}) created by {user_id}")
    return db_employee


def update_employee(db: Session, employee_id: int, employee: schemas.EmployeeUpdate, user_id: Optional[str] = None):
    db_employee = get_employee(db, employee_id)
    if not db_employee:
        return None
    with atomic(db):
        for key, value in employee.model_dump().items():
            setattr(db_employee, key, value)
        db_employee.updated_by = user_id
    db.refresh(db_employee)
    return db_employee


def delete_employee(db: Session, employee_id: int, user_id: Optional[str] = None):
    """Salaries and deductions go with the employee."""
    db_employee = get_employee(db, employee_id)
    if not db_employee:
        return False
    with atomic(db):
        db.delete(db_employee)
    logger.info(f"Employee ID {employee_id} deleted by {user_id}")
    return True


def _require_employee(db: Session, employee_id: int):
    if get_employee(db, employee_id) is None:
        raise NotFound(f"Employee with ID {employee_id} not found.")


def _ensure_single_salary(db: Session, salary, exclude_id: Optional[int] = None):
    query = db.query(models.Salary).filter(
        models.Salary.employee_id == salary.employee_id,
        models.Salary.year == salary.year,
        models.Salary.month == salary.month,
    )
    if exclude_id is not None:
        query = query.filter(models.Salary.id != exclude_id)
    if query.first():
        raise DuplicateKey(
            f"A salary for employee {salary.employee_id} in {salary.month} {salary.year} already exists."
        )


def get_salary(db: Session, salary_id: int):
    return db.query(models.Salary).filter(models.Salary.id == salary_id).first()


def get_salaries(db: Session, employee_id: Optional[int] = None, year: Optional[int] = None,
                 skip: int = 0, limit: int = 100):
    query = db.query(models.Salary)
    if employee_id:
        query = query.filter(models.Salary.employee_id == employee_id)
    if year:
        query = query.filter(models.Salary.year == year)
    return query.order_by(models.Salary.year.desc(), models.Salary.id.desc()).offset(skip).limit(limit).all()


def create_salary(db: Session, salary: schemas.SalaryCreate, user_id: Optional[str] = None):
    _require_employee(db, salary.employee_id)
    _ensure_single_salary(db, salary)
    with atomic(db):
        db_salary = models.Salary(**salary.model_dump(), created_by=user_id)
        db.add(db_salary)
    db.refresh(db_salary)
    logger.info(f"Salary (ID: {db_salary.id}) for employee {db_salary.employee_id}, {db_salary.month} {db_salary.year} created by {user_id}")
    return db_salary


def update_salary(db: Session, salary_id: int, salary: schemas.SalaryUpdate, user_id: Optional[str] = None):
    db_salary = get_salary(db, salary_id)
    if not db_salary:
        return None
    _require_employee(db, salary.employee_id)
    _ensure_single_salary(db, salary, exclude_id=salary_id)
    with atomic(db):
        for key, value in salary.model_dump().items():
            setattr(db_salary, key, value)
        db_salary.updated_by = user_id
    db.refresh(db_salary)
    return db_salary


def delete_salary(db: Session, salary_id: int, user_id: Optional[str] = None):
    db_salary = get_salary(db, salary_id)
    if not db_salary:
        return False
    with atomic(db):
        db.delete(db_salary)
    return True


def get_deduction(db: Session, deduction_id: int):
    return db.query(models.Deduction).filter(models.Deduction.id == deduction_id).first()


def get_deductions(db: Session, employee_id: Optional[int] = None, year: Optional[int] = None,
                   month: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(models.Deduction)
    if employee_id:
        query = query.filter(models.Deduction.employee_id == employee_id)
    if year:
        query = query.filter(models.Deduction.year == year)
    if month:
        query = query.filter(models.Deduction.month == month)
    return query.order_by(models.Deduction.year.desc(), models.Deduction.id.desc()).offset(skip).limit(limit).all()


def create_deduction(db: Session, deduction: schemas.DeductionCreate, user_id: Optional[str] = None):
    _require_employee(db, deduction.employee_id)
    with atomic(db):
        db_deduction = models.Deduction(**deduction.model_dump(), created_by=user_id)
        db.add(db_deduction)
    db.refresh(db_deduction)
    return db_deduction


def update_deduction(db: Session, deduction_id: int, deduction: schemas.DeductionUpdate,
                     user_id: Optional[str] = None):
    db_deduction = get_deduction(db, deduction_id)
    if not db_deduction:
        return None
    _require_employee(db, deduction.employee_id)
    with atomic(db):
        for key, value in deduction.model_dump().items():
            setattr(db_deduction, key, value)
        db_deduction.updated_by = user_id
    db.refresh(db_deduction)
    return db_deduction


def delete_deduction(db: Session, deduction_id: int, user_id: Optional[str] = None):
    db_deduction = get_deduction(db, deduction_id)
    if not db_deduction:
        return False
    with atomic(db):
        db.delete(db_deduction)
    return True
