from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import employees as crud
from schemas import employees as schemas
from utils.request_context import get_actor

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.post("/", response_model=schemas.Employee, status_code=status.HTTP_201_CREATED)
def create_employee(employee: schemas.EmployeeCreate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    return crud.create_employee(db, employee, user_id)


@router.get("/", response_model=List[schemas.Employee])
def read_employees(search: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_employees(db, search=search, skip=skip, limit=limit)


# Salary and deduction routes sit before /{employee_id} so the literal segments win.
@router.post("/salaries", response_model=schemas.Salary, status_code=status.HTTP_201_CREATED)
def create_salary(salary: schemas.SalaryCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_salary(db, salary, user_id)


@router.get("/salaries", response_model=List[schemas.Salary])
def read_salaries(employee_id: Optional[int] = None, year: Optional[int] = None, skip: int = 0, limit: int = 100,
                  db: Session = Depends(get_db)):
    return crud.get_salaries(db, employee_id=employee_id, year=year, skip=skip, limit=limit)


@router.put("/salaries/{salary_id}", response_model=schemas.Salary)
def update_salary(salary_id: int, salary: schemas.SalaryUpdate, db: Session = Depends(get_db),
                  user_id: str = Depends(get_actor)):
    db_salary = crud.update_salary(db, salary_id, salary, user_id)
    if db_salary is None:
        raise HTTPException(status_code=404, detail="Salary not found")
    return db_salary


@router.delete("/salaries/{salary_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_salary(salary_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_salary(db, salary_id, user_id):
        raise HTTPException(status_code=404, detail="Salary not found")


@router.post("/deductions", response_model=schemas.Deduction, status_code=status.HTTP_201_CREATED)
def create_deduction(deduction: schemas.DeductionCreate, db: Session = Depends(get_db),
                     user_id: str = Depends(get_actor)):
    return crud.create_deduction(db, deduction, user_id)


@router.get("/deductions", response_model=List[schemas.Deduction])
def read_deductions(employee_id: Optional[int] = None, year: Optional[int] = None, month: Optional[str] = None,
                    skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_deductions(db, employee_id=employee_id, year=year, month=month, skip=skip, limit=limit)


@router.put("/deductions/{deduction_id}", response_model=schemas.Deduction)
def update_deduction(deduction_id: int, deduction: schemas.DeductionUpdate, db: Session = Depends(get_db),
                     user_id: str = Depends(get_actor)):
    db_deduction = crud.update_deduction(db, deduction_id, deduction, user_id)
    if db_deduction is None:
        raise HTTPException(status_code=404, detail="Deduction not found")
    return db_deduction


@router.delete("/deductions/{deduction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deduction(deduction_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_deduction(db, deduction_id, user_id):
        raise HTTPException(status_code=404, detail="Deduction not found")


@router.get("/{employee_id}", response_model=schemas.Employee)
def read_employee(employee_id: int, db: Session = Depends(get_db)):
    db_employee = crud.get_employee(db, employee_id)
    if db_employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return db_employee


@router.put("/{employee_id}", response_model=schemas.Employee)
def update_employee(employee_id: int, employee: schemas.EmployeeUpdate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    db_employee = crud.update_employee(db, employee_id, employee, user_id)
    if db_employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return db_employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(employee_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_employee(db, employee_id, user_id):
        raise HTTPException(status_code=404, detail="Employee not found")
