from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from database import get_db
from crud import reports as crud_reports
from schemas.reports import BalanceReport, DashboardStats, ProfitReport

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)


@router.get("/receivables", response_model=BalanceReport)
def get_receivables(as_of_date: Optional[date] = None, customer_id: Optional[int] = None,
                    db: Session = Depends(get_db)):
    return crud_reports.get_receivables(db, as_of_date=as_of_date, customer_id=customer_id)


@router.get("/payables", response_model=BalanceReport)
def get_payables(as_of_date: Optional[date] = None, supplier_id: Optional[int] = None,
                 db: Session = Depends(get_db)):
    return crud_reports.get_payables(db, as_of_date=as_of_date, supplier_id=supplier_id)


@router.get("/profit", response_model=ProfitReport)
def get_profit(start_date: date, end_date: date, db: Session = Depends(get_db)):
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    return crud_reports.get_profit(db, start_date=start_date, end_date=end_date)


@router.get("/dashboard", response_model=DashboardStats)
def get_dashboard_stats(db: Session = Depends(get_db)):
    return crud_reports.get_dashboard_stats(db)
