from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from decimal import Decimal

class PartyBalance(BaseModel):
    party_id: int
    full_name: str
    total_amount: Decimal
    total_paid: Decimal
    total_remaining: Decimal

class BalanceReport(BaseModel):
    as_of_date: Optional[date] = None
    rows: List[PartyBalance]
    total_amount: Decimal
    total_paid: Decimal
    total_remaining: Decimal

class MonthlyProfit(BaseModel):
    month: str  # YYYY-MM
    revenue: Decimal
    cost: Decimal
    expenses: Decimal
    net_profit: Decimal

class ProfitReport(BaseModel):
    start_date: date
    end_date: date
    revenue: Decimal
    cost: Decimal
    gross_profit: Decimal
    expenses: Decimal
    net_profit: Decimal
    months: List[MonthlyProfit]

class DashboardStats(BaseModel):
    products_count: int
    customers_count: int
    suppliers_count: int
    purchases_count: int
    sales_count: int
    monthly_income: Decimal  # paid on sales dated this month
    deductions_count: int
    total_deductions: Decimal
