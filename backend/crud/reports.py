import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.employees import Deduction
from models.expenses import Expense
from models.parties import Customer, Supplier
from models.product import Product
from models.purchase_payments import PurchasePayment
from models.purchases import Purchase
from models.sales import Sale
from schemas.reports import BalanceReport, DashboardStats, MonthlyProfit, PartyBalance, ProfitReport
from utils import clock
from utils.money import to_decimal

logger = logging.getLogger("reports")


def _sums_by(db: Session, key, amount, *criteria):
    rows = db.query(key, func.sum(amount)).filter(*criteria).group_by(key).all()
    return {party_id: to_decimal(total) for party_id, total in rows}


def _balance_report(parties, billed, paid, as_of_date) -> BalanceReport:
    rows = []
    for party in parties:
        total_amount = billed.get(party.id, Decimal(0))
        total_paid = paid.get(party.id, Decimal(0))
        remaining = total_amount - total_paid
        if remaining > 0:
            rows.append(PartyBalance(party_id=party.id, full_name=party.full_name, total_amount=total_amount,
                                     total_paid=total_paid, total_remaining=remaining))
    rows.sort(key=lambda row: row.total_remaining, reverse=True)
    return BalanceReport(
        as_of_date=as_of_date,
        rows=rows,
        total_amount=sum((row.total_amount for row in rows), Decimal(0)),
        total_paid=sum((row.total_paid for row in rows), Decimal(0)),
        total_remaining=sum((row.total_remaining for row in rows), Decimal(0)),
    )


def get_receivables(db: Session, as_of_date: Optional[date] = None, customer_id: Optional[int] = None) -> BalanceReport:
    """What customers still owe, in base currency, largest debt first."""
    criteria = [Sale.date <= as_of_date] if as_of_date else []
    customers = db.query(Customer)
    if customer_id is not None:
        customers = customers.filter(Customer.id == customer_id)
        criteria.append(Sale.customer_id == customer_id)

    billed = _sums_by(db, Sale.customer_id, Sale.base_amount, *criteria)
    paid = _sums_by(db, Sale.customer_id, Sale.paid_amount, *criteria)
    return _balance_report(customers.order_by(Customer.id).all(), billed, paid, as_of_date)


def get_payables(db: Session, as_of_date: Optional[date] = None, supplier_id: Optional[int] = None) -> BalanceReport:
    """What is still owed to suppliers, largest debt first."""
    criteria = [Purchase.date <= as_of_date] if as_of_date else []
    suppliers = db.query(Supplier)
    if supplier_id is not None:
        suppliers = suppliers.filter(Supplier.id == supplier_id)
        criteria.append(Purchase.supplier_id == supplier_id)

    billed = _sums_by(db, Purchase.supplier_id, Purchase.total_amount, *criteria)
    paid_rows = db.query(Purchase.supplier_id, func.sum(PurchasePayment.total)).join(
        PurchasePayment, PurchasePayment.purchase_id == Purchase.id
    ).filter(*criteria).group_by(Purchase.supplier_id).all()
    paid = {party_id: to_decimal(total) for party_id, total in paid_rows}
    return _balance_report(suppliers.order_by(Supplier.id).all(), billed, paid, as_of_date)


def get_profit(db: Session, start_date: date, end_date: date) -> ProfitReport:
    """
    Revenue, purchase cost and expenses over a date range, inclusive on both ends.

    Revenue is the base amount of sales, cost the total of purchases and
    expenses their base-currency total. The same figures are broken down
    per calendar month (YYYY-MM), oldest first.
    """
    months = defaultdict(lambda: {"revenue": Decimal(0), "cost": Decimal(0), "expenses": Decimal(0)})
    sources = (
        ("revenue", Sale.date, Sale.base_amount),
        ("cost", Purchase.date, Purchase.total_amount),
        ("expenses", Expense.date, Expense.total),
    )
    for field, day, amount in sources:
        rows = db.query(day, amount).filter(day >= start_date, day <= end_date).all()
        for row_date, row_amount in rows:
            months[row_date.strftime("%Y-%m")][field] += to_decimal(row_amount)

    breakdown = [
        MonthlyProfit(month=month, net_profit=totals["revenue"] - totals["cost"] - totals["expenses"], **totals)
        for month, totals in sorted(months.items())
    ]
    revenue = sum((m.revenue for m in breakdown), Decimal(0))
    cost = sum((m.cost for m in breakdown), Decimal(0))
    expenses = sum((m.expenses for m in breakdown), Decimal(0))
    logger.info(f"Profit report {start_date}..{end_date}: revenue {revenue}, cost {cost}, expenses {expenses}")
    return ProfitReport(
        start_date=start_date,
        end_date=end_date,
        revenue=revenue,
        cost=cost,
        gross_profit=revenue - cost,
        expenses=expenses,
        net_profit=revenue - cost - expenses,
        months=breakdown,
    )


def get_dashboard_stats(db: Session, today: Optional[date] = None) -> DashboardStats:
    today = today or clock.today()
    month_start = today.replace(day=1)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)

    monthly_income = db.query(func.sum(Sale.paid_amount)).filter(
        Sale.date >= month_start, Sale.date < next_month
    ).scalar()
    total_deductions = db.query(func.sum(Deduction.amount * Deduction.rate)).scalar()

    return DashboardStats(
        products_count=db.query(func.count(Product.id)).scalar(),
        customers_count=db.query(func.count(Customer.id)).scalar(),
        suppliers_count=db.query(func.count(Supplier.id)).scalar(),
        purchases_count=db.query(func.count(Purchase.id)).scalar(),
        sales_count=db.query(func.count(Sale.id)).scalar(),
        monthly_income=to_decimal(monthly_income),
        deductions_count=db.query(func.count(Deduction.id)).scalar(),
        total_deductions=to_decimal(total_deductions),
    )
