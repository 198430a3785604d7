from models.audit_log import AuditLog
from models.currency import Currency, CurrencyExchangeRate
from models.unit import Unit, UnitGroup
from models.parties import Supplier, Customer
from models.product import Product, Service
from models.purchases import Purchase, PurchaseAdditionalCost
from models.purchase_items import PurchaseItem
from models.purchase_payments import PurchasePayment
from models.discount_codes import SaleDiscountCode
from models.sales import Sale, SaleAdditionalCost
from models.sale_items import SaleItem, SaleServiceItem
from models.sale_payments import SalePayment
from models.chart_of_accounts import CoaCategory
from models.accounts import Account, AccountCurrencyBalance, AccountTransaction
from models.journal_entry import JournalEntry
from models.journal_entry_line import JournalEntryLine
from models.expenses import Expense, ExpenseType
from models.employees import Employee, Salary, Deduction
from models.document_sequence import DocumentSequence

__all__ = ['Account', 'AccountCurrencyBalance', 'AccountTransaction', 'AuditLog', 'CoaCategory', 'Currency',
           'CurrencyExchangeRate', 'Customer', 'Deduction', 'DocumentSequence', 'Employee', 'Expense', 'ExpenseType',
           'JournalEntry', 'JournalEntryLine', 'Product', 'Purchase', 'PurchaseAdditionalCost', 'PurchaseItem',
           'PurchasePayment', 'Sale', 'SaleAdditionalCost', 'SaleDiscountCode', 'SaleItem', 'SalePayment',
           'SaleServiceItem', 'Salary', 'Service', 'Supplier', 'Unit', 'UnitGroup']
