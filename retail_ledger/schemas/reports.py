"""Financial statements and report shapes"""

import enum
from decimal import Decimal
from datetime import date, datetime
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod


class TransactionSource(str, enum.Enum):
    LEDGER = "LEDGER"
    POS = "POS"
    ONLINE = "ONLINE"
    PURCHASE = "PURCHASE"


class UnifiedTransaction(BaseModel):
    """One day-book line, whatever record it came from."""
    id: str
    date: datetime
    type: LedgerEntryType
    category: LedgerCategory
    description: str
    amount: Decimal
    payment_method: str
    source: TransactionSource
    performed_by: Optional[str] = None
    performed_by_name: Optional[str] = None
    vendor_id: Optional[str] = None


class DayBook(BaseModel):
    day: date
    transactions: List[UnifiedTransaction]
    total_income: Decimal
    total_expense: Decimal


class IncomeBreakdown(BaseModel):
    sales: Decimal
    orders: Decimal
    other: Decimal


class PLStatement(BaseModel):
    start: datetime
    end: datetime
    income: Decimal
    expenses: Decimal
    net_profit: Decimal
    income_breakdown: IncomeBreakdown
    expense_breakdown: Dict[str, Decimal]


class PaymentBreakdown(BaseModel):
    cash: Decimal = Decimal("0.00")
    bank_transfer: Decimal = Decimal("0.00")
    fone_pay: Decimal = Decimal("0.00")
    cheque: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")

    def total(self) -> Decimal:
        return self.cash + self.bank_transfer + self.fone_pay + self.cheque + self.credit


class CashFlow(BaseModel):
    start: datetime
    end: datetime
    cash_in: Decimal
    cash_out: Decimal
    net_cash_flow: Decimal
    cash_in_breakdown: PaymentBreakdown
    cash_out_breakdown: PaymentBreakdown


class Assets(BaseModel):
    cash: Decimal
    inventory: Decimal
    receivables: Decimal
    total: Decimal


class Liabilities(BaseModel):
    payables: Decimal
    total: Decimal


class BalanceSheet(BaseModel):
    as_of: datetime
    assets: Assets
    liabilities: Liabilities
    equity: Decimal


class ProfitMargins(BaseModel):
    """
    Margins for a period.

    The estimated_* fields apply an assumed cost-of-goods ratio to revenue and
    are indicative only; net_profit is taken from the P&L statement.
    """
    revenue: Decimal
    expenses: Decimal
    net_profit: Decimal
    net_margin: Decimal
    estimated_cogs: Decimal
    estimated_gross_profit: Decimal
    estimated_gross_margin: Decimal
    cogs_ratio_assumed: Decimal


class RevenueTrend(BaseModel):
    period: str
    revenue: Decimal
    expenses: Decimal
    profit: Decimal


class TopProduct(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    revenue: Decimal


class TopCustomer(BaseModel):
    customer_id: str
    customer_name: str
    order_count: int
    total_spent: Decimal


class PeriodFigures(BaseModel):
    revenue: Decimal
    expenses: Decimal
    profit: Decimal


class PeriodChange(BaseModel):
    revenue: Decimal
    expenses: Decimal
    profit: Decimal


class PeriodComparison(BaseModel):
    current: PeriodFigures
    previous: PeriodFigures
    change_percent: PeriodChange


class ProductSales(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    revenue: Decimal


class CustomerSales(BaseModel):
    customer_id: str
    customer_name: str
    count: int
    total: Decimal


class SalesReport(BaseModel):
    total_sales: Decimal
    total_orders: int
    average_order_value: Decimal
    sales_by_product: List[ProductSales]
    sales_by_customer: List[CustomerSales]


class ExpenseLine(BaseModel):
    id: str
    date: datetime
    category: str
    description: str
    amount: Decimal
    payment_method: str


class ExpenseReport(BaseModel):
    total_expenses: Decimal
    expenses_by_category: Dict[str, Decimal]
    top_expenses: List[ExpenseLine] = Field(default_factory=list)
