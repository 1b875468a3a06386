"""
Finance analytics and reports

Trends, best sellers, best customers, period comparison and the
sales / expense reports. All figures follow the same rules as the P&L:
POS sales and confirmed/completed orders are revenue, received purchase
orders and primary ledger expenses are expenses.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Tuple

from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType
from retail_ledger.models.vendor import PurchaseOrderStatus
from retail_ledger.schemas.reports import (
    CustomerSales,
    ExpenseLine,
    ExpenseReport,
    PeriodChange,
    PeriodComparison,
    PeriodFigures,
    ProductSales,
    RevenueTrend,
    SalesReport,
    TopCustomer,
    TopProduct,
)
from retail_ledger.services.profit_loss import ProfitLossEngine
from retail_ledger.services.reconciliation import REVENUE_ORDER_STATUSES, filter_primary
from retail_ledger.stores import StoreRegistry
from retail_ledger.utils.concurrency import fan_out
from retail_ledger.utils.dates import period_key
from retail_ledger.utils.money import ZERO, money_sum, to_money

TOP_EXPENSES_LIMIT = 20
TREND_PERIODS = ("daily", "weekly", "monthly")
UNKNOWN_CUSTOMER = "Unknown"


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    if previous == 0:
        return ZERO if current == 0 else Decimal("100.00")
    return to_money((current - previous) / abs(previous) * 100)


class AnalyticsService:

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings
        self.pl = ProfitLossEngine(stores, settings)

    def _revenue_sources(self, start: datetime, end: datetime):
        results = fan_out(
            {
                "sales": lambda: self.stores.sales.query(start, end),
                "orders": lambda: self.stores.orders.query(REVENUE_ORDER_STATUSES, start, end),
            },
            max_workers=self.settings.QUERY_MAX_WORKERS,
        )
        return results["sales"], results["orders"]

    def _expense_sources(self, start: datetime, end: datetime):
        results = fan_out(
            {
                "ledger": lambda: self.stores.ledger.query(start, end, type=LedgerEntryType.EXPENSE),
                "purchases": lambda: self.stores.purchase_orders.query(
                    start, end, status=PurchaseOrderStatus.RECEIVED
                ),
            },
            max_workers=self.settings.QUERY_MAX_WORKERS,
        )
        return filter_primary(results["ledger"]), results["purchases"]

    # ================= TRENDS ===================

    def revenue_trends(self, start: datetime, end: datetime, period: str = "daily") -> List[RevenueTrend]:
        if period not in TREND_PERIODS:
            raise ValueError(f"Unknown trend period '{period}'")
        logger.info(f"Revenue trends {start} -> {end} ({period})")
        sales, orders = self._revenue_sources(start, end)
        expenses, purchases = self._expense_sources(start, end)

        buckets: Dict[str, Dict[str, Decimal]] = defaultdict(lambda: {"revenue": ZERO, "expenses": ZERO})
        for sale in sales:
            buckets[period_key(sale.created_at, period)]["revenue"] += to_money(sale.total)
        for order in orders:
            buckets[period_key(order.created_at, period)]["revenue"] += to_money(order.total)
        for po in purchases:
            buckets[period_key(po.recognized_at, period)]["expenses"] += to_money(po.recognized_amount)
        for entry in expenses:
            buckets[period_key(entry.date, period)]["expenses"] += to_money(entry.amount)

        return [
            RevenueTrend(
                period=key,
                revenue=figures["revenue"],
                expenses=figures["expenses"],
                profit=figures["revenue"] - figures["expenses"],
            )
            for key, figures in sorted(buckets.items())
        ]

    # ================= PRODUCTS & CUSTOMERS ===================

    @staticmethod
    def _product_totals(sales, orders) -> List[ProductSales]:
        totals: Dict[str, Dict] = {}
        for record in list(sales) + list(orders):
            for item in record.items:
                line = totals.setdefault(
                    item.product_id, {"name": item.product_name, "quantity": 0, "revenue": ZERO}
                )
                line["quantity"] += item.quantity
                line["revenue"] += to_money(item.subtotal)
        rows = [
            ProductSales(product_id=pid, product_name=v["name"], quantity=v["quantity"], revenue=v["revenue"])
            for pid, v in totals.items()
        ]
        return sorted(rows, key=lambda r: r.revenue, reverse=True)

    def _customer_totals(self, sales, orders) -> List[CustomerSales]:
        totals: Dict[str, Dict] = {}
        fallback_names: Dict[str, str] = {}
        for sale in sales:
            if not sale.customer_id:
                continue
            line = totals.setdefault(sale.customer_id, {"count": 0, "total": ZERO})
            line["count"] += 1
            line["total"] += to_money(sale.total)
        for order in orders:
            if not order.customer_id:
                continue
            line = totals.setdefault(order.customer_id, {"count": 0, "total": ZERO})
            line["count"] += 1
            line["total"] += to_money(order.total)
            if order.customer_name:
                fallback_names.setdefault(order.customer_id, order.customer_name)

        names = self.stores.customers.names(totals.keys())
        rows = [
            CustomerSales(
                customer_id=cid,
                customer_name=names.get(cid) or fallback_names.get(cid) or UNKNOWN_CUSTOMER,
                count=v["count"],
                total=v["total"],
            )
            for cid, v in totals.items()
        ]
        return sorted(rows, key=lambda r: r.total, reverse=True)

    def top_products(self, start: datetime, end: datetime, limit: int = 10) -> List[TopProduct]:
        sales, orders = self._revenue_sources(start, end)
        return [
            TopProduct(**row.model_dump())
            for row in self._product_totals(sales, orders)[:limit]
        ]

    def top_customers(self, start: datetime, end: datetime, limit: int = 10) -> List[TopCustomer]:
        sales, orders = self._revenue_sources(start, end)
        return [
            TopCustomer(
                customer_id=row.customer_id,
                customer_name=row.customer_name,
                order_count=row.count,
                total_spent=row.total,
            )
            for row in self._customer_totals(sales, orders)[:limit]
        ]

    # ================= COMPARISON ===================

    def _period_figures(self, start: datetime, end: datetime) -> PeriodFigures:
        statement = self.pl.compute_pl(start, end)
        revenue = statement.income_breakdown.sales + statement.income_breakdown.orders
        return PeriodFigures(revenue=revenue, expenses=statement.expenses, profit=revenue - statement.expenses)

    def compare_periods(
        self,
        current: Tuple[datetime, datetime],
        previous: Tuple[datetime, datetime],
    ) -> PeriodComparison:
        now = self._period_figures(*current)
        before = self._period_figures(*previous)
        return PeriodComparison(
            current=now,
            previous=before,
            change_percent=PeriodChange(
                revenue=percent_change(now.revenue, before.revenue),
                expenses=percent_change(now.expenses, before.expenses),
                profit=percent_change(now.profit, before.profit),
            ),
        )

    # ================= REPORTS ===================

    def sales_report(self, start: datetime, end: datetime) -> SalesReport:
        logger.info(f"Sales report {start} -> {end}")
        sales, orders = self._revenue_sources(start, end)
        total = money_sum(s.total for s in sales) + money_sum(o.total for o in orders)
        count = len(sales) + len(orders)
        return SalesReport(
            total_sales=total,
            total_orders=count,
            average_order_value=to_money(total / count) if count else ZERO,
            sales_by_product=self._product_totals(sales, orders),
            sales_by_customer=self._customer_totals(sales, orders),
        )

    def expense_report(self, start: datetime, end: datetime) -> ExpenseReport:
        logger.info(f"Expense report {start} -> {end}")
        expenses, purchases = self._expense_sources(start, end)

        by_category: Dict[str, Decimal] = {
            LedgerCategory.PURCHASE.value: money_sum(po.recognized_amount for po in purchases)
        }
        for entry in expenses:
            key = entry.category.value
            by_category[key] = by_category.get(key, ZERO) + to_money(entry.amount)

        lines = [
            ExpenseLine(
                id=po.id,
                date=po.recognized_at,
                category=LedgerCategory.PURCHASE.value,
                description=f"Purchase Order #{po.id}",
                amount=po.recognized_amount,
                payment_method="CREDIT",
            )
            for po in purchases
        ]
        lines.extend(
            ExpenseLine(
                id=e.id,
                date=e.date,
                category=e.category.value,
                description=e.description,
                amount=e.amount,
                payment_method=e.payment_method.value,
            )
            for e in expenses
        )
        lines.sort(key=lambda line: line.amount, reverse=True)

        return ExpenseReport(
            total_expenses=money_sum(by_category.values()),
            expenses_by_category=by_category,
            top_expenses=lines[:TOP_EXPENSES_LIMIT],
        )
