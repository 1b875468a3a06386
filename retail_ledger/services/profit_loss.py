from datetime import datetime
from decimal import Decimal
from typing import Dict

from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType
from retail_ledger.models.vendor import PurchaseOrderStatus
from retail_ledger.schemas.reports import IncomeBreakdown, PLStatement, ProfitMargins
from retail_ledger.services.reconciliation import REVENUE_ORDER_STATUSES, filter_primary
from retail_ledger.stores import StoreRegistry
from retail_ledger.utils.concurrency import fan_out
from retail_ledger.utils.money import ZERO, money_sum, percent, to_money

# always reported, even when nothing was spent on them
BASE_EXPENSE_CATEGORIES = (
    LedgerCategory.SALARY,
    LedgerCategory.RENT,
    LedgerCategory.UTILITY,
    LedgerCategory.PURCHASE,
    LedgerCategory.OTHER,
)


class ProfitLossEngine:

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings

    def compute_pl(self, start: datetime, end: datetime) -> PLStatement:
        """
        Profit & loss for [start, end].

        Income is POS sales plus confirmed/completed online orders plus
        primary non-SALES ledger income. Expenses are received purchase
        orders plus primary ledger expenses. Shadow ledger rows never count.
        """
        logger.info(f"Computing P&L {start} -> {end}")
        results = fan_out(
            {
                "ledger": lambda: self.stores.ledger.query(start, end),
                "sales": lambda: self.stores.sales.query(start, end),
                "orders": lambda: self.stores.orders.query(REVENUE_ORDER_STATUSES, start, end),
                "purchases": lambda: self.stores.purchase_orders.query(
                    start, end, status=PurchaseOrderStatus.RECEIVED
                ),
            },
            max_workers=self.settings.QUERY_MAX_WORKERS,
        )
        primary = filter_primary(results["ledger"])

        sales_income = money_sum(s.total for s in results["sales"])
        order_income = money_sum(o.total for o in results["orders"])
        other_income = money_sum(
            e.amount for e in primary
            if e.type == LedgerEntryType.INCOME and e.category != LedgerCategory.SALES
        )

        expense_breakdown: Dict[str, Decimal] = {c.value: ZERO for c in BASE_EXPENSE_CATEGORIES}
        expense_breakdown[LedgerCategory.PURCHASE.value] += money_sum(
            po.recognized_amount for po in results["purchases"]
        )
        for entry in primary:
            if entry.type != LedgerEntryType.EXPENSE:
                continue
            key = entry.category.value
            expense_breakdown[key] = expense_breakdown.get(key, ZERO) + to_money(entry.amount)

        income = sales_income + order_income + other_income
        expenses = money_sum(expense_breakdown.values())

        return PLStatement(
            start=start,
            end=end,
            income=income,
            expenses=expenses,
            net_profit=income - expenses,
            income_breakdown=IncomeBreakdown(sales=sales_income, orders=order_income, other=other_income),
            expense_breakdown=expense_breakdown,
        )

    def compute_profit_margins(self, start: datetime, end: datetime) -> ProfitMargins:
        pl = self.compute_pl(start, end)
        revenue = pl.income_breakdown.sales + pl.income_breakdown.orders
        ratio = self.settings.ASSUMED_COGS_RATIO

        estimated_cogs = to_money(revenue * ratio)
        estimated_gross_profit = revenue - estimated_cogs

        return ProfitMargins(
            revenue=revenue,
            expenses=pl.expenses,
            net_profit=pl.net_profit,
            net_margin=percent(pl.net_profit, revenue),
            estimated_cogs=estimated_cogs,
            estimated_gross_profit=estimated_gross_profit,
            estimated_gross_margin=percent(estimated_gross_profit, revenue),
            cogs_ratio_assumed=ratio,
        )
