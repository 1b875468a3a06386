from datetime import datetime

from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod
from retail_ledger.models.order import OrderPaymentMethod
from retail_ledger.schemas.reports import Assets, BalanceSheet, Liabilities
from retail_ledger.services.reconciliation import REVENUE_ORDER_STATUSES, filter_primary
from retail_ledger.stores import StoreRegistry
from retail_ledger.utils.concurrency import fan_out
from retail_ledger.utils.money import ZERO, money_sum, to_money


class BalanceSheetEngine:
    """
    Point-in-time balance sheet, rebuilt from scratch on every call.

    Nothing is cached between calls; each figure comes straight from its store.
    """

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings

    def compute_balance_sheet(self) -> BalanceSheet:
        as_of = datetime.now()
        logger.info(f"Computing balance sheet as of {as_of}")

        results = fan_out(
            {
                "ledger": lambda: self.stores.ledger.query(None, as_of),
                "sales": lambda: self.stores.sales.query(None, as_of),
                "orders": lambda: self.stores.orders.query(REVENUE_ORDER_STATUSES, None, as_of),
                "credits": self.stores.credits.outstanding,
                "vendors": self.stores.vendors.all,
                "stock": self.stores.products.stock_valuation_rows,
            },
            max_workers=self.settings.QUERY_MAX_WORKERS,
        )

        cash_sales = money_sum(
            s.total for s in results["sales"] if s.payment_method.upper() == PaymentMethod.CASH.value
        )
        cod_orders = money_sum(
            o.total for o in results["orders"]
            if o.payment_method.upper() == OrderPaymentMethod.COD.value
        )

        primary_cash = [e for e in filter_primary(results["ledger"]) if e.payment_method == PaymentMethod.CASH]
        cash_income = money_sum(
            e.amount for e in primary_cash
            if e.type == LedgerEntryType.INCOME and e.category != LedgerCategory.SALES
        )
        # VENDOR_PAY is already out of the primary set
        cash_expense = money_sum(e.amount for e in primary_cash if e.type == LedgerEntryType.EXPENSE)

        cash = cash_sales + cod_orders + cash_income - cash_expense
        receivables = money_sum(c.due_amount for c in results["credits"])
        inventory = money_sum(to_money(cost) * quantity for cost, quantity in results["stock"] if cost)
        payables = money_sum(max(ZERO, to_money(v.balance)) for v in results["vendors"])

        assets_total = cash + inventory + receivables
        return BalanceSheet(
            as_of=as_of,
            assets=Assets(cash=cash, inventory=inventory, receivables=receivables, total=assets_total),
            liabilities=Liabilities(payables=payables, total=payables),
            equity=assets_total - payables,
        )
