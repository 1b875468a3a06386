from datetime import datetime
from decimal import Decimal
from typing import Optional

from retail_ledger.common.exceptions import ConsistencyViolation
from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType
from retail_ledger.models.vendor import PurchaseOrderStatus
from retail_ledger.schemas.reports import CashFlow, PaymentBreakdown
from retail_ledger.services.reconciliation import REVENUE_ORDER_STATUSES, filter_cash_movements
from retail_ledger.stores import StoreRegistry
from retail_ledger.utils.concurrency import fan_out
from retail_ledger.utils.money import to_money

# stored payment method -> breakdown bucket
METHOD_BUCKETS = {
    "CASH": "cash",
    "COD": "cash",
    "BANK_TRANSFER": "bank_transfer",
    "FONE_PAY": "fone_pay",
    "CHEQUE": "cheque",
    "CREDIT": "credit",
}


def bucket_for(method: Optional[str]) -> Optional[str]:
    if method is None:
        return None
    return METHOD_BUCKETS.get(str(getattr(method, "value", method)).upper())


def _add(breakdown: PaymentBreakdown, bucket: str, amount: Decimal) -> None:
    setattr(breakdown, bucket, getattr(breakdown, bucket) + to_money(amount))


class CashFlowEngine:
    """
    Accrual cash flow: a sale, order or received PO moves money on the day it
    is recognised, keyed by how it was (or will be) paid.
    """

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings

    def _income_bucket(self, method: Optional[str]) -> str:
        bucket = bucket_for(method)
        if bucket is None:
            logger.warning(f"Unknown income payment method '{method}', counting as cash")
            return "cash"
        return bucket

    def _expense_bucket(self, method: Optional[str], source_id: str) -> str:
        bucket = bucket_for(method)
        if bucket is None:
            logger.error(f"Unknown payment method '{method}' on outgoing {source_id}")
            raise ConsistencyViolation(f"Unknown payment method '{method}' on {source_id}")
        return bucket

    def compute_cash_flow(self, start: datetime, end: datetime) -> CashFlow:
        logger.info(f"Computing cash flow {start} -> {end}")
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

        cash_in = PaymentBreakdown()
        cash_out = PaymentBreakdown()

        for sale in results["sales"]:
            _add(cash_in, self._income_bucket(sale.payment_method), sale.total)
        for order in results["orders"]:
            _add(cash_in, self._income_bucket(order.payment_method), order.total)
        for po in results["purchases"]:
            # goods received on account
            _add(cash_out, "credit", po.recognized_amount)

        for entry in filter_cash_movements(results["ledger"]):
            if entry.type == LedgerEntryType.INCOME:
                # sales income is counted from the sale and order rows
                if entry.category != LedgerCategory.SALES:
                    _add(cash_in, self._income_bucket(entry.payment_method), entry.amount)
            else:
                _add(cash_out, self._expense_bucket(entry.payment_method, entry.id), entry.amount)

        total_in = cash_in.total()
        total_out = cash_out.total()
        return CashFlow(
            start=start,
            end=end,
            cash_in=total_in,
            cash_out=total_out,
            net_cash_flow=total_in - total_out,
            cash_in_breakdown=cash_in,
            cash_out_breakdown=cash_out,
        )
