from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from retail_ledger.common.exceptions import StoreUnavailable
from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod
from retail_ledger.models.vendor import PurchaseOrderStatus
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.schemas.reports import DayBook, TransactionSource, UnifiedTransaction
from retail_ledger.schemas.sales import OrderRecord, SaleRecord
from retail_ledger.schemas.vendor import PurchaseOrderRecord
from retail_ledger.services.reconciliation import REVENUE_ORDER_STATUSES, filter_primary
from retail_ledger.stores import StoreRegistry
from retail_ledger.utils.concurrency import fan_out
from retail_ledger.utils.dates import day_bounds
from retail_ledger.utils.money import money_sum


class TransactionAggregator:
    """
    Builds the day book: one chronological list of every money movement,
    whichever store recorded it.
    """

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings

    # ================= MAPPERS ===================

    @staticmethod
    def _from_ledger(entry: LedgerEntryRecord) -> UnifiedTransaction:
        return UnifiedTransaction(
            id=entry.id,
            date=entry.date,
            type=entry.type,
            category=entry.category,
            description=entry.description,
            amount=entry.amount,
            payment_method=entry.payment_method.value,
            source=TransactionSource.LEDGER,
            performed_by=entry.performed_by,
        )

    @staticmethod
    def _from_sale(sale: SaleRecord) -> UnifiedTransaction:
        return UnifiedTransaction(
            id=sale.id,
            date=sale.created_at,
            type=LedgerEntryType.INCOME,
            category=LedgerCategory.SALES,
            description=f"POS Sale #{sale.id}",
            amount=sale.total,
            payment_method=sale.payment_method,
            source=TransactionSource.POS,
            performed_by=sale.performed_by,
        )

    @staticmethod
    def _from_order(order: OrderRecord) -> UnifiedTransaction:
        return UnifiedTransaction(
            id=order.id,
            date=order.created_at,
            type=LedgerEntryType.INCOME,
            category=LedgerCategory.SALES,
            description=f"Online Order #{order.order_number}",
            amount=order.total,
            payment_method=order.payment_method,
            source=TransactionSource.ONLINE,
            performed_by=order.actor_id,
        )

    @staticmethod
    def _from_purchase(po: PurchaseOrderRecord) -> UnifiedTransaction:
        return UnifiedTransaction(
            id=po.id,
            date=po.recognized_at,
            type=LedgerEntryType.EXPENSE,
            category=LedgerCategory.PURCHASE,
            description=f"Purchase Order #{po.id}",
            amount=po.recognized_amount,
            payment_method=PaymentMethod.CREDIT.value,
            source=TransactionSource.PURCHASE,
            performed_by=po.actor_id,
            vendor_id=po.vendor_id,
        )

    # ================= ACTORS ===================

    def _resolve_actor_names(self, transactions: Iterable[UnifiedTransaction]) -> None:
        transactions = list(transactions)
        ids = {t.performed_by for t in transactions if t.performed_by}
        names: Dict[str, str] = {}
        if ids:
            try:
                names = self.stores.users.display_names(ids)
            except StoreUnavailable as e:
                # names are cosmetic; the day book is still complete without them
                logger.warning(f"Actor lookup failed, rendering ids as unknown: {e}")

        for t in transactions:
            if not t.performed_by:
                t.performed_by_name = None
            else:
                t.performed_by_name = names.get(t.performed_by, self.settings.UNKNOWN_USER_LABEL)

    # ================= DAY BOOK ===================

    def build_day_book(self, start: datetime, end: datetime) -> List[UnifiedTransaction]:
        logger.info(f"Building day book {start} -> {end}")
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

        transactions: List[UnifiedTransaction] = []
        transactions.extend(self._from_ledger(e) for e in filter_primary(results["ledger"]))
        transactions.extend(self._from_sale(s) for s in results["sales"])
        transactions.extend(self._from_order(o) for o in results["orders"])
        transactions.extend(self._from_purchase(p) for p in results["purchases"])

        self._resolve_actor_names(transactions)

        # sorted() is stable, so ties keep ledger / POS / online / purchase order
        transactions = sorted(transactions, key=lambda t: t.date, reverse=True)
        logger.debug(f"Day book {start} -> {end}: {len(transactions)} transactions")
        return transactions

    def get_day_book(self, day: date) -> List[UnifiedTransaction]:
        start, end = day_bounds(day)
        return self.build_day_book(start, end)

    @staticmethod
    def summarize(day: date, transactions: List[UnifiedTransaction]) -> DayBook:
        return DayBook(
            day=day,
            transactions=transactions,
            total_income=money_sum(t.amount for t in transactions if t.type == LedgerEntryType.INCOME),
            total_expense=money_sum(t.amount for t in transactions if t.type == LedgerEntryType.EXPENSE),
        )
