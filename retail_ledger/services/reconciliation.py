"""
Reconciliation filter

Domain services post a "shadow" ledger row for every sale, order and
purchase they record, and for every credit or vendor settlement. The
statements read sales, orders and purchase orders directly, so counting
those shadow rows as well would double-count. Everything here is pure:
lists in, lists out.

An entry is a shadow when any of these holds:
    - SALES with related_id (sale / order income posting)
    - PURCHASE with related_id (goods-received posting)
    - VENDOR_PAY (settles a payable already expensed on receipt)
    - SALES whose description mentions a credit settlement
"""

from typing import Iterable, List

from retail_ledger.models.ledger_entry import LedgerCategory
from retail_ledger.models.order import OrderStatus
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.schemas.sales import OrderRecord

CREDIT_SETTLEMENT_MARKER = "credit settlement"

REVENUE_ORDER_STATUSES = (OrderStatus.CONFIRMED, OrderStatus.COMPLETED)


def is_credit_settlement(entry: LedgerEntryRecord) -> bool:
    return (
        entry.category == LedgerCategory.SALES
        and CREDIT_SETTLEMENT_MARKER in (entry.description or "").lower()
    )


def _is_source_posting(entry: LedgerEntryRecord) -> bool:
    return entry.category in (LedgerCategory.SALES, LedgerCategory.PURCHASE) and bool(entry.related_id)


def is_shadow_entry(entry: LedgerEntryRecord) -> bool:
    return (
        _is_source_posting(entry)
        or entry.category == LedgerCategory.VENDOR_PAY
        or is_credit_settlement(entry)
    )


def filter_primary(entries: Iterable[LedgerEntryRecord]) -> List[LedgerEntryRecord]:
    """Entries that carry economic meaning of their own (manual expenses, misc income)."""
    return [e for e in entries if not is_shadow_entry(e)]


def filter_cash_movements(entries: Iterable[LedgerEntryRecord]) -> List[LedgerEntryRecord]:
    """Like filter_primary, but keeps VENDOR_PAY: paying a vendor is real cash going out."""
    return [e for e in entries if not (_is_source_posting(e) or is_credit_settlement(e))]


def is_revenue_order(order: OrderRecord) -> bool:
    return order.status in REVENUE_ORDER_STATUSES
