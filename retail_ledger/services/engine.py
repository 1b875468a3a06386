from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import sessionmaker

from retail_ledger.core.config import Settings
from retail_ledger.models.ledger_entry import PaymentMethod
from retail_ledger.schemas.credit import CreditTransactionRecord
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.schemas.reports import BalanceSheet, CashFlow, PLStatement, UnifiedTransaction
from retail_ledger.schemas.vendor import VendorPaymentRecord, VendorRecord
from retail_ledger.services.balance_sheet import BalanceSheetEngine
from retail_ledger.services.cash_flow import CashFlowEngine
from retail_ledger.services.credit_service import CreditService
from retail_ledger.services.day_book import TransactionAggregator
from retail_ledger.services.profit_loss import ProfitLossEngine
from retail_ledger.services.vendor_service import VendorService
from retail_ledger.stores import StoreRegistry


class ReconciliationEngine:
    """
    Entry point for the finance screens.

    Built per request (or per test) from a session factory; holds no state
    of its own beyond the store adapters.
    """

    def __init__(self, session_factory: sessionmaker, settings: Settings):
        self.settings = settings
        self.stores = StoreRegistry(session_factory)
        self.day_book = TransactionAggregator(self.stores, settings)
        self.profit_loss = ProfitLossEngine(self.stores, settings)
        self.cash_flow = CashFlowEngine(self.stores, settings)
        self.balance_sheet = BalanceSheetEngine(self.stores, settings)
        self.credits = CreditService(self.stores, settings)
        self.vendors = VendorService(self.stores, settings)

    def get_day_book(self, day: date) -> List[UnifiedTransaction]:
        return self.day_book.get_day_book(day)

    def get_pl(self, start: datetime, end: datetime) -> PLStatement:
        return self.profit_loss.compute_pl(start, end)

    def get_cash_flow(self, start: datetime, end: datetime) -> CashFlow:
        return self.cash_flow.compute_cash_flow(start, end)

    def get_balance_sheet(self) -> BalanceSheet:
        return self.balance_sheet.compute_balance_sheet()

    def settle_credit(
        self,
        credit_id: str,
        amount: Decimal,
        settled_by: str,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: Optional[str] = None,
    ) -> Tuple[CreditTransactionRecord, LedgerEntryRecord]:
        return self.credits.settle(credit_id, amount, settled_by, payment_method, notes)

    def settle_vendor_payment(
        self,
        vendor_id: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        performed_by: str,
        notes: Optional[str] = None,
    ) -> Tuple[VendorRecord, VendorPaymentRecord, LedgerEntryRecord]:
        return self.vendors.settle_payment(vendor_id, amount, payment_method, performed_by, notes)
