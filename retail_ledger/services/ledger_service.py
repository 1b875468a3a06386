from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod
from retail_ledger.schemas.ledger import LedgerEntryCreate, LedgerEntryRecord, LedgerTotals
from retail_ledger.stores import StoreRegistry
from retail_ledger.utils.money import money_sum


def to_payment_method(method) -> PaymentMethod:
    """Ledger payment method for a sale/order method; cash on delivery is cash."""
    value = str(getattr(method, "value", method)).upper()
    if value == "COD":
        return PaymentMethod.CASH
    return PaymentMethod(value)


class LedgerService:
    """Posting and listing finance ledger entries."""

    def __init__(self, stores: StoreRegistry):
        self.stores = stores

    # ================= MANUAL ENTRIES ===================

    def create_entry(self, data: LedgerEntryCreate) -> LedgerEntryRecord:
        logger.info(f"Manual ledger entry: {data.type.value}/{data.category.value} {data.amount}")
        return self.stores.ledger.append(
            type=data.type,
            category=data.category,
            amount=data.amount,
            description=data.description,
            payment_method=data.payment_method,
            performed_by=data.performed_by,
            date=data.date,
        )

    def create_expense(
        self,
        category: LedgerCategory,
        amount: Decimal,
        description: str,
        performed_by: str,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        date: Optional[datetime] = None,
    ) -> LedgerEntryRecord:
        return self.create_entry(LedgerEntryCreate(
            type=LedgerEntryType.EXPENSE,
            category=category,
            amount=amount,
            description=description,
            payment_method=payment_method,
            performed_by=performed_by,
            date=date,
        ))

    def create_income(
        self,
        category: LedgerCategory,
        amount: Decimal,
        description: str,
        performed_by: str,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        date: Optional[datetime] = None,
    ) -> LedgerEntryRecord:
        return self.create_entry(LedgerEntryCreate(
            type=LedgerEntryType.INCOME,
            category=category,
            amount=amount,
            description=description,
            payment_method=payment_method,
            performed_by=performed_by,
            date=date,
        ))

    # ================= SHADOW POSTINGS ===================

    def post_sale_income(
        self,
        sale_id: str,
        amount: Decimal,
        payment_method,
        performed_by: str,
        description: Optional[str] = None,
        db: Optional[Session] = None,
    ) -> LedgerEntryRecord:
        """Income row mirroring a sale or confirmed order; related_id marks it as a shadow."""
        return self.stores.ledger.append(
            type=LedgerEntryType.INCOME,
            category=LedgerCategory.SALES,
            amount=amount,
            description=description or f"Sale #{sale_id}",
            payment_method=to_payment_method(payment_method),
            performed_by=performed_by,
            related_id=sale_id,
            db=db,
        )

    def post_purchase_expense(
        self,
        po_id: str,
        amount: Decimal,
        performed_by: str,
        db: Optional[Session] = None,
    ) -> LedgerEntryRecord:
        """Expense row mirroring a goods receipt; paid later through vendor settlement."""
        return self.stores.ledger.append(
            type=LedgerEntryType.EXPENSE,
            category=LedgerCategory.PURCHASE,
            amount=amount,
            description=f"Purchase Order #{po_id}",
            payment_method=PaymentMethod.CREDIT,
            performed_by=performed_by,
            related_id=po_id,
            db=db,
        )

    # ================= LISTING ===================

    def get_entries(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        type: Optional[LedgerEntryType] = None,
        category: Optional[LedgerCategory] = None,
    ) -> Tuple[List[LedgerEntryRecord], LedgerTotals]:
        """Raw ledger rows, newest first, shadows included."""
        entries = self.stores.ledger.query(start, end, type=type)
        if category is not None:
            entries = [e for e in entries if e.category == category]

        totals = LedgerTotals(
            total_income=money_sum(e.amount for e in entries if e.type == LedgerEntryType.INCOME),
            total_expense=money_sum(e.amount for e in entries if e.type == LedgerEntryType.EXPENSE),
        )
        return entries, totals
