from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from retail_ledger.common.exceptions import InvalidAmount
from retail_ledger.logger_config import logger
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntry, LedgerEntryType, PaymentMethod
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.stores.base import SqlStore
from retail_ledger.utils.money import to_money


class LedgerStore(SqlStore):

    def query(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        type: Optional[LedgerEntryType] = None,
    ) -> List[LedgerEntryRecord]:
        criteria = [LedgerEntry.type == type] if type is not None else []
        return self._range_query(
            LedgerEntry,
            LedgerEntry.date,
            LedgerEntryRecord,
            sort_key=lambda e: e.date,
            start=start,
            end=end,
            criteria=criteria,
        )

    def append(
        self,
        type: LedgerEntryType,
        category: LedgerCategory,
        amount: Decimal,
        description: str,
        payment_method: PaymentMethod,
        performed_by: str,
        related_id: Optional[str] = None,
        date: Optional[datetime] = None,
        db: Optional[Session] = None,
    ) -> LedgerEntryRecord:
        """Post a new ledger row. Rows are never edited afterwards."""
        amount = to_money(amount)
        if amount < 0:
            raise InvalidAmount(f"Ledger amount cannot be negative: {amount}")

        with self._writing(db) as session:
            entry = LedgerEntry(
                id=generate_custom_id("LED"),
                date=date or datetime.now(),
                type=type,
                category=category,
                amount=amount,
                description=description,
                payment_method=payment_method,
                related_id=related_id,
                performed_by=performed_by,
            )
            session.add(entry)
            session.flush()
            record = self._validate(LedgerEntryRecord, entry)

        logger.info(
            f"Ledger {record.type.value}/{record.category.value} {record.amount} posted "
            f"(id={record.id}, related_id={record.related_id})"
        )
        return record
