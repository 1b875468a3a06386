import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, Numeric, String, Text, event

from retail_ledger.common.exceptions import ConsistencyViolation
from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id


class LedgerEntryType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class LedgerCategory(str, enum.Enum):
    SALES = "SALES"
    PURCHASE = "PURCHASE"
    SALARY = "SALARY"
    RENT = "RENT"
    UTILITY = "UTILITY"
    VENDOR_PAY = "VENDOR_PAY"
    ADVANCE = "ADVANCE"
    COMMISSION = "COMMISSION"
    OTHER = "OTHER"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    FONE_PAY = "FONE_PAY"
    CREDIT = "CREDIT"
    CHEQUE = "CHEQUE"


class LedgerEntry(Base):
    """Append-only finance ledger row. Shadow rows carry related_id pointing at their source record."""
    __tablename__ = "finance_ledger"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("LED"))
    date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    type = Column(Enum(LedgerEntryType), nullable=False, index=True)
    category = Column(Enum(LedgerCategory), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=False, default="")
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    related_id = Column(String(30), nullable=True, index=True)  # SAL / ORD / PO / VEN id
    performed_by = Column(String(30), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<LedgerEntry(id='{self.id}', type='{self.type}', category='{self.category}', amount={self.amount})>"


@event.listens_for(LedgerEntry, "before_update")
def _refuse_ledger_update(mapper, connection, target):
    raise ConsistencyViolation(
        f"Ledger entry {target.id} is immutable; post an offsetting entry instead"
    )


@event.listens_for(LedgerEntry, "before_delete")
def _refuse_ledger_delete(mapper, connection, target):
    raise ConsistencyViolation(
        f"Ledger entry {target.id} cannot be deleted; post an offsetting entry instead"
    )
