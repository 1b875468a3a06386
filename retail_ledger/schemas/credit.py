import enum
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from retail_ledger.models.ledger_entry import PaymentMethod

_TOLERANCE = Decimal("0.01")


class CreditStatus(str, enum.Enum):
    OPEN = "OPEN"
    PARTIALLY_SETTLED = "PARTIALLY_SETTLED"
    SETTLED = "SETTLED"


class SettlementRecord(BaseModel):
    amount: Decimal
    date: datetime
    settled_by: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class CreditTransactionRecord(BaseModel):
    id: str
    customer_id: str
    sale_id: str
    total_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal = Field(..., ge=0)
    settlement_history: List[SettlementRecord] = []
    created_at: datetime
    settled_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @model_validator(mode='after')
    def check_paid_plus_due(self):
        if abs(self.paid_amount + self.due_amount - self.total_amount) > _TOLERANCE:
            raise ValueError(
                f"Credit {self.id}: paid {self.paid_amount} + due {self.due_amount} != total {self.total_amount}"
            )
        return self

    @property
    def status(self) -> CreditStatus:
        if self.due_amount == 0:
            return CreditStatus.SETTLED
        if self.settlement_history and self.due_amount < self.total_amount:
            return CreditStatus.PARTIALLY_SETTLED
        return CreditStatus.OPEN


class CreditSettleRequest(BaseModel):
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    settled_by: str = Field(..., min_length=1, max_length=30)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v.as_tuple().exponent < -2:
            raise ValueError('Max 2 decimal places')
        return v


class CreditResponse(BaseModel):
    credit: CreditTransactionRecord
    status: CreditStatus


class CreditSettlementResponse(CreditResponse):
    ledger_entry_id: str


class CreditListResponse(BaseModel):
    total: int
    total_due: Decimal
    credits: List[CreditTransactionRecord]
