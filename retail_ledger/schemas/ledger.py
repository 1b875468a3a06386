from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod


class LedgerEntryRecord(BaseModel):
    """A ledger row as validated at the store boundary."""
    id: str
    date: datetime
    type: LedgerEntryType
    category: LedgerCategory
    amount: Decimal = Field(..., ge=0)
    description: str = ""
    payment_method: PaymentMethod
    related_id: Optional[str] = None
    performed_by: str

    class Config:
        from_attributes = True


class LedgerEntryCreate(BaseModel):
    """Manual expense / misc income entry. Shadow categories are posted by the domain services only."""
    date: Optional[datetime] = None  # defaults to now in service
    type: LedgerEntryType
    category: LedgerCategory
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=500)
    payment_method: PaymentMethod = PaymentMethod.CASH
    performed_by: str = Field(..., min_length=1, max_length=30)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v.as_tuple().exponent < -2:
            raise ValueError('Max 2 decimal places')
        return v

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        if v == LedgerCategory.VENDOR_PAY:
            raise ValueError('VENDOR_PAY entries are posted by vendor settlement only')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "type": "EXPENSE",
                "category": "RENT",
                "amount": 25000.00,
                "description": "Shop rent for March",
                "payment_method": "BANK_TRANSFER",
                "performed_by": "USR-ADMIN001",
            }
        }


class LedgerTotals(BaseModel):
    total_income: Decimal
    total_expense: Decimal


class LedgerEntryListResponse(BaseModel):
    data: List[LedgerEntryRecord]
    count: int
    totals: LedgerTotals
