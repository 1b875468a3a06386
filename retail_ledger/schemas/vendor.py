"""Vendor, purchase order and vendor payment schemas"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from retail_ledger.models.ledger_entry import PaymentMethod
from retail_ledger.models.vendor import PurchaseOrderStatus


class PurchaseOrderItem(BaseModel):
    product_id: str
    product_name: str
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    received_quantity: Optional[int] = None


class PurchaseOrderRecord(BaseModel):
    id: str
    vendor_id: str
    items: List[PurchaseOrderItem] = []
    total_amount: Decimal
    received_total_amount: Optional[Decimal] = None
    status: PurchaseOrderStatus
    created_by: str
    received_by: Optional[str] = None
    created_at: datetime
    received_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def recognized_amount(self) -> Decimal:
        """Expense amount once received: what actually arrived, else what was ordered."""
        if self.received_total_amount is not None:
            return self.received_total_amount
        return self.total_amount

    @property
    def recognized_at(self) -> datetime:
        return self.received_at or self.created_at

    @property
    def actor_id(self) -> Optional[str]:
        return self.received_by or self.created_by


class ReceivedItem(BaseModel):
    product_id: str
    received_quantity: int = Field(..., ge=0)
    warehouse_id: str


class VendorRecord(BaseModel):
    id: str
    company_name: str
    balance: Decimal
    is_active: bool = True

    class Config:
        from_attributes = True


class VendorPaymentRecord(BaseModel):
    id: str
    vendor_id: str
    amount: Decimal
    payment_method: PaymentMethod
    performed_by: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VendorPaymentCreate(BaseModel):
    """Settle part or all of the outstanding vendor balance"""
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    performed_by: str = Field(..., min_length=1, max_length=30)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v.as_tuple().exponent < -2:
            raise ValueError('Max 2 decimal places')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "amount": 2000.00,
                "payment_method": "BANK_TRANSFER",
                "performed_by": "USR-ADMIN001",
                "notes": "Clearing March GRN",
            }
        }


class VendorSettlementResponse(BaseModel):
    vendor: VendorRecord
    payment: VendorPaymentRecord
    ledger_entry_id: str
