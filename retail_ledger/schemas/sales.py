from decimal import Decimal
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime

from retail_ledger.models.ledger_entry import PaymentMethod
from retail_ledger.models.order import OrderPaymentMethod, OrderStatus

# paid + due may drift by float rounding in legacy rows
_TOLERANCE = Decimal("0.01")


class SaleItemRecord(BaseModel):
    product_id: str
    product_name: str
    sku: str = ""
    quantity: int = Field(..., gt=0)
    unit_price: Decimal
    subtotal: Decimal


class SaleRecord(BaseModel):
    id: str
    created_at: datetime
    items: List[SaleItemRecord] = []
    total: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    payment_method: str
    customer_id: Optional[str] = None
    performed_by: str
    source: str = "POS"

    class Config:
        from_attributes = True

    @model_validator(mode='after')
    def check_paid_plus_due(self):
        if abs(self.paid_amount + self.due_amount - self.total) > _TOLERANCE:
            raise ValueError(
                f"Sale {self.id}: paid {self.paid_amount} + due {self.due_amount} != total {self.total}"
            )
        return self


class SaleCreate(BaseModel):
    """POS checkout. due_amount is derived as total - paid_amount."""
    items: List[SaleItemRecord] = Field(..., min_length=1)
    subtotal: Decimal = Field(..., ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)
    paid_amount: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_id: Optional[str] = None
    performed_by: str = Field(..., min_length=1)

    @model_validator(mode='after')
    def check_paid_within_total(self):
        if self.paid_amount > self.total:
            raise ValueError("paid_amount cannot exceed total")
        return self


class OrderItemRecord(BaseModel):
    product_id: str
    product_name: str
    sku: str = ""
    quantity: int = Field(..., gt=0)
    unit_price: Decimal
    subtotal: Decimal


class OrderRecord(BaseModel):
    id: str
    order_number: str
    created_at: datetime
    status: OrderStatus
    items: List[OrderItemRecord] = []
    total: Decimal
    payment_method: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    performed_by: Optional[str] = None
    processed_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def actor_id(self) -> Optional[str]:
        return self.performed_by or self.processed_by


class OrderCreate(BaseModel):
    items: List[OrderItemRecord] = Field(..., min_length=1)
    subtotal: Decimal = Field(..., ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)
    payment_method: OrderPaymentMethod = OrderPaymentMethod.COD
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None
