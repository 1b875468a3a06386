import enum
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Numeric, String, Text

from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderPaymentMethod(str, enum.Enum):
    COD = "COD"
    BANK_TRANSFER = "BANK_TRANSFER"
    FONE_PAY = "FONE_PAY"


class Order(Base):
    """Online storefront order. Dated by placement (created_at), recognised as revenue on confirmation."""
    __tablename__ = "orders"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("ORD"))
    order_number = Column(String(30), unique=True, nullable=False)
    customer_id = Column(String(20), ForeignKey("customers.id"), nullable=True)  # null for guest orders
    customer_name = Column(String(255), nullable=True)
    items = Column(JSON, nullable=False, default=list)

    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(String(20), nullable=False, default=OrderPaymentMethod.COD.value)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)
    notes = Column(Text, nullable=True)

    performed_by = Column(String(30), nullable=True)
    processed_by = Column(String(30), nullable=True)  # legacy alias of performed_by

    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
    confirmed_at = Column(DateTime, nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Order(order_number='{self.order_number}', status='{self.status}', total={self.total})>"
