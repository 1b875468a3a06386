import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.ledger_entry import PaymentMethod


class PurchaseOrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("VEN"))
    company_name = Column(String(255), nullable=False)
    contact_person = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    balance = Column(Numeric(15, 2), nullable=False, default=0)  # accounts payable
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    purchase_orders = relationship("PurchaseOrder", back_populates="vendor")
    payments = relationship("VendorPayment", back_populates="vendor", order_by="VendorPayment.created_at")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Vendor(id='{self.id}', company='{self.company_name}', balance={self.balance})>"


class PurchaseOrder(Base):
    """items is a list of {product_id, product_name, quantity, unit_price, received_quantity?}."""
    __tablename__ = "purchase_orders"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("PO"))
    vendor_id = Column(String(20), ForeignKey("vendors.id"), nullable=False)
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(15, 2), nullable=False)
    received_total_amount = Column(Numeric(15, 2), nullable=True)
    status = Column(Enum(PurchaseOrderStatus), nullable=False, default=PurchaseOrderStatus.PENDING, index=True)
    created_by = Column(String(30), nullable=False)
    received_by = Column(String(30), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
    received_at = Column(DateTime, nullable=True, index=True)

    vendor = relationship("Vendor", back_populates="purchase_orders")

    def __repr__(self):
        return f"<PurchaseOrder(id='{self.id}', status='{self.status}', total={self.total_amount})>"


class VendorPayment(Base):
    """Payment history of a vendor; one row per settlement."""
    __tablename__ = "vendor_payments"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("VPY"))
    vendor_id = Column(String(20), ForeignKey("vendors.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    performed_by = Column(String(30), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    vendor = relationship("Vendor", back_populates="payments")
