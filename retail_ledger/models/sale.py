from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id


class Sale(Base):
    """POS sale. items is a list of {product_id, product_name, sku, quantity, unit_price, subtotal}."""
    __tablename__ = "sales"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("SAL"))
    customer_id = Column(String(20), ForeignKey("customers.id"), nullable=True)
    items = Column(JSON, nullable=False, default=list)

    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False)
    paid_amount = Column(Numeric(15, 2), nullable=False)
    due_amount = Column(Numeric(15, 2), nullable=False, default=0)

    # free text on purpose: unknown methods are bucketed by the reports, not rejected here
    payment_method = Column(String(20), nullable=False)
    is_credit = Column(Boolean, nullable=False, default=False)
    performed_by = Column(String(30), nullable=False)
    source = Column(String(10), nullable=False, default="POS")
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    customer = relationship("Customer", back_populates="sales")
    credit = relationship("CreditTransaction", back_populates="sale", uselist=False)

    def __repr__(self):
        return f"<Sale(id='{self.id}', total={self.total}, due={self.due_amount})>"
