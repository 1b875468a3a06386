from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.ledger_entry import PaymentMethod


class CreditTransaction(Base):
    """Outstanding part of a POS sale. paid_amount + due_amount == total_amount at all times."""
    __tablename__ = "credit_transactions"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("CRD"))
    customer_id = Column(String(20), ForeignKey("customers.id"), nullable=False, index=True)
    sale_id = Column(String(20), ForeignKey("sales.id"), nullable=False, unique=True)
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(15, 2), nullable=False)
    paid_amount = Column(Numeric(15, 2), nullable=False, default=0)
    due_amount = Column(Numeric(15, 2), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    settled_at = Column(DateTime, nullable=True)

    customer = relationship("Customer", back_populates="credits")
    sale = relationship("Sale", back_populates="credit")
    settlement_history = relationship(
        "CreditSettlement",
        back_populates="credit",
        order_by="CreditSettlement.date",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<CreditTransaction(id='{self.id}', due={self.due_amount}, paid={self.paid_amount})>"


class CreditSettlement(Base):
    __tablename__ = "credit_settlements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    credit_id = Column(String(20), ForeignKey("credit_transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.now)
    settled_by = Column(String(30), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    notes = Column(Text, nullable=True)

    credit = relationship("CreditTransaction", back_populates="settlement_history")
