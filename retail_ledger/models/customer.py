from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("CUS"))
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(String(255), nullable=True)
    loyalty_points = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(15, 2), nullable=False, default=0)
    total_due = Column(Numeric(15, 2), nullable=False, default=0)  # outstanding credit
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    sales = relationship("Sale", back_populates="customer")
    credits = relationship("CreditTransaction", back_populates="customer")

    def __repr__(self):
        return f"<Customer(id='{self.id}', name='{self.name}', total_due={self.total_due})>"
