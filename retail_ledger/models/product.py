from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from retail_ledger.core.database import Base
from retail_ledger.models.common import generate_custom_id


class Warehouse(Base):
    __tablename__ = "warehouses"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("WH", length=5))
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    stocks = relationship("ProductStock", back_populates="warehouse")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(20), primary_key=True, default=lambda: generate_custom_id("PRD"))
    sku = Column(String(50), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(15, 2), nullable=False, default=0)
    cost_price = Column(Numeric(15, 2), nullable=True)  # drives inventory valuation
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    stocks = relationship("ProductStock", back_populates="product", cascade="all, delete-orphan")


class ProductStock(Base):
    """Quantity of a product held in one warehouse."""
    __tablename__ = "product_stocks"
    __table_args__ = (UniqueConstraint("product_id", "warehouse_id", name="uq_product_warehouse"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(20), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    warehouse_id = Column(String(20), ForeignKey("warehouses.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_quantity = Column(Integer, nullable=False, default=0)
    position = Column(String(100), nullable=True)

    product = relationship("Product", back_populates="stocks")
    warehouse = relationship("Warehouse", back_populates="stocks")
