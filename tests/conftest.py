"""
Fixtures for Retail Ledger Tests
================================

Provides pytest fixtures for:
- A file-backed SQLite database per test (threads get their own connections)
- Store registry, settings and the reconciliation engine bound to it
- A seeder that writes rows with explicit dates, bypassing the domain services
"""

import os

# Settings are read lazily, but the app module builds one at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from retail_ledger.core.config import Settings
from retail_ledger.core.database import Base, create_db_engine, create_session_factory
from retail_ledger.models import (
    CreditTransaction,
    Customer,
    LedgerCategory,
    LedgerEntry,
    LedgerEntryType,
    Order,
    OrderStatus,
    PaymentMethod,
    Product,
    ProductStock,
    PurchaseOrder,
    PurchaseOrderStatus,
    Sale,
    User,
    Vendor,
    Warehouse,
)
from retail_ledger.models.common import generate_custom_id
from retail_ledger.services.engine import ReconciliationEngine
from retail_ledger.stores import StoreRegistry

DAY = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", QUERY_MAX_WORKERS=4, SETTLEMENT_MAX_RETRIES=3)


@pytest.fixture
def db_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def stores(session_factory) -> StoreRegistry:
    return StoreRegistry(session_factory)


@pytest.fixture
def engine(session_factory, settings) -> ReconciliationEngine:
    return ReconciliationEngine(session_factory, settings)


class Seeder:
    """Inserts rows directly so tests control every date and amount."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _add(self, obj):
        with self.session_factory() as db:
            db.add(obj)
            db.commit()
            db.refresh(obj)
            db.expunge(obj)
        return obj

    def user(self, user_id: str, display_name: Optional[str] = None, email: Optional[str] = None) -> User:
        return self._add(User(id=user_id, display_name=display_name, email=email))

    def customer(self, name: str = "Walk-in Regular", total_due: Decimal = Decimal("0")) -> Customer:
        return self._add(Customer(name=name, total_due=total_due))

    def vendor(self, company_name: str = "Acme Supplies", balance: Decimal = Decimal("0")) -> Vendor:
        return self._add(Vendor(company_name=company_name, balance=balance))

    def warehouse(self, name: str = "Main Store") -> Warehouse:
        return self._add(Warehouse(name=name))

    def product(
        self,
        name: str = "Widget",
        cost_price: Optional[Decimal] = Decimal("10.00"),
        quantity: int = 10,
        warehouse_id: Optional[str] = None,
    ) -> Product:
        product = self._add(Product(sku=generate_custom_id("SKU", 6), name=name, price=Decimal("15.00"), cost_price=cost_price))
        if warehouse_id is None:
            warehouse_id = self.warehouse().id
        self._add(ProductStock(product_id=product.id, warehouse_id=warehouse_id, quantity=quantity))
        return product

    def ledger(
        self,
        amount,
        type: LedgerEntryType = LedgerEntryType.EXPENSE,
        category: LedgerCategory = LedgerCategory.OTHER,
        description: str = "Manual entry",
        payment_method: PaymentMethod = PaymentMethod.CASH,
        related_id: Optional[str] = None,
        performed_by: str = "USR-ADMIN",
        date: datetime = DAY,
    ) -> LedgerEntry:
        return self._add(LedgerEntry(
            date=date,
            type=type,
            category=category,
            amount=Decimal(str(amount)),
            description=description,
            payment_method=payment_method,
            related_id=related_id,
            performed_by=performed_by,
        ))

    def sale(
        self,
        total,
        paid=None,
        payment_method: str = "CASH",
        customer_id: Optional[str] = None,
        performed_by: str = "USR-CASHIER",
        created_at: datetime = DAY,
        items: Optional[List[dict]] = None,
    ) -> Sale:
        total = Decimal(str(total))
        paid = total if paid is None else Decimal(str(paid))
        if items is None:
            items = [{
                "product_id": "PRD-DEFAULT", "product_name": "Widget", "sku": "W-1",
                "quantity": 1, "unit_price": str(total), "subtotal": str(total),
            }]
        return self._add(Sale(
            customer_id=customer_id,
            items=items,
            subtotal=total,
            total=total,
            paid_amount=paid,
            due_amount=total - paid,
            payment_method=payment_method,
            is_credit=paid < total,
            performed_by=performed_by,
            created_at=created_at,
        ))

    def order(
        self,
        total,
        status: OrderStatus = OrderStatus.CONFIRMED,
        payment_method: str = "COD",
        performed_by: Optional[str] = None,
        processed_by: Optional[str] = None,
        customer_id: Optional[str] = None,
        customer_name: Optional[str] = None,
        created_at: datetime = DAY,
        items: Optional[List[dict]] = None,
    ) -> Order:
        total = Decimal(str(total))
        if items is None:
            items = [{
                "product_id": "PRD-DEFAULT", "product_name": "Widget", "sku": "W-1",
                "quantity": 1, "unit_price": str(total), "subtotal": str(total),
            }]
        return self._add(Order(
            order_number=generate_custom_id("ON", 6),
            customer_id=customer_id,
            customer_name=customer_name,
            items=items,
            subtotal=total,
            total=total,
            payment_method=payment_method,
            status=status,
            performed_by=performed_by,
            processed_by=processed_by,
            created_at=created_at,
        ))

    def purchase_order(
        self,
        vendor_id: str,
        total,
        received_total=None,
        status: PurchaseOrderStatus = PurchaseOrderStatus.RECEIVED,
        created_by: str = "USR-BUYER",
        received_by: Optional[str] = None,
        created_at: datetime = DAY,
        received_at: Optional[datetime] = None,
    ) -> PurchaseOrder:
        total = Decimal(str(total))
        return self._add(PurchaseOrder(
            vendor_id=vendor_id,
            items=[{"product_id": "PRD-DEFAULT", "product_name": "Widget", "quantity": 1, "unit_price": str(total)}],
            total_amount=total,
            received_total_amount=None if received_total is None else Decimal(str(received_total)),
            status=status,
            created_by=created_by,
            received_by=received_by,
            created_at=created_at,
            received_at=received_at,
        ))

    def credit(self, customer_id: str, sale_id: str, total, paid) -> CreditTransaction:
        total = Decimal(str(total))
        paid = Decimal(str(paid))
        return self._add(CreditTransaction(
            customer_id=customer_id,
            sale_id=sale_id,
            items=[],
            total_amount=total,
            paid_amount=paid,
            due_amount=total - paid,
            created_at=DAY,
        ))


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)
