"""
Domain Writer Tests
===================

POS checkout, online order status changes and manual ledger entries,
checked end to end against the statements they feed.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from retail_ledger.common.exceptions import ConsistencyViolation
from retail_ledger.models import (
    Customer,
    LedgerCategory,
    LedgerEntryType,
    OrderStatus,
    PaymentMethod,
    ProductStock,
)
from retail_ledger.schemas.ledger import LedgerEntryCreate
from retail_ledger.schemas.reports import TransactionSource
from retail_ledger.schemas.sales import OrderCreate, OrderItemRecord, SaleCreate, SaleItemRecord
from retail_ledger.services.ledger_service import LedgerService, to_payment_method
from retail_ledger.services.order_service import OrderService
from retail_ledger.services.sale_service import SaleService
from retail_ledger.utils.dates import day_bounds

from .conftest import DAY


def today():
    return day_bounds(date.today())


def checkout(product, quantity, unit_price, paid=None, method=PaymentMethod.CASH, customer_id=None):
    total = Decimal(unit_price) * quantity
    return SaleCreate(
        items=[SaleItemRecord(
            product_id=product.id, product_name=product.name, sku=product.sku,
            quantity=quantity, unit_price=Decimal(unit_price), subtotal=total,
        )],
        subtotal=total,
        total=total,
        paid_amount=total if paid is None else Decimal(paid),
        payment_method=method,
        customer_id=customer_id,
        performed_by="USR-CASHIER",
    )


class TestPosCheckout:

    @pytest.fixture
    def sales(self, stores, settings):
        return SaleService(stores, settings)

    def test_cash_sale_flows_into_statements(self, engine, sales, session_factory, seed):
        """Walk-in sale of 500 paid in full in cash."""
        product = seed.product(quantity=10)

        sale = sales.create_sale(checkout(product, 2, "250"))

        assert engine.get_pl(*today()).income == Decimal("500.00")
        assert engine.get_cash_flow(*today()).cash_in_breakdown.cash == Decimal("500.00")

        [txn] = engine.get_day_book(date.today())
        assert txn.source == TransactionSource.POS
        assert txn.id == sale.id

        [entry] = engine.stores.ledger.query()
        assert entry.related_id == sale.id
        assert entry.category == LedgerCategory.SALES
        assert entry.amount == Decimal("500.00")

        with session_factory() as db:
            assert db.query(ProductStock).filter_by(product_id=product.id).one().quantity == 8

    def test_credit_sale_opens_credit(self, engine, sales, session_factory, seed):
        product = seed.product(quantity=10)
        customer = seed.customer()

        sale = sales.create_sale(checkout(product, 4, "250", paid="400",
                                          method=PaymentMethod.CREDIT, customer_id=customer.id))

        assert sale.due_amount == Decimal("600.00")
        [credit] = engine.credits.get_customer_credits(customer.id)
        assert credit.sale_id == sale.id
        assert credit.due_amount == Decimal("600.00")
        assert credit.paid_amount == Decimal("400.00")
        assert sales.get_sale(sale.id).due_amount == Decimal("600.00")

        with session_factory() as db:
            stored = db.get(Customer, customer.id)
            assert stored.total_due == Decimal("600.00")
            assert stored.total_spent == Decimal("1000.00")

        [entry] = engine.stores.ledger.query()
        assert entry.amount == Decimal("1000.00")
        assert entry.payment_method == PaymentMethod.CREDIT

    def test_credit_needs_a_customer(self, sales, seed):
        product = seed.product(quantity=10)
        with pytest.raises(ValueError):
            sales.create_sale(checkout(product, 1, "100", paid="0", method=PaymentMethod.CREDIT))

    def test_insufficient_stock_writes_nothing(self, engine, sales, seed):
        product = seed.product(quantity=1)

        with pytest.raises(ConsistencyViolation):
            sales.create_sale(checkout(product, 3, "100"))

        assert engine.stores.sales.query() == []
        assert engine.stores.ledger.query() == []

    def test_paid_above_total_is_rejected(self, seed):
        product = seed.product()
        with pytest.raises(ValidationError):
            checkout(product, 1, "100", paid="150")


class TestOnlineOrders:

    @pytest.fixture
    def orders(self, stores):
        return OrderService(stores)

    @pytest.fixture
    def placed(self, orders):
        return orders.create_order(OrderCreate(
            items=[OrderItemRecord(product_id="PRD-1", product_name="Tea", quantity=2,
                                   unit_price=Decimal("150"), subtotal=Decimal("300"))],
            subtotal=Decimal("300"),
            total=Decimal("300"),
            customer_name="Guest Gita",
        ))

    def test_placement_books_nothing(self, engine, placed):
        assert placed.status == OrderStatus.PENDING
        assert engine.stores.ledger.query() == []
        assert engine.get_pl(*today()).income == Decimal("0.00")

    def test_confirmation_recognises_revenue(self, engine, orders, placed):
        confirmed = orders.update_order_status(placed.id, OrderStatus.CONFIRMED, "USR-1")

        assert confirmed.confirmed_at is not None
        assert engine.get_pl(*today()).income_breakdown.orders == Decimal("300.00")

        [entry] = engine.stores.ledger.query()
        assert entry.related_id == placed.id
        assert entry.payment_method == PaymentMethod.CASH
        assert entry.description == f"Online Order #{placed.order_number}"
        assert entry.performed_by == "USR-1"

    def test_later_statuses_post_nothing_more(self, engine, orders, placed):
        orders.update_order_status(placed.id, OrderStatus.CONFIRMED, "USR-1")
        orders.update_order_status(placed.id, OrderStatus.SHIPPED, "USR-1")
        orders.update_order_status(placed.id, OrderStatus.COMPLETED, "USR-1")

        assert len(engine.stores.ledger.query()) == 1
        assert engine.get_pl(*today()).income == Decimal("300.00")

    def test_cancelled_order_stays_cancelled(self, orders, placed):
        orders.update_order_status(placed.id, OrderStatus.CANCELLED)
        with pytest.raises(ValueError):
            orders.update_order_status(placed.id, OrderStatus.CONFIRMED, "USR-1")

    def test_get_orders_by_status(self, orders, placed):
        assert [o.id for o in orders.get_orders(OrderStatus.PENDING)] == [placed.id]
        assert orders.get_orders(OrderStatus.CONFIRMED) == []


class TestLedgerService:

    @pytest.fixture
    def ledger(self, stores):
        return LedgerService(stores)

    def test_manual_expense_and_income(self, engine, ledger):
        ledger.create_expense(LedgerCategory.RENT, Decimal("25000"), "Shop rent", "USR-ADMIN", date=DAY)
        ledger.create_income(LedgerCategory.OTHER, Decimal("120.50"), "Packaging resale", "USR-ADMIN",
                             payment_method=PaymentMethod.FONE_PAY, date=DAY)

        pl = engine.get_pl(*day_bounds(DAY.date()))
        assert pl.expense_breakdown["RENT"] == Decimal("25000.00")
        assert pl.income_breakdown.other == Decimal("120.50")

    def test_get_entries_filters_and_totals(self, ledger, seed):
        seed.ledger(100, category=LedgerCategory.RENT)
        seed.ledger(40, category=LedgerCategory.UTILITY)
        seed.ledger(500, type=LedgerEntryType.INCOME, category=LedgerCategory.SALES, related_id="SAL-1")

        entries, totals = ledger.get_entries()
        assert len(entries) == 3
        assert totals.total_income == Decimal("500.00")
        assert totals.total_expense == Decimal("140.00")

        rent, rent_totals = ledger.get_entries(category=LedgerCategory.RENT)
        assert [e.amount for e in rent] == [Decimal("100.00")]
        assert rent_totals.total_income == Decimal("0.00")

    def test_vendor_pay_cannot_be_entered_by_hand(self):
        with pytest.raises(ValidationError):
            LedgerEntryCreate(
                type=LedgerEntryType.EXPENSE, category=LedgerCategory.VENDOR_PAY,
                amount=Decimal("10"), description="sneaky", performed_by="USR-1",
            )

    @pytest.mark.parametrize("amount", ["0", "-1", "10.005"])
    def test_amount_rules(self, amount):
        with pytest.raises(ValidationError):
            LedgerEntryCreate(
                type=LedgerEntryType.EXPENSE, category=LedgerCategory.OTHER,
                amount=Decimal(amount), description="x", performed_by="USR-1",
            )

    @pytest.mark.parametrize("method,expected", [
        ("COD", PaymentMethod.CASH),
        ("cash", PaymentMethod.CASH),
        (PaymentMethod.CREDIT, PaymentMethod.CREDIT),
        ("FONE_PAY", PaymentMethod.FONE_PAY),
    ])
    def test_to_payment_method(self, method, expected):
        assert to_payment_method(method) == expected
