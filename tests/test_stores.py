"""
Store Adapter Tests
===================

Range queries, boundary validation, fallback ordering and write guards.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from retail_ledger.common.exceptions import ConsistencyViolation, NotFound, StoreUnavailable
from retail_ledger.models import LedgerCategory, LedgerEntry, LedgerEntryType, OrderStatus, PurchaseOrderStatus
from retail_ledger.stores.base import SqlStore, is_missing_capability

from .conftest import DAY


class TestRangeQueries:

    def test_ledger_query_is_bounded_and_newest_first(self, stores, seed):
        seed.ledger(10, date=DAY - timedelta(days=1))
        seed.ledger(20, date=DAY)
        seed.ledger(30, date=DAY + timedelta(hours=2))
        seed.ledger(40, date=DAY + timedelta(days=1))

        start = DAY.replace(hour=0)
        end = DAY.replace(hour=23, minute=59)
        entries = stores.ledger.query(start, end)

        assert [e.amount for e in entries] == [Decimal("30.00"), Decimal("20.00")]

    def test_ledger_query_by_type(self, stores, seed):
        seed.ledger(10, type=LedgerEntryType.INCOME, category=LedgerCategory.OTHER)
        seed.ledger(20, type=LedgerEntryType.EXPENSE)

        income = stores.ledger.query(None, None, type=LedgerEntryType.INCOME)
        assert len(income) == 1
        assert income[0].type == LedgerEntryType.INCOME

    def test_order_query_by_status_list(self, stores, seed):
        seed.order(10, status=OrderStatus.PENDING)
        seed.order(20, status=OrderStatus.CONFIRMED)
        seed.order(30, status=OrderStatus.COMPLETED)

        orders = stores.orders.query([OrderStatus.CONFIRMED, OrderStatus.COMPLETED])
        assert sorted(o.total for o in orders) == [Decimal("20.00"), Decimal("30.00")]

    def test_purchase_orders_are_dated_by_receipt(self, stores, seed):
        vendor = seed.vendor()
        seed.purchase_order(
            vendor.id, 500,
            created_at=DAY - timedelta(days=5),
            received_at=DAY,
        )

        on_receipt_day = stores.purchase_orders.query(DAY.replace(hour=0), DAY.replace(hour=23))
        on_creation_day = stores.purchase_orders.query(
            (DAY - timedelta(days=5)).replace(hour=0), (DAY - timedelta(days=5)).replace(hour=23)
        )

        assert len(on_receipt_day) == 1
        assert on_creation_day == []

    def test_pending_purchase_orders_use_created_at(self, stores, seed):
        vendor = seed.vendor()
        seed.purchase_order(vendor.id, 500, status=PurchaseOrderStatus.PENDING, created_at=DAY)

        found = stores.purchase_orders.query(DAY.replace(hour=0), DAY.replace(hour=23))
        assert len(found) == 1
        assert found[0].recognized_at == DAY


class TestFallbackOrdering:
    """The adapter retries an unordered query when the ordered shape fails."""

    def test_unordered_fallback_sorts_in_memory(self, stores, seed, monkeypatch):
        seed.ledger(10, date=DAY)
        seed.ledger(20, date=DAY + timedelta(hours=3))
        seed.ledger(30, date=DAY + timedelta(hours=1))

        def failing_ordered(self, query, order_by):
            raise OperationalError("SELECT ... ORDER BY", {}, Exception("no such index: ix_ledger_entries_date"))

        monkeypatch.setattr(SqlStore, "_fetch_ordered", failing_ordered)

        entries = stores.ledger.query(None, None)
        assert [e.amount for e in entries] == [Decimal("20.00"), Decimal("30.00"), Decimal("10.00")]

    def test_other_query_failures_are_not_retried(self, stores, seed, monkeypatch):
        seed.ledger(10, date=DAY)
        calls = []

        def locked(self, query, order_by):
            calls.append(order_by)
            raise OperationalError("SELECT ... ORDER BY", {}, Exception("database is locked"))

        monkeypatch.setattr(SqlStore, "_fetch_ordered", locked)

        with pytest.raises(StoreUnavailable):
            stores.ledger.query(None, None)
        assert len(calls) == 1

    @pytest.mark.parametrize("message,expected", [
        ("no such index: ix_ledger_entries_date", True),
        ("no such function: coalesce_desc", True),
        ("database is locked", False),
        ("server closed the connection unexpectedly", False),
    ])
    def test_is_missing_capability(self, message, expected):
        error = OperationalError("SELECT 1", {}, Exception(message))
        assert is_missing_capability(error) is expected

    def test_unavailable_store_raises(self, stores, db_engine):
        with db_engine.begin() as conn:
            conn.execute(text("DROP TABLE sales"))

        with pytest.raises(StoreUnavailable):
            stores.sales.query(None, None)


class TestBoundaryValidation:

    def test_sale_out_of_balance_is_a_consistency_violation(self, stores, seed):
        seed.sale(100, paid=100)
        with stores.session_factory() as db:
            db.execute(text("UPDATE sales SET due_amount = 5"))
            db.commit()

        with pytest.raises(ConsistencyViolation):
            stores.sales.query(None, None)

    def test_missing_sale_is_not_found(self, stores):
        with pytest.raises(NotFound):
            stores.sales.get("SAL-MISSING")


class TestLedgerImmutability:

    def test_update_is_refused(self, session_factory, seed):
        row = seed.ledger(100)
        with session_factory() as db:
            entry = db.get(LedgerEntry, row.id)
            entry.amount = Decimal("1.00")
            with pytest.raises(ConsistencyViolation):
                db.flush()

    def test_delete_is_refused(self, session_factory, seed):
        row = seed.ledger(100)
        with session_factory() as db:
            db.delete(db.get(LedgerEntry, row.id))
            with pytest.raises(ConsistencyViolation):
                db.flush()

    def test_negative_amount_is_refused(self, stores):
        from retail_ledger.common.exceptions import InvalidAmount
        from retail_ledger.models import PaymentMethod

        with pytest.raises(InvalidAmount):
            stores.ledger.append(
                type=LedgerEntryType.EXPENSE,
                category=LedgerCategory.OTHER,
                amount=Decimal("-1"),
                description="bad",
                payment_method=PaymentMethod.CASH,
                performed_by="USR-1",
            )


class TestAggregateAdjustments:

    def test_customer_total_due_floors_at_zero(self, stores, seed):
        customer = seed.customer(total_due=Decimal("50"))
        assert stores.customers.adjust_total_due(customer.id, Decimal("-80")) == Decimal("0")

    def test_customer_adjust_unknown_is_not_found(self, stores):
        with pytest.raises(NotFound):
            stores.customers.adjust_total_due("CUS-NOPE", Decimal("10"))

    def test_vendor_balance_never_negative(self, stores, seed):
        vendor = seed.vendor(balance=Decimal("100"))
        with pytest.raises(ConsistencyViolation):
            stores.vendors.adjust_balance(vendor.id, Decimal("-100.01"))
        assert stores.vendors.get(vendor.id).balance == Decimal("100.00")

    def test_user_display_names_skip_unknown_ids(self, stores, seed):
        seed.user("USR-1", display_name="Asha")
        seed.user("USR-2", email="ravi@example.com")

        names = stores.users.display_names(["USR-1", "USR-2", "USR-GHOST", None])
        assert names == {"USR-1": "Asha", "USR-2": "ravi@example.com"}

    def test_stock_valuation_rows(self, stores, seed):
        seed.product(cost_price=Decimal("12.50"), quantity=4)
        seed.product(cost_price=None, quantity=7)

        rows = sorted(stores.products.stock_valuation_rows())
        assert rows == [(Decimal("0.00"), 7), (Decimal("12.50"), 4)]
