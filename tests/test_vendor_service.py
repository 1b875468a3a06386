"""
Vendor Settlement Tests
=======================

Purchase orders, goods receipt and payments against the vendor payable.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from retail_ledger.common.exceptions import ConsistencyViolation, InvalidAmount, NotFound
from retail_ledger.models import LedgerCategory, LedgerEntryType, PaymentMethod, ProductStock, PurchaseOrderStatus, VendorPayment
from retail_ledger.schemas.vendor import PurchaseOrderItem, ReceivedItem
from retail_ledger.utils.dates import day_bounds


def stock_of(session_factory, product_id, warehouse_id):
    with session_factory() as db:
        row = db.query(ProductStock).filter_by(product_id=product_id, warehouse_id=warehouse_id).first()
        return row.quantity if row else None


def payment_count(session_factory, vendor_id):
    with session_factory() as db:
        return db.query(VendorPayment).filter_by(vendor_id=vendor_id).count()


class TestGoodsReceipt:

    @pytest.fixture
    def ordered(self, engine, seed):
        vendor = seed.vendor()
        warehouse = seed.warehouse()
        tea = seed.product(name="Tea", cost_price=Decimal("100"), quantity=5, warehouse_id=warehouse.id)
        sugar = seed.product(name="Sugar", cost_price=Decimal("50"), quantity=0, warehouse_id=warehouse.id)
        po = engine.vendors.create_purchase_order(
            vendor.id,
            [
                PurchaseOrderItem(product_id=tea.id, product_name="Tea", quantity=10, unit_price=Decimal("100")),
                PurchaseOrderItem(product_id=sugar.id, product_name="Sugar", quantity=20, unit_price=Decimal("50")),
            ],
            created_by="USR-BUYER",
        )
        return vendor, warehouse, tea, sugar, po

    def test_new_order_is_pending_and_unrecognised(self, engine, ordered):
        vendor, _, _, _, po = ordered

        assert po.status == PurchaseOrderStatus.PENDING
        assert po.total_amount == Decimal("2000.00")
        assert engine.vendors.get_vendor(vendor.id).balance == Decimal("0.00")
        assert engine.stores.ledger.query() == []

    def test_receipt_books_stock_payable_and_expense(self, engine, session_factory, ordered):
        vendor, warehouse, tea, sugar, po = ordered

        received = engine.vendors.receive_purchase_order(
            po.id,
            [
                ReceivedItem(product_id=tea.id, received_quantity=10, warehouse_id=warehouse.id),
                ReceivedItem(product_id=sugar.id, received_quantity=15, warehouse_id=warehouse.id),
            ],
            received_by="USR-STORE",
        )

        assert received.status == PurchaseOrderStatus.RECEIVED
        assert received.received_total_amount == Decimal("1750.00")
        assert received.received_at is not None
        assert [i.received_quantity for i in received.items] == [10, 15]

        assert stock_of(session_factory, tea.id, warehouse.id) == 15
        assert stock_of(session_factory, sugar.id, warehouse.id) == 15
        assert engine.vendors.get_vendor(vendor.id).balance == Decimal("1750.00")

        [entry] = engine.stores.ledger.query()
        assert entry.type == LedgerEntryType.EXPENSE
        assert entry.category == LedgerCategory.PURCHASE
        assert entry.payment_method == PaymentMethod.CREDIT
        assert entry.related_id == po.id

    def test_receipt_expense_counted_once(self, engine, ordered):
        _, warehouse, tea, sugar, po = ordered
        engine.vendors.receive_purchase_order(
            po.id, [ReceivedItem(product_id=tea.id, received_quantity=10, warehouse_id=warehouse.id)], "USR-STORE"
        )

        pl = engine.get_pl(*day_bounds(date.today()))
        assert pl.expense_breakdown["PURCHASE"] == Decimal("1000.00")
        assert pl.expenses == Decimal("1000.00")

    def test_second_receipt_is_refused(self, engine, ordered):
        _, warehouse, tea, _, po = ordered
        items = [ReceivedItem(product_id=tea.id, received_quantity=10, warehouse_id=warehouse.id)]
        engine.vendors.receive_purchase_order(po.id, items, "USR-STORE")

        with pytest.raises(ConsistencyViolation):
            engine.vendors.receive_purchase_order(po.id, items, "USR-STORE")

    def test_product_not_on_order(self, engine, seed, ordered):
        vendor, warehouse, _, _, po = ordered
        stranger = seed.product(name="Salt", warehouse_id=warehouse.id)

        with pytest.raises(ValueError):
            engine.vendors.receive_purchase_order(
                po.id, [ReceivedItem(product_id=stranger.id, received_quantity=1, warehouse_id=warehouse.id)], "USR-STORE"
            )
        assert engine.vendors.get_vendor(vendor.id).balance == Decimal("0.00")

    def test_unknown_vendor_or_order(self, engine):
        item = PurchaseOrderItem(product_id="PRD-1", product_name="Tea", quantity=1, unit_price=Decimal("1"))
        with pytest.raises(NotFound):
            engine.vendors.create_purchase_order("VEN-MISSING", [item], "USR-BUYER")
        with pytest.raises(NotFound):
            engine.vendors.receive_purchase_order("PO-MISSING", [], "USR-STORE")


class TestVendorPayment:

    def test_payment_reduces_balance(self, engine, session_factory, seed):
        vendor = seed.vendor(balance=Decimal("2000"))

        record, payment, entry = engine.settle_vendor_payment(
            vendor.id, Decimal("1500"), PaymentMethod.BANK_TRANSFER, "USR-ADMIN", notes="March GRN"
        )

        assert record.balance == Decimal("500.00")
        assert payment.amount == Decimal("1500.00")
        assert payment.notes == "March GRN"
        assert entry.category == LedgerCategory.VENDOR_PAY
        assert entry.type == LedgerEntryType.EXPENSE
        assert entry.related_id == vendor.id
        assert entry.description == "Vendor payment to Acme Supplies - March GRN"
        assert payment_count(session_factory, vendor.id) == 1

    def test_overpayment_is_refused(self, engine, session_factory, seed):
        vendor = seed.vendor(balance=Decimal("2000"))
        engine.settle_vendor_payment(vendor.id, Decimal("1500"), PaymentMethod.CASH, "USR-ADMIN")

        with pytest.raises(InvalidAmount):
            engine.settle_vendor_payment(vendor.id, Decimal("600"), PaymentMethod.CASH, "USR-ADMIN")

        assert engine.vendors.get_vendor(vendor.id).balance == Decimal("500.00")
        assert payment_count(session_factory, vendor.id) == 1
        assert len(engine.stores.ledger.query()) == 1

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
    def test_non_positive_amount_is_refused(self, engine, seed, amount):
        vendor = seed.vendor(balance=Decimal("100"))
        with pytest.raises(InvalidAmount):
            engine.settle_vendor_payment(vendor.id, amount, PaymentMethod.CASH, "USR-ADMIN")

    def test_unknown_vendor(self, engine):
        with pytest.raises(NotFound):
            engine.settle_vendor_payment("VEN-MISSING", Decimal("10"), PaymentMethod.CASH, "USR-ADMIN")


class TestPaymentAfterReceipt:
    """Goods received on one day, paid in full on a later one."""

    def test_payment_day_has_cash_out_but_no_expense(self, engine, seed):
        received_on = datetime.now() - timedelta(days=1)
        vendor = seed.vendor(balance=Decimal("2000"))
        seed.purchase_order(vendor.id, 2000, created_at=received_on, received_at=received_on)

        record, _, _ = engine.settle_vendor_payment(vendor.id, Decimal("2000"), PaymentMethod.BANK_TRANSFER, "USR-ADMIN")
        assert record.balance == Decimal("0.00")

        payment_day = day_bounds(date.today())
        receipt_day = day_bounds(received_on.date())

        assert engine.get_pl(*payment_day).expenses == Decimal("0.00")
        flow = engine.get_cash_flow(*payment_day)
        assert flow.cash_out == Decimal("2000.00")
        assert flow.cash_out_breakdown.bank_transfer == Decimal("2000.00")

        assert engine.get_pl(*receipt_day).expense_breakdown["PURCHASE"] == Decimal("2000.00")
        assert engine.get_balance_sheet().liabilities.payables == Decimal("0.00")
