"""
Balance Sheet Tests
===================

Rows are dated just before now: the balance sheet reads everything up to
the moment it is computed.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import text

from retail_ledger.common.exceptions import StoreUnavailable
from retail_ledger.models import LedgerCategory, LedgerEntryType, OrderStatus, PaymentMethod


class TestBalanceSheet:

    def _seed(self, seed):
        earlier = datetime.now() - timedelta(hours=1)
        customer = seed.customer()

        seed.sale(500, payment_method="CASH", created_at=earlier)
        seed.sale(300, payment_method="BANK_TRANSFER", created_at=earlier)
        seed.order(200, status=OrderStatus.CONFIRMED, payment_method="COD", created_at=earlier)
        seed.order(100, status=OrderStatus.CONFIRMED, payment_method="FONE_PAY", created_at=earlier)
        seed.order(999, status=OrderStatus.PENDING, payment_method="COD", created_at=earlier)

        seed.ledger(50, type=LedgerEntryType.INCOME, category=LedgerCategory.OTHER, date=earlier)
        seed.ledger(120, category=LedgerCategory.RENT, date=earlier)
        seed.ledger(1000, category=LedgerCategory.SALARY, payment_method=PaymentMethod.BANK_TRANSFER, date=earlier)
        seed.ledger(500, type=LedgerEntryType.INCOME, category=LedgerCategory.SALES,
                    related_id="SAL-1", date=earlier)
        seed.ledger(400, category=LedgerCategory.VENDOR_PAY, related_id="VEN-1", date=earlier)
        seed.ledger(999, type=LedgerEntryType.INCOME, category=LedgerCategory.OTHER,
                    date=datetime.now() + timedelta(days=1))

        open_sale = seed.sale(1000, paid=400, payment_method="CREDIT", customer_id=customer.id, created_at=earlier)
        paid_sale = seed.sale(200, paid=0, payment_method="CREDIT", customer_id=customer.id, created_at=earlier)
        seed.credit(customer.id, open_sale.id, 1000, 400)
        seed.credit(customer.id, paid_sale.id, 200, 200)

        seed.product(cost_price=Decimal("10.00"), quantity=4)
        seed.product(cost_price=None, quantity=7)
        seed.product(cost_price=Decimal("2.50"), quantity=10)

        seed.vendor(balance=Decimal("2000"))
        seed.vendor(company_name="Paid Up Ltd", balance=Decimal("0"))
        seed.vendor(company_name="Overpaid Co", balance=Decimal("-50"))

    def test_cash_position(self, engine, seed):
        self._seed(seed)

        sheet = engine.get_balance_sheet()

        assert sheet.assets.cash == Decimal("630.00")

    def test_receivables_inventory_payables(self, engine, seed):
        self._seed(seed)

        sheet = engine.get_balance_sheet()

        assert sheet.assets.receivables == Decimal("600.00")
        assert sheet.assets.inventory == Decimal("65.00")
        assert sheet.liabilities.payables == Decimal("2000.00")
        assert sheet.liabilities.total == Decimal("2000.00")

    def test_totals_and_equity(self, engine, seed):
        self._seed(seed)

        sheet = engine.get_balance_sheet()

        assert sheet.assets.total == Decimal("1295.00")
        assert sheet.equity == Decimal("-705.00")
        assert sheet.assets.total - sheet.liabilities.total == sheet.equity

    def test_empty_books(self, engine):
        sheet = engine.get_balance_sheet()

        assert sheet.assets.total == Decimal("0.00")
        assert sheet.equity == Decimal("0.00")

    def test_each_call_is_fresh(self, engine, seed):
        first = engine.get_balance_sheet()
        seed.sale(250, payment_method="CASH", created_at=datetime.now() - timedelta(minutes=5))
        second = engine.get_balance_sheet()

        assert first.assets.cash == Decimal("0.00")
        assert second.assets.cash == Decimal("250.00")

    def test_store_failure_surfaces(self, engine, db_engine):
        with db_engine.begin() as conn:
            conn.execute(text("DROP TABLE product_stocks"))

        with pytest.raises(StoreUnavailable):
            engine.get_balance_sheet()
