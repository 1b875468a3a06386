"""
Cash Flow Tests
===============
"""

from decimal import Decimal

import pytest

from retail_ledger.common.exceptions import ConsistencyViolation
from retail_ledger.models import LedgerCategory, LedgerEntryType, OrderStatus, PaymentMethod
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.services.cash_flow import bucket_for
from retail_ledger.utils.dates import day_bounds

from .conftest import DAY


class TestBuckets:

    @pytest.mark.parametrize("method,bucket", [
        ("CASH", "cash"),
        ("cod", "cash"),
        ("BANK_TRANSFER", "bank_transfer"),
        (PaymentMethod.FONE_PAY, "fone_pay"),
        ("CHEQUE", "cheque"),
        ("CREDIT", "credit"),
        ("BARTER", None),
        (None, None),
    ])
    def test_bucket_for(self, method, bucket):
        assert bucket_for(method) == bucket


class TestComputeCashFlow:

    def _seed(self, seed):
        vendor = seed.vendor()
        customer = seed.customer()

        seed.sale(500, payment_method="CASH")
        seed.sale(300, payment_method="BANK_TRANSFER")
        seed.sale(1000, paid=400, payment_method="CREDIT", customer_id=customer.id)
        seed.sale(100, payment_method="MOBILE_WALLET")

        seed.order(200, status=OrderStatus.CONFIRMED, payment_method="COD")
        seed.order(150, status=OrderStatus.COMPLETED, payment_method="FONE_PAY")
        seed.order(75, status=OrderStatus.PENDING, payment_method="COD")

        seed.purchase_order(vendor.id, 900, received_at=DAY)

        seed.ledger(300, category=LedgerCategory.RENT, payment_method=PaymentMethod.CASH)
        seed.ledger(400, category=LedgerCategory.VENDOR_PAY, payment_method=PaymentMethod.BANK_TRANSFER,
                    related_id=vendor.id)
        seed.ledger(50, type=LedgerEntryType.INCOME, category=LedgerCategory.OTHER,
                    payment_method=PaymentMethod.CHEQUE)
        # shadows
        seed.ledger(500, type=LedgerEntryType.INCOME, category=LedgerCategory.SALES, related_id="SAL-1")
        seed.ledger(600, type=LedgerEntryType.INCOME, category=LedgerCategory.SALES,
                    related_id="SAL-2", description="Credit settlement for sale #SAL-2")
        seed.ledger(900, category=LedgerCategory.PURCHASE, payment_method=PaymentMethod.CREDIT,
                    related_id="PO-1")

    def test_cash_in_breakdown(self, engine, seed):
        self._seed(seed)

        flow = engine.get_cash_flow(*day_bounds(DAY.date()))

        assert flow.cash_in_breakdown.cash == Decimal("800.00")
        assert flow.cash_in_breakdown.bank_transfer == Decimal("300.00")
        assert flow.cash_in_breakdown.fone_pay == Decimal("150.00")
        assert flow.cash_in_breakdown.cheque == Decimal("50.00")
        assert flow.cash_in_breakdown.credit == Decimal("1000.00")
        assert flow.cash_in == Decimal("2300.00")

    def test_cash_out_breakdown(self, engine, seed):
        self._seed(seed)

        flow = engine.get_cash_flow(*day_bounds(DAY.date()))

        assert flow.cash_out_breakdown.cash == Decimal("300.00")
        assert flow.cash_out_breakdown.bank_transfer == Decimal("400.00")
        assert flow.cash_out_breakdown.credit == Decimal("900.00")
        assert flow.cash_out == Decimal("1600.00")
        assert flow.net_cash_flow == Decimal("700.00")

    def test_totals_equal_breakdown_sums(self, engine, seed):
        self._seed(seed)

        flow = engine.get_cash_flow(*day_bounds(DAY.date()))

        assert flow.cash_in == flow.cash_in_breakdown.total()
        assert flow.cash_out == flow.cash_out_breakdown.total()

    def test_unknown_outgoing_method_is_refused(self, engine, monkeypatch):
        odd = LedgerEntryRecord.model_construct(
            id="LED-ODD",
            date=DAY,
            type=LedgerEntryType.EXPENSE,
            category=LedgerCategory.OTHER,
            amount=Decimal("10.00"),
            description="Paid in kind",
            payment_method="BARTER",
            related_id=None,
            performed_by="USR-1",
        )
        monkeypatch.setattr(engine.stores.ledger, "query", lambda start, end, type=None: [odd])

        with pytest.raises(ConsistencyViolation):
            engine.get_cash_flow(*day_bounds(DAY.date()))

    def test_manual_sales_income_is_not_cash_in(self, engine, seed):
        seed.sale(500, payment_method="CASH")
        seed.ledger(200, type=LedgerEntryType.INCOME, category=LedgerCategory.SALES,
                    payment_method=PaymentMethod.CASH, description="Counter sale keyed by hand")

        flow = engine.get_cash_flow(*day_bounds(DAY.date()))
        pl = engine.get_pl(*day_bounds(DAY.date()))

        assert flow.cash_in == Decimal("500.00")
        assert flow.cash_in_breakdown.cash == Decimal("500.00")
        assert flow.cash_in == pl.income
