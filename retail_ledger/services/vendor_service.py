"""
Vendor Settlement Service
Purchase orders, goods receipt (GRN) and payments against the vendor payable

Example Scenario:
- Mar 1: PO for 2,000 raised (PENDING, nothing recognised yet)
- Mar 3: Goods received -> expense 2,000 on Mar 3, vendor balance 2,000
- Mar 10: Pay 2,000 by bank transfer -> balance 0, cash-out 2,000 on Mar 10,
  no second expense (the VENDOR_PAY row settles the payable)
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from retail_ledger.common.exceptions import ConsistencyViolation, InvalidAmount
from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod
from retail_ledger.models.vendor import PurchaseOrder, PurchaseOrderStatus, VendorPayment
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.schemas.vendor import (
    PurchaseOrderItem,
    PurchaseOrderRecord,
    ReceivedItem,
    VendorPaymentRecord,
    VendorRecord,
)
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.stores import StoreRegistry
from retail_ledger.stores.base import unit_of_work
from retail_ledger.utils.money import money_sum, to_money


class VendorService:

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings
        self.ledger = LedgerService(stores)

    # ================= PURCHASE ORDERS ===================

    def create_purchase_order(
        self,
        vendor_id: str,
        items: List[PurchaseOrderItem],
        created_by: str,
    ) -> PurchaseOrderRecord:
        """Raise a PO. Nothing is recognised until the goods arrive."""
        if not items:
            raise ValueError("Purchase order needs at least one item")

        total = money_sum(to_money(item.unit_price) * item.quantity for item in items)
        with unit_of_work(self.stores.session_factory) as db:
            self.stores.vendors.get(vendor_id, db=db)
            po = PurchaseOrder(
                id=generate_custom_id("PO"),
                vendor_id=vendor_id,
                items=[item.model_dump(mode="json") for item in items],
                total_amount=total,
                status=PurchaseOrderStatus.PENDING,
                created_by=created_by,
            )
            db.add(po)
            db.flush()
            record = PurchaseOrderRecord.model_validate(po)

        logger.info(f"Purchase order {record.id} raised for vendor {vendor_id}: {total}")
        return record

    def receive_purchase_order(
        self,
        po_id: str,
        received_items: List[ReceivedItem],
        received_by: str,
    ) -> PurchaseOrderRecord:
        """
        Goods received note.

        Marks the PO RECEIVED, books what actually arrived into the
        warehouses, raises the vendor payable and posts the PURCHASE
        expense row, all in one transaction.
        """
        received: Dict[str, ReceivedItem] = {r.product_id: r for r in received_items}

        with unit_of_work(self.stores.session_factory) as db:
            po = self.stores.purchase_orders.get_for_update(db, po_id)
            if po.status == PurchaseOrderStatus.RECEIVED:
                logger.error(f"Purchase order {po_id} already received at {po.received_at}")
                raise ConsistencyViolation(f"Purchase order {po_id} has already been received")

            unknown = set(received) - {item["product_id"] for item in po.items}
            if unknown:
                raise ValueError(f"Products not on purchase order {po_id}: {sorted(unknown)}")

            now = datetime.now()
            items = []
            received_total = Decimal("0.00")
            for item in po.items:
                line = dict(item)
                receipt = received.get(line["product_id"])
                quantity = receipt.received_quantity if receipt else 0
                line["received_quantity"] = quantity
                items.append(line)
                if quantity:
                    received_total += to_money(line["unit_price"]) * quantity
                    self.stores.products.adjust_quantity(
                        line["product_id"], quantity, warehouse_id=receipt.warehouse_id, db=db
                    )

            received_total = to_money(received_total)
            po.items = items
            po.received_total_amount = received_total
            po.status = PurchaseOrderStatus.RECEIVED
            po.received_by = received_by
            po.received_at = now

            self.stores.vendors.adjust_balance(po.vendor_id, received_total, db=db)
            self.ledger.post_purchase_expense(po.id, received_total, received_by, db=db)
            db.flush()
            record = PurchaseOrderRecord.model_validate(po)

        logger.info(f"Purchase order {po_id} received by {received_by}: {received_total}")
        return record

    # ================= SETTLEMENT ===================

    def _settle_once(
        self,
        db: Session,
        vendor_id: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        performed_by: str,
        notes: Optional[str],
    ):
        vendor = self.stores.vendors.get_for_update(db, vendor_id)
        balance = to_money(vendor.balance)
        if amount > balance:
            raise InvalidAmount(f"Payment amount {amount} exceeds vendor outstanding balance {balance}")

        vendor.balance = balance - amount
        if vendor.balance < 0:
            raise ConsistencyViolation(f"Vendor {vendor_id} balance went negative")

        payment = VendorPayment(
            id=generate_custom_id("VPY"),
            vendor_id=vendor_id,
            amount=amount,
            payment_method=payment_method,
            performed_by=performed_by,
            notes=notes,
        )
        db.add(payment)

        description = f"Vendor payment to {vendor.company_name}"
        if notes:
            description += f" - {notes}"
        entry = self.stores.ledger.append(
            type=LedgerEntryType.EXPENSE,
            category=LedgerCategory.VENDOR_PAY,
            amount=amount,
            description=description,
            payment_method=payment_method,
            performed_by=performed_by,
            related_id=vendor_id,
            db=db,
        )
        db.flush()
        return vendor, payment, entry

    def settle_payment(
        self,
        vendor_id: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        performed_by: str,
        notes: Optional[str] = None,
    ) -> Tuple[VendorRecord, VendorPaymentRecord, LedgerEntryRecord]:
        """Pay down the vendor payable. Same retry rules as credit settlement."""
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmount("Payment amount must be greater than zero")

        attempts = max(1, self.settings.SETTLEMENT_MAX_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                with unit_of_work(self.stores.session_factory) as db:
                    vendor, payment, entry = self._settle_once(
                        db, vendor_id, amount, payment_method, performed_by, notes
                    )
                    vendor_record = VendorRecord.model_validate(vendor)
                    payment_record = VendorPaymentRecord.model_validate(payment)
            except StaleDataError:
                logger.warning(f"Vendor {vendor_id} changed concurrently (attempt {attempt}/{attempts}), retrying")
                continue

            logger.info(
                f"Vendor {vendor_id} paid {amount} via {payment_method.value} by {performed_by}; "
                f"balance now {vendor_record.balance}"
            )
            return vendor_record, payment_record, entry

        logger.error(f"Vendor {vendor_id} payment gave up after {attempts} version conflicts")
        raise ConsistencyViolation(f"Vendor {vendor_id} was modified concurrently; payment not applied")

    def get_vendor(self, vendor_id: str) -> VendorRecord:
        return self.stores.vendors.get(vendor_id)

    def get_vendors(self) -> List[VendorRecord]:
        return self.stores.vendors.all()
