from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from retail_ledger.common.exceptions import ConsistencyViolation, NotFound
from retail_ledger.logger_config import logger
from retail_ledger.models.vendor import PurchaseOrder, PurchaseOrderStatus, Vendor
from retail_ledger.schemas.vendor import PurchaseOrderRecord, VendorRecord
from retail_ledger.stores.base import SqlStore
from retail_ledger.utils.money import to_money


class PurchaseOrderStore(SqlStore):

    def query(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[PurchaseOrderStatus] = None,
    ) -> List[PurchaseOrderRecord]:
        """Purchase orders by recognition date (received_at, else created_at)."""
        criteria = [PurchaseOrder.status == status] if status is not None else []
        return self._range_query(
            PurchaseOrder,
            func.coalesce(PurchaseOrder.received_at, PurchaseOrder.created_at),
            PurchaseOrderRecord,
            sort_key=lambda po: po.recognized_at,
            start=start,
            end=end,
            criteria=criteria,
        )

    def get_for_update(self, db: Session, po_id: str) -> PurchaseOrder:
        po = db.query(PurchaseOrder).filter(PurchaseOrder.id == po_id).with_for_update().first()
        if not po:
            raise NotFound(f"Purchase order {po_id} not found")
        return po


class VendorStore(SqlStore):

    def all(self, active_only: bool = False) -> List[VendorRecord]:
        with self._session() as db:
            query = db.query(Vendor)
            if active_only:
                query = query.filter(Vendor.is_active.is_(True))
            return self._validate_all(VendorRecord, query.order_by(Vendor.company_name).all())

    def get(self, vendor_id: str, db: Optional[Session] = None) -> VendorRecord:
        with self._session(db) as session:
            vendor = session.query(Vendor).filter(Vendor.id == vendor_id).first()
            if not vendor:
                raise NotFound(f"Vendor {vendor_id} not found")
            return self._validate(VendorRecord, vendor)

    def get_for_update(self, db: Session, vendor_id: str) -> Vendor:
        vendor = db.query(Vendor).filter(Vendor.id == vendor_id).with_for_update().first()
        if not vendor:
            raise NotFound(f"Vendor {vendor_id} not found")
        return vendor

    def adjust_balance(self, vendor_id: str, delta: Decimal, db: Optional[Session] = None) -> VendorRecord:
        """Move the payable balance by delta. A balance below zero is refused."""
        with self._writing(db) as session:
            vendor = self.get_for_update(session, vendor_id)
            new_balance = to_money(vendor.balance) + to_money(delta)
            if new_balance < 0:
                logger.error(f"Vendor {vendor_id} balance would become {new_balance}")
                raise ConsistencyViolation(
                    f"Vendor {vendor_id} balance cannot go negative ({vendor.balance} + {delta})"
                )
            vendor.balance = new_balance
            session.flush()
            return self._validate(VendorRecord, vendor)
