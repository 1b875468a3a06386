from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from retail_ledger.common.exceptions import NotFound
from retail_ledger.models.order import Order, OrderStatus
from retail_ledger.models.sale import Sale
from retail_ledger.schemas.sales import OrderRecord, SaleRecord
from retail_ledger.stores.base import SqlStore


class SaleStore(SqlStore):

    def query(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[SaleRecord]:
        return self._range_query(
            Sale,
            Sale.created_at,
            SaleRecord,
            sort_key=lambda s: s.created_at,
            start=start,
            end=end,
        )

    def get(self, sale_id: str, db: Optional[Session] = None) -> SaleRecord:
        with self._session(db) as session:
            sale = session.query(Sale).filter(Sale.id == sale_id).first()
            if not sale:
                raise NotFound(f"Sale {sale_id} not found")
            return self._validate(SaleRecord, sale)


class OrderStore(SqlStore):

    def query(
        self,
        status: Union[OrderStatus, Iterable[OrderStatus], None] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[OrderRecord]:
        criteria = []
        if isinstance(status, OrderStatus):
            criteria.append(Order.status == status)
        elif status is not None:
            criteria.append(Order.status.in_(list(status)))
        return self._range_query(
            Order,
            Order.created_at,
            OrderRecord,
            sort_key=lambda o: o.created_at,
            start=start,
            end=end,
            criteria=criteria,
        )

    def get_for_update(self, db: Session, order_id: str) -> Order:
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order:
            raise NotFound(f"Order {order_id} not found")
        return order
