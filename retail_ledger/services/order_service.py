from datetime import datetime
from typing import List, Optional

from retail_ledger.logger_config import logger
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.order import Order, OrderStatus
from retail_ledger.schemas.sales import OrderCreate, OrderRecord
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.stores import StoreRegistry
from retail_ledger.stores.base import unit_of_work
from retail_ledger.utils.money import to_money

SYSTEM_ACTOR = "system"

# status -> timestamp column stamped on entering it
STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


class OrderService:
    """Online storefront orders. Revenue is booked when an order is confirmed, never at placement."""

    def __init__(self, stores: StoreRegistry):
        self.stores = stores
        self.ledger = LedgerService(stores)

    def create_order(self, data: OrderCreate) -> OrderRecord:
        with unit_of_work(self.stores.session_factory) as db:
            order = Order(
                id=generate_custom_id("ORD"),
                order_number=generate_custom_id(f"ON-{datetime.now():%Y%m%d}", length=6),
                customer_id=data.customer_id,
                customer_name=data.customer_name,
                items=[item.model_dump(mode="json") for item in data.items],
                subtotal=to_money(data.subtotal),
                discount=to_money(data.discount),
                total=to_money(data.total),
                payment_method=data.payment_method.value,
                status=OrderStatus.PENDING,
                notes=data.notes,
            )
            db.add(order)
            db.flush()
            record = OrderRecord.model_validate(order)

        logger.info(f"Order {record.order_number} placed: {record.total} ({record.payment_method})")
        return record

    def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        performed_by: Optional[str] = None,
    ) -> OrderRecord:
        with unit_of_work(self.stores.session_factory) as db:
            order = self.stores.orders.get_for_update(db, order_id)
            if order.status == OrderStatus.CANCELLED and status != OrderStatus.CANCELLED:
                raise ValueError(f"Order {order.order_number} is cancelled")

            previous = order.status
            now = datetime.now()
            order.status = status
            if performed_by:
                order.performed_by = performed_by

            column = STATUS_TIMESTAMPS.get(status)
            if column and getattr(order, column) is None:
                setattr(order, column, now)

            if status == OrderStatus.CONFIRMED and previous != OrderStatus.CONFIRMED:
                self.ledger.post_sale_income(
                    order.id,
                    order.total,
                    order.payment_method,
                    performed_by or order.performed_by or SYSTEM_ACTOR,
                    description=f"Online Order #{order.order_number}",
                    db=db,
                )
            db.flush()
            record = OrderRecord.model_validate(order)

        logger.info(f"Order {record.order_number}: {previous.value} -> {status.value}")
        return record

    def get_orders(self, status: Optional[OrderStatus] = None) -> List[OrderRecord]:
        return self.stores.orders.query(status)
