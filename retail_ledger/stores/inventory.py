from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from retail_ledger.common.exceptions import ConsistencyViolation, NotFound
from retail_ledger.logger_config import logger
from retail_ledger.models.product import Product, ProductStock
from retail_ledger.models.user import User
from retail_ledger.stores.base import SqlStore
from retail_ledger.utils.money import to_money


class ProductStore(SqlStore):

    def stock_valuation_rows(self) -> List[Tuple[Decimal, int]]:
        """(cost_price, quantity) per product per warehouse; missing cost counts as 0."""
        with self._session() as db:
            rows = (
                db.query(Product.cost_price, ProductStock.quantity)
                .join(ProductStock, ProductStock.product_id == Product.id)
                .all()
            )
            return [(to_money(cost), int(quantity or 0)) for cost, quantity in rows]

    def adjust_quantity(
        self,
        product_id: str,
        delta: int,
        warehouse_id: Optional[str] = None,
        db: Optional[Session] = None,
    ) -> ProductStock:
        """
        Move stock of a product by delta.

        Without a warehouse the first warehouse holding the product is used,
        which is how POS checkout picks its stock.
        """
        with self._writing(db) as session:
            query = session.query(ProductStock).filter(ProductStock.product_id == product_id)
            if warehouse_id:
                query = query.filter(ProductStock.warehouse_id == warehouse_id)
            stock = query.order_by(ProductStock.id).with_for_update().first()

            if stock is None:
                if not warehouse_id:
                    raise NotFound(f"No stock record for product {product_id}")
                if not session.query(Product.id).filter(Product.id == product_id).first():
                    raise NotFound(f"Product {product_id} not found")
                stock = ProductStock(product_id=product_id, warehouse_id=warehouse_id, quantity=0)
                session.add(stock)

            new_quantity = (stock.quantity or 0) + delta
            if new_quantity < 0:
                raise ConsistencyViolation(
                    f"Insufficient stock for product {product_id}: have {stock.quantity}, need {-delta}"
                )
            stock.quantity = new_quantity
            session.flush()
            logger.debug(f"Stock {product_id}@{stock.warehouse_id} moved by {delta} to {new_quantity}")
            return stock


class UserStore(SqlStore):

    def display_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        """Resolve ids to a display name (falls back to email). Unknown ids are simply absent."""
        ids = {uid for uid in user_ids if uid}
        if not ids:
            return {}
        with self._session() as db:
            rows = db.query(User.id, User.display_name, User.email).filter(User.id.in_(ids)).all()
            return {row.id: row.display_name or row.email or row.id for row in rows}
