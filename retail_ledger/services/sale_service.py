from retail_ledger.common.exceptions import ConsistencyViolation
from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.sale import Sale
from retail_ledger.schemas.sales import SaleCreate, SaleRecord
from retail_ledger.services.credit_service import CreditService
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.stores import StoreRegistry
from retail_ledger.stores.base import unit_of_work
from retail_ledger.utils.money import to_money


class SaleService:
    """POS checkout."""

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings
        self.ledger = LedgerService(stores)
        self.credits = CreditService(stores, settings)

    def create_sale(self, data: SaleCreate) -> SaleRecord:
        """
        Record a POS sale in one transaction: the sale row, stock movements,
        customer totals, a credit for any unpaid part and the SALES ledger row
        for the full total.
        """
        total = to_money(data.total)
        paid = to_money(data.paid_amount)
        due = total - paid
        if abs(paid + due - total) > self.settings.MONEY_TOLERANCE:
            raise ConsistencyViolation(f"Sale paid {paid} + due {due} != total {total}")
        if due > 0 and not data.customer_id:
            raise ValueError("A customer is required to sell on credit")

        items = [item.model_dump(mode="json") for item in data.items]
        with unit_of_work(self.stores.session_factory) as db:
            sale = Sale(
                id=generate_custom_id("SAL"),
                customer_id=data.customer_id,
                items=items,
                subtotal=to_money(data.subtotal),
                discount=to_money(data.discount),
                total=total,
                paid_amount=paid,
                due_amount=due,
                payment_method=data.payment_method.value,
                is_credit=due > 0,
                performed_by=data.performed_by,
                source="POS",
            )
            db.add(sale)
            db.flush()

            for item in data.items:
                self.stores.products.adjust_quantity(item.product_id, -item.quantity, db=db)

            if data.customer_id:
                self.stores.customers.adjust_total_spent(data.customer_id, total, db=db)
                if due > 0:
                    self.credits.create_credit_transaction(
                        db,
                        customer_id=data.customer_id,
                        sale_id=sale.id,
                        items=items,
                        total_amount=total,
                        paid_amount=paid,
                    )

            self.ledger.post_sale_income(
                sale.id, total, data.payment_method, data.performed_by, db=db
            )
            db.flush()
            record = SaleRecord.model_validate(sale)

        logger.info(f"Sale {record.id} recorded: total {total}, paid {paid}, due {due}")
        return record

    def get_sale(self, sale_id: str) -> SaleRecord:
        return self.stores.sales.get(sale_id)
