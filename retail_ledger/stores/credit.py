from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from retail_ledger.common.exceptions import NotFound
from retail_ledger.logger_config import logger
from retail_ledger.models.credit import CreditTransaction
from retail_ledger.models.customer import Customer
from retail_ledger.schemas.credit import CreditTransactionRecord
from retail_ledger.stores.base import SqlStore
from retail_ledger.utils.money import ZERO, to_money


class CreditStore(SqlStore):

    def outstanding(self) -> List[CreditTransactionRecord]:
        with self._session() as db:
            rows = (
                db.query(CreditTransaction)
                .options(selectinload(CreditTransaction.settlement_history))
                .filter(CreditTransaction.due_amount > 0)
                .order_by(CreditTransaction.created_at.desc())
                .all()
            )
            return self._validate_all(CreditTransactionRecord, rows)

    def for_customer(self, customer_id: str) -> List[CreditTransactionRecord]:
        with self._session() as db:
            rows = (
                db.query(CreditTransaction)
                .options(selectinload(CreditTransaction.settlement_history))
                .filter(CreditTransaction.customer_id == customer_id)
                .order_by(CreditTransaction.created_at.desc())
                .all()
            )
            return self._validate_all(CreditTransactionRecord, rows)

    def get(self, credit_id: str, db: Optional[Session] = None) -> CreditTransactionRecord:
        with self._session(db) as session:
            credit = session.query(CreditTransaction).filter(CreditTransaction.id == credit_id).first()
            if not credit:
                raise NotFound(f"Credit transaction {credit_id} not found")
            return self._validate(CreditTransactionRecord, credit)

    def get_for_update(self, db: Session, credit_id: str) -> CreditTransaction:
        credit = (
            db.query(CreditTransaction)
            .filter(CreditTransaction.id == credit_id)
            .with_for_update()
            .first()
        )
        if not credit:
            raise NotFound(f"Credit transaction {credit_id} not found")
        return credit


class CustomerStore(SqlStore):

    def _get_for_update(self, db: Session, customer_id: str) -> Customer:
        customer = db.query(Customer).filter(Customer.id == customer_id).with_for_update().first()
        if not customer:
            raise NotFound(f"Customer {customer_id} not found")
        return customer

    def adjust_total_due(self, customer_id: str, delta: Decimal, db: Optional[Session] = None) -> Decimal:
        """Add delta to the customer's outstanding credit, floored at zero."""
        with self._writing(db) as session:
            customer = self._get_for_update(session, customer_id)
            new_due = to_money(customer.total_due) + to_money(delta)
            if new_due < 0:
                logger.warning(f"Customer {customer_id} total_due would be {new_due}; flooring at 0")
                new_due = ZERO
            customer.total_due = new_due
            session.flush()
            return new_due

    def adjust_total_spent(self, customer_id: str, delta: Decimal, db: Optional[Session] = None) -> Decimal:
        with self._writing(db) as session:
            customer = self._get_for_update(session, customer_id)
            customer.total_spent = to_money(customer.total_spent) + to_money(delta)
            session.flush()
            return customer.total_spent

    def names(self, customer_ids: Iterable[str]) -> Dict[str, str]:
        ids = {cid for cid in customer_ids if cid}
        if not ids:
            return {}
        with self._session() as db:
            rows = db.query(Customer.id, Customer.name).filter(Customer.id.in_(ids)).all()
            return {row.id: row.name for row in rows}
