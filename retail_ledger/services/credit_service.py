"""
Customer Credit Service
Tracks the unpaid part of POS sales and settles it in instalments

Example:
- Sale 1,000 paid 400 -> credit opened with due 600 (OPEN)
- Settle 200 -> paid 600, due 400 (PARTIALLY_SETTLED)
- Settle 400 -> paid 1,000, due 0, settled_at stamped (SETTLED)

Each settlement is a single transaction: the credit row, the customer's
total_due and the INCOME/SALES ledger row commit together or not at all.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from retail_ledger.common.exceptions import ConsistencyViolation, InvalidAmount
from retail_ledger.core.config import Settings
from retail_ledger.logger_config import logger
from retail_ledger.models.common import generate_custom_id
from retail_ledger.models.credit import CreditSettlement, CreditTransaction
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType, PaymentMethod
from retail_ledger.schemas.credit import CreditStatus, CreditTransactionRecord
from retail_ledger.schemas.ledger import LedgerEntryRecord
from retail_ledger.stores import StoreRegistry
from retail_ledger.stores.base import unit_of_work
from retail_ledger.utils.money import ZERO, to_money


def settlement_description(sale_id: str, notes: Optional[str] = None) -> str:
    description = f"Credit settlement for sale #{sale_id}"
    if notes:
        description += f" - {notes}"
    return description


class CreditService:

    def __init__(self, stores: StoreRegistry, settings: Settings):
        self.stores = stores
        self.settings = settings

    # ================= READS ===================

    def get_credit(self, credit_id: str) -> CreditTransactionRecord:
        return self.stores.credits.get(credit_id)

    def get_customer_credits(self, customer_id: str) -> List[CreditTransactionRecord]:
        return self.stores.credits.for_customer(customer_id)

    def get_outstanding_credits(self) -> List[CreditTransactionRecord]:
        return self.stores.credits.outstanding()

    @staticmethod
    def credit_status(credit: CreditTransactionRecord) -> CreditStatus:
        return credit.status

    # ================= WRITES ===================

    def create_credit_transaction(
        self,
        db: Session,
        customer_id: str,
        sale_id: str,
        items: list,
        total_amount: Decimal,
        paid_amount: Decimal,
    ) -> CreditTransaction:
        """Open a credit for the unpaid part of a sale, inside the sale's transaction."""
        total_amount = to_money(total_amount)
        paid_amount = to_money(paid_amount)
        due_amount = total_amount - paid_amount
        if due_amount <= 0:
            raise InvalidAmount(f"Sale {sale_id} has nothing outstanding to put on credit")

        credit = CreditTransaction(
            id=generate_custom_id("CRD"),
            customer_id=customer_id,
            sale_id=sale_id,
            items=items,
            total_amount=total_amount,
            paid_amount=paid_amount,
            due_amount=due_amount,
        )
        db.add(credit)
        self.stores.customers.adjust_total_due(customer_id, due_amount, db=db)
        db.flush()

        logger.info(f"Credit {credit.id} opened for customer {customer_id}: due {due_amount} (sale {sale_id})")
        return credit

    def _check_invariant(self, credit: CreditTransaction) -> None:
        drift = abs(to_money(credit.paid_amount) + to_money(credit.due_amount) - to_money(credit.total_amount))
        if drift > self.settings.MONEY_TOLERANCE or to_money(credit.due_amount) < 0:
            logger.error(
                f"Credit {credit.id} out of balance: paid {credit.paid_amount} + due {credit.due_amount} "
                f"!= total {credit.total_amount}"
            )
            raise ConsistencyViolation(f"Credit {credit.id} paid + due no longer equals total")

    def _settle_once(
        self,
        db: Session,
        credit_id: str,
        amount: Decimal,
        settled_by: str,
        payment_method: PaymentMethod,
        notes: Optional[str],
    ):
        credit = self.stores.credits.get_for_update(db, credit_id)
        due = to_money(credit.due_amount)

        if amount > due:
            raise InvalidAmount(f"Settlement amount {amount} exceeds due amount {due}")

        now = datetime.now()
        credit.paid_amount = to_money(credit.paid_amount) + amount
        credit.due_amount = due - amount
        credit.settlement_history.append(CreditSettlement(
            amount=amount,
            date=now,
            settled_by=settled_by,
            payment_method=payment_method,
            notes=notes,
        ))
        if credit.due_amount == ZERO and credit.settled_at is None:
            credit.settled_at = now
        self._check_invariant(credit)

        self.stores.customers.adjust_total_due(credit.customer_id, -amount, db=db)
        entry = self.stores.ledger.append(
            type=LedgerEntryType.INCOME,
            category=LedgerCategory.SALES,
            amount=amount,
            description=settlement_description(credit.sale_id, notes),
            payment_method=payment_method,
            performed_by=settled_by,
            related_id=credit.sale_id,
            db=db,
        )
        db.flush()
        return credit, entry

    def settle(
        self,
        credit_id: str,
        amount: Decimal,
        settled_by: str,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: Optional[str] = None,
    ) -> Tuple[CreditTransactionRecord, LedgerEntryRecord]:
        """
        Apply a payment against a credit.

        Raises NotFound for an unknown credit and InvalidAmount when amount is
        not positive or exceeds what is due. A concurrent writer bumping the
        row version makes the attempt retry; when retries run out the
        conflict surfaces as ConsistencyViolation.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmount("Settlement amount must be greater than zero")

        attempts = max(1, self.settings.SETTLEMENT_MAX_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                with unit_of_work(self.stores.session_factory) as db:
                    credit, entry = self._settle_once(db, credit_id, amount, settled_by, payment_method, notes)
                    record = CreditTransactionRecord.model_validate(credit)
            except StaleDataError:
                logger.warning(f"Credit {credit_id} changed concurrently (attempt {attempt}/{attempts}), retrying")
                continue

            logger.info(
                f"Credit {credit_id} settled {amount} via {payment_method.value} by {settled_by}; "
                f"due now {record.due_amount}"
            )
            return record, entry

        logger.error(f"Credit {credit_id} settlement gave up after {attempts} version conflicts")
        raise ConsistencyViolation(f"Credit {credit_id} was modified concurrently; settlement not applied")
