from fastapi import APIRouter, Depends, Path

from retail_ledger.core.dependencies import get_engine
from retail_ledger.schemas.credit import CreditListResponse, CreditSettleRequest, CreditSettlementResponse
from retail_ledger.services.engine import ReconciliationEngine
from retail_ledger.utils.money import money_sum

router = APIRouter()


@router.get("/outstanding", response_model=CreditListResponse, summary="Credits with something still due")
def get_outstanding_credits(engine: ReconciliationEngine = Depends(get_engine)):
    credits = engine.credits.get_outstanding_credits()
    return CreditListResponse(
        total=len(credits),
        total_due=money_sum(c.due_amount for c in credits),
        credits=credits,
    )


@router.post(
    "/{credit_id}/settle",
    response_model=CreditSettlementResponse,
    summary="Settle a customer credit",
    description="""
    Apply a payment against an open credit.

    - amount must be > 0 and <= due amount (400 otherwise)
    - unknown credit id gives 404
    - due reaching 0 marks the credit SETTLED
    """,
)
def settle_credit(
    payload: CreditSettleRequest,
    credit_id: str = Path(..., min_length=1),
    engine: ReconciliationEngine = Depends(get_engine),
):
    credit, entry = engine.settle_credit(
        credit_id,
        payload.amount,
        payload.settled_by,
        payload.payment_method,
        payload.notes,
    )
    return CreditSettlementResponse(credit=credit, status=credit.status, ledger_entry_id=entry.id)
