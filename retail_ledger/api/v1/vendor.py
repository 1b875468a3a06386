"""Vendor payment routes"""

from fastapi import APIRouter, Depends, Path, status

from retail_ledger.core.dependencies import get_engine
from retail_ledger.schemas.vendor import VendorPaymentCreate, VendorSettlementResponse
from retail_ledger.services.engine import ReconciliationEngine

router = APIRouter()


@router.post(
    "/{vendor_id}/settle-payment",
    response_model=VendorSettlementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay a vendor",
    description="""
    Pay down the outstanding vendor balance.

    **Example Scenario:**
    - Goods received: 2,000 -> balance 2,000
    - Pay: 1,500 -> balance 500
    - Pay: 600 -> rejected, exceeds balance
    """,
)
def settle_vendor_payment(
    payload: VendorPaymentCreate,
    vendor_id: str = Path(..., min_length=1),
    engine: ReconciliationEngine = Depends(get_engine),
):
    vendor, payment, entry = engine.settle_vendor_payment(
        vendor_id,
        payload.amount,
        payload.payment_method,
        payload.performed_by,
        payload.notes,
    )
    return VendorSettlementResponse(vendor=vendor, payment=payment, ledger_entry_id=entry.id)
