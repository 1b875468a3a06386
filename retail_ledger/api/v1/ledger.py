from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from retail_ledger.common.exceptions import LedgerError
from retail_ledger.core.dependencies import get_ledger_service
from retail_ledger.logger_config import logger
from retail_ledger.models.ledger_entry import LedgerCategory, LedgerEntryType
from retail_ledger.schemas.ledger import LedgerEntryCreate, LedgerEntryListResponse, LedgerEntryRecord
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.utils.dates import range_bounds

router = APIRouter()


@router.get("", response_model=LedgerEntryListResponse)
def get_ledger_entries(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    type: Optional[LedgerEntryType] = Query(None),
    category: Optional[LedgerCategory] = Query(None),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        start = end = None
        if start_date:
            start, end = range_bounds(start_date, end_date)
        entries, totals = service.get_entries(start, end, type=type, category=category)
        return LedgerEntryListResponse(data=entries, count=len(entries), totals=totals)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("", response_model=LedgerEntryRecord, status_code=status.HTTP_201_CREATED)
def create_ledger_entry(
    payload: LedgerEntryCreate,
    service: LedgerService = Depends(get_ledger_service),
):
    """Manual expense or miscellaneous income."""
    try:
        return service.create_entry(payload)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.exception("Error creating ledger entry")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create ledger entry")
