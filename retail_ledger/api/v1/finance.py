"""Finance statement routes"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from retail_ledger.common.exceptions import LedgerError
from retail_ledger.core.dependencies import get_analytics, get_engine
from retail_ledger.logger_config import logger
from retail_ledger.schemas.reports import (
    BalanceSheet,
    CashFlow,
    DayBook,
    ExpenseReport,
    PeriodComparison,
    PLStatement,
    ProfitMargins,
    RevenueTrend,
    SalesReport,
    TopCustomer,
    TopProduct,
)
from retail_ledger.services.analytics import AnalyticsService
from retail_ledger.services.engine import ReconciliationEngine
from retail_ledger.utils.dates import range_bounds

router = APIRouter()


@router.get("/day-book", response_model=DayBook, summary="Unified day book")
def get_day_book(
    day: Optional[date] = Query(None, description="Defaults to today"),
    engine: ReconciliationEngine = Depends(get_engine),
):
    """Every money movement of one day: primary ledger rows, POS sales, confirmed orders, received POs."""
    day = day or date.today()
    transactions = engine.get_day_book(day)
    return engine.day_book.summarize(day, transactions)


@router.get("/pl", response_model=PLStatement, summary="Profit & loss statement")
def get_profit_and_loss(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    engine: ReconciliationEngine = Depends(get_engine),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return engine.get_pl(start, end)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/cash-flow", response_model=CashFlow, summary="Cash flow statement")
def get_cash_flow(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    engine: ReconciliationEngine = Depends(get_engine),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return engine.get_cash_flow(start, end)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/balance-sheet", response_model=BalanceSheet, summary="Balance sheet as of now")
def get_balance_sheet(engine: ReconciliationEngine = Depends(get_engine)):
    return engine.get_balance_sheet()


@router.get("/profit-margins", response_model=ProfitMargins)
def get_profit_margins(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    engine: ReconciliationEngine = Depends(get_engine),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return engine.profit_loss.compute_profit_margins(start, end)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/trends", response_model=List[RevenueTrend])
def get_revenue_trends(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    period: str = Query("daily", pattern="^(daily|weekly|monthly)$"),
    analytics: AnalyticsService = Depends(get_analytics),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return analytics.revenue_trends(start, end, period)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/top-products", response_model=List[TopProduct], summary="Best selling products")
def get_top_products(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    analytics: AnalyticsService = Depends(get_analytics),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return analytics.top_products(start, end, limit)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/top-customers", response_model=List[TopCustomer], summary="Best customers by spend")
def get_top_customers(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    analytics: AnalyticsService = Depends(get_analytics),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return analytics.top_customers(start, end, limit)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/compare", response_model=PeriodComparison, summary="Compare two periods")
def compare_periods(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    previous_start_date: date = Query(...),
    previous_end_date: Optional[date] = Query(None),
    analytics: AnalyticsService = Depends(get_analytics),
):
    """Revenue, expenses and profit of the current period with percentage change over the previous one."""
    try:
        current = range_bounds(start_date, end_date)
        previous = range_bounds(previous_start_date, previous_end_date)
        return analytics.compare_periods(current, previous)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/sales-report", response_model=SalesReport)
def get_sales_report(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    analytics: AnalyticsService = Depends(get_analytics),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return analytics.sales_report(start, end)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.exception("Error generating sales report")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/expense-report", response_model=ExpenseReport)
def get_expense_report(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    analytics: AnalyticsService = Depends(get_analytics),
):
    try:
        start, end = range_bounds(start_date, end_date)
        return analytics.expense_report(start, end)
    except LedgerError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.exception("Error generating expense report")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
