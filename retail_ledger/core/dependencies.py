from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from retail_ledger.core.config import Settings, get_settings
from retail_ledger.core.database import get_session_factory
from retail_ledger.services.analytics import AnalyticsService
from retail_ledger.services.engine import ReconciliationEngine
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.stores import StoreRegistry


def get_stores(session_factory: sessionmaker = Depends(get_session_factory)) -> StoreRegistry:
    return StoreRegistry(session_factory)


def get_engine(
    session_factory: sessionmaker = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> ReconciliationEngine:
    """A fresh engine per request; tests override get_session_factory to point it elsewhere."""
    return ReconciliationEngine(session_factory, settings)


def get_analytics(
    stores: StoreRegistry = Depends(get_stores),
    settings: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(stores, settings)


def get_ledger_service(stores: StoreRegistry = Depends(get_stores)) -> LedgerService:
    return LedgerService(stores)
