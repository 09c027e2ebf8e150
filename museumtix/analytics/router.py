from fastapi import APIRouter, Depends, status
from typing import List

from museumtix.analytics.schemas import AnalyticsSummary
from museumtix.analytics.service import AnalyticsService
from museumtix.auth.dependencies import require_admin
from museumtix.context import get_storage
from museumtix.schemas import AnalyticsCreate, AnalyticsEntry, User
from museumtix.storage.interfaces import IStorage

router = APIRouter()

@router.get("", response_model=List[AnalyticsEntry])
def get_analytics(admin: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    """Get stored analytics entries (admin only)"""
    return storage.get_analytics()

@router.post("", response_model=AnalyticsEntry, status_code=status.HTTP_201_CREATED)
def create_analytics_entry(
    entry: AnalyticsCreate,
    admin: User = Depends(require_admin),
    storage: IStorage = Depends(get_storage)
):
    return storage.create_analytics_entry(entry)

@router.get("/summary", response_model=AnalyticsSummary)
def get_summary(admin: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    """Ticket sales summary for the dashboard"""
    return AnalyticsService.summarize(storage.get_all_tickets())
