from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import datetime

from habitcheck.core.analytics import compute_snapshot_stats, compute_streaks
from habitcheck.core.store import EntryStore
from habitcheck.shared.models import DashboardStatsResponse, HabitStreak
from habitcheck.utils.datetime_utils import ensure_aware, now_local
from ..dependencies import get_entry_store

router = APIRouter(prefix="/api/stats", tags=["statistics"])


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    now: Optional[datetime] = Query(None, description="Reference instant, defaults to the current time"),
    store: EntryStore = Depends(get_entry_store)
):
    """
    Completion rate for today, recent cough incidents, top triggers and recent activity
    """
    stats = compute_snapshot_stats(store.snapshot(), now)
    return stats.to_dict()


@router.get("/streaks", response_model=List[HabitStreak])
async def get_streaks(
    now: Optional[datetime] = Query(None),
    store: EntryStore = Depends(get_entry_store)
):
    reference = ensure_aware(now) if now is not None else now_local()
    return compute_streaks(store.snapshot().habits, reference)
