from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.analytics.schemas import AnalyticsSummary
from app.modules.analytics.service import AnalyticsService
from app.core.dependencies import require_permission, get_visible_project_ids, get_access_cache
from supabase import Client
from typing import Dict, Any

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_analytics_service(supabase: Client = Depends(get_supabase)) -> AnalyticsService:
    return AnalyticsService(supabase)


@router.get("", response_model=AnalyticsSummary)
async def get_analytics(
    profile: Dict = Depends(require_permission("analytics:read")),
    service: AnalyticsService = Depends(get_analytics_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache)
):
    """Summary over the tasks the caller can see"""
    project_ids = get_visible_project_ids(profile, supabase, cache)
    return service.get_summary(project_ids)
