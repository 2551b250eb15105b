from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.activity.schemas import ActivityResponse
from app.modules.activity.service import ActivityService, PROJECT_ACTIVITY_LIMIT, ALL_ACTIVITY_LIMIT
from app.core.dependencies import (
    get_current_profile, check_project_member,
    get_visible_project_ids, get_access_cache
)
from supabase import Client
from typing import List, Dict, Any

router = APIRouter(prefix="/activity", tags=["activity"])


def get_activity_service(supabase: Client = Depends(get_supabase)) -> ActivityService:
    return ActivityService(supabase)


@router.get("", response_model=List[ActivityResponse])
async def list_activities(
    limit: int = ALL_ACTIVITY_LIMIT,
    profile: Dict = Depends(get_current_profile),
    service: ActivityService = Depends(get_activity_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache)
):
    """Workspace admins see everything; others see activity of projects they belong to"""
    project_ids = get_visible_project_ids(profile, supabase, cache)
    return service.get_all_activities(project_ids, limit)


@router.get("/projects/{project_id}", response_model=List[ActivityResponse])
async def list_project_activities(
    project_id: str,
    limit: int = PROJECT_ACTIVITY_LIMIT,
    profile: Dict = Depends(get_current_profile),
    service: ActivityService = Depends(get_activity_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return service.get_project_activities(project_id, limit)
