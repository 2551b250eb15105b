from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.search.schemas import SearchResults
from app.modules.search.service import SearchService
from app.core.dependencies import get_current_profile, get_visible_project_ids, get_access_cache
from supabase import Client
from typing import Dict, Any

router = APIRouter(prefix="/search", tags=["search"])


def get_search_service(supabase: Client = Depends(get_supabase)) -> SearchService:
    return SearchService(supabase)


@router.get("", response_model=SearchResults)
async def search(
    q: str = "",
    profile: Dict = Depends(get_current_profile),
    service: SearchService = Depends(get_search_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache)
):
    """Global search; fewer than two characters returns empty results"""
    project_ids = get_visible_project_ids(profile, supabase, cache)
    return service.search(q, project_ids)
