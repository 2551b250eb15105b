import logging
from supabase import Client
from app.core.realtime import ChangeFeed, change_feed
from app.modules.activity.schemas import ActivityResponse
from typing import Dict, List, Optional, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PROJECT_ACTIVITY_LIMIT = 50
ALL_ACTIVITY_LIMIT = 100


class ActivityService:
    def __init__(self, supabase: Client, feed: Optional[ChangeFeed] = None):
        self.supabase = supabase
        self.feed = feed or change_feed

    def log_activity(
        self,
        user_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None
    ) -> Optional[dict]:
        """Append an activity row. Never raises; the audited operation already succeeded."""
        try:
            result = self.supabase.table("activity_log").insert({
                "user_id": user_id,
                "project_id": project_id,
                "task_id": task_id,
                "action": action,
                "details": details or {},
            }).execute()
        except Exception as e:
            logger.error(f"Failed to log activity {action}: {e}")
            return None
        row = result.data[0] if result.data else None
        if row:
            self.feed.publish("activity_log", "INSERT", new=row)
        return row

    def get_project_activities(self, project_id: str, limit: int = PROJECT_ACTIVITY_LIMIT) -> List[ActivityResponse]:
        try:
            result = self.supabase.table("activity_log")\
                .select("*")\
                .eq("project_id", project_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            return self._with_users(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_all_activities(self, project_ids: Optional[List[str]], limit: int = ALL_ACTIVITY_LIMIT) -> List[ActivityResponse]:
        """Activities across projects. project_ids=None means unrestricted (system admins)."""
        if project_ids is not None and not project_ids:
            return []
        try:
            query = self.supabase.table("activity_log").select("*")
            if project_ids is not None:
                query = query.in_("project_id", project_ids)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            return self._with_users(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _with_users(self, rows: List[dict]) -> List[ActivityResponse]:
        user_ids = sorted({r["user_id"] for r in rows if r.get("user_id")})
        users: Dict[str, dict] = {}
        if user_ids:
            profiles = self.supabase.table("profiles")\
                .select("id, full_name, email, avatar_url")\
                .in_("id", user_ids)\
                .execute()
            users = {p["id"]: p for p in (profiles.data or [])}
        return [ActivityResponse(**{**r, "user": users.get(r.get("user_id"))}) for r in rows]
