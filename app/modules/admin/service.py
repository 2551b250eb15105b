import logging
from collections import Counter
from supabase import Client
from app.core.utils import first_row
from app.modules.admin.schemas import (
    AdminWorkspaceResponse, AuditLogEntry, SystemStats, AdminUserResponse,
    OwnerSummary, WorkspaceDetails, WorkspaceAnalyticsSummary, WorkspaceAnalyticsExport
)
from typing import Dict, List, Optional, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)

AUDIT_LIMIT = 50
ADMIN_SEARCH_LIMIT = 20
PLATFORM = "PLATFORM"

_SUMMARY_FIELDS = "id, full_name, email, avatar_url"
_ADMIN_USER_FIELDS = "id, email, full_name, avatar_url, is_system_admin, role, created_at"


class AdminService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_workspaces(self) -> List[AdminWorkspaceResponse]:
        """Every workspace, newest first, with owner and member/project counts"""
        try:
            result = self.supabase.table("workspaces")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            workspaces = result.data or []
            if not workspaces:
                return []

            ids = [w["id"] for w in workspaces]
            members = self.supabase.table("profiles")\
                .select("workspace_id")\
                .in_("workspace_id", ids)\
                .execute()
            projects = self.supabase.table("projects")\
                .select("workspace_id")\
                .in_("workspace_id", ids)\
                .execute()
            member_counts = Counter(m["workspace_id"] for m in (members.data or []))
            project_counts = Counter(p["workspace_id"] for p in (projects.data or []))
            owners = self._profiles_by_id([w.get("owner_id") for w in workspaces])

            return [
                AdminWorkspaceResponse(
                    id=w["id"],
                    name=w["name"],
                    owner_id=w.get("owner_id"),
                    owner=owners.get(w.get("owner_id")),
                    member_count=member_counts.get(w["id"], 0),
                    project_count=project_counts.get(w["id"], 0),
                    created_at=w.get("created_at"),
                    updated_at=w.get("updated_at"),
                )
                for w in workspaces
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_audit_log(self, limit: int = AUDIT_LIMIT) -> List[AuditLogEntry]:
        try:
            result = self.supabase.table("workspace_audit_log")\
                .select("*")\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            rows = result.data or []
            admins = self._profiles_by_id([r.get("admin_id") for r in rows])
            return [AuditLogEntry(**r, admin=admins.get(r.get("admin_id"))) for r in rows]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_stats(self) -> SystemStats:
        """Exact row counts across the platform"""
        try:
            return SystemStats(
                total_workspaces=self._count("workspaces"),
                total_users=self._count("profiles"),
                total_projects=self._count("projects"),
                total_tasks=self._count("tasks"),
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_workspace(self, workspace_id: str, admin_id: str) -> bool:
        try:
            workspace = first_row(
                self.supabase.table("workspaces")
                .select("id, name")
                .eq("id", workspace_id)
                .maybe_single()
                .execute()
            )
            if not workspace:
                raise HTTPException(status_code=404, detail="Workspace not found")

            self.supabase.table("workspaces")\
                .delete()\
                .eq("id", workspace_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Workspace {workspace['name']} ({workspace_id}) deleted by {admin_id}")
        self._audit(admin_id, "WORKSPACE_DELETED", workspace["name"], {"action_type": "workspace_deletion"}, workspace_id)
        return True

    def set_system_admin(self, user_id: str, admin_id: str, promote: bool) -> AdminUserResponse:
        """Promote or demote a user and record it in the audit trail"""
        if not promote and user_id == admin_id:
            raise HTTPException(status_code=400, detail="You cannot demote yourself")
        try:
            result = self.supabase.table("profiles")\
                .update({"is_system_admin": promote})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        user = result.data[0]
        verb = "promoted" if promote else "demoted"
        self._audit(
            admin_id,
            "SYSTEM_ADMIN_PROMOTED" if promote else "SYSTEM_ADMIN_DEMOTED",
            PLATFORM,
            {
                f"{verb}_user_id": user_id,
                f"{verb}_user_email": user.get("email"),
                f"{verb}_user_name": user.get("full_name"),
                "action_type": "system_admin_promotion" if promote else "system_admin_demotion",
            },
        )
        return AdminUserResponse(**{k: user.get(k) for k in AdminUserResponse.model_fields if k in user})

    def list_system_admins(self) -> List[AdminUserResponse]:
        try:
            result = self.supabase.table("profiles")\
                .select(_ADMIN_USER_FIELDS)\
                .eq("is_system_admin", True)\
                .order("created_at", desc=True)\
                .execute()
            return [AdminUserResponse(**u) for u in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def search_users(self, query: str) -> List[AdminUserResponse]:
        """Candidates for promotion: non-admins matching email or name"""
        term = (query or "").strip()
        if not term:
            return []
        try:
            result = self.supabase.table("profiles")\
                .select(_ADMIN_USER_FIELDS)\
                .or_(f"email.ilike.%{term}%,full_name.ilike.%{term}%")\
                .eq("is_system_admin", False)\
                .limit(ADMIN_SEARCH_LIMIT)\
                .execute()
            return [AdminUserResponse(**u) for u in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_workspace_details(self, workspace_id: str) -> WorkspaceDetails:
        try:
            workspace = first_row(
                self.supabase.table("workspaces")
                .select("*")
                .eq("id", workspace_id)
                .maybe_single()
                .execute()
            )
            if not workspace:
                raise HTTPException(status_code=404, detail="Workspace not found")

            members = self.supabase.table("profiles")\
                .select("id, full_name, email, role")\
                .eq("workspace_id", workspace_id)\
                .execute()
            projects = self.supabase.table("projects")\
                .select("id, name, created_at")\
                .eq("workspace_id", workspace_id)\
                .execute()
            project_rows = projects.data or []
            task_counts: Counter = Counter()
            if project_rows:
                tasks = self.supabase.table("tasks")\
                    .select("id, project_id")\
                    .in_("project_id", [p["id"] for p in project_rows])\
                    .execute()
                task_counts = Counter(t["project_id"] for t in (tasks.data or []))

            owners = self._profiles_by_id([workspace.get("owner_id")])
            return WorkspaceDetails(
                id=workspace["id"],
                name=workspace["name"],
                owner_id=workspace.get("owner_id"),
                owner=owners.get(workspace.get("owner_id")),
                members=members.data or [],
                projects=[{**p, "task_count": task_counts.get(p["id"], 0)} for p in project_rows],
                created_at=workspace.get("created_at"),
                updated_at=workspace.get("updated_at"),
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def export_workspace_analytics(self, workspace_id: str) -> WorkspaceAnalyticsExport:
        details = self.get_workspace_details(workspace_id)
        summary = WorkspaceAnalyticsSummary(
            total_members=len(details.members),
            total_projects=len(details.projects),
            total_tasks=sum(p.get("task_count", 0) for p in details.projects),
            created_at=details.created_at,
            last_updated=details.updated_at,
        )
        return WorkspaceAnalyticsExport(workspace=details, summary=summary)

    def _count(self, table: str) -> int:
        result = self.supabase.table(table).select("id", count="exact").execute()
        return result.count or 0

    def _profiles_by_id(self, ids: List[Optional[str]]) -> Dict[str, OwnerSummary]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        result = self.supabase.table("profiles")\
            .select(_SUMMARY_FIELDS)\
            .in_("id", wanted)\
            .execute()
        return {p["id"]: OwnerSummary(**p) for p in (result.data or [])}

    def _audit(self, admin_id: str, action: str, workspace_name: str, details: Dict[str, Any],
               workspace_id: Optional[str] = None) -> None:
        """Append to the audit trail. Failures are logged; the action already happened."""
        try:
            self.supabase.table("workspace_audit_log").insert({
                "admin_id": admin_id,
                "workspace_id": workspace_id,
                "workspace_name": workspace_name,
                "action": action,
                "details": details,
            }).execute()
        except Exception as e:
            logger.error(f"Failed to write audit entry {action}: {e}")
