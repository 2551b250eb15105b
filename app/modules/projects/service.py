import logging
from supabase import Client
from app.core.realtime import ChangeFeed, change_feed
from app.core.utils import utc_now, first_row
from app.modules.notifications.schemas import NotificationCreate
from app.modules.notifications.service import NotificationService
from app.modules.projects.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectMemberResponse,
    ProjectMemberAdd, PROJECT_MEMBER_ROLES
)
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = "id, full_name, email, avatar_url"


class ProjectService:
    def __init__(self, supabase: Client, feed: Optional[ChangeFeed] = None):
        self.supabase = supabase
        self.feed = feed or change_feed

    def list_projects(self, project_ids: Optional[List[str]] = None) -> List[ProjectResponse]:
        """Newest first. project_ids=None lists every project (system admins)."""
        if project_ids is not None and not project_ids:
            return []
        try:
            query = self.supabase.table("projects").select("*")
            if project_ids is not None:
                query = query.in_("id", project_ids)
            result = query.order("created_at", desc=True).execute()
            return self._hydrate(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_project(self, project_id: str) -> ProjectResponse:
        try:
            row = first_row(
                self.supabase.table("projects")
                .select("*")
                .eq("id", project_id)
                .maybe_single()
                .execute()
            )
            if not row:
                raise HTTPException(status_code=404, detail="Project not found")
            return self._hydrate([row])[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_project(self, project_data: ProjectCreate, user_id: str, workspace_id: Optional[str]) -> ProjectResponse:
        """Create a project; its owner joins as project admin"""
        try:
            result = self.supabase.table("projects").insert({
                "name": project_data.name.strip(),
                "description": (project_data.description or "").strip(),
                "color": project_data.color,
                "owner_id": user_id,
                "workspace_id": workspace_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create project")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        project = result.data[0]
        try:
            self.supabase.table("project_members").insert({
                "project_id": project["id"],
                "user_id": user_id,
                "role": "admin",
            }).execute()
        except Exception as e:
            logger.error(f"Failed to add owner as member of project {project['id']}: {e}")

        return self.get_project(project["id"])

    def update_project(self, project_id: str, project_data: ProjectUpdate) -> ProjectResponse:
        update_data = project_data.model_dump(exclude_none=True)
        update_data["updated_at"] = utc_now().isoformat()
        try:
            result = self.supabase.table("projects")\
                .update(update_data)\
                .eq("id", project_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Project not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self.get_project(project_id)

    def delete_project(self, project_id: str) -> bool:
        try:
            result = self.supabase.table("projects")\
                .delete()\
                .eq("id", project_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Project not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self, project_id: str) -> List[ProjectMemberResponse]:
        return self._members_by_project([project_id]).get(project_id, [])

    def add_member(self, project_id: str, member_data: ProjectMemberAdd, actor_id: str) -> ProjectMemberResponse:
        """Add a user to the project and tell them about it"""
        self._validate_role(member_data.role)
        try:
            existing = self.supabase.table("project_members")\
                .select("user_id")\
                .eq("project_id", project_id)\
                .eq("user_id", member_data.user_id)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="User is already a member of this project")

            result = self.supabase.table("project_members").insert({
                "project_id": project_id,
                "user_id": member_data.user_id,
                "role": member_data.role,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add member")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        row = result.data[0]
        self.feed.publish("project_members", "INSERT", new=row)
        NotificationService(self.supabase, self.feed).notify(NotificationCreate(
            user_id=member_data.user_id,
            type="project_invite",
            title="Added to Project",
            message="You have been added to a project",
            project_id=project_id,
            actor_id=actor_id,
        ))
        user = self._profiles([member_data.user_id]).get(member_data.user_id)
        return ProjectMemberResponse(**row, user=user)

    def remove_member(self, project_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("project_members")\
                .delete()\
                .eq("project_id", project_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        self.feed.publish("project_members", "DELETE", old=result.data[0])
        return True

    def update_member_role(self, project_id: str, user_id: str, role: str) -> ProjectMemberResponse:
        self._validate_role(role)
        try:
            result = self.supabase.table("project_members")\
                .update({"role": role})\
                .eq("project_id", project_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        row = result.data[0]
        self.feed.publish("project_members", "UPDATE", new=row)
        return ProjectMemberResponse(**row, user=self._profiles([user_id]).get(user_id))

    @staticmethod
    def _validate_role(role: str):
        if role not in PROJECT_MEMBER_ROLES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid project role. Must be one of: {', '.join(PROJECT_MEMBER_ROLES)}"
            )

    def _hydrate(self, rows: List[dict]) -> List[ProjectResponse]:
        """Attach owner profile and member list to project rows"""
        if not rows:
            return []
        members = self._members_by_project([r["id"] for r in rows])
        owners = self._profiles([r.get("owner_id") for r in rows])
        return [
            ProjectResponse(**{
                **r,
                "owner": owners.get(r.get("owner_id")),
                "members": members.get(r["id"], []),
            })
            for r in rows
        ]

    def _members_by_project(self, project_ids: List[str]) -> Dict[str, List[ProjectMemberResponse]]:
        result = self.supabase.table("project_members")\
            .select("*")\
            .in_("project_id", project_ids)\
            .execute()
        rows = result.data or []
        profiles = self._profiles([m["user_id"] for m in rows])
        grouped: Dict[str, List[ProjectMemberResponse]] = {}
        for m in rows:
            grouped.setdefault(m["project_id"], []).append(ProjectMemberResponse(
                user_id=m["user_id"],
                role=m.get("role") or "member",
                joined_at=m.get("joined_at"),
                user=profiles.get(m["user_id"]),
            ))
        return grouped

    def _profiles(self, ids: List[Optional[str]]) -> Dict[str, dict]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        result = self.supabase.table("profiles")\
            .select(_PROFILE_FIELDS)\
            .in_("id", wanted)\
            .execute()
        return {p["id"]: p for p in (result.data or [])}
