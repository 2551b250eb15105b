import logging
from supabase import Client
from app.core.utils import first_row, utc_now
from app.modules.task_templates.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse, TaskFromTemplate
)
from app.modules.tasks.schemas import TaskCreate, TaskResponse, SubtaskCreate
from app.modules.tasks.service import TaskService
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def build_task_from_template(template: Dict, project_id: str, overrides: Optional[TaskFromTemplate] = None) -> TaskCreate:
    """Task fields a template yields; override values win when truthy"""
    title = (overrides.title if overrides else None) or template.get("title_template") or "Untitled Task"
    description = (overrides.description if overrides else None) or template.get("description_template")
    priority = (overrides.priority if overrides else None) or template.get("priority") or "medium"
    assignee_ids = (overrides.assignee_ids if overrides else None) or template.get("assignee_ids") or []

    data = {
        "project_id": project_id,
        "title": title,
        "description": description,
        "priority": priority,
        "status": "not_started",
        "assignee_ids": assignee_ids,
    }
    if template.get("estimated_hours"):
        data["estimated_hours"] = template["estimated_hours"]
    return TaskCreate(**data)


class TemplateService:
    def __init__(self, supabase: Client, task_service: Optional[TaskService] = None):
        self.supabase = supabase
        self.tasks = task_service or TaskService(supabase)

    def list_my_templates(self, user_id: str) -> List[TemplateResponse]:
        try:
            result = self.supabase.table("task_templates")\
                .select("*")\
                .eq("created_by", user_id)\
                .order("updated_at", desc=True)\
                .execute()
            return self._with_creators(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_public_templates(self, workspace_id: Optional[str]) -> List[TemplateResponse]:
        """Templates shared with the whole workspace"""
        if not workspace_id:
            return []
        try:
            result = self.supabase.table("task_templates")\
                .select("*")\
                .eq("workspace_id", workspace_id)\
                .eq("is_public", True)\
                .order("updated_at", desc=True)\
                .execute()
            return self._with_creators(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_template(self, template_id: str) -> TemplateResponse:
        return self._with_creators([self._load(template_id)])[0]

    def create_template(self, template_data: TemplateCreate, user_id: str, workspace_id: Optional[str]) -> TemplateResponse:
        payload = template_data.model_dump(mode="json")
        payload["created_by"] = user_id
        payload["workspace_id"] = workspace_id
        return self._insert(payload)

    def update_template(self, template_id: str, template_data: TemplateUpdate) -> TemplateResponse:
        self._load(template_id)
        update_data = template_data.model_dump(mode="json", exclude_unset=True)
        if not update_data:
            return self.get_template(template_id)
        update_data["updated_at"] = utc_now().isoformat()
        try:
            result = self.supabase.table("task_templates")\
                .update(update_data)\
                .eq("id", template_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Template not found")
            return self._with_creators(result.data)[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_template(self, template_id: str) -> bool:
        self._load(template_id)
        try:
            self.supabase.table("task_templates")\
                .delete()\
                .eq("id", template_id)\
                .execute()
            logger.info(f"Deleted template {template_id}")
            return True
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def ensure_can_modify(self, template_id: str, user_id: str, is_admin: bool) -> Dict:
        """Only the creator or a workspace admin may change a template"""
        template = self._load(template_id)
        if not is_admin and template.get("created_by") != user_id:
            raise HTTPException(status_code=403, detail="Only the template creator can modify it")
        return template

    def create_task_from_template(self, template_id: str, request: TaskFromTemplate, actor_id: str) -> TaskResponse:
        """
        Create a task in request.project_id from a template.

        Template subtasks become subtasks of the new task, template labels are
        attached, and the template's use_count is incremented.
        """
        template = self._load(template_id)
        task = self.tasks.create_task(build_task_from_template(template, request.project_id, request), actor_id)

        for subtask in template.get("subtasks") or []:
            title = subtask.get("title") if isinstance(subtask, dict) else subtask
            if title:
                self.tasks.add_subtask(task.id, SubtaskCreate(title=title), actor_id)

        labels = template.get("labels") or []
        if labels:
            try:
                self.supabase.table("task_labels").insert([
                    {"task_id": task.id, "label_id": label_id} for label_id in labels
                ]).execute()
            except Exception as e:
                logger.warning(f"Could not attach template labels to task {task.id}: {e}")

        self._increment_use_count(template)
        logger.info(f"Task {task.id} created from template {template.get('name')}")
        return self.tasks.get_task(task.id)

    def save_task_as_template(self, task_id: str, name: str, is_public: bool,
                              user_id: str, workspace_id: Optional[str]) -> TemplateResponse:
        task = self.tasks.get_task(task_id)
        payload = {
            "name": name,
            "description": f"Template created from task: {task.title}",
            "title_template": task.title,
            "description_template": task.description,
            "priority": task.priority,
            "status": task.status,
            "due_date": task.due_date.isoformat() if task.due_date else None,
            "estimated_hours": task.estimated_hours,
            "subtasks": [{"title": s.get("title")} for s in task.subtasks],
            "labels": [label["id"] for label in task.labels if label.get("id")],
            "assignee_ids": [a["id"] for a in task.assignees if a.get("id")],
            "is_public": is_public,
            "project_id": task.project_id,
            "created_by": user_id,
            "workspace_id": workspace_id,
        }
        return self._insert(payload)

    def _increment_use_count(self, template: Dict) -> None:
        try:
            self.supabase.table("task_templates")\
                .update({"use_count": (template.get("use_count") or 0) + 1})\
                .eq("id", template["id"])\
                .execute()
        except Exception as e:
            logger.error(f"Error incrementing use count for template {template['id']}: {e}")

    def _insert(self, payload: Dict) -> TemplateResponse:
        try:
            result = self.supabase.table("task_templates").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create template")
            logger.info(f"Template created: {payload.get('name')}")
            return self._with_creators(result.data)[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _load(self, template_id: str) -> Dict:
        try:
            result = self.supabase.table("task_templates")\
                .select("*")\
                .eq("id", template_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        template = first_row(result)
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")
        return template

    def _with_creators(self, rows: List[Dict]) -> List[TemplateResponse]:
        creator_ids = sorted({r["created_by"] for r in rows if r.get("created_by")})
        creators: Dict[str, dict] = {}
        if creator_ids:
            profiles = self.supabase.table("profiles")\
                .select("id, full_name, email, avatar_url")\
                .in_("id", creator_ids)\
                .execute()
            creators = {p["id"]: p for p in (profiles.data or [])}
        return [TemplateResponse(**{**r, "creator": creators.get(r.get("created_by"))}) for r in rows]
