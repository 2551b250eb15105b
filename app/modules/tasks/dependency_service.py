from supabase import Client
from app.core.utils import first_row
from app.modules.tasks.schemas import DependencyCreate, DependencyResponse, BlockingStatus
from typing import Dict, List
from fastapi import HTTPException

_TASK_FIELDS = "id, title, status, priority, project_id"


def blocking_tasks(dependencies: List[DependencyResponse], task_id: str) -> List[dict]:
    """Tasks that must finish before task_id"""
    return [d.blocking_task for d in dependencies if d.blocked_task_id == task_id and d.blocking_task]


def blocked_tasks(dependencies: List[DependencyResponse], task_id: str) -> List[dict]:
    """Tasks waiting on task_id"""
    return [d.blocked_task for d in dependencies if d.blocking_task_id == task_id and d.blocked_task]


def is_blocked(dependencies: List[DependencyResponse], task_id: str) -> bool:
    return any(t.get("status") != "completed" for t in blocking_tasks(dependencies, task_id))


class DependencyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_dependencies(self, project_id: str) -> List[DependencyResponse]:
        """Dependencies whose blocking and blocked tasks both belong to the project"""
        try:
            tasks = self.supabase.table("tasks")\
                .select(_TASK_FIELDS)\
                .eq("project_id", project_id)\
                .execute()
            by_id = {t["id"]: t for t in (tasks.data or [])}
            if not by_id:
                return []
            ids = ",".join(by_id)
            result = self.supabase.table("task_dependencies")\
                .select("*")\
                .or_(f"blocking_task_id.in.({ids}),blocked_task_id.in.({ids})")\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            DependencyResponse(**{
                **d,
                "blocking_task": by_id[d["blocking_task_id"]],
                "blocked_task": by_id[d["blocked_task_id"]],
            })
            for d in (result.data or [])
            if d["blocking_task_id"] in by_id and d["blocked_task_id"] in by_id
        ]

    def add_dependency(self, dependency: DependencyCreate) -> DependencyResponse:
        if dependency.blocking_task_id == dependency.blocked_task_id:
            raise HTTPException(status_code=400, detail="A task cannot depend on itself")
        tasks = self._tasks([dependency.blocking_task_id, dependency.blocked_task_id])
        if len(tasks) != 2:
            raise HTTPException(status_code=404, detail="Task not found")
        try:
            existing = self.supabase.table("task_dependencies")\
                .select("id")\
                .eq("blocking_task_id", dependency.blocking_task_id)\
                .eq("blocked_task_id", dependency.blocked_task_id)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="Dependency already exists")
            result = self.supabase.table("task_dependencies").insert({
                "blocking_task_id": dependency.blocking_task_id,
                "blocked_task_id": dependency.blocked_task_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add dependency")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        row = result.data[0]
        return DependencyResponse(**{
            **row,
            "blocking_task": tasks[dependency.blocking_task_id],
            "blocked_task": tasks[dependency.blocked_task_id],
        })

    def remove_dependency(self, dependency_id: str) -> bool:
        try:
            result = self.supabase.table("task_dependencies")\
                .delete()\
                .eq("id", dependency_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Dependency not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_dependency_task_id(self, dependency_id: str) -> str:
        row = first_row(
            self.supabase.table("task_dependencies")
            .select("blocked_task_id")
            .eq("id", dependency_id)
            .maybe_single()
            .execute()
        )
        if not row:
            raise HTTPException(status_code=404, detail="Dependency not found")
        return row["blocked_task_id"]

    def blocking_status(self, project_id: str, task_id: str) -> BlockingStatus:
        dependencies = self.list_dependencies(project_id)
        return BlockingStatus(
            task_id=task_id,
            is_blocked=is_blocked(dependencies, task_id),
            blocking_tasks=blocking_tasks(dependencies, task_id),
            blocked_tasks=blocked_tasks(dependencies, task_id),
        )

    def _tasks(self, ids: List[str]) -> Dict[str, dict]:
        result = self.supabase.table("tasks")\
            .select(_TASK_FIELDS)\
            .in_("id", ids)\
            .execute()
        return {t["id"]: t for t in (result.data or [])}
