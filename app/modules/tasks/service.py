import logging
from datetime import date, timedelta
from supabase import Client
from app.core.realtime import ChangeFeed, change_feed
from app.core.utils import utc_now, parse_timestamp, first_row
from app.modules.activity.service import ActivityService
from app.modules.notifications.schemas import NotificationCreate
from app.modules.notifications.service import NotificationService, get_actor_name
from app.modules.tasks.board import compute_drop_position, group_by_status
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, TaskResponse, SubtaskCreate, SubtaskResponse,
    Reminder, TASK_STATUSES
)
from typing import Dict, List, Optional, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = "id, full_name, email, avatar_url"


def status_label(status: str) -> str:
    """not_started -> 'not started'. Only the first underscore is replaced."""
    return status.replace("_", " ", 1)


def is_overdue(task: Dict[str, Any], today: Optional[date] = None) -> bool:
    """Past its due day and not completed. Tasks due today are not overdue."""
    if not task.get("due_date") or task.get("status") == "completed":
        return False
    due = parse_timestamp(task["due_date"])
    return due.date() < (today or utc_now().date())


class TaskService:
    def __init__(self, supabase: Client, feed: Optional[ChangeFeed] = None):
        self.supabase = supabase
        self.feed = feed or change_feed
        self.notifications = NotificationService(supabase, self.feed)
        self.activity = ActivityService(supabase, self.feed)

    # Tasks

    def list_tasks(self, project_id: str) -> List[TaskResponse]:
        """Tasks of a project ordered by position, with assignees, subtasks and labels"""
        try:
            result = self.supabase.table("tasks")\
                .select("*")\
                .eq("project_id", project_id)\
                .order("position")\
                .execute()
            return self._hydrate(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_board(self, project_id: str) -> Dict[str, List[TaskResponse]]:
        tasks = self.list_tasks(project_id)
        by_id = {t.id: t for t in tasks}
        grouped = group_by_status([t.model_dump() for t in tasks])
        return {status: [by_id[t["id"]] for t in rows] for status, rows in grouped.items()}

    def get_task(self, task_id: str) -> TaskResponse:
        return self._hydrate([self._load_task(task_id)])[0]

    def create_task(self, task_data: TaskCreate, actor_id: str) -> TaskResponse:
        """Append the task to the bottom of its column and notify its assignees"""
        payload = task_data.model_dump(mode="json", exclude={"assignee_ids"})
        payload["created_by"] = actor_id
        payload["position"] = self._next_position(task_data.project_id, task_data.status)
        try:
            result = self.supabase.table("tasks").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create task")
            task = result.data[0]

            assignee_ids = list(dict.fromkeys(task_data.assignee_ids))
            if assignee_ids:
                self.supabase.table("task_assignees").insert([
                    {"task_id": task["id"], "user_id": user_id} for user_id in assignee_ids
                ]).execute()
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        self.feed.publish("tasks", "INSERT", new=task)
        recipients = [u for u in assignee_ids if u != actor_id]
        if recipients:
            actor_name = get_actor_name(self.supabase, actor_id)
            self.notifications.notify_many([
                NotificationCreate(
                    user_id=user_id,
                    type="task_assigned",
                    title="New Task Assigned",
                    message=f"{actor_name} assigned you to: {task_data.title}",
                    task_id=task["id"],
                    project_id=task_data.project_id,
                    actor_id=actor_id,
                )
                for user_id in recipients
            ])
        self.activity.log_activity(actor_id, "task_created", {"task_title": task_data.title},
                                   task_data.project_id, task["id"])
        return self.get_task(task["id"])

    def update_task(self, task_id: str, task_data: TaskUpdate, actor_id: str) -> TaskResponse:
        """
        Apply an edit. Replaces assignees when assignee_ids is given, notifies newly
        added assignees, and tells the previous assignees about a status change.
        """
        old = self._load_task(task_id)
        old_assignees = self._assignee_ids([task_id]).get(task_id, [])

        changes = task_data.model_dump(mode="json", exclude_unset=True)
        new_assignees = changes.pop("assignee_ids", None)
        changes["updated_at"] = utc_now().isoformat()

        try:
            if new_assignees is not None:
                new_assignees = list(dict.fromkeys(new_assignees))
                self.supabase.table("task_assignees")\
                    .delete()\
                    .eq("task_id", task_id)\
                    .execute()
                if new_assignees:
                    self.supabase.table("task_assignees").insert([
                        {"task_id": task_id, "user_id": user_id} for user_id in new_assignees
                    ]).execute()

            result = self.supabase.table("tasks")\
                .update(changes)\
                .eq("id", task_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Task not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        task = result.data[0]
        self.feed.publish("tasks", "UPDATE", new=task, old=old)

        new_status = changes.get("status")
        status_changed = new_status is not None and new_status != old.get("status")
        added = [u for u in (new_assignees or []) if u not in old_assignees and u != actor_id]
        watchers = [u for u in old_assignees if u != actor_id] if status_changed else []

        if added or watchers:
            actor_name = get_actor_name(self.supabase, actor_id)
            batch = [
                NotificationCreate(
                    user_id=user_id,
                    type="task_assigned",
                    title="Task Assigned",
                    message=f"{actor_name} assigned you to: {task['title']}",
                    task_id=task_id,
                    project_id=task["project_id"],
                    actor_id=actor_id,
                )
                for user_id in added
            ]
            batch.extend(
                NotificationCreate(
                    user_id=user_id,
                    type="task_updated",
                    title="Task Status Updated",
                    message=f"{actor_name} moved \"{task['title']}\" to {status_label(new_status)}",
                    task_id=task_id,
                    project_id=task["project_id"],
                    actor_id=actor_id,
                )
                for user_id in watchers
            )
            self.notifications.notify_many(batch)

        if status_changed:
            self.activity.log_activity(actor_id, "status_changed", {
                "task_title": task["title"],
                "from_status": old.get("status"),
                "to_status": new_status,
            }, task["project_id"], task_id)
            if new_status == "completed":
                self.activity.log_activity(actor_id, "task_completed", {"task_title": task["title"]},
                                           task["project_id"], task_id)
        else:
            self.activity.log_activity(actor_id, "task_updated", {"task_title": task["title"]},
                                       task["project_id"], task_id)

        return self.get_task(task_id)

    def move_task(self, task_id: str, over_id: Optional[str], actor_id: str) -> TaskResponse:
        """Board drop. Nothing is written when the drop cannot be resolved."""
        task = self._load_task(task_id)
        siblings = self.supabase.table("tasks")\
            .select("id, status, position")\
            .eq("project_id", task["project_id"])\
            .execute()
        target = compute_drop_position(siblings.data or [], task_id, over_id, TASK_STATUSES)
        if target is None:
            raise HTTPException(status_code=400, detail="Invalid drop target")
        return self.update_task(
            task_id,
            TaskUpdate(status=target.status, position=target.position),
            actor_id
        )

    def reorder_column(self, project_id: str, status: str, ordered_ids: List[str]) -> List[TaskResponse]:
        """Rewrite positions 0..n-1 for a column in the given order"""
        try:
            for index, task_id in enumerate(ordered_ids):
                result = self.supabase.table("tasks")\
                    .update({"position": index, "status": status})\
                    .eq("id", task_id)\
                    .eq("project_id", project_id)\
                    .execute()
                for row in result.data or []:
                    self.feed.publish("tasks", "UPDATE", new=row)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return self.list_tasks(project_id)

    def delete_task(self, task_id: str, actor_id: str) -> bool:
        task = self._load_task(task_id)
        try:
            self.supabase.table("tasks")\
                .delete()\
                .eq("id", task_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        self.feed.publish("tasks", "DELETE", old=task)
        self.activity.log_activity(actor_id, "task_deleted", {"task_title": task["title"]},
                                   task["project_id"], None)
        return True

    def my_tasks(
        self,
        user_id: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        overdue: bool = False
    ) -> List[TaskResponse]:
        """Tasks the user is assigned to, soonest due first"""
        try:
            links = self.supabase.table("task_assignees")\
                .select("task_id")\
                .eq("user_id", user_id)\
                .execute()
            task_ids = sorted({link["task_id"] for link in (links.data or [])})
            if not task_ids:
                return []
            query = self.supabase.table("tasks").select("*").in_("id", task_ids)
            if status:
                query = query.eq("status", status)
            if priority:
                query = query.eq("priority", priority)
            rows = query.order("due_date").execute().data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if overdue:
            today = utc_now().date()
            rows = [t for t in rows if is_overdue(t, today)]
        return self._hydrate(rows, with_project=True)

    def calendar(self, start: date, end: date, project_ids: Optional[List[str]] = None) -> List[TaskResponse]:
        """Tasks due between start and end (inclusive days). project_ids=None means all projects."""
        if project_ids is not None and not project_ids:
            return []
        if end < start:
            raise HTTPException(status_code=400, detail="end must not be before start")
        try:
            query = self.supabase.table("tasks")\
                .select("*")\
                .gte("due_date", start.isoformat())\
                .lt("due_date", (end + timedelta(days=1)).isoformat())
            if project_ids is not None:
                query = query.in_("project_id", project_ids)
            result = query.order("due_date").execute()
            return self._hydrate(result.data or [], with_project=True)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Subtasks

    def add_subtask(self, task_id: str, subtask_data: SubtaskCreate, actor_id: str) -> SubtaskResponse:
        task = self._load_task(task_id)
        try:
            last = self.supabase.table("subtasks")\
                .select("position")\
                .eq("task_id", task_id)\
                .order("position", desc=True)\
                .limit(1)\
                .execute()
            position = (last.data[0]["position"] + 1) if last.data else 0
            result = self.supabase.table("subtasks").insert({
                "task_id": task_id,
                "title": subtask_data.title,
                "position": position,
                "assigned_to": subtask_data.assigned_to,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add subtask")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        subtask = result.data[0]
        if subtask_data.assigned_to and subtask_data.assigned_to != actor_id:
            actor_name = get_actor_name(self.supabase, actor_id)
            self.notifications.notify(NotificationCreate(
                user_id=subtask_data.assigned_to,
                type="task_assigned",
                title="Subtask Assigned",
                message=f"{actor_name} assigned you to a subtask: \"{subtask_data.title}\"",
                task_id=task_id,
                project_id=task["project_id"],
                actor_id=actor_id,
            ))
        return self._subtask_response(subtask)

    def toggle_subtask(self, subtask_id: str, completed: bool) -> SubtaskResponse:
        return self._subtask_response(self._update_subtask(subtask_id, {"completed": completed}))

    def assign_subtask(self, subtask_id: str, assigned_to: Optional[str], actor_id: str) -> SubtaskResponse:
        subtask = self._update_subtask(subtask_id, {"assigned_to": assigned_to})
        if assigned_to and assigned_to != actor_id:
            task = first_row(
                self.supabase.table("tasks")
                .select("id, project_id")
                .eq("id", subtask["task_id"])
                .maybe_single()
                .execute()
            )
            self.notifications.notify(NotificationCreate(
                user_id=assigned_to,
                type="task_assigned",
                title="Subtask Assigned",
                message=f"You have been assigned to: \"{subtask.get('title') or 'a subtask'}\"",
                task_id=subtask["task_id"],
                project_id=task["project_id"] if task else None,
                actor_id=actor_id,
            ))
        return self._subtask_response(subtask)

    def delete_subtask(self, subtask_id: str) -> bool:
        try:
            result = self.supabase.table("subtasks")\
                .delete()\
                .eq("id", subtask_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Subtask not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def my_subtasks(self, user_id: str) -> List[SubtaskResponse]:
        """Open subtasks assigned to the user, with their parent task"""
        try:
            result = self.supabase.table("subtasks")\
                .select("*")\
                .eq("assigned_to", user_id)\
                .eq("completed", False)\
                .order("created_at", desc=True)\
                .execute()
            rows = result.data or []
            task_ids = sorted({s["task_id"] for s in rows})
            tasks: Dict[str, dict] = {}
            if task_ids:
                task_rows = self.supabase.table("tasks")\
                    .select("id, title, status, project_id, due_date")\
                    .in_("id", task_ids)\
                    .execute()
                tasks = {t["id"]: t for t in (task_rows.data or [])}
            return [SubtaskResponse(**{**s, "task": tasks.get(s["task_id"])}) for s in rows]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_subtask_task_id(self, subtask_id: str) -> str:
        row = first_row(
            self.supabase.table("subtasks")
            .select("task_id")
            .eq("id", subtask_id)
            .maybe_single()
            .execute()
        )
        if not row:
            raise HTTPException(status_code=404, detail="Subtask not found")
        return row["task_id"]

    # Reminders

    def save_reminders(self, task_id: str, reminders: List[Reminder]) -> List[dict]:
        stored = [r.model_dump() for r in reminders]
        self._update_task_field(task_id, {"reminders": stored})
        return stored

    def get_reminders(self, task_id: str) -> List[dict]:
        return self._load_task(task_id).get("reminders") or []

    def delete_reminders(self, task_id: str) -> None:
        self._update_task_field(task_id, {"reminders": None})

    # Helpers

    def _load_task(self, task_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("tasks")\
                .select("*")\
                .eq("id", task_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        row = first_row(result)
        if not row:
            raise HTTPException(status_code=404, detail="Task not found")
        return row

    def _update_task_field(self, task_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table("tasks")\
                .update(values)\
                .eq("id", task_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Task not found")
        return result.data[0]

    def _update_subtask(self, subtask_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table("subtasks")\
                .update(values)\
                .eq("id", subtask_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Subtask not found")
        return result.data[0]

    def _next_position(self, project_id: str, status: str) -> int:
        result = self.supabase.table("tasks")\
            .select("position")\
            .eq("project_id", project_id)\
            .eq("status", status)\
            .order("position", desc=True)\
            .limit(1)\
            .execute()
        if result.data and result.data[0].get("position") is not None:
            return result.data[0]["position"] + 1
        return 0

    def _assignee_ids(self, task_ids: List[str]) -> Dict[str, List[str]]:
        if not task_ids:
            return {}
        result = self.supabase.table("task_assignees")\
            .select("task_id, user_id")\
            .in_("task_id", task_ids)\
            .execute()
        grouped: Dict[str, List[str]] = {}
        for link in result.data or []:
            grouped.setdefault(link["task_id"], []).append(link["user_id"])
        return grouped

    def _profiles(self, ids: List[str]) -> Dict[str, dict]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        result = self.supabase.table("profiles")\
            .select(_PROFILE_FIELDS)\
            .in_("id", wanted)\
            .execute()
        return {p["id"]: p for p in (result.data or [])}

    def _subtask_response(self, subtask: Dict[str, Any]) -> SubtaskResponse:
        assignee = self._profiles([subtask.get("assigned_to")]).get(subtask.get("assigned_to"))
        return SubtaskResponse(**{**subtask, "assignee": assignee})

    def _hydrate(self, rows: List[dict], with_project: bool = False) -> List[TaskResponse]:
        """Attach assignees, subtasks and labels to task rows"""
        if not rows:
            return []
        task_ids = [r["id"] for r in rows]
        assignees = self._assignee_ids(task_ids)

        subtask_rows = self.supabase.table("subtasks")\
            .select("*")\
            .in_("task_id", task_ids)\
            .order("position")\
            .execute().data or []
        label_links = self.supabase.table("task_labels")\
            .select("task_id, label_id")\
            .in_("task_id", task_ids)\
            .execute().data or []
        labels: Dict[str, dict] = {}
        label_ids = sorted({link["label_id"] for link in label_links})
        if label_ids:
            label_rows = self.supabase.table("labels")\
                .select("id, name, color")\
                .in_("id", label_ids)\
                .execute().data or []
            labels = {label["id"]: label for label in label_rows}

        projects: Dict[str, dict] = {}
        if with_project:
            project_ids = sorted({r["project_id"] for r in rows if r.get("project_id")})
            if project_ids:
                project_rows = self.supabase.table("projects")\
                    .select("id, name, color")\
                    .in_("id", project_ids)\
                    .execute().data or []
                projects = {p["id"]: p for p in project_rows}

        user_ids = [u for ids in assignees.values() for u in ids]
        user_ids += [s.get("assigned_to") for s in subtask_rows]
        profiles = self._profiles(user_ids)

        subtasks: Dict[str, List[dict]] = {}
        for s in subtask_rows:
            subtasks.setdefault(s["task_id"], []).append({**s, "assignee": profiles.get(s.get("assigned_to"))})
        task_labels: Dict[str, List[dict]] = {}
        for link in label_links:
            if link["label_id"] in labels:
                task_labels.setdefault(link["task_id"], []).append(labels[link["label_id"]])

        hydrated = []
        for r in rows:
            ids = assignees.get(r["id"], [])
            hydrated.append(TaskResponse(**{
                **r,
                "assignees": [profiles[u] for u in ids if u in profiles],
                "assignee_id": ids[0] if ids else None,
                "subtasks": subtasks.get(r["id"], []),
                "labels": task_labels.get(r["id"], []),
                "project": projects.get(r.get("project_id")) if with_project else None,
            }))
        return hydrated
