from datetime import date
from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, TaskMove, ColumnReorder, TaskResponse, BoardResponse,
    SubtaskCreate, SubtaskToggle, SubtaskAssign, SubtaskResponse,
    CommentCreate, CommentUpdate, CommentResponse,
    DependencyCreate, DependencyResponse, BlockingStatus,
    Reminder, RemindersUpdate
)
from app.modules.tasks.service import TaskService
from app.modules.tasks.comment_service import CommentService
from app.modules.tasks.dependency_service import DependencyService
from app.core.dependencies import (
    require_permission, check_project_member, check_task_access,
    is_project_workspace_admin, get_visible_project_ids, get_access_cache
)
from supabase import Client
from typing import List, Dict, Any, Optional

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(supabase: Client = Depends(get_supabase)) -> TaskService:
    return TaskService(supabase)


def get_comment_service(supabase: Client = Depends(get_supabase)) -> CommentService:
    return CommentService(supabase)


def get_dependency_service(supabase: Client = Depends(get_supabase)) -> DependencyService:
    return DependencyService(supabase)


# Collections

@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    project_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    """Tasks of a project ordered by position"""
    check_project_member(project_id, profile, supabase)
    return service.list_tasks(project_id)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    task_data: TaskCreate,
    profile: Dict = Depends(require_permission("tasks:create")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(task_data.project_id, profile, supabase)
    return service.create_task(task_data, profile["id"])


@router.get("/board/{project_id}", response_model=BoardResponse)
async def get_board(
    project_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    """Tasks grouped into the four status columns"""
    check_project_member(project_id, profile, supabase)
    return BoardResponse(columns=service.get_board(project_id))


@router.post("/board/{project_id}/reorder", response_model=List[TaskResponse])
async def reorder_column(
    project_id: str,
    reorder: ColumnReorder,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return service.reorder_column(project_id, reorder.status, reorder.ordered_ids)


@router.get("/mine", response_model=List[TaskResponse])
async def my_tasks(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    overdue: bool = False,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service)
):
    return service.my_tasks(profile["id"], status=status, priority=priority, overdue=overdue)


@router.get("/calendar", response_model=List[TaskResponse])
async def calendar(
    start: date,
    end: date,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache)
):
    """Tasks due in [start, end] across the projects the caller can see"""
    project_ids = get_visible_project_ids(profile, supabase, cache)
    return service.calendar(start, end, project_ids)


# Subtasks, comments and dependencies addressed by their own id

@router.get("/subtasks/mine", response_model=List[SubtaskResponse])
async def my_subtasks(
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service)
):
    return service.my_subtasks(profile["id"])


@router.patch("/subtasks/{subtask_id}", response_model=SubtaskResponse)
async def toggle_subtask(
    subtask_id: str,
    toggle: SubtaskToggle,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(service.get_subtask_task_id(subtask_id), profile, supabase)
    return service.toggle_subtask(subtask_id, toggle.completed)


@router.put("/subtasks/{subtask_id}/assignee", response_model=SubtaskResponse)
async def assign_subtask(
    subtask_id: str,
    assignment: SubtaskAssign,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(service.get_subtask_task_id(subtask_id), profile, supabase)
    return service.assign_subtask(subtask_id, assignment.assigned_to, profile["id"])


@router.delete("/subtasks/{subtask_id}", status_code=204)
async def delete_subtask(
    subtask_id: str,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(service.get_subtask_task_id(subtask_id), profile, supabase)
    service.delete_subtask(subtask_id)
    return None


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: str,
    comment: CommentUpdate,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: CommentService = Depends(get_comment_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(service.get_comment_task_id(comment_id), profile, supabase)
    return service.edit_comment(comment_id, comment.content, profile["id"])


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: CommentService = Depends(get_comment_service),
    supabase: Client = Depends(get_supabase)
):
    """Authors delete their own comments; admins of the project's workspace can delete any"""
    project_id = check_task_access(service.get_comment_task_id(comment_id), profile, supabase)
    is_admin = is_project_workspace_admin(project_id, profile, supabase)
    service.delete_comment(comment_id, profile["id"], is_admin=is_admin)
    return None


@router.get("/dependencies", response_model=List[DependencyResponse])
async def list_dependencies(
    project_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: DependencyService = Depends(get_dependency_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return service.list_dependencies(project_id)


@router.post("/dependencies", response_model=DependencyResponse, status_code=201)
async def add_dependency(
    dependency: DependencyCreate,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: DependencyService = Depends(get_dependency_service),
    supabase: Client = Depends(get_supabase)
):
    """blocking_task_id must be completed before blocked_task_id"""
    blocked_project = check_task_access(dependency.blocked_task_id, profile, supabase)
    blocking_project = check_task_access(dependency.blocking_task_id, profile, supabase)
    if blocked_project != blocking_project:
        raise HTTPException(status_code=400, detail="Both tasks must belong to the same project")
    return service.add_dependency(dependency)


@router.delete("/dependencies/{dependency_id}", status_code=204)
async def remove_dependency(
    dependency_id: str,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: DependencyService = Depends(get_dependency_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(service.get_dependency_task_id(dependency_id), profile, supabase)
    service.remove_dependency(dependency_id)
    return None


# Single task

@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.get_task(task_id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.update_task(task_id, task_data, profile["id"])


@router.post("/{task_id}/move", response_model=TaskResponse)
async def move_task(
    task_id: str,
    move: TaskMove,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    """Drop a card on a column or on another card. 400 means the board should revert."""
    check_task_access(task_id, profile, supabase)
    return service.move_task(task_id, move.over_id, profile["id"])


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    profile: Dict = Depends(require_permission("tasks:delete")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    service.delete_task(task_id, profile["id"])
    return None


@router.post("/{task_id}/subtasks", response_model=SubtaskResponse, status_code=201)
async def add_subtask(
    task_id: str,
    subtask: SubtaskCreate,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.add_subtask(task_id, subtask, profile["id"])


@router.get("/{task_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    task_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: CommentService = Depends(get_comment_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.list_comments(task_id)


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    task_id: str,
    comment: CommentCreate,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: CommentService = Depends(get_comment_service),
    supabase: Client = Depends(get_supabase)
):
    """Comment on a task; @name mentions notify matching users"""
    check_task_access(task_id, profile, supabase)
    return service.add_comment(task_id, comment, profile["id"])


@router.get("/{task_id}/blocking", response_model=BlockingStatus)
async def blocking_status(
    task_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: DependencyService = Depends(get_dependency_service),
    supabase: Client = Depends(get_supabase)
):
    project_id = check_task_access(task_id, profile, supabase)
    return service.blocking_status(project_id, task_id)


@router.get("/{task_id}/reminders", response_model=List[Reminder])
async def get_reminders(
    task_id: str,
    profile: Dict = Depends(require_permission("tasks:read")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.get_reminders(task_id)


@router.put("/{task_id}/reminders", response_model=List[Reminder])
async def save_reminders(
    task_id: str,
    update: RemindersUpdate,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.save_reminders(task_id, update.reminders)


@router.delete("/{task_id}/reminders", status_code=204)
async def delete_reminders(
    task_id: str,
    profile: Dict = Depends(require_permission("tasks:update")),
    service: TaskService = Depends(get_task_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    service.delete_reminders(task_id)
    return None
