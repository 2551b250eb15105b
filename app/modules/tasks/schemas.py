from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

TASK_STATUSES = ["not_started", "in_progress", "review", "completed"]
TASK_PRIORITIES = ["low", "medium", "high", "urgent"]

# Preset reminder offsets in hours relative to the due date (negative = before)
REMINDER_PRESETS = {
    "at_time": 0,
    "15_min": -0.25,
    "1_hour": -1,
    "1_day": -24,
    "2_days": -48,
}


def _check_status(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in TASK_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(TASK_STATUSES)}")
    return value


def _check_priority(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in TASK_PRIORITIES:
        raise ValueError(f"priority must be one of: {', '.join(TASK_PRIORITIES)}")
    return value


class Reminder(BaseModel):
    type: str
    hours: float


class TaskCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: str = "not_started"
    priority: str = "medium"
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    assignee_ids: List[str] = []
    reminders: Optional[List[Reminder]] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        return _check_priority(v)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    position: Optional[int] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    assignee_ids: Optional[List[str]] = None

    # Omitted means unchanged; these columns are NOT NULL
    @field_validator("title", "status", "priority", "position", mode="before")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("title cannot be empty")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        return _check_priority(v)


class TaskMove(BaseModel):
    """A board drop: over_id is a column (status) or the id of the task dropped onto"""
    over_id: Optional[str] = None


class ColumnReorder(BaseModel):
    status: str
    ordered_ids: List[str]

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        return _check_status(v)


class TaskResponse(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: Optional[str] = None
    position: Optional[int] = 0
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    created_by: Optional[str] = None
    assignee_id: Optional[str] = None
    assignees: List[Dict[str, Any]] = []
    subtasks: List[Dict[str, Any]] = []
    labels: List[Dict[str, Any]] = []
    reminders: Optional[List[Dict[str, Any]]] = None
    project: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BoardResponse(BaseModel):
    columns: Dict[str, List[TaskResponse]]


class SubtaskCreate(BaseModel):
    title: str = Field(..., min_length=1)
    assigned_to: Optional[str] = None


class SubtaskToggle(BaseModel):
    completed: bool


class SubtaskAssign(BaseModel):
    assigned_to: Optional[str] = None


class SubtaskResponse(BaseModel):
    id: str
    task_id: str
    title: str
    completed: bool = False
    position: Optional[int] = 0
    assigned_to: Optional[str] = None
    assignee: Optional[Dict[str, Any]] = None
    task: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[str] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: str
    task_id: str
    user_id: str
    content: str
    parent_id: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DependencyCreate(BaseModel):
    blocking_task_id: str
    blocked_task_id: str


class DependencyResponse(BaseModel):
    id: str
    blocking_task_id: str
    blocked_task_id: str
    blocking_task: Optional[Dict[str, Any]] = None
    blocked_task: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class BlockingStatus(BaseModel):
    task_id: str
    is_blocked: bool
    blocking_tasks: List[Dict[str, Any]] = []
    blocked_tasks: List[Dict[str, Any]] = []


class RemindersUpdate(BaseModel):
    reminders: List[Reminder]
