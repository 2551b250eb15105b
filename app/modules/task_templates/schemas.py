from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from app.modules.tasks.schemas import TASK_PRIORITIES, TASK_STATUSES


class TemplateSubtask(BaseModel):
    title: str
    estimated_hours: Optional[float] = None


class TemplateBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    title_template: Optional[str] = None
    description_template: Optional[str] = None
    priority: str = "medium"
    status: str = "not_started"
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    subtasks: List[TemplateSubtask] = []
    labels: List[str] = []
    assignee_ids: List[str] = []
    is_public: bool = False
    project_id: Optional[str] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v not in TASK_PRIORITIES:
            raise ValueError(f"priority must be one of: {', '.join(TASK_PRIORITIES)}")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in TASK_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(TASK_STATUSES)}")
        return v


class TemplateCreate(TemplateBase):
    pass


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    title_template: Optional[str] = None
    description_template: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    subtasks: Optional[List[TemplateSubtask]] = None
    labels: Optional[List[str]] = None
    assignee_ids: Optional[List[str]] = None
    is_public: Optional[bool] = None


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    title_template: Optional[str] = None
    description_template: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    subtasks: List[Dict[str, Any]] = []
    labels: List[str] = []
    assignee_ids: List[str] = []
    is_public: bool = False
    project_id: Optional[str] = None
    workspace_id: Optional[str] = None
    created_by: Optional[str] = None
    creator: Optional[Dict[str, Any]] = None
    use_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskFromTemplate(BaseModel):
    """Target project plus values that win over the template's own"""
    project_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    assignee_ids: Optional[List[str]] = None


class SaveTaskAsTemplate(BaseModel):
    name: str = Field(..., min_length=1)
    is_public: bool = False
