from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.task_templates.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse, TaskFromTemplate, SaveTaskAsTemplate
)
from app.modules.task_templates.service import TemplateService
from app.modules.tasks.schemas import TaskResponse
from app.core.dependencies import require_permission, check_project_member, check_task_access, is_workspace_admin_of
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/templates", tags=["templates"])


def get_template_service(supabase: Client = Depends(get_supabase)) -> TemplateService:
    return TemplateService(supabase)


def _visible_template(service: TemplateService, template_id: str, profile: Dict) -> TemplateResponse:
    """Own templates, public ones of the caller's workspace, or any in a workspace the caller administers"""
    template = service.get_template(template_id)
    if template.created_by == profile["id"] or is_workspace_admin_of(profile, template.workspace_id):
        return template
    if template.is_public and template.workspace_id and template.workspace_id == profile.get("workspace_id"):
        return template
    raise HTTPException(status_code=404, detail="Template not found")


def _ensure_can_modify(service: TemplateService, template_id: str, profile: Dict) -> None:
    template = _visible_template(service, template_id, profile)
    service.ensure_can_modify(template_id, profile["id"], is_workspace_admin_of(profile, template.workspace_id))


@router.get("", response_model=List[TemplateResponse])
async def list_my_templates(
    profile: Dict = Depends(require_permission("templates:read")),
    service: TemplateService = Depends(get_template_service)
):
    """Templates created by the caller, most recently updated first"""
    return service.list_my_templates(profile["id"])


@router.get("/public", response_model=List[TemplateResponse])
async def list_public_templates(
    profile: Dict = Depends(require_permission("templates:read")),
    service: TemplateService = Depends(get_template_service)
):
    return service.list_public_templates(profile.get("workspace_id"))


@router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    template_data: TemplateCreate,
    profile: Dict = Depends(require_permission("templates:create")),
    service: TemplateService = Depends(get_template_service)
):
    return service.create_template(template_data, profile["id"], profile.get("workspace_id"))


@router.post("/from-task/{task_id}", response_model=TemplateResponse, status_code=201)
async def save_task_as_template(
    task_id: str,
    request: SaveTaskAsTemplate,
    profile: Dict = Depends(require_permission("templates:create")),
    service: TemplateService = Depends(get_template_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.save_task_as_template(task_id, request.name, request.is_public,
                                         profile["id"], profile.get("workspace_id"))


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    profile: Dict = Depends(require_permission("templates:read")),
    service: TemplateService = Depends(get_template_service)
):
    return _visible_template(service, template_id, profile)


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    template_data: TemplateUpdate,
    profile: Dict = Depends(require_permission("templates:create")),
    service: TemplateService = Depends(get_template_service)
):
    _ensure_can_modify(service, template_id, profile)
    return service.update_template(template_id, template_data)


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    profile: Dict = Depends(require_permission("templates:create")),
    service: TemplateService = Depends(get_template_service)
):
    """Creator or workspace admin only"""
    _ensure_can_modify(service, template_id, profile)
    service.delete_template(template_id)
    return None


@router.post("/{template_id}/tasks", response_model=TaskResponse, status_code=201)
async def create_task_from_template(
    template_id: str,
    request: TaskFromTemplate,
    profile: Dict = Depends(require_permission("tasks:create")),
    service: TemplateService = Depends(get_template_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(request.project_id, profile, supabase)
    _visible_template(service, template_id, profile)
    return service.create_task_from_template(template_id, request, profile["id"])
