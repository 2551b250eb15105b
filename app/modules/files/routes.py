from fastapi import APIRouter, Depends, UploadFile, File
from app.database.supabase_client import get_supabase
from app.modules.files.schemas import FileResponse
from app.modules.files.service import TaskFileService, ProjectFileService
from app.core.dependencies import require_permission, check_project_member, check_task_access
from supabase import Client
from typing import List, Dict

router = APIRouter(tags=["files"])


def get_task_file_service(supabase: Client = Depends(get_supabase)) -> TaskFileService:
    return TaskFileService(supabase)


def get_project_file_service(supabase: Client = Depends(get_supabase)) -> ProjectFileService:
    return ProjectFileService(supabase)


@router.get("/tasks/{task_id}/files", response_model=List[FileResponse])
async def list_task_files(
    task_id: str,
    profile: Dict = Depends(require_permission("files:read")),
    service: TaskFileService = Depends(get_task_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    return service.list_files(task_id)


@router.post("/tasks/{task_id}/files", response_model=FileResponse, status_code=201)
async def upload_task_file(
    task_id: str,
    file: UploadFile = File(...),
    profile: Dict = Depends(require_permission("files:create")),
    service: TaskFileService = Depends(get_task_file_service),
    supabase: Client = Depends(get_supabase)
):
    """Attach a file to a task"""
    check_task_access(task_id, profile, supabase)
    return await service.upload_file(task_id, file, profile["id"])


@router.delete("/tasks/{task_id}/files/{file_id}", status_code=204)
async def delete_task_file(
    task_id: str,
    file_id: str,
    profile: Dict = Depends(require_permission("files:delete")),
    service: TaskFileService = Depends(get_task_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_task_access(task_id, profile, supabase)
    service.delete_file(task_id, file_id, profile["id"])
    return None


@router.get("/projects/{project_id}/files", response_model=List[FileResponse])
async def list_project_files(
    project_id: str,
    profile: Dict = Depends(require_permission("files:read")),
    service: ProjectFileService = Depends(get_project_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return service.list_files(project_id)


@router.post("/projects/{project_id}/files", response_model=FileResponse, status_code=201)
async def upload_project_file(
    project_id: str,
    file: UploadFile = File(...),
    profile: Dict = Depends(require_permission("files:create")),
    service: ProjectFileService = Depends(get_project_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    return await service.upload_file(project_id, file, profile["id"])


@router.delete("/projects/{project_id}/files/{file_id}", status_code=204)
async def delete_project_file(
    project_id: str,
    file_id: str,
    profile: Dict = Depends(require_permission("files:delete")),
    service: ProjectFileService = Depends(get_project_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_project_member(project_id, profile, supabase)
    service.delete_file(project_id, file_id, profile["id"])
    return None
