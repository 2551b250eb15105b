import logging
import time
from fastapi import HTTPException, UploadFile
from supabase import Client
from app.config import settings
from app.core.realtime import ChangeFeed, change_feed
from app.core.utils import first_row
from app.modules.activity.service import ActivityService
from app.modules.files.schemas import FileResponse
from app.modules.files.storage import get_storage
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def build_file_path(owner_id: str, file_name: str, now_ms: Optional[int] = None) -> str:
    """{owner_id}/{epoch_ms}_{name}; the timestamp keeps repeated uploads apart"""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{owner_id}/{stamp}_{file_name}"


class AttachmentService:
    """Files attached to one kind of owner row (a task or a project)"""

    table: str = ""
    owner_column: str = ""
    bucket: str = ""

    def __init__(self, supabase: Client, storage=None):
        self.supabase = supabase
        self.storage = storage or get_storage(supabase, self.bucket)

    def list_files(self, owner_id: str) -> List[FileResponse]:
        """Newest first, each with a public URL and uploader profile"""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq(self.owner_column, owner_id)\
                .order("created_at", desc=True)\
                .execute()
            return self._responses(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    async def upload_file(self, owner_id: str, file: UploadFile, user_id: str) -> FileResponse:
        file_name = file.filename or "file"
        path = build_file_path(owner_id, file_name)
        content = await file.read()
        content_type = file.content_type or "application/octet-stream"

        try:
            self.storage.upload_file(content, path, content_type)
            logger.info(f"Uploaded {path} to {self.bucket}")
        except Exception as e:
            logger.error(f"Storage upload failed for {path}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload to storage: {str(e)}")

        try:
            result = self.supabase.table(self.table).insert({
                self.owner_column: owner_id,
                "name": file_name,
                "file_path": path,
                "file_size": len(content),
                "mime_type": content_type,
                "uploaded_by": user_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record file")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        row = result.data[0]
        self._after_upload(row, user_id)
        return self._responses([row])[0]

    def delete_file(self, owner_id: str, file_id: str, user_id: str) -> bool:
        """Remove the stored object, then its row"""
        row = self._load(owner_id, file_id)
        if row.get("file_path"):
            try:
                self.storage.delete_file(row["file_path"])
            except Exception as e:
                raise HTTPException(status_code=500, detail=f"Failed to delete from storage: {str(e)}")
        try:
            self.supabase.table(self.table)\
                .delete()\
                .eq("id", file_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        self._after_delete(row, user_id)
        return True

    def _after_upload(self, row: Dict, user_id: str) -> None:
        pass

    def _after_delete(self, row: Dict, user_id: str) -> None:
        pass

    def _load(self, owner_id: str, file_id: str) -> Dict:
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("id", file_id)\
                .eq(self.owner_column, owner_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        row = first_row(result)
        if not row:
            raise HTTPException(status_code=404, detail="File not found")
        return row

    def _responses(self, rows: List[Dict]) -> List[FileResponse]:
        uploader_ids = sorted({r["uploaded_by"] for r in rows if r.get("uploaded_by")})
        uploaders: Dict[str, dict] = {}
        if uploader_ids:
            profiles = self.supabase.table("profiles")\
                .select("id, full_name, avatar_url")\
                .in_("id", uploader_ids)\
                .execute()
            uploaders = {p["id"]: p for p in (profiles.data or [])}
        return [
            FileResponse(**{
                **r,
                "uploader": uploaders.get(r.get("uploaded_by")),
                "url": self.storage.get_public_url(r["file_path"]),
            })
            for r in rows
        ]


class TaskFileService(AttachmentService):
    table = "task_files"
    owner_column = "task_id"
    bucket = settings.task_files_bucket

    def __init__(self, supabase: Client, storage=None, feed: Optional[ChangeFeed] = None):
        super().__init__(supabase, storage)
        self.activity = ActivityService(supabase, feed or change_feed)

    def _task(self, task_id: str) -> Optional[Dict]:
        return first_row(
            self.supabase.table("tasks")
            .select("id, title, project_id")
            .eq("id", task_id)
            .maybe_single()
            .execute()
        )

    def _after_upload(self, row: Dict, user_id: str) -> None:
        task = self._task(row["task_id"])
        if task:
            self.activity.log_activity(user_id, "file_uploaded", {
                "file_name": row["name"],
                "task_title": task["title"],
            }, task["project_id"], task["id"])

    def _after_delete(self, row: Dict, user_id: str) -> None:
        task = self._task(row["task_id"])
        if task:
            self.activity.log_activity(user_id, "file_deleted", {
                "file_name": row.get("name"),
                "task_title": task["title"],
            }, task["project_id"], task["id"])


class ProjectFileService(AttachmentService):
    table = "project_files"
    owner_column = "project_id"
    bucket = settings.project_files_bucket
