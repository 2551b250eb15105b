from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class FileResponse(BaseModel):
    id: str
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    name: str
    file_path: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: Optional[str] = None
    uploader: Optional[Dict[str, Any]] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
