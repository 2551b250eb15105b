import logging
from supabase import Client
from app.modules.search.schemas import SearchResults
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
PROJECT_LIMIT = 5
TASK_LIMIT = 10
FILE_LIMIT = 5


class SearchService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def search(self, query: str, project_ids: Optional[List[str]]) -> SearchResults:
        """
        Name/title substring search over projects, tasks and project files.

        project_ids=None searches everything (system admins); otherwise results are
        limited to those projects, and an empty list yields no results.
        """
        term = (query or "").strip()
        if len(term) < MIN_QUERY_LENGTH:
            return SearchResults(query=query or "")
        if project_ids is not None and not project_ids:
            return SearchResults(query=term)

        pattern = f"%{term}%"
        try:
            projects = self._query("projects", "id, name, description, color, created_at",
                                   "name", pattern, "id", project_ids, PROJECT_LIMIT)
            tasks = self._query("tasks", "id, title, status, priority, project_id",
                                "title", pattern, "project_id", project_ids, TASK_LIMIT)
            files = self._query("project_files", "id, name, mime_type, project_id",
                                "name", pattern, "project_id", project_ids, FILE_LIMIT)
        except Exception as e:
            logger.error(f"Search failed for '{term}': {e}")
            raise HTTPException(status_code=500, detail=str(e))

        names = self._project_names([r["project_id"] for r in tasks + files])
        for row in tasks + files:
            row["project"] = names.get(row["project_id"])
        return SearchResults(query=term, projects=projects, tasks=tasks, files=files)

    def _query(self, table: str, fields: str, column: str, pattern: str,
               scope_column: str, project_ids: Optional[List[str]], limit: int) -> List[Dict]:
        builder = self.supabase.table(table).select(fields).ilike(column, pattern)
        if project_ids is not None:
            builder = builder.in_(scope_column, project_ids)
        return builder.limit(limit).execute().data or []

    def _project_names(self, ids: List[str]) -> Dict[str, dict]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        result = self.supabase.table("projects")\
            .select("id, name, color")\
            .in_("id", wanted)\
            .execute()
        return {p["id"]: p for p in (result.data or [])}
