from pydantic import BaseModel
from typing import List, Dict, Any


class SearchResults(BaseModel):
    query: str = ""
    projects: List[Dict[str, Any]] = []
    tasks: List[Dict[str, Any]] = []
    files: List[Dict[str, Any]] = []
