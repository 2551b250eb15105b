from pydantic import BaseModel
from typing import List, Dict, Any, Optional


class CountBucket(BaseModel):
    key: str
    label: str
    count: int = 0


class ProjectBreakdown(BaseModel):
    id: str
    name: str
    color: Optional[str] = None
    total: int = 0
    completed: int = 0


class DailyActivity(BaseModel):
    date: str
    day: str
    created: int = 0
    completed: int = 0


class Contributor(BaseModel):
    user: Dict[str, Any]
    completed: int = 0


class AnalyticsSummary(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    tasks_this_week: int = 0
    completion_rate: int = 0
    by_status: List[CountBucket] = []
    by_priority: List[CountBucket] = []
    top_projects: List[ProjectBreakdown] = []
    weekly_activity: List[DailyActivity] = []
    top_contributors: List[Contributor] = []
