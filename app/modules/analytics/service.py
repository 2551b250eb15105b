import logging
from collections import Counter
from datetime import datetime, timedelta
from supabase import Client
from app.core.utils import parse_timestamp, utc_now
from app.modules.analytics.schemas import (
    AnalyticsSummary, CountBucket, ProjectBreakdown, DailyActivity, Contributor
)
from app.modules.tasks.schemas import TASK_STATUSES, TASK_PRIORITIES
from app.modules.tasks.service import status_label
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

TOP_PROJECTS = 5
TOP_CONTRIBUTORS = 5
ACTIVITY_DAYS = 7


def completion_rate(total: int, completed: int) -> int:
    """Rounded percentage, 0 for an empty set"""
    if total <= 0:
        return 0
    return int(round(completed * 100 / total))


def week_bounds(now: datetime):
    """Monday 00:00 through the following Monday 00:00 (exclusive), UTC"""
    start = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=7)


def summarize_tasks(
    tasks: List[Dict],
    projects: Dict[str, Dict],
    profiles: Optional[Dict[str, Dict]] = None,
    now: Optional[datetime] = None
) -> AnalyticsSummary:
    now = now or utc_now()
    profiles = profiles or {}
    total = len(tasks)
    completed = [t for t in tasks if t.get("status") == "completed"]

    week_start, week_end = week_bounds(now)
    this_week = 0
    for t in tasks:
        created = parse_timestamp(t.get("created_at"))
        if created and week_start <= created < week_end:
            this_week += 1

    status_counts = Counter(t.get("status") for t in tasks)
    priority_counts = Counter(t.get("priority") for t in tasks)

    per_project: Dict[str, ProjectBreakdown] = {}
    for t in tasks:
        project = projects.get(t.get("project_id"))
        if not project:
            continue
        entry = per_project.setdefault(project["id"], ProjectBreakdown(
            id=project["id"], name=project.get("name") or "", color=project.get("color")
        ))
        entry.total += 1
        if t.get("status") == "completed":
            entry.completed += 1
    top_projects = sorted(per_project.values(), key=lambda p: p.total, reverse=True)[:TOP_PROJECTS]

    today = now.date()
    activity = []
    for offset in range(ACTIVITY_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        created_count = sum(
            1 for t in tasks
            if t.get("created_at") and parse_timestamp(t["created_at"]).date() == day
        )
        completed_count = sum(
            1 for t in completed
            if t.get("updated_at") and parse_timestamp(t["updated_at"]).date() == day
        )
        activity.append(DailyActivity(
            date=day.isoformat(), day=day.strftime("%a"),
            created=created_count, completed=completed_count
        ))

    contributor_counts = Counter(t["assignee_id"] for t in completed if t.get("assignee_id"))
    contributors = [
        Contributor(user=profiles.get(user_id) or {"id": user_id}, completed=count)
        for user_id, count in contributor_counts.most_common(TOP_CONTRIBUTORS)
    ]

    return AnalyticsSummary(
        total_tasks=total,
        completed_tasks=len(completed),
        tasks_this_week=this_week,
        completion_rate=completion_rate(total, len(completed)),
        by_status=[CountBucket(key=s, label=status_label(s).title(), count=status_counts.get(s, 0))
                   for s in TASK_STATUSES],
        by_priority=[CountBucket(key=p, label=p.title(), count=priority_counts.get(p, 0))
                     for p in TASK_PRIORITIES],
        top_projects=top_projects,
        weekly_activity=activity,
        top_contributors=contributors,
    )


class AnalyticsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_summary(self, project_ids: Optional[List[str]] = None) -> AnalyticsSummary:
        """Task analytics across all projects, or only project_ids when given"""
        if project_ids is not None and not project_ids:
            return summarize_tasks([], {})
        try:
            query = self.supabase.table("tasks")\
                .select("id, project_id, status, priority, assignee_id, created_at, updated_at")
            if project_ids is not None:
                query = query.in_("project_id", project_ids)
            tasks = query.execute().data or []

            wanted = sorted({t["project_id"] for t in tasks if t.get("project_id")})
            projects = {}
            if wanted:
                rows = self.supabase.table("projects")\
                    .select("id, name, color")\
                    .in_("id", wanted)\
                    .execute()
                projects = {p["id"]: p for p in (rows.data or [])}

            assignees = sorted({t["assignee_id"] for t in tasks if t.get("assignee_id")})
            profiles = {}
            if assignees:
                rows = self.supabase.table("profiles")\
                    .select("id, full_name, avatar_url")\
                    .in_("id", assignees)\
                    .execute()
                profiles = {p["id"]: p for p in (rows.data or [])}
        except Exception as e:
            logger.error(f"Failed to load analytics: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return summarize_tasks(tasks, projects, profiles)
