import logging
import re
from supabase import Client
from app.core.realtime import ChangeFeed, change_feed
from app.core.utils import utc_now, first_row
from app.modules.activity.service import ActivityService
from app.modules.notifications.schemas import NotificationCreate
from app.modules.notifications.service import NotificationService, get_actor_name
from app.modules.tasks.schemas import CommentCreate, CommentResponse
from typing import Dict, Iterable, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

# "@alice" or "@alice smith"
MENTION_PATTERN = re.compile(r"@(\w+(?:\s+\w+)?)")


def extract_mentions(content: str) -> List[str]:
    """Lower-cased mention tokens in order of appearance"""
    return [m.lower() for m in MENTION_PATTERN.findall(content or "")]


def match_mentioned_profiles(mentions: Iterable[str], profiles: Iterable[Dict]) -> List[Dict]:
    """Profiles whose full name contains any mention token, case-insensitively"""
    names = list(mentions)
    if not names:
        return []
    matched = []
    for profile in profiles:
        full_name = (profile.get("full_name") or "").lower()
        if full_name and any(name in full_name for name in names):
            matched.append(profile)
    return matched


class CommentService:
    def __init__(self, supabase: Client, feed: Optional[ChangeFeed] = None):
        self.supabase = supabase
        self.feed = feed or change_feed
        self.notifications = NotificationService(supabase, self.feed)
        self.activity = ActivityService(supabase, self.feed)

    def list_comments(self, task_id: str) -> List[CommentResponse]:
        try:
            result = self.supabase.table("comments")\
                .select("*")\
                .eq("task_id", task_id)\
                .order("created_at")\
                .execute()
            rows = result.data or []
            users = self._profiles([c["user_id"] for c in rows])
            return [CommentResponse(**{**c, "user": users.get(c["user_id"])}) for c in rows]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_comment(self, task_id: str, comment_data: CommentCreate, author_id: str) -> CommentResponse:
        """Post a comment, then notify the first assignee and anyone @mentioned"""
        task = first_row(
            self.supabase.table("tasks")
            .select("id, title, project_id")
            .eq("id", task_id)
            .maybe_single()
            .execute()
        )
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")

        try:
            result = self.supabase.table("comments").insert({
                "task_id": task_id,
                "user_id": author_id,
                "content": comment_data.content,
                "parent_id": comment_data.parent_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add comment")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        comment = result.data[0]
        self.feed.publish("comments", "INSERT", new=comment)

        author_name = get_actor_name(self.supabase, author_id)
        batch: List[NotificationCreate] = []

        assignee_id = self._first_assignee(task_id)
        if assignee_id and assignee_id != author_id:
            batch.append(NotificationCreate(
                user_id=assignee_id,
                type="task_comment",
                title="New Comment",
                message=f"{author_name} commented on \"{task['title']}\"",
                task_id=task_id,
                project_id=task["project_id"],
                actor_id=author_id,
            ))

        mentions = extract_mentions(comment_data.content)
        if mentions:
            try:
                profiles = self.supabase.table("profiles").select("id, full_name").execute().data or []
            except Exception as e:
                logger.error(f"Could not load profiles for mentions: {e}")
                profiles = []
            for profile in match_mentioned_profiles(mentions, profiles):
                if profile["id"] == author_id:
                    continue
                batch.append(NotificationCreate(
                    user_id=profile["id"],
                    type="mention",
                    title="You were mentioned",
                    message=f"{author_name} mentioned you in \"{task['title']}\"",
                    task_id=task_id,
                    project_id=task["project_id"],
                    actor_id=author_id,
                ))

        self.notifications.notify_many(batch)
        self.activity.log_activity(author_id, "comment_added", {"task_title": task["title"]},
                                   task["project_id"], task_id)

        user = self._profiles([author_id]).get(author_id)
        return CommentResponse(**{**comment, "user": user})

    def edit_comment(self, comment_id: str, content: str, user_id: str) -> CommentResponse:
        self._own_comment(comment_id, user_id)
        try:
            result = self.supabase.table("comments")\
                .update({"content": content, "updated_at": utc_now().isoformat()})\
                .eq("id", comment_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Comment not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        comment = result.data[0]
        self.feed.publish("comments", "UPDATE", new=comment)
        return CommentResponse(**{**comment, "user": self._profiles([user_id]).get(user_id)})

    def delete_comment(self, comment_id: str, user_id: str, is_admin: bool = False) -> bool:
        comment = self._own_comment(comment_id, user_id, allow_other=is_admin)
        try:
            self.supabase.table("comments")\
                .delete()\
                .eq("id", comment_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        self.feed.publish("comments", "DELETE", old=comment)
        return True

    def get_comment_task_id(self, comment_id: str) -> str:
        return self._load(comment_id)["task_id"]

    def _load(self, comment_id: str) -> Dict:
        row = first_row(
            self.supabase.table("comments")
            .select("*")
            .eq("id", comment_id)
            .maybe_single()
            .execute()
        )
        if not row:
            raise HTTPException(status_code=404, detail="Comment not found")
        return row

    def _own_comment(self, comment_id: str, user_id: str, allow_other: bool = False) -> Dict:
        comment = self._load(comment_id)
        if comment["user_id"] != user_id and not allow_other:
            raise HTTPException(status_code=403, detail="You can only change your own comments")
        return comment

    def _first_assignee(self, task_id: str) -> Optional[str]:
        result = self.supabase.table("task_assignees")\
            .select("user_id")\
            .eq("task_id", task_id)\
            .limit(1)\
            .execute()
        return result.data[0]["user_id"] if result.data else None

    def _profiles(self, ids: List[str]) -> Dict[str, dict]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        result = self.supabase.table("profiles")\
            .select("id, full_name, avatar_url")\
            .in_("id", wanted)\
            .execute()
        return {p["id"]: p for p in (result.data or [])}
