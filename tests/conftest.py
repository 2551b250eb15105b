"""Shared fixtures: an in-memory Supabase, a private change feed and an API client."""

import pytest
from fastapi.testclient import TestClient

from app.core.realtime import ChangeFeed, change_feed
from app.database.supabase_client import SupabaseClient, get_service_supabase, get_supabase
from app.modules.auth.service import clear_auth_cache
from tests.fakes import FakeSupabase


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture(autouse=True)
def reset_global_state():
    """Auth lookups, cached clients and change feed subscriptions must not leak between tests."""
    clear_auth_cache()
    change_feed.clear()
    yield
    clear_auth_cache()
    change_feed.clear()
    SupabaseClient.reset_client()


@pytest.fixture
def make_user(supabase):
    """Create an auth user plus profile; returns (profile, bearer token)."""
    counter = {"n": 0}

    def _make(role="member", workspace_id="ws-1", full_name=None, **extra):
        counter["n"] += 1
        n = counter["n"]
        email = extra.pop("email", f"user{n}@example.com")
        token = f"token-{n}"
        user = supabase.auth.add_user(email, token=token)
        profile = supabase.seed("profiles", {
            "id": user.id,
            "email": email,
            "full_name": full_name or f"User {n}",
            "role": role,
            "workspace_id": workspace_id,
            "is_system_admin": extra.pop("is_system_admin", False),
            "email_notifications_enabled": True,
            **extra,
        })[0]
        return profile, token

    return _make


@pytest.fixture
def make_project(supabase):
    def _make(owner, name="Website", members=()):
        project = supabase.seed("projects", {
            "name": name,
            "description": None,
            "color": "#3b82f6",
            "owner_id": owner["id"],
            "workspace_id": owner.get("workspace_id"),
        })[0]
        supabase.seed("project_members", {"project_id": project["id"], "user_id": owner["id"], "role": "admin"})
        for member in members:
            supabase.seed("project_members", {"project_id": project["id"], "user_id": member["id"], "role": "member"})
        return project

    return _make


@pytest.fixture
def make_task(supabase):
    def _make(project, title="Task", status="not_started", position=0, **extra):
        return supabase.seed("tasks", {
            "project_id": project["id"],
            "title": title,
            "status": status,
            "priority": extra.pop("priority", "medium"),
            "position": position,
            **extra,
        })[0]

    return _make


@pytest.fixture
def client(supabase):
    from app.main import app

    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_service_supabase] = lambda: supabase
    # No context manager: startup hooks (email dispatch, reminder loop) stay off
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
