"""Admin rights stop at the admin's own workspace."""

from datetime import date

import pytest

from app.modules.tasks.comment_service import CommentService
from app.modules.tasks.schemas import CommentCreate
from tests.fakes import auth_headers


@pytest.fixture
def tenant_a(make_user, make_project, make_task):
    owner, token = make_user(role="super_admin", workspace_id="ws-A", full_name="Ann Owner")
    project = make_project(owner, name="Secret A")
    task = make_task(project, title="Confidential", due_date="2026-03-10T12:00:00+00:00")
    return owner, token, project, task


@pytest.fixture
def intruder(make_user):
    _, token = make_user(role="super_admin", workspace_id="ws-B")
    return token


class TestForeignWorkspaceAdmin:
    def test_project_list_is_own_workspace_only(self, client, tenant_a, intruder, make_user, make_project):
        other_owner, _ = make_user(workspace_id="ws-B")
        make_project(other_owner, name="Team B")

        names = [p["name"] for p in client.get("/api/v1/projects", headers=auth_headers(intruder)).json()]

        assert names == ["Team B"]

    def test_cannot_open_foreign_project_or_task(self, client, tenant_a, intruder):
        _, _, project, task = tenant_a

        assert client.get(f"/api/v1/projects/{project['id']}", headers=auth_headers(intruder)).status_code == 403
        assert client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers(intruder)).status_code == 403
        response = client.delete(f"/api/v1/projects/{project['id']}/members/{tenant_a[0]['id']}",
                                 headers=auth_headers(intruder))
        assert response.status_code == 403

    def test_search_analytics_activity_calendar_are_empty(self, client, supabase, tenant_a, intruder):
        owner, _, project, _ = tenant_a
        supabase.seed("activity_log", {"user_id": owner["id"], "action": "task_created", "project_id": project["id"]})
        headers = auth_headers(intruder)

        assert client.get("/api/v1/search?q=secret", headers=headers).json()["projects"] == []
        assert client.get("/api/v1/search?q=confidential", headers=headers).json()["tasks"] == []
        assert client.get("/api/v1/analytics", headers=headers).json()["total_tasks"] == 0
        assert client.get("/api/v1/activity", headers=headers).json() == []
        calendar = client.get("/api/v1/tasks/calendar",
                              params={"start": date(2026, 3, 1).isoformat(), "end": date(2026, 3, 31).isoformat()},
                              headers=headers)
        assert calendar.json() == []

    def test_fresh_signup_sees_nothing(self, client, tenant_a):
        registered = client.post("/api/v1/auth/register", json={
            "email": "newcomer@example.com", "password": "secret1",
        })
        assert registered.json()["role"] == "super_admin"
        token = client.post("/api/v1/auth/login", json={
            "email": "newcomer@example.com", "password": "secret1",
        }).json()["access_token"]

        assert client.get("/api/v1/projects", headers=auth_headers(token)).json() == []
        assert client.get(f"/api/v1/tasks/{tenant_a[3]['id']}", headers=auth_headers(token)).status_code == 403
        assert client.get("/api/v1/users/search?q=ann", headers=auth_headers(token)).json() == []

    def test_foreign_templates_are_hidden(self, client, tenant_a, intruder):
        _, owner_token, _, _ = tenant_a
        created = client.post("/api/v1/templates", headers=auth_headers(owner_token),
                              json={"name": "Playbook", "is_public": True}).json()

        assert client.get(f"/api/v1/templates/{created['id']}", headers=auth_headers(intruder)).status_code == 404
        assert client.delete(f"/api/v1/templates/{created['id']}", headers=auth_headers(intruder)).status_code == 404

    def test_admin_elsewhere_cannot_delete_comments_as_member(self, client, supabase, feed, tenant_a,
                                                                 make_user, make_project, make_task):
        owner, _, _, _ = tenant_a
        guest, guest_token = make_user(role="admin", workspace_id="ws-B")
        shared = make_project(owner, name="Shared", members=[guest])
        task = make_task(shared)
        comment = CommentService(supabase, feed).add_comment(task["id"], CommentCreate(content="mine"), owner["id"])

        response = client.delete(f"/api/v1/tasks/comments/{comment.id}", headers=auth_headers(guest_token))

        assert response.status_code == 403
        assert len(supabase.rows("comments")) == 1


class TestOwnWorkspaceAdmin:
    def test_sees_every_project_of_the_workspace(self, client, tenant_a, make_user):
        _, token = make_user(role="admin", workspace_id="ws-A")

        names = [p["name"] for p in client.get("/api/v1/projects", headers=auth_headers(token)).json()]
        task = client.get(f"/api/v1/tasks/{tenant_a[3]['id']}", headers=auth_headers(token))

        assert names == ["Secret A"]
        assert task.status_code == 200

    def test_system_admin_sees_all_workspaces(self, client, tenant_a, make_user, make_project):
        other_owner, _ = make_user(workspace_id="ws-B")
        make_project(other_owner, name="Team B")
        _, token = make_user(workspace_id=None, is_system_admin=True)

        names = {p["name"] for p in client.get("/api/v1/projects", headers=auth_headers(token)).json()}

        assert names == {"Secret A", "Team B"}
