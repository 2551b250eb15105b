from app.core.realtime import change_feed
from app.modules.activity.service import ActivityService
from tests.fakes import auth_headers


class TestProjects:
    def test_create_makes_owner_project_admin(self, client, supabase, make_user):
        manager, token = make_user(role="manager")

        response = client.post("/api/v1/projects", headers=auth_headers(token),
                               json={"name": "  Mobile app ", "description": None})

        assert response.status_code == 201
        project = response.json()
        assert project["name"] == "Mobile app"
        membership = supabase.rows("project_members")[0]
        assert (membership["user_id"], membership["role"]) == (manager["id"], "admin")

    def test_members_only_list_their_projects(self, client, make_user, make_project):
        member, token = make_user()
        other, _ = make_user()
        make_project(other, name="Joined", members=[member])
        make_project(other, name="Not joined")

        names = [p["name"] for p in client.get("/api/v1/projects", headers=auth_headers(token)).json()]

        assert names == ["Joined"]

    def test_admin_lists_all_newest_first(self, client, make_user, make_project):
        _, token = make_user(role="admin")
        other, _ = make_user()
        make_project(other, name="First")
        make_project(other, name="Second")

        names = [p["name"] for p in client.get("/api/v1/projects", headers=auth_headers(token)).json()]

        assert names == ["Second", "First"]

    def test_add_member_notifies_and_publishes(self, client, supabase, make_user, make_project):
        owner, token = make_user(role="manager")
        newcomer, _ = make_user()
        project = make_project(owner)
        events = []
        change_feed.subscribe("project_members", events.append, "project_id", project["id"])

        response = client.post(f"/api/v1/projects/{project['id']}/members", headers=auth_headers(token),
                               json={"user_id": newcomer["id"]})

        assert response.status_code == 201
        assert response.json()["user"]["id"] == newcomer["id"]
        note = supabase.rows("notifications")[0]
        assert (note["user_id"], note["type"]) == (newcomer["id"], "project_invite")
        assert [e.event_type for e in events] == ["INSERT"]

    def test_duplicate_member_and_bad_role(self, client, make_user, make_project):
        owner, token = make_user(role="manager")
        member, _ = make_user()
        project = make_project(owner, members=[member])
        url = f"/api/v1/projects/{project['id']}/members"

        assert client.post(url, headers=auth_headers(token), json={"user_id": member["id"]}).status_code == 400
        response = client.put(f"{url}/{member['id']}", headers=auth_headers(token), json={"role": "owner"})
        assert response.status_code == 400

    def test_plain_member_cannot_manage_members(self, client, make_user, make_project):
        owner, _ = make_user(role="manager")
        member, token = make_user()
        project = make_project(owner, members=[member])

        response = client.delete(f"/api/v1/projects/{project['id']}/members/{owner['id']}",
                                 headers=auth_headers(token))

        assert response.status_code == 403


class TestActivity:
    def test_project_activity_is_newest_first_with_user(self, client, supabase, make_user, make_project):
        owner, token = make_user(full_name="Ann")
        project = make_project(owner)
        activity = ActivityService(supabase)
        activity.log_activity(owner["id"], "task_created", {"task_title": "a"}, project["id"])
        activity.log_activity(owner["id"], "task_deleted", {"task_title": "a"}, project["id"])

        body = client.get(f"/api/v1/activity/projects/{project['id']}", headers=auth_headers(token)).json()

        assert [a["action"] for a in body] == ["task_deleted", "task_created"]
        assert body[0]["user"]["full_name"] == "Ann"

    def test_activity_failure_is_swallowed(self, supabase):
        supabase.fail_tables["activity_log"] = "insert"
        assert ActivityService(supabase).log_activity("u1", "task_created") is None


class TestSystemAdmin:
    def test_requires_system_admin(self, client, make_user):
        _, token = make_user(role="super_admin")
        assert client.get("/api/v1/admin/stats", headers=auth_headers(token)).status_code == 403

    def test_stats_count_rows(self, client, supabase, make_user, make_project, make_task):
        admin, token = make_user(is_system_admin=True)
        supabase.seed("workspaces", {"id": "ws-1", "name": "Acme", "owner_id": admin["id"]})
        make_task(make_project(admin))

        stats = client.get("/api/v1/admin/stats", headers=auth_headers(token)).json()

        assert stats == {"total_workspaces": 1, "total_users": 1, "total_projects": 1, "total_tasks": 1}

    def test_promote_writes_platform_audit_entry(self, client, supabase, make_user):
        admin, token = make_user(is_system_admin=True)
        target, _ = make_user(full_name="Tess Target")

        response = client.post(f"/api/v1/admin/system-admins/{target['id']}", headers=auth_headers(token))

        assert response.status_code == 200
        assert response.json()["is_system_admin"] is True
        entry = supabase.rows("workspace_audit_log")[0]
        assert entry["action"] == "SYSTEM_ADMIN_PROMOTED"
        assert entry["workspace_name"] == "PLATFORM"
        assert entry["details"]["promoted_user_name"] == "Tess Target"

    def test_cannot_demote_self(self, client, make_user):
        admin, token = make_user(is_system_admin=True)
        response = client.delete(f"/api/v1/admin/system-admins/{admin['id']}", headers=auth_headers(token))
        assert response.status_code == 400

    def test_search_skips_existing_admins(self, client, make_user):
        _, token = make_user(is_system_admin=True, full_name="Sam Admin")
        make_user(full_name="Sam Member")

        names = [u["full_name"] for u in client.get("/api/v1/admin/users/search?q=sam",
                                                    headers=auth_headers(token)).json()]

        assert names == ["Sam Member"]

    def test_delete_workspace_is_audited(self, client, supabase, make_user):
        _, token = make_user(is_system_admin=True)
        supabase.seed("workspaces", {"id": "ws-9", "name": "Gone", "owner_id": "someone"})

        response = client.delete("/api/v1/admin/workspaces/ws-9", headers=auth_headers(token))

        assert response.status_code == 204
        assert supabase.rows("workspaces") == []
        entry = supabase.rows("workspace_audit_log")[0]
        assert (entry["action"], entry["workspace_name"]) == ("WORKSPACE_DELETED", "Gone")

    def test_export_totals(self, client, supabase, make_user, make_project, make_task):
        admin, token = make_user(is_system_admin=True)
        supabase.seed("workspaces", {"id": "ws-1", "name": "Acme", "owner_id": admin["id"]})
        project = make_project(admin)
        make_task(project)
        make_task(project)

        body = client.get("/api/v1/admin/workspaces/ws-1/export", headers=auth_headers(token)).json()

        assert body["summary"]["total_members"] == 1
        assert body["summary"]["total_projects"] == 1
        assert body["summary"]["total_tasks"] == 2
        assert body["workspace"]["projects"][0]["task_count"] == 2
