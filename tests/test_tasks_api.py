"""Task endpoints through the FastAPI app with an in-memory Supabase."""

import pytest

from tests.fakes import auth_headers


class TestCreateTask:
    def test_appends_to_bottom_of_column_and_notifies_assignees(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user(full_name="Olivia Owner")
        teammate, _ = make_user()
        project = make_project(owner, members=[teammate])
        make_task(project, title="A", position=0)
        make_task(project, title="B", position=1)

        response = client.post("/api/v1/tasks", headers=auth_headers(token), json={
            "project_id": project["id"],
            "title": "C",
            "assignee_ids": [teammate["id"], owner["id"], teammate["id"]],
        })

        assert response.status_code == 201
        body = response.json()
        assert body["position"] == 2
        assert body["status"] == "not_started"
        assert {a["id"] for a in body["assignees"]} == {teammate["id"], owner["id"]}

        notes = supabase.rows("notifications")
        assert [n["user_id"] for n in notes] == [teammate["id"]]
        assert notes[0]["message"] == "Olivia Owner assigned you to: C"
        assert supabase.rows("activity_log")[-1]["action"] == "task_created"

    def test_rejects_unknown_status(self, client, make_user, make_project):
        owner, token = make_user()
        project = make_project(owner)

        response = client.post("/api/v1/tasks", headers=auth_headers(token), json={
            "project_id": project["id"], "title": "X", "status": "done",
        })

        assert response.status_code == 422

    def test_outsider_cannot_create(self, client, make_user, make_project):
        owner, _ = make_user()
        _, outsider_token = make_user()
        project = make_project(owner)

        response = client.post("/api/v1/tasks", headers=auth_headers(outsider_token), json={
            "project_id": project["id"], "title": "X",
        })

        assert response.status_code == 403

    def test_requires_authentication(self, client):
        response = client.get("/api/v1/tasks/mine")
        assert response.status_code in (401, 403)


class TestUpdateTask:
    @pytest.mark.parametrize("field", ["title", "status", "priority", "position"])
    def test_null_for_required_column_is_rejected(self, client, supabase, make_user, make_project, make_task, field):
        owner, token = make_user()
        task = make_task(make_project(owner), title="Keep me", status="review")

        response = client.put(f"/api/v1/tasks/{task['id']}", headers=auth_headers(token), json={field: None})

        assert response.status_code == 422
        assert ("tasks", "update") not in supabase.calls
        assert (supabase.rows("tasks")[0]["title"], supabase.rows("tasks")[0]["status"]) == ("Keep me", "review")

    def test_nullable_fields_can_be_cleared(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        task = make_task(make_project(owner), description="old", due_date="2026-02-01T00:00:00+00:00")

        response = client.put(f"/api/v1/tasks/{task['id']}", headers=auth_headers(token),
                              json={"description": None, "due_date": None})

        assert response.status_code == 200
        assert response.json()["status"] == "not_started"
        row = supabase.rows("tasks")[0]
        assert (row["description"], row["due_date"]) == (None, None)


class TestBoard:
    def test_groups_tasks_into_every_column(self, client, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        make_task(project, title="second", status="in_progress", position=1)
        make_task(project, title="first", status="in_progress", position=0)

        response = client.get(f"/api/v1/tasks/board/{project['id']}", headers=auth_headers(token))

        assert response.status_code == 200
        columns = response.json()["columns"]
        assert set(columns) == {"not_started", "in_progress", "review", "completed"}
        assert [t["title"] for t in columns["in_progress"]] == ["first", "second"]
        assert columns["review"] == []

    def test_move_onto_another_card_takes_its_index(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        watcher, _ = make_user()
        project = make_project(owner, members=[watcher])
        dragged = make_task(project, title="dragged", status="not_started", position=0)
        make_task(project, title="r0", status="review", position=0)
        target = make_task(project, title="r1", status="review", position=1)
        supabase.seed("task_assignees", {"task_id": dragged["id"], "user_id": watcher["id"]})

        response = client.post(f"/api/v1/tasks/{dragged['id']}/move", headers=auth_headers(token),
                               json={"over_id": target["id"]})

        assert response.status_code == 200
        assert response.json()["status"] == "review"
        assert response.json()["position"] == 1
        note = supabase.rows("notifications")[-1]
        assert note["user_id"] == watcher["id"]
        assert note["type"] == "task_updated"
        assert note["message"].endswith("to review")
        actions = [a["action"] for a in supabase.rows("activity_log")]
        assert actions[-1] == "status_changed"

    def test_move_into_completed_logs_completion(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        task = make_task(project, status="review")

        response = client.post(f"/api/v1/tasks/{task['id']}/move", headers=auth_headers(token),
                               json={"over_id": "completed"})

        assert response.status_code == 200
        assert response.json()["position"] == 0
        actions = [a["action"] for a in supabase.rows("activity_log")]
        assert actions[-2:] == ["status_changed", "task_completed"]

    def test_invalid_drop_writes_nothing(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        task = make_task(project, status="review", position=3)

        for over_id in (None, "nowhere"):
            response = client.post(f"/api/v1/tasks/{task['id']}/move", headers=auth_headers(token),
                                   json={"over_id": over_id})
            assert response.status_code == 400

        stored = supabase.rows("tasks")[0]
        assert (stored["status"], stored["position"]) == ("review", 3)
        assert ("tasks", "update") not in supabase.calls

    def test_reorder_rewrites_positions(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        a = make_task(project, title="a", status="in_progress", position=0)
        b = make_task(project, title="b", status="in_progress", position=1)
        c = make_task(project, title="c", status="not_started", position=0)

        response = client.post(f"/api/v1/tasks/board/{project['id']}/reorder", headers=auth_headers(token),
                               json={"status": "in_progress", "ordered_ids": [c["id"], b["id"], a["id"]]})

        assert response.status_code == 200
        positions = {t["title"]: (t["status"], t["position"]) for t in supabase.rows("tasks")}
        assert positions == {"c": ("in_progress", 0), "b": ("in_progress", 1), "a": ("in_progress", 2)}


class TestTaskPermissions:
    def test_member_cannot_delete(self, client, supabase, make_user, make_project, make_task):
        owner, _ = make_user(role="manager")
        member, member_token = make_user(role="member")
        project = make_project(owner, members=[member])
        task = make_task(project)

        response = client.delete(f"/api/v1/tasks/{task['id']}", headers=auth_headers(member_token))

        assert response.status_code == 403
        assert len(supabase.rows("tasks")) == 1

    def test_manager_deletes_and_activity_is_logged(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user(role="manager")
        project = make_project(owner)
        task = make_task(project, title="Obsolete")

        response = client.delete(f"/api/v1/tasks/{task['id']}", headers=auth_headers(token))

        assert response.status_code == 204
        assert supabase.rows("tasks") == []
        entry = supabase.rows("activity_log")[-1]
        assert entry["action"] == "task_deleted"
        assert entry["details"] == {"task_title": "Obsolete"}

    def test_unknown_task_is_404(self, client, make_user):
        _, token = make_user()
        response = client.get("/api/v1/tasks/missing", headers=auth_headers(token))
        assert response.status_code == 404


class TestMyTasks:
    def test_filters_overdue(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        late = make_task(project, title="late", due_date="2020-01-01T00:00:00+00:00")
        done = make_task(project, title="done", status="completed", due_date="2020-01-01T00:00:00+00:00")
        later = make_task(project, title="later", due_date="2999-01-01T00:00:00+00:00")
        for task in (late, done, later):
            supabase.seed("task_assignees", {"task_id": task["id"], "user_id": owner["id"]})

        response = client.get("/api/v1/tasks/mine?overdue=true", headers=auth_headers(token))

        assert response.status_code == 200
        assert [t["title"] for t in response.json()] == ["late"]
        assert response.json()[0]["project"]["name"] == project["name"]
