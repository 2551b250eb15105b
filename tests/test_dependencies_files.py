import pytest
from fastapi import HTTPException

from app.modules.files.service import build_file_path
from app.modules.tasks.dependency_service import DependencyService
from app.modules.tasks.schemas import DependencyCreate
from tests.fakes import auth_headers


class TestDependencies:
    def test_task_cannot_depend_on_itself(self, client, make_user, make_project, make_task):
        owner, token = make_user()
        task = make_task(make_project(owner))

        response = client.post("/api/v1/tasks/dependencies", headers=auth_headers(token),
                               json={"blocking_task_id": task["id"], "blocked_task_id": task["id"]})

        assert response.status_code == 400
        assert response.json()["detail"] == "A task cannot depend on itself"

    def test_blocked_until_blocker_completes(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        design = make_task(project, title="Design")
        build = make_task(project, title="Build")

        created = client.post("/api/v1/tasks/dependencies", headers=auth_headers(token),
                              json={"blocking_task_id": design["id"], "blocked_task_id": build["id"]})
        assert created.status_code == 201

        status = client.get(f"/api/v1/tasks/{build['id']}/blocking", headers=auth_headers(token)).json()
        assert status["is_blocked"] is True
        assert [t["title"] for t in status["blocking_tasks"]] == ["Design"]

        supabase.rows("tasks")[0]["status"] = "completed"
        status = client.get(f"/api/v1/tasks/{build['id']}/blocking", headers=auth_headers(token)).json()
        assert status["is_blocked"] is False

    def test_duplicate_dependency(self, supabase, make_user, make_project, make_task):
        owner, _ = make_user()
        project = make_project(owner)
        first, second = make_task(project), make_task(project)
        service = DependencyService(supabase)
        link = DependencyCreate(blocking_task_id=first["id"], blocked_task_id=second["id"])
        service.add_dependency(link)

        with pytest.raises(HTTPException) as exc:
            service.add_dependency(link)
        assert exc.value.status_code == 400

    def test_remove(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user()
        project = make_project(owner)
        first, second = make_task(project), make_task(project)
        dependency = DependencyService(supabase).add_dependency(
            DependencyCreate(blocking_task_id=first["id"], blocked_task_id=second["id"])
        )

        response = client.delete(f"/api/v1/tasks/dependencies/{dependency.id}", headers=auth_headers(token))

        assert response.status_code == 204
        assert supabase.rows("task_dependencies") == []


class TestTaskFiles:
    def test_file_path_layout(self):
        assert build_file_path("task-1", "brief.pdf", now_ms=1700000000000) == "task-1/1700000000000_brief.pdf"

    def test_upload_list_delete(self, client, supabase, make_user, make_project, make_task):
        owner, token = make_user(role="manager", full_name="Uma Uploader")
        task = make_task(make_project(owner), title="Write brief")
        url = f"/api/v1/tasks/{task['id']}/files"

        uploaded = client.post(url, headers=auth_headers(token),
                               files={"file": ("brief.txt", b"hello", "text/plain")})

        assert uploaded.status_code == 201
        body = uploaded.json()
        assert body["name"] == "brief.txt"
        assert body["file_size"] == 5
        assert body["url"].startswith("https://storage.example.com/task-files/")
        assert list(supabase.storage.objects.values()) == [b"hello"]
        activity = supabase.rows("activity_log")[0]
        assert activity["action"] == "file_uploaded"
        assert activity["details"] == {"file_name": "brief.txt", "task_title": "Write brief"}

        listed = client.get(url, headers=auth_headers(token)).json()
        assert [f["uploader"]["full_name"] for f in listed] == ["Uma Uploader"]

        response = client.delete(f"{url}/{body['id']}", headers=auth_headers(token))
        assert response.status_code == 204
        assert supabase.storage.objects == {}
        assert supabase.rows("task_files") == []
        assert supabase.rows("activity_log")[-1]["action"] == "file_deleted"

    def test_unknown_file_is_404(self, client, make_user, make_project, make_task):
        owner, token = make_user(role="manager")
        task = make_task(make_project(owner))
        response = client.delete(f"/api/v1/tasks/{task['id']}/files/missing", headers=auth_headers(token))
        assert response.status_code == 404

    def test_outsider_cannot_list(self, client, make_user, make_project, make_task):
        owner, _ = make_user()
        _, outsider_token = make_user()
        task = make_task(make_project(owner))
        response = client.get(f"/api/v1/tasks/{task['id']}/files", headers=auth_headers(outsider_token))
        assert response.status_code == 403
