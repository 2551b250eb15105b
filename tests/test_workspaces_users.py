from datetime import timedelta

import pytest

from app.config import settings
from app.core.utils import utc_now
from tests.fakes import auth_headers


@pytest.fixture
def service_key(monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_role_key", "service-key")


class TestInviteLinks:
    def test_generate_and_resolve(self, client, supabase, make_user):
        supabase.seed("workspaces", {"id": "ws-1", "name": "Acme", "owner_id": "owner"})
        _, token = make_user(role="admin")

        created = client.post("/api/v1/workspaces/me/invite-links", headers=auth_headers(token),
                              json={"role": "manager", "max_uses": 2})
        assert created.status_code == 201
        link = created.json()
        assert link["invite_url"].endswith(f"/signup?invite={link['code']}")

        info = client.get(f"/api/v1/workspaces/invites/{link['code']}").json()
        assert info == {
            "code": link["code"], "link_id": link["id"], "workspace_id": "ws-1",
            "workspace_name": "Acme", "role": "manager",
        }

    def test_members_cannot_generate_links(self, client, make_user):
        _, token = make_user(role="member")
        response = client.post("/api/v1/workspaces/me/invite-links", headers=auth_headers(token), json={})
        assert response.status_code == 403

    def test_super_admin_role_cannot_be_granted(self, client, make_user):
        _, token = make_user(role="admin")
        response = client.post("/api/v1/workspaces/me/invite-links", headers=auth_headers(token),
                               json={"role": "super_admin"})
        assert response.status_code == 400

    @pytest.mark.parametrize("link, detail", [
        ({"is_active": False}, "This invite link has been revoked"),
        ({"expires_at": (utc_now() - timedelta(days=1)).isoformat()}, "This invite link has expired"),
        ({"max_uses": 1, "used_count": 1}, "This invite link has reached its maximum uses"),
    ])
    def test_unusable_links(self, client, supabase, link, detail):
        supabase.seed("invite_links", {"code": "abc", "workspace_id": "ws-1", "role": "member",
                                       "is_active": True, "used_count": 0, **link})

        response = client.get("/api/v1/workspaces/invites/abc")

        assert response.status_code == 400
        assert response.json()["detail"] == detail

    def test_unknown_code(self, client):
        assert client.get("/api/v1/workspaces/invites/missing").status_code == 404


class TestRegisterWithInvite:
    def test_joins_workspace_with_link_role_and_counts_use(self, client, supabase):
        supabase.seed("invite_links", {"id": "link-1", "code": "join-me", "workspace_id": "ws-9",
                                       "role": "manager", "is_active": True, "used_count": 0})

        response = client.post("/api/v1/auth/register", json={
            "email": "new.person@example.com", "password": "secret1", "invite_code": "join-me",
        })

        assert response.status_code == 201
        body = response.json()
        assert (body["role"], body["workspace_id"]) == ("manager", "ws-9")
        profile = supabase.rows("profiles")[0]
        assert profile["full_name"] == "new.person"
        assert supabase.rows("invite_links")[0]["used_count"] == 1

    def test_plain_signup_becomes_super_admin(self, client):
        body = client.post("/api/v1/auth/register", json={
            "email": "founder@example.com", "password": "secret1", "full_name": "Fay Founder",
        }).json()

        assert body["role"] == "super_admin"
        assert body["workspace_id"] is None

    def test_duplicate_email(self, client):
        payload = {"email": "twice@example.com", "password": "secret1"}
        client.post("/api/v1/auth/register", json=payload)
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"


class TestInviteUser:
    def test_creates_profile_and_recovery_link(self, client, supabase, make_user, service_key):
        _, token = make_user(role="admin", workspace_id="ws-1")

        response = client.post("/api/v1/users/invite", headers=auth_headers(token),
                               json={"email": "teammate@example.com", "role": "member"})

        assert response.status_code == 200
        invited = response.json()["user"]
        assert invited["full_name"] == "teammate"
        profile = next(p for p in supabase.rows("profiles") if p["email"] == "teammate@example.com")
        assert (profile["role"], profile["workspace_id"]) == ("member", "ws-1")
        assert supabase.auth.admin.links[0]["type"] == "recovery"

    def test_existing_email_conflicts(self, client, make_user, service_key):
        _, token = make_user(role="admin")
        existing, _ = make_user()

        response = client.post("/api/v1/users/invite", headers=auth_headers(token),
                               json={"email": existing["email"]})

        assert response.status_code == 409

    def test_requires_service_role_key(self, client, make_user, monkeypatch):
        monkeypatch.setattr(settings, "supabase_service_role_key", None)
        _, token = make_user(role="admin")

        response = client.post("/api/v1/users/invite", headers=auth_headers(token),
                               json={"email": "someone@example.com"})

        assert response.status_code == 500
        assert "Service role key not configured" in response.json()["detail"]
