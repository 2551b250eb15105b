"""Tests for the workspace role permission matrix."""

from app.config.permissions_config import (
    PERMISSION_MATRIX,
    VALID_ROLES,
    get_role_permissions,
    role_has_permission,
)


class TestPermissionMatrix:
    def test_every_role_listed(self):
        assert [r["name"] for r in PERMISSION_MATRIX["roles"]] == VALID_ROLES

    def test_admin_roles_hold_everything(self):
        every = {p["name"] for p in PERMISSION_MATRIX["permissions"]}
        assert set(get_role_permissions("super_admin")) == every
        assert set(get_role_permissions("admin")) == every

    def test_member_grants(self):
        assert role_has_permission("member", "tasks:update")
        assert role_has_permission("member", "files:create")
        assert not role_has_permission("member", "tasks:delete")
        assert not role_has_permission("member", "users:invite")
        assert not role_has_permission("member", "analytics:read")

    def test_manager_cannot_delete_projects(self):
        assert role_has_permission("manager", "projects:update")
        assert not role_has_permission("manager", "projects:delete")

    def test_unknown_role_has_nothing(self):
        assert get_role_permissions("guest") == []
        assert not role_has_permission("guest", "tasks:read")


class TestWorkspaceAdminScope:
    def test_admin_rights_stop_at_own_workspace(self):
        from app.core.dependencies import is_workspace_admin_of

        admin = {"id": "u1", "role": "super_admin", "workspace_id": "ws-A"}
        assert is_workspace_admin_of(admin, "ws-A")
        assert not is_workspace_admin_of(admin, "ws-B")
        assert not is_workspace_admin_of(admin, None)
        assert not is_workspace_admin_of({"id": "u2", "role": "member", "workspace_id": "ws-A"}, "ws-A")
        assert is_workspace_admin_of({"id": "u3", "is_system_admin": True}, "ws-B")
