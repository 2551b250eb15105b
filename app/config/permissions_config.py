"""
Permissions and Roles Configuration
This config defines the permission matrix for all modules and the workspace
roles (stored on the profile row) that grant them.
"""

# Define modules and their actions
MODULES = {
    "projects": {
        "resource": "projects",
        "actions": ["create", "read", "update", "delete", "manage_members"],
        "description": "Project boards and membership"
    },
    "tasks": {
        "resource": "tasks",
        "actions": ["create", "read", "update", "delete"],
        "description": "Tasks, subtasks, comments and dependencies"
    },
    "files": {
        "resource": "files",
        "actions": ["create", "read", "delete"],
        "description": "Task and project attachments"
    },
    "templates": {
        "resource": "templates",
        "actions": ["create", "read", "update", "delete"],
        "description": "Reusable task templates"
    },
    "users": {
        "resource": "users",
        "actions": ["read", "update", "delete", "invite"],
        "description": "Workspace user management"
    },
    "workspaces": {
        "resource": "workspaces",
        "actions": ["read", "update", "invite"],
        "description": "Workspace settings and invite links"
    },
    "analytics": {
        "resource": "analytics",
        "actions": ["read"],
        "description": "Task analytics"
    }
}

VALID_ROLES = ["super_admin", "admin", "manager", "member"]

# Actions granted per workspace role; "*" grants every action of the module
ROLE_TYPES = {
    "super_admin": {
        "grants": {module: ["*"] for module in MODULES},
        "description": "Workspace owner, full access"
    },
    "admin": {
        "grants": {module: ["*"] for module in MODULES},
        "description": "Full administrative access to the workspace"
    },
    "manager": {
        "grants": {
            "projects": ["create", "read", "update", "manage_members"],
            "tasks": ["*"],
            "files": ["*"],
            "templates": ["*"],
            "users": ["read"],
            "workspaces": ["read"],
            "analytics": ["read"],
        },
        "description": "Runs projects inside the workspace"
    },
    "member": {
        "grants": {
            "projects": ["read"],
            "tasks": ["create", "read", "update"],
            "files": ["create", "read"],
            "templates": ["create", "read"],
            "users": ["read"],
            "workspaces": ["read"],
        },
        "description": "Works on tasks in projects they belong to"
    }
}

# Additional descriptions for non-CRUD actions
MODULE_SPECIFIC_PERMISSIONS = {
    "projects": {
        "manage_members": "Add, remove and re-role project members"
    },
    "users": {
        "invite": "Invite users by email"
    },
    "workspaces": {
        "invite": "Generate and revoke invite links"
    }
}


def _role_permissions(role_config: dict) -> list:
    names = []
    for module_name, actions in role_config["grants"].items():
        module_config = MODULES[module_name]
        allowed = module_config["actions"] if "*" in actions else actions
        for action in allowed:
            if action in module_config["actions"]:
                names.append(f"{module_config['resource']}:{action}")
    return sorted(names)


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the roles that carry them
    Format: {
        "permissions": [
            {"name": "tasks:create", "resource": "tasks", "action": "create", "description": "..."},
            ...
        ],
        "roles": [
            {"name": "member", "description": "...", "permissions": ["tasks:create", ...]},
            ...
        ]
    }
    """
    permissions = []
    roles = []

    for module_name, module_config in MODULES.items():
        resource = module_config["resource"]
        for action in module_config["actions"]:
            description = f"{action.capitalize()} {resource}"
            if module_name in MODULE_SPECIFIC_PERMISSIONS and action in MODULE_SPECIFIC_PERMISSIONS[module_name]:
                description = MODULE_SPECIFIC_PERMISSIONS[module_name][action]
            permissions.append({
                "name": f"{resource}:{action}",
                "resource": resource,
                "action": action,
                "description": description
            })

    for role_name in VALID_ROLES:
        role_config = ROLE_TYPES[role_name]
        roles.append({
            "name": role_name,
            "description": role_config["description"],
            "permissions": _role_permissions(role_config)
        })

    return {
        "permissions": permissions,
        "roles": roles
    }


PERMISSION_MATRIX = get_permission_matrix()
_ROLE_PERMISSIONS = {role["name"]: set(role["permissions"]) for role in PERMISSION_MATRIX["roles"]}


def get_role_permissions(role: str) -> list:
    return sorted(_ROLE_PERMISSIONS.get(role, set()))


def role_has_permission(role: str, permission: str) -> bool:
    return permission in _ROLE_PERMISSIONS.get(role, set())
