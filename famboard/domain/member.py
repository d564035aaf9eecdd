"""
Family member roles and the permission matrix

PARENT manages the household; CHILD earns and spends points.
"""

ROLE_PARENT = "PARENT"
ROLE_CHILD = "CHILD"

ROLES = [ROLE_PARENT, ROLE_CHILD]

AVATAR_TYPES = ["initial", "emoji", "image"]


# Permissions
PERM_MANAGE_ACCESS = "manage:access"
PERM_MANAGE_SETTINGS = "manage:settings"
PERM_MANAGE_FAMILY = "manage:family"

PERM_POINTS_AWARD = "points:award"
PERM_POINTS_DEDUCT = "points:deduct"
PERM_POINTS_VIEW_ALL = "points:view_all"
PERM_POINTS_VIEW_OWN = "points:view_own"

PERM_REWARDS_CREATE = "rewards:create"
PERM_REWARDS_EDIT = "rewards:edit"
PERM_REWARDS_DELETE = "rewards:delete"
PERM_REWARDS_REQUEST = "rewards:request"
PERM_REWARDS_APPROVE = "rewards:approve"
PERM_REWARDS_REJECT = "rewards:reject"

PERM_CHORES_CREATE = "chores:create"
PERM_CHORES_EDIT = "chores:edit"
PERM_CHORES_DELETE = "chores:delete"
PERM_CHORES_ASSIGN = "chores:assign"
PERM_CHORES_COMPLETE_OWN = "chores:complete_own"
PERM_CHORES_COMPLETE_ANY = "chores:complete_any"
PERM_CHORES_VIEW_ALL = "chores:view_all"

PERM_HABITS_CREATE = "habits:create"
PERM_HABITS_EDIT = "habits:edit"
PERM_HABITS_DELETE = "habits:delete"
PERM_HABITS_LOG_OWN = "habits:log_own"
PERM_HABITS_LOG_ANY = "habits:log_any"

PERM_SCHEDULE_CREATE = "schedule:create"
PERM_SCHEDULE_EDIT = "schedule:edit"
PERM_SCHEDULE_DELETE = "schedule:delete"

PERM_SHOPPING_CREATE = "shopping:create"
PERM_SHOPPING_EDIT = "shopping:edit"
PERM_SHOPPING_DELETE = "shopping:delete"
PERM_SHOPPING_CHECK = "shopping:check"

PERM_TASKS_CREATE = "tasks:create"
PERM_TASKS_EDIT = "tasks:edit"
PERM_TASKS_DELETE = "tasks:delete"
PERM_TASKS_COMPLETE = "tasks:complete"

PERM_AUDIT_VIEW = "audit:view"

PERM_BACKUP_CREATE = "backup:create"
PERM_BACKUP_RESTORE = "backup:restore"
PERM_BACKUP_DELETE = "backup:delete"


_CHILD_PERMISSIONS = frozenset([
    PERM_POINTS_VIEW_OWN,
    PERM_REWARDS_REQUEST,
    PERM_CHORES_COMPLETE_OWN,
    PERM_HABITS_LOG_OWN,
    PERM_SHOPPING_CHECK,
    PERM_TASKS_COMPLETE,
])

# PARENT holds every permission except requesting rewards for themselves
_PARENT_PERMISSIONS = frozenset([
    PERM_MANAGE_ACCESS, PERM_MANAGE_SETTINGS, PERM_MANAGE_FAMILY,
    PERM_POINTS_AWARD, PERM_POINTS_DEDUCT, PERM_POINTS_VIEW_ALL, PERM_POINTS_VIEW_OWN,
    PERM_REWARDS_CREATE, PERM_REWARDS_EDIT, PERM_REWARDS_DELETE,
    PERM_REWARDS_APPROVE, PERM_REWARDS_REJECT,
    PERM_CHORES_CREATE, PERM_CHORES_EDIT, PERM_CHORES_DELETE, PERM_CHORES_ASSIGN,
    PERM_CHORES_COMPLETE_OWN, PERM_CHORES_COMPLETE_ANY, PERM_CHORES_VIEW_ALL,
    PERM_HABITS_CREATE, PERM_HABITS_EDIT, PERM_HABITS_DELETE,
    PERM_HABITS_LOG_OWN, PERM_HABITS_LOG_ANY,
    PERM_SCHEDULE_CREATE, PERM_SCHEDULE_EDIT, PERM_SCHEDULE_DELETE,
    PERM_SHOPPING_CREATE, PERM_SHOPPING_EDIT, PERM_SHOPPING_DELETE, PERM_SHOPPING_CHECK,
    PERM_TASKS_CREATE, PERM_TASKS_EDIT, PERM_TASKS_DELETE, PERM_TASKS_COMPLETE,
    PERM_AUDIT_VIEW,
    PERM_BACKUP_CREATE, PERM_BACKUP_RESTORE, PERM_BACKUP_DELETE,
])

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_PARENT: _PARENT_PERMISSIONS,
    ROLE_CHILD: _CHILD_PERMISSIONS,
}


def has_permission(role: str | None, permission: str) -> bool:
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def is_valid_role(role: str) -> bool:
    return role in ROLES


def is_parent(role: str | None) -> bool:
    return role == ROLE_PARENT


def is_child(role: str | None) -> bool:
    return role == ROLE_CHILD


def default_avatar(name: str) -> str:
    """First letter of the name, uppercased ("?" for blank names)"""
    name = name.strip()
    return name[0].upper() if name else "?"
