"""Seed the built-in family roles and their permissions."""

import sqlite3

from .runner import Migration

# role name -> permissions granted by that role
DEFAULT_ROLES: dict[str, tuple[str, ...]] = {
    "Admin": (
        "manage_family",
        "invite_members",
        "remove_members",
        "manage_calendar",
        "create_events",
    ),
    "Parent": ("invite_members", "manage_children", "manage_calendar", "create_events"),
    "Guardian": ("manage_children", "manage_calendar", "create_events"),
    "Member": ("create_events",),
    "Child": (),
}


def role_id(name: str) -> str:
    """Stable identifier of a built-in role."""
    return f"role-{name.lower()}"


class DefaultFamilyRolesMigration(Migration):
    """Migration 002: insert the built-in roles."""

    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return "Seed default family roles"

    def up(self, connection: sqlite3.Connection) -> None:
        for name, permissions in DEFAULT_ROLES.items():
            connection.execute(
                "INSERT OR IGNORE INTO family_roles (id, name) VALUES (?, ?)",
                (role_id(name), name),
            )
            connection.executemany(
                "INSERT OR IGNORE INTO family_role_permissions (role_id, permission) VALUES (?, ?)",
                [(role_id(name), permission) for permission in permissions],
            )


default_roles_migration = DefaultFamilyRolesMigration()
