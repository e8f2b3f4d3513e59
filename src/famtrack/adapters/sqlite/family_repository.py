"""SQLite implementation of FamilyRepository.

Besides plain membership bookkeeping this adapter answers the role and
age-based questions the authorization layer asks about families.
"""

from __future__ import annotations

import sqlite3

from famtrack.adapters.sqlite.connection import get_connection, run_in_transaction
from famtrack.adapters.sqlite.utils import (
    degrade_on_store_error,
    format_datetime,
    generate_uuid,
    row_to_dict,
)
from famtrack.models import AgeGroup, Family, FamilyMember, FamilyRole
from famtrack.models.exceptions import ValidationFailure
from famtrack.repositories import FamilyRepository
from famtrack.utils.clock import Clock, SystemClock
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

# Calendar permissions every member holds regardless of role
MEMBER_PERMISSIONS = frozenset({"create_events", "manage_calendar"})

TEEN_MANAGE_PERMISSION = "teen_manage_family"
MANAGE_PERMISSION = "manage_family"
TEEN_MAX_FAMILY_SIZE = 5

OWNER_ROLE_NAME = "Admin"
FORMER_OWNER_ROLE_NAME = "Member"


class SqliteFamilyRepository(FamilyRepository):
    """SQLite implementation of family repository."""

    def __init__(
        self,
        db_path: str | None = None,
        clock: Clock | None = None,
        connection: sqlite3.Connection | None = None,
        max_retries: int = 3,
    ):
        self.db_path = db_path
        self.clock = clock or SystemClock()
        self.max_retries = max_retries
        self._connection = connection

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def _role_permissions(self, role_id: str) -> set[str]:
        cursor = self.connection.execute(
            "SELECT permission FROM family_role_permissions WHERE role_id = ?", (role_id,)
        )
        return {row["permission"] for row in cursor.fetchall()}

    def _row_to_role(self, row: sqlite3.Row) -> FamilyRole:
        return FamilyRole(
            id=row["id"], name=row["name"], permissions=self._role_permissions(row["id"])
        )

    def _member_count(self, family_id: str) -> int:
        row = self.connection.execute(
            "SELECT COUNT(*) FROM family_members WHERE family_id = ?", (family_id,)
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    async def create_family(
        self, name: str, created_by_id: str, creator_role_id: str
    ) -> Family:
        now = self.clock.now()
        family = Family(
            id=generate_uuid(), name=name, created_by_id=created_by_id,
            created_at=now, updated_at=now,
        )
        stamp = format_datetime(now)

        def work(conn: sqlite3.Connection) -> None:
            conn.execute(
                """INSERT INTO families (id, name, created_by_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (family.id, name, created_by_id, stamp, stamp),
            )
            conn.execute(
                """INSERT INTO family_members (id, family_id, user_id, role_id, joined_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (generate_uuid(), family.id, created_by_id, creator_role_id, stamp),
            )

        run_in_transaction(self.connection, work, self.max_retries)
        logger.info("created family %s owned by %s", family.id, created_by_id)
        return family

    @degrade_on_store_error(lambda: None)
    async def get_family(self, family_id: str) -> Family | None:
        row = self.connection.execute(
            "SELECT * FROM families WHERE id = ?", (family_id,)
        ).fetchone()
        return Family(**row_to_dict(row)) if row else None

    @degrade_on_store_error(list)
    async def list_families_for_user(self, user_id: str) -> list[Family]:
        cursor = self.connection.execute(
            """SELECT f.* FROM families f
               JOIN family_members m ON m.family_id = f.id
               WHERE m.user_id = ?
               ORDER BY f.name""",
            (user_id,),
        )
        return [Family(**row_to_dict(row)) for row in cursor.fetchall()]

    @degrade_on_store_error(list)
    async def list_family_ids_for_user(self, user_id: str) -> list[str]:
        cursor = self.connection.execute(
            "SELECT family_id FROM family_members WHERE user_id = ?", (user_id,)
        )
        return [row["family_id"] for row in cursor.fetchall()]

    async def delete_family(self, family_id: str) -> bool:
        def work(conn: sqlite3.Connection) -> bool:
            conn.execute("DELETE FROM family_members WHERE family_id = ?", (family_id,))
            cursor = conn.execute("DELETE FROM families WHERE id = ?", (family_id,))
            return cursor.rowcount > 0

        deleted = run_in_transaction(self.connection, work, self.max_retries)
        if deleted:
            logger.info("deleted family %s", family_id)
        return deleted

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def add_member(self, family_id: str, user_id: str, role_id: str) -> bool:
        stamp = format_datetime(self.clock.now())

        def work(conn: sqlite3.Connection) -> bool:
            try:
                conn.execute(
                    """INSERT INTO family_members (id, family_id, user_id, role_id, joined_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (generate_uuid(), family_id, user_id, role_id, stamp),
                )
            except sqlite3.IntegrityError as e:
                if "UNIQUE" in str(e):
                    return False
                raise
            return True

        return run_in_transaction(self.connection, work, self.max_retries)

    async def remove_member(self, family_id: str, user_id: str) -> bool:
        def work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                "DELETE FROM family_members WHERE family_id = ? AND user_id = ?",
                (family_id, user_id),
            )
            return cursor.rowcount > 0

        return run_in_transaction(self.connection, work, self.max_retries)

    async def update_member_role(self, family_id: str, user_id: str, role_id: str) -> bool:
        def work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                "UPDATE family_members SET role_id = ? WHERE family_id = ? AND user_id = ?",
                (role_id, family_id, user_id),
            )
            return cursor.rowcount > 0

        return run_in_transaction(self.connection, work, self.max_retries)

    @degrade_on_store_error(list)
    async def list_members(self, family_id: str) -> list[FamilyMember]:
        cursor = self.connection.execute(
            """SELECT m.*, r.name AS role_name FROM family_members m
               JOIN family_roles r ON r.id = m.role_id
               WHERE m.family_id = ?
               ORDER BY m.joined_at""",
            (family_id,),
        )
        members = []
        for row in cursor.fetchall():
            role = FamilyRole(
                id=row["role_id"],
                name=row["role_name"],
                permissions=self._role_permissions(row["role_id"]),
            )
            members.append(
                FamilyMember(
                    id=row["id"],
                    family_id=row["family_id"],
                    user_id=row["user_id"],
                    role=role,
                    joined_at=row["joined_at"],
                    is_pending=row["is_pending"],
                )
            )
        return members

    @degrade_on_store_error(lambda: False)
    async def is_member(self, family_id: str, user_id: str) -> bool:
        row = self.connection.execute(
            "SELECT 1 FROM family_members WHERE family_id = ? AND user_id = ?",
            (family_id, user_id),
        ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Roles and permissions
    # ------------------------------------------------------------------

    @degrade_on_store_error(lambda: None)
    async def get_role(self, family_id: str, user_id: str) -> FamilyRole | None:
        row = self.connection.execute(
            """SELECT r.* FROM family_roles r
               JOIN family_members m ON m.role_id = r.id
               WHERE m.family_id = ? AND m.user_id = ?""",
            (family_id, user_id),
        ).fetchone()
        return self._row_to_role(row) if row else None

    async def role_has_permission(self, family_id: str, user_id: str, permission: str) -> bool:
        if permission in MEMBER_PERMISSIONS:
            return await self.is_member(family_id, user_id)
        role = await self.get_role(family_id, user_id)
        return role is not None and permission in role.permissions

    async def create_role(self, name: str, permissions: set[str]) -> FamilyRole:
        role = FamilyRole(id=generate_uuid(), name=name, permissions=set(permissions))

        def work(conn: sqlite3.Connection) -> None:
            try:
                conn.execute(
                    "INSERT INTO family_roles (id, name) VALUES (?, ?)", (role.id, name)
                )
            except sqlite3.IntegrityError as e:
                raise ValidationFailure(f"Family role already exists: {name}") from e
            conn.executemany(
                "INSERT INTO family_role_permissions (role_id, permission) VALUES (?, ?)",
                [(role.id, permission) for permission in sorted(role.permissions)],
            )

        run_in_transaction(self.connection, work, self.max_retries)
        return role

    @degrade_on_store_error(lambda: None)
    async def get_role_by_name(self, name: str) -> FamilyRole | None:
        row = self.connection.execute(
            "SELECT * FROM family_roles WHERE name = ?", (name,)
        ).fetchone()
        return self._row_to_role(row) if row else None

    async def is_family_admin(self, user_id: str, family_id: str) -> bool:
        family = await self.get_family(family_id)
        if family is None:
            return False
        if family.created_by_id == user_id:
            return True
        return await self.role_has_permission(family_id, user_id, MANAGE_PERMISSION)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    async def transfer_ownership(
        self, family_id: str, current_owner_id: str, new_owner_id: str
    ) -> bool:
        family = await self.get_family(family_id)
        if family is None or family.created_by_id != current_owner_id:
            return False
        if not await self.is_member(family_id, new_owner_id):
            return False

        row = self.connection.execute(
            "SELECT age_group FROM users WHERE id = ?", (new_owner_id,)
        ).fetchone()
        if row is None or row["age_group"] == AgeGroup.CHILD.value:
            return False

        owner_role = await self.get_role_by_name(OWNER_ROLE_NAME)
        former_role = await self.get_role_by_name(FORMER_OWNER_ROLE_NAME)
        stamp = format_datetime(self.clock.now())

        def work(conn: sqlite3.Connection) -> None:
            conn.execute(
                "UPDATE families SET created_by_id = ?, updated_at = ? WHERE id = ?",
                (new_owner_id, stamp, family_id),
            )
            if owner_role is not None:
                conn.execute(
                    "UPDATE family_members SET role_id = ? WHERE family_id = ? AND user_id = ?",
                    (owner_role.id, family_id, new_owner_id),
                )
            if former_role is not None:
                conn.execute(
                    "UPDATE family_members SET role_id = ? WHERE family_id = ? AND user_id = ?",
                    (former_role.id, family_id, current_owner_id),
                )

        run_in_transaction(self.connection, work, self.max_retries)
        logger.info(
            "transferred family %s from %s to %s", family_id, current_owner_id, new_owner_id
        )
        return True

    @degrade_on_store_error(lambda: False)
    async def can_manage_family_based_on_age(self, user_id: str, family_id: str) -> bool:
        user_row = self.connection.execute(
            "SELECT age_group FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        family = await self.get_family(family_id)
        if user_row is None or family is None:
            return False

        age_group = AgeGroup(user_row["age_group"])
        is_creator = family.created_by_id == user_id

        if age_group == AgeGroup.CHILD:
            return False
        if age_group == AgeGroup.TEEN:
            if self._member_count(family_id) > TEEN_MAX_FAMILY_SIZE:
                return False
            return is_creator or await self.role_has_permission(
                family_id, user_id, TEEN_MANAGE_PERMISSION
            )
        return is_creator or await self.role_has_permission(
            family_id, user_id, MANAGE_PERMISSION
        )
