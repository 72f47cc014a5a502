from __future__ import annotations

from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, placeholders
from .model import AdminProfile, ClientProfile, NewUser, Profile, User, UserChanges
from .repository import UserRepository

_COLUMNS = """
    user_id, name, email, password_hash, role, department, mobile, created_at,
    permissions, company, contact_number
"""


def _row_to_user(r: dict) -> User:
    role = Role(r["role"])
    if role == Role.ADMIN:
        perms = tuple(p for p in (r.get("permissions") or "").split(",") if p)
        profile = AdminProfile(permissions=perms or ("read",))
    else:
        profile = ClientProfile(company=r.get("company"), contact_number=r.get("contact_number"))

    return User(
        user_id=int(r["user_id"]),
        name=r["name"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=role,
        department=r.get("department"),
        mobile=r.get("mobile"),
        created_at=r.get("created_at"),
        profile=profile,
    )


def _profile_columns(profile: Optional[Profile]) -> dict:
    if isinstance(profile, AdminProfile):
        return {"permissions": ",".join(profile.permissions), "company": None, "contact_number": None}
    if isinstance(profile, ClientProfile):
        return {"permissions": None, "company": profile.company, "contact_number": profile.contact_number}
    return {"permissions": None, "company": None, "contact_number": None}


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def existing_ids(self, user_ids: Sequence[int]) -> set[int]:
        if not user_ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id FROM users WHERE user_id IN ({placeholders(user_ids)})",
                tuple(int(u) for u in user_ids),
            )
            return {int(r["user_id"]) for r in fetchall(cur)}

    def create_user(self, user: NewUser) -> Optional[int]:
        extra = _profile_columns(user.profile)

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(name, email, password_hash, role, department, mobile,
                                      permissions, company, contact_number)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        user.name,
                        user.email,
                        user.password_hash,
                        user.role.value,
                        user.department,
                        user.mobile,
                        extra["permissions"],
                        extra["company"],
                        extra["contact_number"],
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def update_account(self, *, user_id: int, changes: UserChanges) -> bool:
        columns = {
            "name": changes.name,
            "email": changes.email,
            "role": changes.role.value if changes.role else None,
            "department": changes.department,
            "mobile": changes.mobile,
        }
        sets = [(col, val) for col, val in columns.items() if val is not None]
        if changes.profile is not None:
            sets += list(_profile_columns(changes.profile).items())

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (int(user_id),))
                if not fetchone(cur):
                    return False
                if sets:
                    cur.execute(
                        f"UPDATE users SET {', '.join(f'{col}=%s' for col, _ in sets)} WHERE user_id=%s",
                        (*[val for _, val in sets], int(user_id)),
                    )
                return True
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("Email already in use", code="DuplicateEmail")
            raise

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
                return cur.rowcount > 0
        except IntegrityError:
            # still referenced as a project manager or task creator
            raise ConflictError("User is still referenced by projects or tasks", code="UserInUse")

    def list_all(self, *, department: Optional[str] = None) -> Sequence[User]:
        sql = f"SELECT {_COLUMNS} FROM users"
        params: tuple = ()
        if department:
            sql += " WHERE department=%s"
            params = (department,)
        sql += " ORDER BY name ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_user(r) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
