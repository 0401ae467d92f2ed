"""
Business logic for user accounts.

Users are stored in the ``users`` table.  E-mail addresses are
lowercased and trimmed before they are stored or looked up, which makes
the unique index on ``email`` case-insensitive.  Passwords are kept
only as PBKDF2 hashes (see ``core.security``).
"""

import logging
import sqlite3
from typing import List, Optional, Tuple

from ..core.db import get_connection
from ..core.exceptions import InvalidInputError, NotFoundError
from ..core.security import create_access_token, hash_password, verify_password
from ..core.timeutils import new_id, now_iso
from ..schemas.user import ROLES, UserProfileUpdate, UserRead, UserSignup

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, fullname, email, bio, role, avatar_url, created_at, updated_at"


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        fullname=row["fullname"],
        email=row["email"],
        bio=row["bio"],
        role=row["role"],
        avatarUrl=row["avatar_url"],
        createdAt=row["created_at"],
        updatedAt=row["updated_at"],
    )


def issue_token(user: UserRead) -> str:
    """Sign a token identifying ``user`` by email, id and role."""
    return create_access_token({"sub": user.email, "id": user.id, "role": user.role})


class UserService:
    """Service for registering, authenticating and managing users."""

    @classmethod
    async def signup(cls, data: UserSignup) -> Tuple[UserRead, str]:
        """Create a new user and return it together with a fresh token.

        ``fullname``, ``email`` and ``password`` are required.  The role
        defaults to ``customer``.

        Raises
        ------
        InvalidInputError
            If a required field is missing, the role is unknown or the
            e-mail address is already registered.
        """
        email = _normalize_email(data.email)
        fullname = (data.fullname or "").strip()
        if not fullname or not email or not data.password:
            raise InvalidInputError("fullname, email and password are required")
        role = data.role or "customer"
        if role not in ROLES:
            raise InvalidInputError(f"role must be one of: {', '.join(ROLES)}")

        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = cursor.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if existing:
                raise InvalidInputError("User already exists")
            user_id = new_id()
            now = now_iso()
            try:
                cursor.execute(
                    "INSERT INTO users (id, fullname, email, password, bio, role, avatar_url, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        user_id,
                        fullname,
                        email,
                        hash_password(data.password),
                        data.bio or "",
                        role,
                        data.avatarUrl or "",
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError:
                # Lost a race against a concurrent signup with the same e-mail.
                raise InvalidInputError("User already exists")
            conn.commit()
            row = cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        user = _row_to_user(row)
        logger.info("Registered user %s with role %s", user.id, user.role)
        return user, issue_token(user)

    @classmethod
    async def login(cls, email: Optional[str], password: Optional[str]) -> Tuple[UserRead, str]:
        """Check credentials and return the user with a new token."""
        normalized = _normalize_email(email)
        if not normalized or not password:
            raise InvalidInputError("email and password are required")
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE email = ?",
                (normalized,),
            ).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password"]):
            logger.warning("Failed login attempt for %s", normalized)
            raise InvalidInputError("Invalid credentials")
        user = _row_to_user(row)
        logger.info("User %s logged in", user.id)
        return user, issue_token(user)

    @classmethod
    async def get_by_email(cls, email: Optional[str]) -> UserRead:
        normalized = _normalize_email(email)
        if not normalized:
            raise InvalidInputError("Email is required")
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (normalized,)
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("User not found")
        return _row_to_user(row)

    @classmethod
    async def get_by_id(cls, user_id: str) -> UserRead:
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("User not found")
        return _row_to_user(row)

    @classmethod
    async def update_profile(cls, email: Optional[str], updates: UserProfileUpdate) -> UserRead:
        """Apply the fields present in ``updates`` to the user with ``email``.

        Raises ``InvalidInputError`` for a missing e-mail or an unknown
        role, ``NotFoundError`` if no such user exists.
        """
        normalized = _normalize_email(email)
        if not normalized:
            raise InvalidInputError("Email is required")
        fields = updates.model_dump(exclude_unset=True)
        if "role" in fields and fields["role"] not in ROLES:
            raise InvalidInputError(f"role must be one of: {', '.join(ROLES)}")
        column_map = {"fullname": "fullname", "bio": "bio", "role": "role", "avatarUrl": "avatar_url"}
        assignments = []
        values: list = []
        for key, value in fields.items():
            if value is None:
                continue
            assignments.append(f"{column_map[key]} = ?")
            values.append(value)

        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM users WHERE email = ?", (normalized,)).fetchone()
            if not row:
                raise NotFoundError("User not found")
            assignments.append("updated_at = ?")
            values.extend([now_iso(), row["id"]])
            cursor.execute(f"UPDATE users SET {', '.join(assignments)} WHERE id = ?", tuple(values))
            conn.commit()
            updated = cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (row["id"],)).fetchone()
        finally:
            conn.close()
        logger.info("Updated profile of user %s (%s)", updated["id"], ", ".join(fields) or "no fields")
        return _row_to_user(updated)

    @classmethod
    async def delete_profile(cls, email: Optional[str]) -> None:
        normalized = _normalize_email(email)
        if not normalized:
            raise InvalidInputError("Email is required")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM users WHERE email = ?", (normalized,))
            if cursor.rowcount == 0:
                raise NotFoundError("User not found")
            conn.commit()
        finally:
            conn.close()
        logger.info("Deleted profile %s", normalized)

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        """Return all users, oldest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at ASC, rowid ASC"
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_user(row) for row in rows]

    @classmethod
    async def list_agents(cls) -> List[UserRead]:
        """Return every user whose role is ``agent``."""
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE role = 'agent' ORDER BY rowid ASC"
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_user(row) for row in rows]
