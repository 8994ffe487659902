"""SQLite-backed persistence for admins and users."""
from __future__ import annotations

import secrets
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from passlib.context import CryptContext

from .models import Admin, User


class DuplicateRecordError(ValueError):
    """Raised when a write violates the unique email index."""


_USER_COLUMNS = ("name", "email", "age")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _generate_id() -> str:
    return secrets.token_hex(12)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _casefold(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.casefold()


def _normalize_user_fields(fields: Mapping[str, object]) -> Dict[str, object]:
    normalized: Dict[str, object] = {}
    for column in _USER_COLUMNS:
        if column not in fields:
            continue
        value = fields[column]
        if column == "name":
            value = str(value).strip()
            if not value:
                raise ValueError("Name is required")
        elif column == "email":
            value = _normalize_email(str(value))
            if not value:
                raise ValueError("Email is required")
        elif column == "age" and value is not None:
            value = int(value)  # type: ignore[arg-type]
            if value < 0:
                raise ValueError("Age cannot be negative")
        normalized[column] = value
    return normalized


class Database:
    """Simple wrapper around SQLite for persisting admins and users."""

    def __init__(self, path: Path, *, bcrypt_rounds: int = 12) -> None:
        _ensure_directory(path)
        self._path = path
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )
        # Compared against when an email is unknown so both login failures cost the same.
        self._dummy_hash = self._pwd_context.hash(secrets.token_urlsafe(16))

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS admins (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS users (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    age INTEGER CHECK (age IS NULL OR age >= 0),
                    created_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------
    def hash_password(self, password: str) -> str:
        if not password:
            raise ValueError("Password must not be empty")
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        try:
            return self._pwd_context.verify(password, hashed)
        except ValueError:
            return False

    # ------------------------------------------------------------------
    # Admin management
    # ------------------------------------------------------------------
    def create_admin(self, name: str, email: str, password: str) -> Admin:
        """Persist a new admin with a bcrypt hash of ``password``."""

        normalized_name = name.strip()
        if not normalized_name:
            raise ValueError("Name is required")
        normalized_email = _normalize_email(email)
        if not normalized_email:
            raise ValueError("Email is required")

        admin = Admin(
            id=_generate_id(),
            name=normalized_name,
            email=normalized_email,
            password_hash=self.hash_password(password),
            created_at=_current_timestamp(),
        )

        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO admins (id, name, email, password_hash, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        admin.id,
                        admin.name,
                        admin.email,
                        admin.password_hash,
                        _serialize_datetime(admin.created_at),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateRecordError("An admin with that email already exists") from exc

        return admin

    def get_admin(self, admin_id: str) -> Optional[Admin]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM admins WHERE id = ?", (admin_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_admin(row)

    def get_admin_by_email(self, email: str) -> Optional[Admin]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM admins WHERE email = ?",
                (_normalize_email(email),),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_admin(row)

    def authenticate_admin(self, email: str, password: str) -> Optional[Admin]:
        """Return the admin matching both email and password, else ``None``."""

        admin = self.get_admin_by_email(email)
        if admin is None:
            self.verify_password(password, self._dummy_hash)
            return None
        if not self.verify_password(password, admin.password_hash):
            return None
        return admin

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, fields: Mapping[str, object]) -> User:
        return self.insert_users([fields])[0]

    def insert_users(self, batch: Sequence[Mapping[str, object]]) -> List[User]:
        """Insert every record of ``batch`` in a single transaction."""

        users: List[User] = []
        for fields in batch:
            normalized = _normalize_user_fields(fields)
            if "name" not in normalized:
                raise ValueError("Name is required")
            if "email" not in normalized:
                raise ValueError("Email is required")
            users.append(
                User(
                    id=_generate_id(),
                    name=str(normalized["name"]),
                    email=str(normalized["email"]),
                    age=normalized.get("age"),  # type: ignore[arg-type]
                    created_at=_current_timestamp(),
                )
            )

        with self._connect() as conn:
            try:
                conn.executemany(
                    "INSERT INTO users (id, name, email, age, created_at) VALUES (?, ?, ?, ?, ?)",
                    [
                        (user.id, user.name, user.email, user.age, _serialize_datetime(user.created_at))
                        for user in users
                    ],
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateRecordError("A user with that email already exists") from exc

        return users

    def list_users(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY seq").fetchall()
        return [self._row_to_user(row) for row in rows]

    def count_users(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()
        return int(row["n"])

    def page_users(self, *, offset: int, limit: int) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM users ORDER BY seq LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def get_user(self, user_id: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def search_users(self, key: str) -> List[User]:
        """Case-insensitive literal substring match against name or email."""

        needle = key.casefold()
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM users
                 WHERE instr(casefold(name), ?) > 0 OR instr(casefold(email), ?) > 0
                 ORDER BY seq
                """,
                (needle, needle),
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def update_user(self, user_id: str, fields: Mapping[str, object]) -> Optional[User]:
        """Replace the supplied fields; ``None`` when the id does not resolve."""

        updates = _normalize_user_fields(fields)
        if not updates:
            return self.get_user(user_id)

        assignments = ", ".join(f"{column} = ?" for column in updates)
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    f"UPDATE users SET {assignments} WHERE id = ?",
                    [*updates.values(), user_id],
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateRecordError("A user with that email already exists") from exc
            if cursor.rowcount == 0:
                return None

        return self.get_user(user_id)

    def bulk_update_users(self, items: Iterable[Tuple[str, Mapping[str, object]]]) -> int:
        """Apply each ``(id, fields)`` pair and return how many records changed.

        Unknown ids and no-op updates do not count and are not reported.
        """

        statements: List[Tuple[str, List[object]]] = []
        for user_id, fields in items:
            updates = _normalize_user_fields(fields)
            if not updates:
                continue
            assignments = ", ".join(f"{column} = ?" for column in updates)
            unchanged = " AND ".join(f"{column} IS ?" for column in updates)
            values = list(updates.values())
            statements.append(
                (
                    f"UPDATE users SET {assignments} WHERE id = ? AND NOT ({unchanged})",
                    [*values, user_id, *values],
                )
            )

        modified = 0
        with self._connect() as conn:
            try:
                for query, params in statements:
                    modified += conn.execute(query, params).rowcount
            except sqlite3.IntegrityError as exc:
                raise DuplicateRecordError("A user with that email already exists") from exc
        return modified

    def delete_user(self, user_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0

    def delete_users(self, user_ids: Sequence[str]) -> int:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM users WHERE id IN ({placeholders})", ids)
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_admin(self, row: sqlite3.Row) -> Admin:
        return Admin(
            id=str(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=str(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            age=int(row["age"]) if row["age"] is not None else None,
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database", "DuplicateRecordError"]
