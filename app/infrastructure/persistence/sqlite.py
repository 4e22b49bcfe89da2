import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...domain.errors import DuplicateIdentity, DuplicateReference, NotFound
from ...domain.models import ROLES, STATUS_SUCCESS, STATUSES, Transaction, TransactionOwner, User
from ...domain.ports.persistence import PersistenceGateway


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        self._conn.execute("PRAGMA foreign_keys = ON")
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'user',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS transactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    reference TEXT NOT NULL UNIQUE,
                    user_id INTEGER NOT NULL,
                    amount INTEGER NOT NULL CHECK (amount >= 1),
                    status TEXT NOT NULL DEFAULT 'pending',
                    gateway_payload TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id)
                );

                CREATE INDEX IF NOT EXISTS idx_transactions_user_created
                    ON transactions(user_id, created_at DESC);
                """
            )
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        with self._lock:
            cur = self._conn.execute("PRAGMA table_info(users)")
            columns = {row[1] for row in cur.fetchall()}
        if "role" not in columns:
            with self._lock, self._conn:
                self._conn.execute("ALTER TABLE users ADD COLUMN role TEXT NOT NULL DEFAULT 'user'")

    def close(self) -> None:
        self._conn.close()

    # UserRepository API ----------------------------------------------------
    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def create_user(self, name: str, email: str, password_hash: str, role: str) -> User:
        self._check_role(role)
        normalized = email.strip().lower()
        now = self._now()
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO users (name, email, password_hash, role, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (name, normalized, password_hash, role, now, now),
                )
                user_id = cur.lastrowid
                cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
                row = cur.fetchone()
        except sqlite3.IntegrityError as exc:
            raise DuplicateIdentity() from exc
        if not row:
            raise RuntimeError("Failed to persist user.")
        return self._row_to_user(row)

    def update_user_password(self, user_id: int, password_hash: str) -> User:
        return self._update_user(user_id, "password_hash", password_hash)

    def update_user_role(self, user_id: int, role: str) -> User:
        self._check_role(role)
        return self._update_user(user_id, "role", role)

    def _update_user(self, user_id: int, column: str, value: str) -> User:
        now = self._now()
        with self._lock, self._conn:
            self._conn.execute(
                f"UPDATE users SET {column} = ?, updated_at = ? WHERE id = ?",
                (value, now, user_id),
            )
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        if not row:
            raise NotFound(f"User {user_id} not found.")
        return self._row_to_user(row)

    # TransactionRepository API ---------------------------------------------
    def create_transaction(self, reference: str, user_id: int, amount: int, status: str) -> Transaction:
        self._check_status(status)
        now = self._now()
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO transactions (reference, user_id, amount, status, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (reference, user_id, amount, status, now, now),
                )
                cur = self._conn.execute("SELECT * FROM transactions WHERE id = ?", (cur.lastrowid,))
                row = cur.fetchone()
        except sqlite3.IntegrityError as exc:
            # Foreign key failures surface here too; only the reference is retried.
            if "transactions.reference" in str(exc):
                raise DuplicateReference() from exc
            raise
        if not row:
            raise RuntimeError("Failed to persist transaction.")
        return self._row_to_transaction(row)

    def get_transaction_by_reference(self, reference: str) -> Optional[Transaction]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM transactions WHERE reference = ?", (reference,))
            row = cur.fetchone()
        return self._row_to_transaction(row) if row else None

    def update_transaction(
        self,
        reference: str,
        status: str,
        gateway_payload: Optional[Dict[str, Any]],
    ) -> Transaction:
        self._check_status(status)
        now = self._now()
        data = json.dumps(gateway_payload, default=str, ensure_ascii=False) if gateway_payload is not None else None
        with self._lock, self._conn:
            # A successful transaction is final; concurrent writers lose to it.
            self._conn.execute(
                """
                UPDATE transactions
                SET status = ?, gateway_payload = ?, updated_at = ?
                WHERE reference = ? AND status != ?
                """,
                (status, data, now, reference, STATUS_SUCCESS),
            )
            cur = self._conn.execute("SELECT * FROM transactions WHERE reference = ?", (reference,))
            row = cur.fetchone()
        if not row:
            raise NotFound(f"Transaction {reference} not found.")
        return self._row_to_transaction(row)

    def list_transactions_for_user(self, user_id: int) -> List[Transaction]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT * FROM transactions WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            )
            rows = cur.fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def list_transactions(self) -> List[Transaction]:
        with self._lock:
            cur = self._conn.execute(
                """
                SELECT t.*, u.name AS owner_name, u.email AS owner_email, u.role AS owner_role
                FROM transactions t
                JOIN users u ON u.id = t.user_id
                ORDER BY t.created_at DESC, t.id DESC
                """
            )
            rows = cur.fetchall()
        return [self._row_to_transaction(row, with_owner=True) for row in rows]

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _check_role(role: str) -> None:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in STATUSES:
            raise ValueError(f"Unknown transaction status: {status!r}")

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        result = datetime.fromisoformat(value)
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=row["role"],
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_transaction(self, row: sqlite3.Row, with_owner: bool = False) -> Transaction:
        owner = None
        if with_owner:
            owner = TransactionOwner(
                id=row["user_id"],
                name=row["owner_name"],
                email=row["owner_email"],
                role=row["owner_role"],
            )
        return Transaction(
            id=row["id"],
            reference=row["reference"],
            user_id=row["user_id"],
            amount=row["amount"],
            status=row["status"],
            gateway_payload=json.loads(row["gateway_payload"]) if row["gateway_payload"] else None,
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
            owner=owner,
        )
