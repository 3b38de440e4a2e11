import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

from ...domain.errors import DuplicateKeyError, StaleTokenError, StorageError
from ...domain.models import Account, PendingToken, TokenPurpose
from ...domain.ports.persistence import AccountRepository

logger = logging.getLogger(__name__)

_MEMORY = ":memory:"


class SQLiteAccountRepository(AccountRepository):
    """SQLite-backed implementation of the account store."""

    def __init__(self, path: Union[Path, str]) -> None:
        if str(path) != _MEMORY:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL CHECK (password_hash <> ''),
                    name TEXT NOT NULL DEFAULT '',
                    role TEXT NOT NULL DEFAULT 'user',
                    is_email_confirmed INTEGER NOT NULL DEFAULT 0,
                    pending_token TEXT UNIQUE,
                    pending_token_purpose TEXT,
                    pending_token_expires_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    CHECK (
                        (pending_token IS NULL) = (pending_token_expires_at IS NULL)
                        AND (pending_token IS NULL) = (pending_token_purpose IS NULL)
                    )
                );
                """
            )

    def close(self) -> None:
        self._conn.close()

    # AccountRepository API --------------------------------------------------
    def find_by_email(self, email: str) -> Optional[Account]:
        return self._fetch_one("SELECT * FROM accounts WHERE email = ?", (email,))

    def find_by_pending_token(self, token: str) -> Optional[Account]:
        return self._fetch_one("SELECT * FROM accounts WHERE pending_token = ?", (token,))

    def find_by_id(self, account_id: int) -> Optional[Account]:
        return self._fetch_one("SELECT * FROM accounts WHERE id = ?", (account_id,))

    def save(self, account: Account, *, expected_token: Optional[str] = None) -> Account:
        if account.id is None:
            return self._insert(account)
        return self._update(account, expected_token)

    def set_pending_token(
        self, account_id: int, token: PendingToken, *, require_unconfirmed: bool = False
    ) -> Account:
        """Replace only the pending token columns, leaving the rest of the row untouched."""
        value, purpose, expires_at = self._token_columns(token)
        query = """
            UPDATE accounts
            SET pending_token = ?, pending_token_purpose = ?,
                pending_token_expires_at = ?, updated_at = ?
            WHERE id = ?
        """
        if require_unconfirmed:
            query += " AND is_email_confirmed = 0"
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(query, (value, purpose, expires_at, self._now(), account_id))
                updated = cur.rowcount
                cur = self._conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,))
                row = cur.fetchone()
        except sqlite3.IntegrityError as exc:
            raise self._translate_integrity_error(exc) from exc
        except sqlite3.Error as exc:
            logger.exception("Failed to set pending token for account %s", account_id)
            raise StorageError() from exc
        if not row:
            raise StorageError(f"Account {account_id} does not exist.")
        if updated == 0:
            raise StaleTokenError(f"Account {account_id} was confirmed concurrently.")
        return self._row_to_account(row)

    # Internals ----------------------------------------------------------------
    def _insert(self, account: Account) -> Account:
        now = self._now()
        token, purpose, expires_at = self._token_columns(account.pending_token)
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO accounts (
                        email, password_hash, name, role, is_email_confirmed,
                        pending_token, pending_token_purpose, pending_token_expires_at,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account.email,
                        account.password_hash,
                        account.name,
                        account.role,
                        int(account.is_email_confirmed),
                        token,
                        purpose,
                        expires_at,
                        account.created_at.isoformat(),
                        now,
                    ),
                )
                account_id = cur.lastrowid
                cur = self._conn.execute("SELECT * FROM accounts WHERE id = ?", (account_id,))
                row = cur.fetchone()
        except sqlite3.IntegrityError as exc:
            raise self._translate_integrity_error(exc) from exc
        except sqlite3.Error as exc:
            logger.exception("Failed to insert account %s", account.email)
            raise StorageError() from exc
        if not row:
            raise StorageError("Failed to persist account.")
        return self._row_to_account(row)

    def _update(self, account: Account, expected_token: Optional[str]) -> Account:
        now = self._now()
        token, purpose, expires_at = self._token_columns(account.pending_token)
        query = """
            UPDATE accounts
            SET email = ?, password_hash = ?, name = ?, role = ?,
                is_email_confirmed = ?, pending_token = ?,
                pending_token_purpose = ?, pending_token_expires_at = ?,
                updated_at = ?
            WHERE id = ?
        """
        params: List[Any] = [
            account.email,
            account.password_hash,
            account.name,
            account.role,
            int(account.is_email_confirmed),
            token,
            purpose,
            expires_at,
            now,
            account.id,
        ]
        if expected_token is not None:
            query += " AND pending_token = ?"
            params.append(expected_token)
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(query, params)
                updated = cur.rowcount
                cur = self._conn.execute("SELECT * FROM accounts WHERE id = ?", (account.id,))
                row = cur.fetchone()
        except sqlite3.IntegrityError as exc:
            raise self._translate_integrity_error(exc) from exc
        except sqlite3.Error as exc:
            logger.exception("Failed to update account %s", account.id)
            raise StorageError() from exc
        if not row:
            raise StorageError(f"Account {account.id} does not exist.")
        if updated == 0:
            raise StaleTokenError(f"Pending token of account {account.id} changed.")
        return self._row_to_account(row)

    @staticmethod
    def _translate_integrity_error(exc: sqlite3.IntegrityError) -> Exception:
        if "accounts.email" in str(exc):
            return DuplicateKeyError(str(exc))
        logger.error("Integrity error while saving account: %s", exc)
        return StorageError()

    @staticmethod
    def _token_columns(token: Optional[PendingToken]):
        if token is None:
            return None, None, None
        return token.value, token.purpose.value, token.expires_at.isoformat()

    def _fetch_one(self, query: str, params: tuple) -> Optional[Account]:
        try:
            with self._lock:
                cur = self._conn.execute(query, params)
                row = cur.fetchone()
        except sqlite3.Error as exc:
            logger.exception("Account lookup failed")
            raise StorageError() from exc
        return self._row_to_account(row) if row else None

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        result = datetime.fromisoformat(value)
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        pending = None
        if row["pending_token"] is not None:
            pending = PendingToken(
                purpose=TokenPurpose(row["pending_token_purpose"]),
                value=row["pending_token"],
                expires_at=self._parse_datetime(row["pending_token_expires_at"]),
            )
        return Account(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            name=row["name"],
            role=row["role"],
            is_email_confirmed=bool(row["is_email_confirmed"]),
            pending_token=pending,
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )
