"""Score persistence, authentication and leaderboard queries.

The game treats this module as an external collaborator: it stores one
append-only record per submitted run and answers leaderboard queries. Writes
require an authenticated session (credentialed or guest); reading the top
scores does not.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import sqlite3
import threading
import time
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .config import DB_FILE, DEFAULT_TOP_LIMIT, LIST_LIMIT

logger = logging.getLogger(__name__)

T = TypeVar("T")

PBKDF2_ITERATIONS = 120_000


class ScoreError(Exception):
    """Base class for everything the score collaborator can report."""


class AuthenticationError(ScoreError):
    """A write was attempted without a session, or sign in failed."""


class ValidationError(ScoreError):
    """Client-side input check failed before any backend call."""


class TransientNetworkError(ScoreError):
    """The backend call failed; retrying the same action may succeed."""


@dataclass(frozen=True)
class ScoreRecord:
    id: int
    user_id: int
    player_name: str
    score: int
    created_at: int  # epoch milliseconds


@dataclass(frozen=True)
class Session:
    token: str
    user_id: int
    anonymous: bool = False
    email: Optional[str] = None


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a ScoreError, returned across the async boundary."""

    value: Optional[T] = None
    error: Optional[ScoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ScoreError) -> "Result[T]":
        return cls(error=error)


def hash_password(password: str, salt: bytes | None = None) -> str:
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt_hex, _, digest_hex = stored.partition("$")
    expected = hash_password(password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(expected.partition("$")[2], digest_hex)


def now_ms() -> int:
    return int(time.time() * 1000)


class ScoreStore:
    """Handles all interaction with the SQLite database."""

    def __init__(self, db_file: str = DB_FILE):
        # check_same_thread=False: queries arrive from the client's worker threads
        self.conn = sqlite3.connect(db_file, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self.setup()

    def setup(self) -> None:
        """Creates tables and indexes if they don't exist."""
        with self._lock, self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE,
                    password_hash TEXT,
                    is_anonymous INTEGER NOT NULL DEFAULT 0
                )
            """)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS scores (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    player_name TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    created_at INTEGER NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id)
                )
            """)
            self.conn.execute("CREATE INDEX IF NOT EXISTS by_score ON scores (score DESC, id)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS by_user ON scores (user_id, score DESC)")

    def close(self) -> None:
        self.conn.close()

    def add_user(self, email: Optional[str], password_hash: Optional[str], anonymous: bool = False) -> Optional[int]:
        """Creates a user and returns its id, or None if the email is taken."""
        try:
            with self._lock, self.conn:
                cur = self.conn.execute(
                    "INSERT INTO users (email, password_hash, is_anonymous) VALUES (?, ?, ?)",
                    (email, password_hash, int(anonymous)),
                )
                return cur.lastrowid
        except sqlite3.IntegrityError:
            return None

    def get_user(self, email: str) -> Optional[sqlite3.Row]:
        """Fetches id, email and password hash for a credentialed user."""
        with self._lock:
            return self.conn.execute(
                "SELECT id, email, password_hash FROM users WHERE email = ? AND is_anonymous = 0",
                (email,),
            ).fetchone()

    def insert_score(self, user_id: int, player_name: str, score: int, created_at: int) -> int:
        with self._lock, self.conn:
            cur = self.conn.execute(
                "INSERT INTO scores (user_id, player_name, score, created_at) VALUES (?, ?, ?, ?)",
                (user_id, player_name, score, created_at),
            )
            return cur.lastrowid

    def top_scores(self, limit: int) -> list[ScoreRecord]:
        """Highest scores first; ties keep insertion order."""
        with self._lock:
            rows = self.conn.execute(
                "SELECT id, user_id, player_name, score, created_at FROM scores "
                "ORDER BY score DESC, id ASC LIMIT ?",
                (limit,),
            ).fetchall()
        return [ScoreRecord(**dict(row)) for row in rows]

    def user_best(self, user_id: int) -> Optional[ScoreRecord]:
        with self._lock:
            row = self.conn.execute(
                "SELECT id, user_id, player_name, score, created_at FROM scores "
                "WHERE user_id = ? ORDER BY score DESC, id ASC LIMIT 1",
                (user_id,),
            ).fetchone()
        return ScoreRecord(**dict(row)) if row else None

    def count_scores(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM scores").fetchone()[0]


class ScoreService:
    """Authentication plus the submit / top scores / user best operations."""

    def __init__(self, store: ScoreStore | None = None) -> None:
        self.store = store or ScoreStore()
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    # -- authentication ------------------------------------------------

    def sign_up(self, email: str, password: str) -> Session:
        email = email.strip().lower()
        if not email or not password:
            raise AuthenticationError("Could not create account")
        user_id = self._call(self.store.add_user, email, hash_password(password))
        if user_id is None:
            raise AuthenticationError("Could not create account")
        logger.info("New user registered: %s", email)
        return self._open_session(user_id, email=email)

    def sign_in(self, email: str, password: str) -> Session:
        email = email.strip().lower()
        row = self._call(self.store.get_user, email)
        if row is None or not verify_password(password, row["password_hash"]):
            raise AuthenticationError("Invalid credentials")
        return self._open_session(row["id"], email=email)

    def sign_in_anonymous(self) -> Session:
        user_id = self._call(self.store.add_user, None, None, True)
        logger.info("Guest session started (user %d)", user_id)
        return self._open_session(user_id, anonymous=True)

    def sign_out(self) -> None:
        self._session = None

    def _open_session(self, user_id: int, anonymous: bool = False, email: Optional[str] = None) -> Session:
        self._session = Session(secrets.token_hex(16), user_id, anonymous, email)
        return self._session

    # -- scores --------------------------------------------------------

    def submit(self, score: int, player_name: str) -> int:
        """Store one record for a finished run and return its id."""
        session = self._session
        if session is None:
            raise AuthenticationError("Not authenticated")
        record_id = self._call(self.store.insert_score, session.user_id, player_name, int(score), now_ms())
        logger.info("Score %d submitted for %r (record %d)", score, player_name, record_id)
        return record_id

    def top_scores(self, limit: int = DEFAULT_TOP_LIMIT) -> list[ScoreRecord]:
        return self._call(self.store.top_scores, limit)

    def list_scores(self) -> list[ScoreRecord]:
        return self.top_scores(LIST_LIMIT)

    def user_best(self) -> Optional[ScoreRecord]:
        session = self._session
        if session is None:
            return None
        return self._call(self.store.user_best, session.user_id)

    @staticmethod
    def _call(fn, *args):
        try:
            return fn(*args)
        except sqlite3.Error as e:
            raise TransientNetworkError(str(e)) from e
