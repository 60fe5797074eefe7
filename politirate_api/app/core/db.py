"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), applying migrations on application start
(``init_db``) and a few helpers shared by every service: generated
identifiers and UTC timestamps in the format stored by the schema.

All timestamps are stored as ISO-8601 strings in UTC.  Because every
value has the same shape, SQL string comparison orders them
chronologically, which the services rely on for date range filters,
active windows and the support ticket purge.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from .config import settings

logger = logging.getLogger(__name__)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the package root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # politirate_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the lifetime of
    the connection since SQLite leaves it off by default.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def generate_id() -> str:
    """Return a new random text primary key."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(value: Union[datetime, str, None]) -> Optional[str]:
    """Normalise a datetime (or ISO string) to the stored UTC format.

    Naive datetimes are taken to be UTC.  ``None`` passes through so
    optional columns can be cleared.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def utc_now_iso() -> str:
    return to_timestamp(utc_now())


def like_pattern(term: str) -> str:
    """Wrap ``term`` for a substring ``LIKE ? ESCAPE '\\'`` match.

    SQLite's ``LIKE`` is case-insensitive for ASCII, which gives the
    case-insensitive search the listings need.
    """
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password TEXT,
            name TEXT,
            gender TEXT,
            age INTEGER,
            state TEXT,
            mp_constituency TEXT,
            mla_constituency TEXT,
            panchayat TEXT,
            created_at TEXT NOT NULL,
            is_blocked INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS leaders (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            party_name TEXT,
            gender TEXT,
            age INTEGER,
            photo_url TEXT,
            constituency TEXT,
            native_address TEXT,
            election_type TEXT,
            location_state TEXT,
            location_district TEXT,
            rating REAL NOT NULL DEFAULT 0,
            review_count INTEGER NOT NULL DEFAULT 0,
            previous_elections TEXT,
            manifesto_url TEXT,
            twitter_url TEXT,
            added_by_user_id TEXT,
            created_at TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected')),
            admin_comment TEXT,
            FOREIGN KEY(added_by_user_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS ratings (
            user_id TEXT NOT NULL,
            leader_id TEXT NOT NULL,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            social_behaviour TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (user_id, leader_id),
            FOREIGN KEY(user_id) REFERENCES users(id),
            FOREIGN KEY(leader_id) REFERENCES leaders(id)
        );

        CREATE TABLE IF NOT EXISTS comments (
            user_id TEXT NOT NULL,
            leader_id TEXT NOT NULL,
            comment TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (user_id, leader_id),
            FOREIGN KEY(user_id) REFERENCES users(id),
            FOREIGN KEY(leader_id) REFERENCES leaders(id)
        );
        """,
    ),
    # Migration 2: Polls
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS polls (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            active_until TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS poll_questions (
            id TEXT PRIMARY KEY,
            poll_id TEXT NOT NULL,
            question_text TEXT NOT NULL,
            question_type TEXT NOT NULL
                CHECK (question_type IN ('single-choice', 'multiple-choice', 'text')),
            question_order INTEGER NOT NULL,
            FOREIGN KEY(poll_id) REFERENCES polls(id)
        );

        CREATE TABLE IF NOT EXISTS poll_options (
            id TEXT PRIMARY KEY,
            question_id TEXT NOT NULL,
            option_text TEXT NOT NULL,
            option_order INTEGER NOT NULL,
            FOREIGN KEY(question_id) REFERENCES poll_questions(id)
        );

        CREATE TABLE IF NOT EXISTS poll_responses (
            id TEXT PRIMARY KEY,
            poll_id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE (poll_id, user_id),
            FOREIGN KEY(poll_id) REFERENCES polls(id)
        );

        CREATE TABLE IF NOT EXISTS poll_answers (
            id TEXT PRIMARY KEY,
            response_id TEXT NOT NULL,
            question_id TEXT NOT NULL,
            selected_option_id TEXT,
            FOREIGN KEY(response_id) REFERENCES poll_responses(id),
            FOREIGN KEY(question_id) REFERENCES poll_questions(id)
        );
        """,
    ),
    # Migration 3: Site notifications and key/value settings
    (
        3,
        """
        CREATE TABLE IF NOT EXISTS notifications (
            id TEXT PRIMARY KEY,
            message TEXT NOT NULL,
            start_time TEXT,
            end_time TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            link TEXT
        );

        CREATE TABLE IF NOT EXISTS site_settings (
            key TEXT PRIMARY KEY,
            value TEXT
        );
        """,
    ),
    # Migration 4: Support tickets
    (
        4,
        """
        CREATE TABLE IF NOT EXISTS support_tickets (
            id TEXT PRIMARY KEY,
            user_id TEXT,
            user_name TEXT NOT NULL,
            user_email TEXT NOT NULL,
            subject TEXT NOT NULL,
            message TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'open'
                CHECK (status IN ('open', 'in-progress', 'resolved', 'closed')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            resolved_at TEXT,
            admin_notes TEXT,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );
        """,
    ),
    # Migration 5: Moderation columns and admin messages
    (
        5,
        """
        ALTER TABLE users ADD COLUMN block_reason TEXT;
        ALTER TABLE users ADD COLUMN blocked_until TEXT;

        CREATE TABLE IF NOT EXISTS admin_messages (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            message TEXT NOT NULL,
            is_read INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """,
    ),
    # Migration 6: indices on foreign keys and frequent filters
    (
        6,
        """
        CREATE INDEX IF NOT EXISTS idx_admin_messages_user_id ON admin_messages(user_id);
        CREATE INDEX IF NOT EXISTS idx_admin_messages_read ON admin_messages(is_read);
        CREATE INDEX IF NOT EXISTS idx_users_blocked ON users(is_blocked);
        CREATE INDEX IF NOT EXISTS idx_leaders_status ON leaders(status);
        CREATE INDEX IF NOT EXISTS idx_leaders_added_by ON leaders(added_by_user_id);
        CREATE INDEX IF NOT EXISTS idx_ratings_leader_id ON ratings(leader_id);
        CREATE INDEX IF NOT EXISTS idx_poll_questions_poll_id ON poll_questions(poll_id);
        CREATE INDEX IF NOT EXISTS idx_poll_options_question_id ON poll_options(question_id);
        CREATE INDEX IF NOT EXISTS idx_poll_answers_response_id ON poll_answers(response_id);
        CREATE INDEX IF NOT EXISTS idx_support_tickets_status ON support_tickets(status);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  To add a migration, append it with an incremented
    version number.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                logger.info("Applied migration %s", version)
                current_version = version
