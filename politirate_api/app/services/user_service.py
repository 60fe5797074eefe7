"""
Business logic for users and admin messages.

Users register with an email and an optional password (stored as a
PBKDF2 hash), fill in a profile with their constituencies, and can be
blocked by administrators.  Administrators can also leave moderation
messages that the user reads on their next visit.

Read helpers log failures and return an empty value; write helpers
log, roll back and raise ``DataAccessError`` with a static message.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional, Union

from politirate_api.app.core.db import (
    generate_id,
    get_connection,
    like_pattern,
    to_timestamp,
    utc_now_iso,
)
from politirate_api.app.core.exceptions import DataAccessError, NotFoundError
from politirate_api.app.core.security import hash_password
from ..schemas.filters import CountFilters
from ..schemas.user import AdminMessage, User, UserCreate, UserProfileUpdate, UserRecord

logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id, email, name, gender, age, state, mp_constituency, mla_constituency, "
    "panchayat, created_at, is_blocked, blocked_until, block_reason"
)


def _row_to_user(row: sqlite3.Row, model=User):
    data = dict(row)
    data["is_blocked"] = bool(data.get("is_blocked"))
    return model(**data)


def _row_to_message(row: sqlite3.Row) -> AdminMessage:
    return AdminMessage(
        id=row["id"],
        user_id=row["user_id"],
        message=row["message"],
        is_read=bool(row["is_read"]),
        created_at=row["created_at"],
    )


class UserService:
    """Service for site users and their moderation state."""

    @classmethod
    async def get_users(cls, search_term: Optional[str] = None) -> List[User]:
        """Return every user, newest first, with activity counters.

        A non-blank ``search_term`` matches name, email or id as a
        case-insensitive substring.
        """
        query = (
            f"SELECT {', '.join('u.' + c.strip() for c in USER_COLUMNS.split(','))}, "
            "(SELECT COUNT(*) FROM ratings r WHERE r.user_id = u.id) AS rating_count, "
            "(SELECT COUNT(*) FROM leaders l WHERE l.added_by_user_id = u.id) AS leader_added_count, "
            "(SELECT COUNT(*) FROM admin_messages m WHERE m.user_id = u.id AND m.is_read = 0) "
            "AS unread_message_count "
            "FROM users u"
        )
        params: list = []
        if search_term and search_term.strip():
            pattern = like_pattern(search_term.strip())
            query += (
                " WHERE u.name LIKE ? ESCAPE '\\' OR u.email LIKE ? ESCAPE '\\'"
                " OR u.id LIKE ? ESCAPE '\\'"
            )
            params.extend([pattern, pattern, pattern])
        query += " ORDER BY u.created_at DESC"
        conn = get_connection()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_row_to_user(row) for row in rows]
        except sqlite3.Error as e:
            logger.error("Error fetching users: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def find_user_by_email(cls, email: str) -> Optional[UserRecord]:
        """Look a user up by email, including the stored password hash."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS}, password FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
            return _row_to_user(row, UserRecord) if row else None
        except sqlite3.Error as e:
            logger.error("Error finding user by email: %s", e)
            return None
        finally:
            conn.close()

    @classmethod
    async def find_user_by_id(cls, user_id: str) -> Optional[User]:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return _row_to_user(row) if row else None
        except sqlite3.Error as e:
            logger.error("Error finding user %s: %s", user_id, e)
            return None
        finally:
            conn.close()

    @classmethod
    async def add_user(cls, data: UserCreate) -> Optional[User]:
        """Register a user.

        ``UserCreate`` has already stripped and lower-cased the email.
        Without a name, the local part of the email is used; either way
        the first letter is upper-cased.
        Returns ``None`` when the insert fails, e.g. the email is taken.
        """
        email = data.email
        name = data.name or email.split("@")[0]
        name = name[:1].upper() + name[1:]
        user_id = generate_id()
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO users (id, email, password, name, created_at, is_blocked) "
                "VALUES (?, ?, ?, ?, ?, 0)",
                (
                    user_id,
                    email,
                    hash_password(data.password) if data.password else "",
                    name,
                    utc_now_iso(),
                ),
            )
            conn.commit()
            logger.info("Registered user %s", user_id)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error adding user %s: %s", email, e)
            return None
        finally:
            conn.close()
        return await cls.find_user_by_id(user_id)

    @classmethod
    async def update_user_profile(cls, user_id: str, data: UserProfileUpdate) -> Optional[User]:
        """Update the profile fields present in ``data``.

        Returns the refreshed user, or ``None`` if the update failed.
        """
        updates = data.model_dump(exclude_unset=True)
        if updates:
            assignments = ", ".join(f"{column} = ?" for column in updates)
            conn = get_connection()
            try:
                conn.execute(
                    f"UPDATE users SET {assignments} WHERE id = ?",
                    (*updates.values(), user_id),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error("Error updating user profile %s: %s", user_id, e)
                return None
            finally:
                conn.close()
        return await cls.find_user_by_id(user_id)

    @classmethod
    async def get_user_count(cls, filters: Optional[CountFilters] = None) -> int:
        filters = filters or CountFilters()
        query = "SELECT COUNT(*) FROM users"
        where: list[str] = []
        params: list = []
        if filters.has_date_range:
            where.append("created_at >= ? AND created_at <= ?")
            params.extend([to_timestamp(filters.start_date), to_timestamp(filters.end_date)])
        if filters.state:
            where.append("state = ?")
            params.append(filters.state)
        if filters.constituency:
            pattern = like_pattern(filters.constituency)
            where.append(
                "(mp_constituency LIKE ? ESCAPE '\\' OR mla_constituency LIKE ? ESCAPE '\\'"
                " OR panchayat LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])
        if where:
            query += " WHERE " + " AND ".join(where)
        conn = get_connection()
        try:
            return conn.execute(query, tuple(params)).fetchone()[0]
        except sqlite3.Error as e:
            logger.error("Error getting user count: %s", e)
            return 0
        finally:
            conn.close()

    # --- Admin moderation -------------------------------------------------

    @classmethod
    async def block_user(
        cls,
        user_id: str,
        reason: str,
        blocked_until: Union[datetime, str, None] = None,
    ) -> None:
        """Block a user, indefinitely when ``blocked_until`` is ``None``."""
        await cls._set_block_state(
            user_id, True, reason, to_timestamp(blocked_until), "Failed to block user"
        )
        logger.info("Blocked user %s", user_id)

    @classmethod
    async def unblock_user(cls, user_id: str) -> None:
        await cls._set_block_state(user_id, False, None, None, "Failed to unblock user")
        logger.info("Unblocked user %s", user_id)

    @classmethod
    async def _set_block_state(
        cls,
        user_id: str,
        blocked: bool,
        reason: Optional[str],
        blocked_until: Optional[str],
        failure: str,
    ) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE users SET is_blocked = ?, block_reason = ?, blocked_until = ? WHERE id = ?",
                (1 if blocked else 0, reason, blocked_until, user_id),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("%s %s: %s", failure, user_id, e)
            raise DataAccessError(failure) from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError(f"User {user_id} not found")

    @classmethod
    async def add_admin_message(cls, user_id: str, message: str) -> AdminMessage:
        if await cls.find_user_by_id(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")
        created = AdminMessage(
            id=generate_id(),
            user_id=user_id,
            message=message,
            is_read=False,
            created_at=utc_now_iso(),
        )
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO admin_messages (id, user_id, message, is_read, created_at) "
                "VALUES (?, ?, ?, 0, ?)",
                (created.id, created.user_id, created.message, created.created_at),
            )
            conn.commit()
            logger.info("Admin message %s sent to user %s", created.id, user_id)
            return created
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error adding admin message: %s", e)
            raise DataAccessError("Failed to add admin message") from e
        finally:
            conn.close()

    @classmethod
    async def get_admin_messages(cls, user_id: str) -> List[AdminMessage]:
        """All messages for a user, newest first."""
        return cls._select_messages(
            "SELECT * FROM admin_messages WHERE user_id = ? ORDER BY created_at DESC",
            user_id,
        )

    @classmethod
    async def get_unread_messages(cls, user_id: str) -> List[AdminMessage]:
        """Unread messages for a user, oldest first so they read in order."""
        return cls._select_messages(
            "SELECT * FROM admin_messages WHERE user_id = ? AND is_read = 0 "
            "ORDER BY created_at ASC",
            user_id,
        )

    @classmethod
    async def get_admin_message(cls, message_id: str) -> Optional[AdminMessage]:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM admin_messages WHERE id = ?", (message_id,)
            ).fetchone()
            return _row_to_message(row) if row else None
        except sqlite3.Error as e:
            logger.error("Error fetching admin message %s: %s", message_id, e)
            return None
        finally:
            conn.close()

    @classmethod
    def _select_messages(cls, query: str, user_id: str) -> List[AdminMessage]:
        conn = get_connection()
        try:
            return [_row_to_message(row) for row in conn.execute(query, (user_id,)).fetchall()]
        except sqlite3.Error as e:
            logger.error("Error fetching admin messages for %s: %s", user_id, e)
            return []
        finally:
            conn.close()

    @classmethod
    async def mark_message_as_read(cls, message_id: str) -> None:
        cls._write_message(
            "UPDATE admin_messages SET is_read = 1 WHERE id = ?",
            message_id,
            "Failed to mark message as read",
        )

    @classmethod
    async def delete_admin_message(cls, message_id: str) -> None:
        cls._write_message(
            "DELETE FROM admin_messages WHERE id = ?",
            message_id,
            "Failed to delete admin message",
        )

    @classmethod
    def _write_message(cls, statement: str, message_id: str, failure: str) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(statement, (message_id,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("%s %s: %s", failure, message_id, e)
            raise DataAccessError(failure) from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Message {message_id} not found")
