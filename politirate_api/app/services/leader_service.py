"""
Business logic for leaders, ratings and comments.

Leaders are submitted by users and go live once an administrator
approves them.  Each user can rate a leader once (re-rating replaces
the score) and attach a comment and a "social behaviour" tag.  The
leader row caches the average rating and the number of ratings; both
are recomputed after every rating change.

Reads log failures and return empty results; writes log, roll back and
raise ``DataAccessError``.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from politirate_api.app.core.db import (
    generate_id,
    get_connection,
    like_pattern,
    to_timestamp,
    utc_now_iso,
)
from politirate_api.app.core.exceptions import (
    DataAccessError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..schemas.filters import CountFilters
from ..schemas.leader import (
    LEADER_STATUSES,
    AdminLeaderFilters,
    Leader,
    LeaderCreate,
    RatingDistribution,
    Review,
    SocialBehaviourDistribution,
    UserActivity,
)
from .aggregates import average_rating

logger = logging.getLogger(__name__)

PENDING_REAPPROVAL_COMMENT = "User updated details. Pending re-approval."
APPROVED_COMMENT = "Approved by admin."

# Rating rows joined with the rater, the leader and the optional comment.
ACTIVITY_QUERY = """
    SELECT r.leader_id AS rated_leader_id, r.rating AS user_rating,
           r.updated_at AS rated_at, r.social_behaviour AS rated_behaviour,
           u.name AS rater_name, c.comment, l.*
    FROM ratings r
    JOIN users u ON u.id = r.user_id
    JOIN leaders l ON l.id = r.leader_id
    LEFT JOIN comments c ON c.user_id = r.user_id AND c.leader_id = r.leader_id
"""


def row_to_leader(row: Any) -> Leader:
    """Map a ``leaders`` row (or a join containing its columns) to ``Leader``."""
    data = dict(row)
    previous = data.get("previous_elections")
    if isinstance(previous, str):
        previous = json.loads(previous or "[]")
    return Leader(
        id=data["id"],
        name=data["name"],
        party_name=data.get("party_name"),
        gender=data.get("gender"),
        age=data.get("age"),
        photo_url=data.get("photo_url"),
        constituency=data.get("constituency"),
        native_address=data.get("native_address"),
        election_type=data.get("election_type"),
        location={
            "state": data.get("location_state"),
            "district": data.get("location_district"),
        },
        rating=data.get("rating") or 0,
        review_count=data.get("review_count") or 0,
        previous_elections=previous or [],
        manifesto_url=data.get("manifesto_url"),
        twitter_url=data.get("twitter_url"),
        added_by_user_id=data.get("added_by_user_id"),
        created_at=data.get("created_at"),
        status=data.get("status") or "pending",
        admin_comment=data.get("admin_comment"),
        user_name=data.get("user_name"),
    )


def _profile_columns(data: LeaderCreate) -> Dict[str, Any]:
    """Columns written from a submitted profile."""
    return {
        "name": data.name,
        "party_name": data.party_name,
        "gender": data.gender,
        "age": data.age,
        "photo_url": data.photo_url,
        "constituency": data.constituency,
        "native_address": data.native_address,
        "election_type": data.election_type,
        "location_state": data.location.state,
        "location_district": data.location.district,
        "previous_elections": json.dumps(
            [e.model_dump(by_alias=True) for e in data.previous_elections]
        ),
        "manifesto_url": data.manifesto_url,
        "twitter_url": data.twitter_url,
    }


def _refresh_leader_aggregate(cursor: sqlite3.Cursor, leader_id: str) -> None:
    """Recompute the cached average and count from the ratings table."""
    ratings = [
        row["rating"]
        for row in cursor.execute(
            "SELECT rating FROM ratings WHERE leader_id = ?", (leader_id,)
        ).fetchall()
    ]
    cursor.execute(
        "UPDATE leaders SET rating = ?, review_count = ? WHERE id = ?",
        (average_rating(ratings), len(ratings), leader_id),
    )


def _row_to_activity(row: sqlite3.Row) -> UserActivity:
    leader = row_to_leader(row)
    return UserActivity(
        leader_id=row["rated_leader_id"],
        leader_name=leader.name or "",
        leader_photo_url=leader.photo_url or "",
        rating=row["user_rating"],
        comment=row["comment"],
        updated_at=row["rated_at"],
        social_behaviour=row["rated_behaviour"],
        user_name=row["rater_name"] or "Anonymous",
        leader=leader,
    )


class LeaderService:
    """Service for leader profiles and the ratings attached to them."""

    # --- Public listing ---------------------------------------------------

    @classmethod
    async def get_leaders(cls) -> List[Leader]:
        """Return approved leaders only; this is what the public site lists."""
        return cls._select_leaders(
            "SELECT * FROM leaders WHERE status = 'approved' ORDER BY name ASC", ()
        )

    @classmethod
    async def get_leader_by_id(cls, leader_id: str) -> Optional[Leader]:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM leaders WHERE id = ?", (leader_id,)).fetchone()
            return row_to_leader(row) if row else None
        except sqlite3.Error as e:
            logger.error("Error fetching leader %s: %s", leader_id, e)
            return None
        finally:
            conn.close()

    @classmethod
    async def get_leaders_added_by_user(cls, user_id: str) -> List[Leader]:
        return cls._select_leaders(
            "SELECT * FROM leaders WHERE added_by_user_id = ? ORDER BY name ASC", (user_id,)
        )

    @classmethod
    def _select_leaders(cls, query: str, params: tuple) -> List[Leader]:
        conn = get_connection()
        try:
            return [row_to_leader(row) for row in conn.execute(query, params).fetchall()]
        except sqlite3.Error as e:
            logger.error("Error fetching leaders: %s", e)
            return []
        finally:
            conn.close()

    # --- Submission and editing ------------------------------------------

    @classmethod
    async def add_leader(cls, data: LeaderCreate, user_id: Optional[str]) -> Leader:
        """Submit a new leader profile.

        The leader starts ``pending`` with no ratings.  ``user_id`` is
        recorded as the submitter and may be ``None`` for admin imports.
        """
        columns = _profile_columns(data)
        columns.update(
            id=generate_id(),
            rating=0,
            review_count=0,
            added_by_user_id=user_id,
            created_at=utc_now_iso(),
            status="pending",
            admin_comment=None,
        )
        conn = get_connection()
        try:
            conn.execute(
                f"INSERT INTO leaders ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                tuple(columns.values()),
            )
            conn.commit()
            logger.info("User %s submitted leader %s", user_id, columns["id"])
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error adding leader: %s", e)
            raise DataAccessError("Failed to add leader") from e
        finally:
            conn.close()
        return await cls.get_leader_by_id(columns["id"])

    @classmethod
    async def update_leader(
        cls,
        leader_id: str,
        data: LeaderCreate,
        user_id: Optional[str],
        is_admin: bool,
    ) -> Optional[Leader]:
        """Edit a leader profile.

        Only the original submitter or an administrator may edit.  An
        administrator's edit keeps the moderation status and comment;
        anyone else's edit sends the leader back to ``pending``.
        """
        existing = await cls.get_leader_by_id(leader_id)
        if existing is None:
            raise NotFoundError("Leader not found.")
        if not is_admin and (user_id is None or existing.added_by_user_id != user_id):
            raise PermissionDeniedError("You are not authorized to edit this leader.")

        columns = _profile_columns(data)
        if is_admin:
            columns.update(status=existing.status, admin_comment=existing.admin_comment)
        else:
            columns.update(status="pending", admin_comment=PENDING_REAPPROVAL_COMMENT)

        conn = get_connection()
        try:
            conn.execute(
                f"UPDATE leaders SET {', '.join(f'{c} = ?' for c in columns)} WHERE id = ?",
                (*columns.values(), leader_id),
            )
            conn.commit()
            logger.info("Leader %s updated by %s", leader_id, "admin" if is_admin else user_id)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error updating leader %s: %s", leader_id, e)
            raise DataAccessError("Failed to update leader") from e
        finally:
            conn.close()
        return await cls.get_leader_by_id(leader_id)

    # --- Ratings ----------------------------------------------------------

    @classmethod
    async def submit_rating_and_comment(
        cls,
        leader_id: str,
        user_id: str,
        rating: int,
        comment: Optional[str] = None,
        social_behaviour: Optional[str] = None,
    ) -> Optional[Leader]:
        """Record (or replace) a user's rating of a leader.

        The first rating keeps its ``created_at`` on later re-rates.  A
        non-blank comment is stored alongside; a blank one leaves any
        earlier comment untouched.  The leader's cached average and
        count are refreshed in the same transaction.
        """
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if await cls.get_leader_by_id(leader_id) is None:
            raise NotFoundError("Leader not found.")
        now = utc_now_iso()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO ratings (user_id, leader_id, rating, social_behaviour, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, leader_id) DO UPDATE SET
                    rating = excluded.rating,
                    social_behaviour = excluded.social_behaviour,
                    updated_at = excluded.updated_at
                """,
                (user_id, leader_id, rating, social_behaviour, now, now),
            )
            if comment and comment.strip():
                cursor.execute(
                    """
                    INSERT INTO comments (user_id, leader_id, comment, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(user_id, leader_id) DO UPDATE SET
                        comment = excluded.comment,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, leader_id, comment, now, now),
                )
            _refresh_leader_aggregate(cursor, leader_id)
            conn.commit()
            logger.info("User %s rated leader %s with %s", user_id, leader_id, rating)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Failed to submit rating and comment: %s", e)
            raise DataAccessError("Failed to submit rating") from e
        finally:
            conn.close()
        return await cls.get_leader_by_id(leader_id)

    @classmethod
    async def delete_rating(cls, user_id: str, leader_id: str) -> None:
        """Remove a user's rating and comment and refresh the aggregate."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM ratings WHERE user_id = ? AND leader_id = ?", (user_id, leader_id)
            )
            cursor.execute(
                "DELETE FROM comments WHERE user_id = ? AND leader_id = ?", (user_id, leader_id)
            )
            _refresh_leader_aggregate(cursor, leader_id)
            conn.commit()
            logger.info("Rating of leader %s by user %s deleted", leader_id, user_id)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error deleting rating: %s", e)
            raise DataAccessError("Failed to delete rating") from e
        finally:
            conn.close()

    @classmethod
    async def get_reviews_for_leader(cls, leader_id: str) -> List[Review]:
        """Ratings of one leader with rater name and comment, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT r.rating, r.updated_at, r.social_behaviour, u.name AS user_name, c.comment
                FROM ratings r
                JOIN users u ON u.id = r.user_id
                LEFT JOIN comments c ON c.user_id = r.user_id AND c.leader_id = r.leader_id
                WHERE r.leader_id = ?
                ORDER BY r.updated_at DESC
                """,
                (leader_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error fetching reviews for %s: %s", leader_id, e)
            return []
        finally:
            conn.close()
        return [
            Review(
                user_name=row["user_name"] or "Anonymous",
                rating=row["rating"],
                comment=row["comment"] or None,
                updated_at=row["updated_at"],
                social_behaviour=row["social_behaviour"],
            )
            for row in rows
        ]

    @classmethod
    async def get_rating_distribution(cls, leader_id: str) -> List[RatingDistribution]:
        """Number of ratings per score, highest score first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT rating, COUNT(*) AS count FROM ratings WHERE leader_id = ? "
                "GROUP BY rating ORDER BY rating DESC",
                (leader_id,),
            ).fetchall()
            return [RatingDistribution(rating=row["rating"], count=row["count"]) for row in rows]
        except sqlite3.Error as e:
            logger.error("Error fetching rating distribution: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def get_social_behaviour_distribution(
        cls, leader_id: str
    ) -> List[SocialBehaviourDistribution]:
        """Count of each social behaviour tag, most frequent first.

        Tags are shown as labels: first letter upper-cased and the first
        hyphen replaced by a space (``"very-good"`` -> ``"Very good"``).
        """
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT social_behaviour FROM ratings WHERE leader_id = ? "
                "AND social_behaviour IS NOT NULL AND social_behaviour != ''",
                (leader_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error fetching social behaviour distribution: %s", e)
            return []
        finally:
            conn.close()

        counts: Dict[str, int] = {}
        for row in rows:
            tag = row["social_behaviour"]
            counts[tag] = counts.get(tag, 0) + 1
        distribution = [
            SocialBehaviourDistribution(
                name=tag[:1].upper() + tag[1:].replace("-", " ", 1), count=count
            )
            for tag, count in counts.items()
        ]
        return sorted(distribution, key=lambda d: d.count, reverse=True)

    @classmethod
    async def get_activities_for_user(cls, user_id: str) -> List[UserActivity]:
        return cls._select_activities(
            ACTIVITY_QUERY + " WHERE r.user_id = ? ORDER BY r.updated_at DESC", (user_id,)
        )

    @classmethod
    async def get_all_activities(cls) -> List[UserActivity]:
        return cls._select_activities(ACTIVITY_QUERY + " ORDER BY r.updated_at DESC", ())

    @classmethod
    def _select_activities(cls, query: str, params: tuple) -> List[UserActivity]:
        conn = get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
            return [_row_to_activity(row) for row in rows]
        except sqlite3.Error as e:
            logger.error("Error fetching activities: %s", e)
            return []
        finally:
            conn.close()

    # --- Dashboard counters -----------------------------------------------

    @classmethod
    async def get_leader_count(cls, filters: Optional[CountFilters] = None) -> int:
        filters = filters or CountFilters()
        where: list[str] = []
        params: list = []
        if filters.has_date_range:
            where.append("created_at >= ? AND created_at <= ?")
            params.extend([to_timestamp(filters.start_date), to_timestamp(filters.end_date)])
        if filters.state:
            where.append("location_state = ?")
            params.append(filters.state)
        if filters.constituency:
            where.append("constituency LIKE ? ESCAPE '\\'")
            params.append(like_pattern(filters.constituency))
        query = "SELECT COUNT(*) FROM leaders"
        if where:
            query += " WHERE " + " AND ".join(where)
        return cls._count(query, params, "leader")

    @classmethod
    async def get_rating_count(cls, filters: Optional[CountFilters] = None) -> int:
        """Count ratings; state and constituency filter on the rated leader."""
        filters = filters or CountFilters()
        where: list[str] = []
        params: list = []
        query = "SELECT COUNT(*) FROM ratings r"
        if filters.has_date_range:
            where.append("r.created_at >= ? AND r.created_at <= ?")
            params.extend([to_timestamp(filters.start_date), to_timestamp(filters.end_date)])
        if filters.state or filters.constituency:
            query += " JOIN leaders l ON l.id = r.leader_id"
            if filters.state:
                where.append("l.location_state = ?")
                params.append(filters.state)
            if filters.constituency:
                where.append("l.constituency LIKE ? ESCAPE '\\'")
                params.append(like_pattern(filters.constituency))
        if where:
            query += " WHERE " + " AND ".join(where)
        return cls._count(query, params, "rating")

    @classmethod
    def _count(cls, query: str, params: list, what: str) -> int:
        conn = get_connection()
        try:
            return conn.execute(query, tuple(params)).fetchone()[0]
        except sqlite3.Error as e:
            logger.error("Error getting %s count: %s", what, e)
            return 0
        finally:
            conn.close()

    # --- Administration ---------------------------------------------------

    @classmethod
    async def get_leaders_for_admin_panel(
        cls, filters: Optional[AdminLeaderFilters] = None
    ) -> List[Leader]:
        """Every leader regardless of status, with the submitter's name, newest first."""
        filters = filters or AdminLeaderFilters()
        where: list[str] = []
        params: list = []
        if filters.date_from is not None and filters.date_to is not None:
            where.append("l.created_at >= ? AND l.created_at <= ?")
            params.extend([to_timestamp(filters.date_from), to_timestamp(filters.date_to)])
        if filters.state:
            where.append("l.location_state = ?")
            params.append(filters.state)
        if filters.constituency:
            where.append("l.constituency LIKE ? ESCAPE '\\'")
            params.append(like_pattern(filters.constituency))
        if filters.candidate_name:
            where.append("l.name LIKE ? ESCAPE '\\'")
            params.append(like_pattern(filters.candidate_name))
        query = (
            "SELECT l.*, u.name AS user_name FROM leaders l "
            "LEFT JOIN users u ON u.id = l.added_by_user_id"
        )
        if where:
            query += " WHERE " + " AND ".join(where)
        query += " ORDER BY l.created_at DESC"
        return cls._select_leaders(query, tuple(params))

    @classmethod
    async def approve_leader(cls, leader_id: str) -> None:
        await cls._set_status(leader_id, "approved", APPROVED_COMMENT, "Failed to approve leader")

    @classmethod
    async def update_leader_status(
        cls, leader_id: str, status: str, admin_comment: Optional[str]
    ) -> None:
        if status not in LEADER_STATUSES:
            raise ValidationError(f"Invalid leader status: {status}")
        await cls._set_status(leader_id, status, admin_comment, "Failed to update leader status")

    @classmethod
    async def _set_status(
        cls, leader_id: str, status: str, admin_comment: Optional[str], failure: str
    ) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE leaders SET status = ?, admin_comment = ? WHERE id = ?",
                (status, admin_comment, leader_id),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("%s %s: %s", failure, leader_id, e)
            raise DataAccessError(failure) from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError("Leader not found.")
        logger.info("Leader %s set to %s", leader_id, status)

    @classmethod
    async def delete_leader(cls, leader_id: str) -> None:
        """Delete a leader together with its ratings and comments."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM ratings WHERE leader_id = ?", (leader_id,))
            cursor.execute("DELETE FROM comments WHERE leader_id = ?", (leader_id,))
            cursor.execute("DELETE FROM leaders WHERE id = ?", (leader_id,))
            deleted = cursor.rowcount
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error deleting leader %s: %s", leader_id, e)
            raise DataAccessError("Failed to delete leader") from e
        finally:
            conn.close()
        if deleted == 0:
            raise NotFoundError("Leader not found.")
        logger.info("Leader %s deleted", leader_id)
