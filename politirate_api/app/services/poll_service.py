"""
Business logic for polls.

Administrators create polls made of ordered questions with ordered
options.  Signed-in users respond once per poll; results are tallied
per question with each option's share of that question's answers.

Child rows use identifiers derived from their parent so a poll's
structure can be rebuilt without extra lookups:
``{poll_id}_q_{order}`` for questions, ``{question_id}_o_{order}`` for
options and ``{response_id}_a_{index}`` for answers.
"""

import logging
import sqlite3
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Union

from politirate_api.app.core.db import generate_id, get_connection, to_timestamp, utc_now_iso
from politirate_api.app.core.exceptions import (
    ConflictError,
    DataAccessError,
    NotFoundError,
    ValidationError,
)
from ..schemas.poll import (
    Poll,
    PollAnswerSubmit,
    PollCreate,
    PollOption,
    PollQuestion,
    PollResult,
    PollResultOption,
)
from .aggregates import percentage

logger = logging.getLogger(__name__)


def question_id_for(poll_id: str, order: int) -> str:
    return f"{poll_id}_q_{order}"


def option_id_for(question_id: str, order: int) -> str:
    return f"{question_id}_o_{order}"


def _load_polls(conn: sqlite3.Connection, where: str = "", params: tuple = ()) -> List[Poll]:
    """Fetch polls matching ``where`` with their questions and options, newest first."""
    poll_rows = conn.execute(
        f"SELECT * FROM polls {where} ORDER BY created_at DESC", params
    ).fetchall()
    if not poll_rows:
        return []
    poll_ids = [row["id"] for row in poll_rows]
    marks = ", ".join("?" for _ in poll_ids)
    question_rows = conn.execute(
        f"SELECT * FROM poll_questions WHERE poll_id IN ({marks}) ORDER BY question_order",
        tuple(poll_ids),
    ).fetchall()
    option_rows = conn.execute(
        "SELECT o.* FROM poll_options o JOIN poll_questions q ON q.id = o.question_id "
        f"WHERE q.poll_id IN ({marks}) ORDER BY o.option_order",
        tuple(poll_ids),
    ).fetchall()

    options: Dict[str, List[PollOption]] = {}
    for row in option_rows:
        options.setdefault(row["question_id"], []).append(PollOption(**dict(row)))
    questions: Dict[str, List[PollQuestion]] = {}
    for row in question_rows:
        questions.setdefault(row["poll_id"], []).append(
            PollQuestion(**dict(row), options=options.get(row["id"], []))
        )
    return [
        Poll(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            is_active=bool(row["is_active"]),
            active_until=row["active_until"],
            created_at=row["created_at"],
            questions=questions.get(row["id"], []),
        )
        for row in poll_rows
    ]


class PollService:
    """Service for polls, responses and results."""

    @classmethod
    async def get_active_polls(cls) -> List[Poll]:
        """Polls that are switched on and not past their ``active_until``."""
        conn = get_connection()
        try:
            return _load_polls(
                conn,
                "WHERE is_active = 1 AND (active_until IS NULL OR active_until > ?)",
                (utc_now_iso(),),
            )
        except sqlite3.Error as e:
            logger.error("Error fetching active polls: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def get_all_polls(cls) -> List[Poll]:
        conn = get_connection()
        try:
            return _load_polls(conn)
        except sqlite3.Error as e:
            logger.error("Error fetching all polls: %s", e)
            return []
        finally:
            conn.close()

    @classmethod
    async def get_poll_by_id(cls, poll_id: str) -> Optional[Poll]:
        conn = get_connection()
        try:
            polls = _load_polls(conn, "WHERE id = ?", (poll_id,))
            return polls[0] if polls else None
        except sqlite3.Error as e:
            logger.error("Error fetching poll %s: %s", poll_id, e)
            return None
        finally:
            conn.close()

    @classmethod
    async def create_poll(cls, data: PollCreate) -> str:
        """Create a poll with its questions and options; returns the poll id."""
        poll_id = generate_id()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO polls (id, title, description, is_active, active_until, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    poll_id,
                    data.title,
                    data.description,
                    1 if data.is_active else 0,
                    to_timestamp(data.active_until),
                    utc_now_iso(),
                ),
            )
            for question in data.questions:
                question_id = question_id_for(poll_id, question.question_order)
                cursor.execute(
                    "INSERT INTO poll_questions (id, poll_id, question_text, question_type, question_order) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        question_id,
                        poll_id,
                        question.question_text,
                        question.question_type,
                        question.question_order,
                    ),
                )
                cursor.executemany(
                    "INSERT INTO poll_options (id, question_id, option_text, option_order) "
                    "VALUES (?, ?, ?, ?)",
                    [
                        (
                            option_id_for(question_id, option.option_order),
                            question_id,
                            option.option_text,
                            option.option_order,
                        )
                        for option in question.options
                    ],
                )
            conn.commit()
            logger.info("Created poll %s with %s questions", poll_id, len(data.questions))
            return poll_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error creating poll: %s", e)
            raise DataAccessError("Failed to create poll") from e
        finally:
            conn.close()

    @classmethod
    async def has_user_responded_to_poll(cls, poll_id: str, user_id: str) -> bool:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id FROM poll_responses WHERE poll_id = ? AND user_id = ?",
                (poll_id, user_id),
            ).fetchone()
            return row is not None
        except sqlite3.Error as e:
            logger.error("Error checking poll response: %s", e)
            return False
        finally:
            conn.close()

    @classmethod
    async def submit_poll_response(
        cls, poll_id: str, user_id: str, answers: List[PollAnswerSubmit]
    ) -> str:
        """Store a user's answers to a poll; each user may respond once.

        Returns the response id.  Answers naming a question from another
        poll are rejected with ``ValidationError``.
        """
        if await cls.has_user_responded_to_poll(poll_id, user_id):
            raise ConflictError("User has already responded to this poll")
        poll = await cls.get_poll_by_id(poll_id)
        if poll is None:
            raise NotFoundError(f"Poll {poll_id} not found")
        question_ids = {question.id for question in poll.questions}
        foreign = [a.question_id for a in answers if a.question_id not in question_ids]
        if foreign:
            raise ValidationError(f"Questions not in poll {poll_id}: {', '.join(foreign)}")
        response_id = generate_id()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO poll_responses (id, poll_id, user_id, created_at) VALUES (?, ?, ?, ?)",
                (response_id, poll_id, user_id, utc_now_iso()),
            )
            cursor.executemany(
                "INSERT INTO poll_answers (id, response_id, question_id, selected_option_id) "
                "VALUES (?, ?, ?, ?)",
                [
                    (f"{response_id}_a_{index}", response_id, a.question_id, a.selected_option_id)
                    for index, a in enumerate(answers)
                ],
            )
            conn.commit()
            logger.info("User %s responded to poll %s", user_id, poll_id)
            return response_id
        except sqlite3.IntegrityError as e:
            conn.rollback()
            logger.error("Error creating poll response: %s", e)
            # Lost a race with a concurrent response from the same user.
            if "poll_responses" in str(e):
                raise ConflictError("User has already responded to this poll") from e
            raise DataAccessError("Failed to submit poll response") from e
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error creating poll response: %s", e)
            raise DataAccessError("Failed to submit poll response") from e
        finally:
            conn.close()

    @classmethod
    async def get_poll_results(cls, poll_id: str) -> List[PollResult]:
        """Tally answers per question.

        ``total_responses`` is the number of answers to that question,
        and each option's ``percentage`` is its whole-percent share of
        that total.  An unknown poll yields an empty list.
        """
        poll = await cls.get_poll_by_id(poll_id)
        if poll is None:
            return []
        conn = get_connection()
        try:
            answer_rows = conn.execute(
                "SELECT a.question_id, a.selected_option_id FROM poll_answers a "
                "JOIN poll_questions q ON q.id = a.question_id WHERE q.poll_id = ?",
                (poll_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error fetching poll answers for %s: %s", poll_id, e)
            return []
        finally:
            conn.close()

        answers_by_question: Dict[str, Counter] = {}
        for row in answer_rows:
            answers_by_question.setdefault(row["question_id"], Counter())[row["selected_option_id"]] += 1

        results: List[PollResult] = []
        for question in poll.questions:
            counts = answers_by_question.get(question.id, Counter())
            total = sum(counts.values())
            results.append(
                PollResult(
                    poll_id=poll_id,
                    question_id=question.id,
                    question_text=question.question_text,
                    question_type=question.question_type,
                    options=[
                        PollResultOption(
                            option_id=option.id,
                            option_text=option.option_text,
                            count=counts.get(option.id, 0),
                            percentage=percentage(counts.get(option.id, 0), total),
                        )
                        for option in question.options
                    ],
                    total_responses=total,
                )
            )
        return results

    @classmethod
    async def update_poll_status(
        cls,
        poll_id: str,
        is_active: bool,
        active_until: Union[datetime, str, None] = None,
    ) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE polls SET is_active = ?, active_until = ? WHERE id = ?",
                (1 if is_active else 0, to_timestamp(active_until), poll_id),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error updating poll status: %s", e)
            raise DataAccessError("Failed to update poll status") from e
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Poll {poll_id} not found")
        logger.info("Poll %s active=%s until %s", poll_id, is_active, active_until)

    @classmethod
    async def delete_poll(cls, poll_id: str) -> None:
        """Delete a poll and everything hanging off it, leaves first."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM poll_answers WHERE response_id IN "
                "(SELECT id FROM poll_responses WHERE poll_id = ?)",
                (poll_id,),
            )
            cursor.execute(
                "DELETE FROM poll_answers WHERE question_id IN "
                "(SELECT id FROM poll_questions WHERE poll_id = ?)",
                (poll_id,),
            )
            cursor.execute("DELETE FROM poll_responses WHERE poll_id = ?", (poll_id,))
            cursor.execute(
                "DELETE FROM poll_options WHERE question_id IN "
                "(SELECT id FROM poll_questions WHERE poll_id = ?)",
                (poll_id,),
            )
            cursor.execute("DELETE FROM poll_questions WHERE poll_id = ?", (poll_id,))
            cursor.execute("DELETE FROM polls WHERE id = ?", (poll_id,))
            deleted = cursor.rowcount
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Error deleting poll %s: %s", poll_id, e)
            raise DataAccessError("Failed to delete poll") from e
        finally:
            conn.close()
        if deleted == 0:
            raise NotFoundError(f"Poll {poll_id} not found")
        logger.info("Poll %s deleted", poll_id)
