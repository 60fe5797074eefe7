"""Tests for PollService."""

from datetime import datetime, timedelta, timezone

import pytest

from politirate_api.app.core.db import get_connection
from politirate_api.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from politirate_api.app.schemas.poll import PollAnswerSubmit, PollCreate
from politirate_api.app.services.poll_service import PollService


def make_poll(**overrides) -> PollCreate:
    data = {
        "title": "Local priorities",
        "description": "What matters most in your ward?",
        "questions": [
            {
                "questionText": "Top issue?",
                "questionType": "single-choice",
                "questionOrder": 1,
                "options": [
                    {"optionText": "Roads", "optionOrder": 1},
                    {"optionText": "Water", "optionOrder": 2},
                ],
            },
            {
                "questionText": "Satisfied with your MLA?",
                "questionType": "single-choice",
                "questionOrder": 2,
                "options": [
                    {"optionText": "Yes", "optionOrder": 1},
                    {"optionText": "No", "optionOrder": 2},
                ],
            },
        ],
    }
    data.update(overrides)
    return PollCreate(**data)


@pytest.mark.asyncio
async def test_create_poll_builds_derived_ids(db):
    poll_id = await PollService.create_poll(make_poll())
    poll = await PollService.get_poll_by_id(poll_id)
    assert poll.title == "Local priorities"
    assert poll.is_active
    assert [q.id for q in poll.questions] == [f"{poll_id}_q_1", f"{poll_id}_q_2"]
    assert [o.id for o in poll.questions[0].options] == [
        f"{poll_id}_q_1_o_1",
        f"{poll_id}_q_1_o_2",
    ]
    assert [o.option_text for o in poll.questions[0].options] == ["Roads", "Water"]


def test_duplicate_question_order_rejected():
    with pytest.raises(ValueError):
        make_poll(
            questions=[
                {"questionText": "A", "questionType": "text", "questionOrder": 1},
                {"questionText": "B", "questionType": "text", "questionOrder": 1},
            ]
        )


@pytest.mark.asyncio
async def test_active_polls_respect_flag_and_deadline(db):
    live = await PollService.create_poll(make_poll(title="Live"))
    await PollService.create_poll(make_poll(title="Switched off", is_active=False))
    await PollService.create_poll(
        make_poll(title="Expired", active_until=datetime.now(timezone.utc) - timedelta(days=1))
    )
    await PollService.create_poll(
        make_poll(title="Open until later", active_until=datetime.now(timezone.utc) + timedelta(days=1))
    )
    active = {p.title for p in await PollService.get_active_polls()}
    assert active == {"Live", "Open until later"}
    assert len(await PollService.get_all_polls()) == 4
    assert live in {p.id for p in await PollService.get_active_polls()}


@pytest.mark.asyncio
async def test_results_percentages(db):
    poll_id = await PollService.create_poll(make_poll())
    q1, q2 = f"{poll_id}_q_1", f"{poll_id}_q_2"
    choices = [("u1", "o_1", "o_1"), ("u2", "o_1", "o_2"), ("u3", "o_2", "o_2")]
    for user_id, first, second in choices:
        await PollService.submit_poll_response(
            poll_id,
            user_id,
            [
                PollAnswerSubmit(question_id=q1, selected_option_id=f"{q1}_{first}"),
                PollAnswerSubmit(question_id=q2, selected_option_id=f"{q2}_{second}"),
            ],
        )

    results = await PollService.get_poll_results(poll_id)
    assert [r.question_id for r in results] == [q1, q2]
    first_question = results[0]
    assert first_question.total_responses == 3
    assert [(o.option_text, o.count, o.percentage) for o in first_question.options] == [
        ("Roads", 2, 67),
        ("Water", 1, 33),
    ]
    assert sum(o.percentage for o in results[1].options) == 100


@pytest.mark.asyncio
async def test_results_without_answers(db):
    poll_id = await PollService.create_poll(make_poll())
    results = await PollService.get_poll_results(poll_id)
    assert all(r.total_responses == 0 for r in results)
    assert all(o.percentage == 0 for r in results for o in r.options)


@pytest.mark.asyncio
async def test_results_for_unknown_poll(db):
    assert await PollService.get_poll_results("missing") == []


@pytest.mark.asyncio
async def test_second_response_rejected(db):
    poll_id = await PollService.create_poll(make_poll())
    answer = [PollAnswerSubmit(question_id=f"{poll_id}_q_1", selected_option_id=f"{poll_id}_q_1_o_1")]
    assert not await PollService.has_user_responded_to_poll(poll_id, "u1")
    await PollService.submit_poll_response(poll_id, "u1", answer)
    assert await PollService.has_user_responded_to_poll(poll_id, "u1")
    with pytest.raises(ConflictError, match="already responded"):
        await PollService.submit_poll_response(poll_id, "u1", answer)


@pytest.mark.asyncio
async def test_response_to_unknown_poll(db):
    with pytest.raises(NotFoundError):
        await PollService.submit_poll_response(
            "missing", "u1", [PollAnswerSubmit(question_id="q", selected_option_id="o")]
        )


@pytest.mark.asyncio
async def test_update_status(db):
    poll_id = await PollService.create_poll(make_poll())
    await PollService.update_poll_status(poll_id, False)
    assert not (await PollService.get_poll_by_id(poll_id)).is_active
    assert await PollService.get_active_polls() == []

    until = datetime(2031, 1, 1, tzinfo=timezone.utc)
    await PollService.update_poll_status(poll_id, True, until)
    poll = await PollService.get_poll_by_id(poll_id)
    assert poll.is_active
    assert poll.active_until == "2031-01-01T00:00:00+00:00"

    with pytest.raises(NotFoundError):
        await PollService.update_poll_status("missing", True)


@pytest.mark.asyncio
async def test_delete_poll_removes_everything(db):
    poll_id = await PollService.create_poll(make_poll())
    await PollService.submit_poll_response(
        poll_id,
        "u1",
        [PollAnswerSubmit(question_id=f"{poll_id}_q_1", selected_option_id=f"{poll_id}_q_1_o_2")],
    )
    await PollService.delete_poll(poll_id)
    assert await PollService.get_poll_by_id(poll_id) is None

    conn = get_connection()
    try:
        for table in ("poll_questions", "poll_options", "poll_responses", "poll_answers"):
            assert conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0
    finally:
        conn.close()

    with pytest.raises(NotFoundError):
        await PollService.delete_poll(poll_id)


@pytest.mark.asyncio
async def test_reads_fall_back_when_tables_missing(unmigrated_db):
    assert await PollService.get_active_polls() == []
    assert await PollService.get_poll_by_id("x") is None
    assert await PollService.has_user_responded_to_poll("x", "u") is False


@pytest.mark.asyncio
async def test_multiple_choice_totals_count_answers(db):
    poll_id = await PollService.create_poll(
        make_poll(
            questions=[
                {
                    "questionText": "Which services need work?",
                    "questionType": "multiple-choice",
                    "questionOrder": 1,
                    "options": [
                        {"optionText": "Roads", "optionOrder": 1},
                        {"optionText": "Water", "optionOrder": 2},
                        {"optionText": "Schools", "optionOrder": 3},
                    ],
                }
            ]
        )
    )
    question_id = f"{poll_id}_q_1"
    picks = {"u1": ["o_1", "o_2", "o_3"], "u2": ["o_1"]}
    for user_id, options in picks.items():
        await PollService.submit_poll_response(
            poll_id,
            user_id,
            [
                PollAnswerSubmit(question_id=question_id, selected_option_id=f"{question_id}_{option}")
                for option in options
            ],
        )

    (result,) = await PollService.get_poll_results(poll_id)
    assert result.question_type == "multiple-choice"
    # Four answers from two respondents.
    assert result.total_responses == 4
    assert [(o.count, o.percentage) for o in result.options] == [(2, 50), (1, 25), (1, 25)]


@pytest.mark.asyncio
async def test_answer_from_another_poll_rejected(db):
    target = await PollService.create_poll(make_poll(title="Target"))
    other = await PollService.create_poll(make_poll(title="Other"))
    stray = f"{other}_q_1"
    with pytest.raises(ValidationError):
        await PollService.submit_poll_response(
            target, "u1", [PollAnswerSubmit(question_id=stray, selected_option_id=f"{stray}_o_1")]
        )
    assert not await PollService.has_user_responded_to_poll(target, "u1")
    results = await PollService.get_poll_results(other)
    assert all(r.total_responses == 0 for r in results)
