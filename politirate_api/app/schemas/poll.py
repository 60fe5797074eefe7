"""
Pydantic schemas for polls.

A poll owns ordered questions, and each question owns ordered options.
Child identifiers are derived from the parent id and the order value,
so orders must be unique among siblings.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, model_validator

from .base import CamelModel


QuestionType = Literal["single-choice", "multiple-choice", "text"]


class PollOption(CamelModel):
    id: str
    question_id: str
    option_text: str
    option_order: int


class PollQuestion(CamelModel):
    id: str
    poll_id: str
    question_text: str
    question_type: QuestionType
    question_order: int
    options: List[PollOption] = Field(default_factory=list)


class Poll(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    is_active: bool
    active_until: Optional[str] = None
    created_at: str
    questions: List[PollQuestion] = Field(default_factory=list)


class PollOptionCreate(CamelModel):
    option_text: str = Field(..., min_length=1)
    option_order: int


class PollQuestionCreate(CamelModel):
    question_text: str = Field(..., min_length=1)
    question_type: QuestionType
    question_order: int
    options: List[PollOptionCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_option_orders(self) -> "PollQuestionCreate":
        orders = [o.option_order for o in self.options]
        if len(orders) != len(set(orders)):
            raise ValueError("Option orders must be unique within a question")
        return self


class PollCreate(CamelModel):
    """Schema for creating a poll with its questions and options."""

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True
    active_until: Optional[datetime] = None
    questions: List[PollQuestionCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_question_orders(self) -> "PollCreate":
        orders = [q.question_order for q in self.questions]
        if len(orders) != len(set(orders)):
            raise ValueError("Question orders must be unique within a poll")
        return self


class PollAnswerSubmit(CamelModel):
    question_id: str
    selected_option_id: str


class PollResponseSubmit(CamelModel):
    answers: List[PollAnswerSubmit] = Field(..., min_length=1)


class PollStatusUpdate(CamelModel):
    is_active: bool
    active_until: Optional[datetime] = None


class PollResultOption(CamelModel):
    option_id: str
    option_text: str
    count: int
    percentage: int


class PollResult(CamelModel):
    """Tally of one question."""

    poll_id: str
    question_id: str
    question_text: str
    question_type: str
    options: List[PollResultOption]
    total_responses: int
