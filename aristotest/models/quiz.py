import uuid
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, Text
from sqlmodel import Field, Relationship, SQLModel

from aristotest.core.time import utc_now


class QuestionType:
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"

    ALL = (MULTIPLE_CHOICE, TRUE_FALSE, SHORT_ANSWER)


class Quiz(SQLModel, table=True):
    __tablename__ = "quizzes"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    title: str
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    category: Optional[str] = None
    time_limit_seconds: int = Field(default=30, ge=10, le=300)
    pass_percentage: float = Field(default=70.0, ge=0, le=100)
    is_public: bool = Field(default=False)
    times_taken: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))

    questions: List["Question"] = Relationship(
        back_populates="quiz",
        sa_relationship_kwargs={"order_by": "Question.position", "cascade": "all, delete-orphan"},
    )


class Question(SQLModel, table=True):
    __tablename__ = "questions"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    quiz_id: str = Field(foreign_key="quizzes.id", index=True)
    question_type: str
    text: str = Field(sa_column=Column(Text, nullable=False))
    options: list[str] = Field(default_factory=list, sa_column=Column(JSON, default=list))
    # str, bool or list[str] depending on question_type
    correct_answer: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    points: int = Field(default=10, gt=0)
    time_limit_seconds: Optional[int] = None
    explanation: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    position: int = Field(sa_column=Column(Integer), default=0)

    quiz: Optional[Quiz] = Relationship(back_populates="questions")

    @property
    def is_multi_select(self) -> bool:
        return self.question_type == QuestionType.MULTIPLE_CHOICE and isinstance(self.correct_answer, list)
