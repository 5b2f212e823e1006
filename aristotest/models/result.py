import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from aristotest.core.time import utc_now


class PublicQuizResult(SQLModel, table=True):
    __tablename__ = "public_quiz_results"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    quiz_id: str = Field(foreign_key="quizzes.id", index=True)
    participant_name: str
    participant_email: str = Field(index=True)
    participant_organization: Optional[str] = None
    answers: dict = Field(default_factory=dict, sa_column=Column(JSON, default=dict))
    score: float = Field(default=0.0)
    total_points: int = Field(default=0)
    earned_points: int = Field(default=0)
    total_questions: int
    answered_questions: int = Field(default=0)
    correct_answers: int = Field(default=0)
    time_spent_seconds: Optional[int] = None
    passed: bool = Field(default=False)
    started_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    completed_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
