import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from aristotest.core.time import utc_now


class ParticipantStatus(str):
    WAITING = "waiting"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    FINISHED = "finished"


class Participant(SQLModel, table=True):
    __tablename__ = "participants"
    __table_args__ = (UniqueConstraint("session_id", "nickname", name="uq_participant_session_nickname"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    session_id: str = Field(foreign_key="quiz_sessions.id", index=True)
    user_id: Optional[str] = Field(default=None, index=True)
    nickname: str = Field(min_length=1, max_length=50)
    status: str = Field(default=ParticipantStatus.WAITING)
    score: int = Field(default=0, ge=0)
    answered_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    skipped_questions: int = Field(default=0, ge=0)
    average_response_time: float = Field(default=0.0, ge=0)
    joined_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
    finished_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    @property
    def accuracy(self) -> int:
        if self.answered_questions == 0:
            return 0
        return round(self.correct_answers / self.answered_questions * 100)


class Answer(SQLModel, table=True):
    __tablename__ = "answers"
    __table_args__ = (UniqueConstraint("participant_id", "question_id", name="uq_answer_participant_question"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    participant_id: str = Field(foreign_key="participants.id", index=True)
    question_id: str = Field(foreign_key="questions.id", index=True)
    session_id: str = Field(foreign_key="quiz_sessions.id", index=True)
    # None marks a skipped question
    answer: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    is_correct: bool = Field(default=False)
    points: int = Field(default=0, ge=0)
    response_time: float = Field(default=0.0, ge=0)
    answered_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))

    @property
    def skipped(self) -> bool:
        return self.answer is None
