import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel

from aristotest.core.time import utc_now


class SessionStatus(str):
    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"

    # Statuses in which answers are accepted
    ACCEPTING = (WAITING, ACTIVE)


TRANSITIONS: dict[str, set[str]] = {
    SessionStatus.WAITING: {SessionStatus.ACTIVE},
    SessionStatus.ACTIVE: {SessionStatus.PAUSED, SessionStatus.COMPLETED},
    SessionStatus.PAUSED: {SessionStatus.ACTIVE, SessionStatus.COMPLETED},
    SessionStatus.COMPLETED: set(),
}


class QuizSession(SQLModel, table=True):
    __tablename__ = "quiz_sessions"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    session_code: str = Field(sa_column=Column(String(10), unique=True, nullable=False, index=True))
    quiz_id: str = Field(foreign_key="quizzes.id", index=True)
    host_id: Optional[str] = Field(default=None, index=True)
    status: str = Field(default=SessionStatus.WAITING, index=True)
    current_question_index: int = Field(default=0, ge=0)
    allow_late_join: bool = Field(default=True)
    show_leaderboard: bool = Field(default=True)
    max_participants: int = Field(default=100, ge=1)
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
    started_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    ended_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    def can_transition(self, target: str) -> bool:
        return target in TRANSITIONS.get(self.status, set())

    def can_join(self) -> bool:
        return self.status == SessionStatus.WAITING or (
            self.status == SessionStatus.ACTIVE and self.allow_late_join
        )

    def accepts_answers(self) -> bool:
        return self.status in SessionStatus.ACCEPTING
