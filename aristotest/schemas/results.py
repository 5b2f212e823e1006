from typing import Any, List, Optional

from pydantic import BaseModel, Field


class QuestionStatistics(BaseModel):
    question_id: str
    position: int
    text: str
    correct_count: int
    incorrect_count: int
    skipped_count: int
    average_time: float
    accuracy: float


class SessionStatistics(BaseModel):
    session_id: str
    status: str
    total_participants: int
    total_questions: int
    max_possible_score: int
    average_score: float
    highest_score: int
    lowest_score: int
    completion_rate: float
    questions: List[QuestionStatistics] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    rank: int
    participant_id: str
    nickname: str
    score: int
    answered_questions: int
    correct_answers: int
    average_response_time: float


class SessionResults(BaseModel):
    statistics: SessionStatistics
    leaderboard: List[LeaderboardEntry] = Field(default_factory=list)


class AnswerResult(BaseModel):
    question_id: str
    position: int
    text: str
    answer: Any = None
    correct_answer: Any = None
    is_correct: bool
    skipped: bool
    points: int
    response_time: float
    explanation: Optional[str] = None


class ParticipantResults(BaseModel):
    participant_id: str
    nickname: str
    status: str
    score: int
    max_possible_score: int
    answered_questions: int
    correct_answers: int
    accuracy: int
    average_response_time: float
    answers: List[AnswerResult] = Field(default_factory=list)
