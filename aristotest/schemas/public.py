from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PublicQuestion(BaseModel):
    id: str
    question_type: str
    text: str
    options: List[str]
    points: int
    position: int


class PublicQuiz(BaseModel):
    id: str
    title: str
    description: Optional[str]
    category: Optional[str]
    time_limit_seconds: int
    pass_percentage: float
    question_count: int
    questions: List[PublicQuestion] = Field(default_factory=list)


class PublicParticipant(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    organization: Optional[str] = None


class PublicSubmission(BaseModel):
    participant: PublicParticipant
    answers: Dict[str, Any] = Field(default_factory=dict)
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)
    started_at: Optional[datetime] = None


class GradedAnswer(BaseModel):
    user_answer: Any = None
    is_correct: bool
    points: int


class PublicResult(BaseModel):
    id: str
    quiz_id: str
    quiz_title: Optional[str] = None
    participant_name: str
    participant_email: str
    score: float
    passed: bool
    pass_percentage: Optional[float] = None
    total_points: int
    earned_points: int
    total_questions: int
    answered_questions: int
    correct_answers: int
    time_spent_seconds: Optional[int]
    completed_at: Optional[datetime] = None
    graded_answers: Dict[str, GradedAnswer] = Field(default_factory=dict)


class PublicResultList(BaseModel):
    quiz_id: str
    quiz_title: str
    total_attempts: int
    average_score: float
    results: List[PublicResult] = Field(default_factory=list)


class TopPerformer(BaseModel):
    participant_name: str
    participant_email: str
    score: float
    time_spent_seconds: Optional[int]
    completed_at: Optional[datetime]


class PublicResultStatistics(BaseModel):
    quiz_id: str
    pass_percentage: float
    total_attempts: int
    unique_participants: int
    average_score: float
    min_score: float
    max_score: float
    average_time_seconds: Optional[int]
    passed_count: int
    failed_count: int
    average_correct_answers: float
    # Bucket label -> attempts, highest bucket first
    score_distribution: Dict[str, int] = Field(default_factory=dict)
    top_performers: List[TopPerformer] = Field(default_factory=list)
