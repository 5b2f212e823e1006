from typing import Any, List, Optional

from pydantic import BaseModel, Field


class QuestionCreate(BaseModel):
    question_type: str
    text: str = Field(min_length=1)
    options: List[str] = Field(default_factory=list)
    correct_answer: Any = None
    points: int = Field(default=10, gt=0)
    time_limit_seconds: Optional[int] = Field(default=None, ge=10, le=300)
    explanation: Optional[str] = None


class QuestionUpdate(BaseModel):
    question_type: Optional[str] = None
    text: Optional[str] = Field(default=None, min_length=1)
    options: Optional[List[str]] = None
    correct_answer: Any = None
    points: Optional[int] = Field(default=None, gt=0)
    time_limit_seconds: Optional[int] = Field(default=None, ge=10, le=300)
    explanation: Optional[str] = None


class QuestionRead(BaseModel):
    id: str
    question_type: str
    text: str
    options: List[str]
    correct_answer: Any
    points: int
    time_limit_seconds: Optional[int]
    explanation: Optional[str]
    position: int


class QuizCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    time_limit_seconds: Optional[int] = Field(default=None, ge=10, le=300)
    pass_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    is_public: bool = False
    questions: List[QuestionCreate] = Field(default_factory=list)


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    time_limit_seconds: Optional[int] = Field(default=None, ge=10, le=300)
    pass_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    is_public: Optional[bool] = None


class QuizRead(BaseModel):
    id: str
    title: str
    description: Optional[str]
    category: Optional[str]
    time_limit_seconds: int
    pass_percentage: float
    is_public: bool
    times_taken: int
    questions: List[QuestionRead] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    source_text: str = Field(min_length=20)
    count: int = Field(default=5, ge=1, le=20)
    question_type: str = "multiple_choice"


class GenerateResponse(BaseModel):
    requested: int
    created: int
    quiz: QuizRead
