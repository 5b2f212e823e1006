from aristotest.schemas.public import (
    GradedAnswer,
    PublicParticipant,
    PublicQuestion,
    PublicQuiz,
    PublicResult,
    PublicResultList,
    PublicResultStatistics,
    PublicSubmission,
    TopPerformer,
)
from aristotest.schemas.quiz import (
    GenerateRequest,
    GenerateResponse,
    QuestionCreate,
    QuestionRead,
    QuestionUpdate,
    QuizCreate,
    QuizRead,
    QuizUpdate,
)
from aristotest.schemas.results import (
    AnswerResult,
    LeaderboardEntry,
    ParticipantResults,
    QuestionStatistics,
    SessionResults,
    SessionStatistics,
)
from aristotest.schemas.session import (
    AnswerOutcome,
    AnswerSubmission,
    CurrentQuestion,
    JoinRequest,
    JoinResponse,
    LiveQuestion,
    ParticipantRead,
    SessionCreate,
    SessionEnded,
    SessionRead,
    SessionState,
    SkipRequest,
)

__all__ = [
    "GradedAnswer",
    "PublicParticipant",
    "PublicQuestion",
    "PublicQuiz",
    "PublicResult",
    "PublicResultList",
    "PublicResultStatistics",
    "PublicSubmission",
    "TopPerformer",
    "GenerateRequest",
    "GenerateResponse",
    "QuestionCreate",
    "QuestionRead",
    "QuestionUpdate",
    "QuizCreate",
    "QuizRead",
    "QuizUpdate",
    "AnswerResult",
    "LeaderboardEntry",
    "ParticipantResults",
    "QuestionStatistics",
    "SessionResults",
    "SessionStatistics",
    "AnswerOutcome",
    "AnswerSubmission",
    "CurrentQuestion",
    "JoinRequest",
    "JoinResponse",
    "LiveQuestion",
    "ParticipantRead",
    "SessionCreate",
    "SessionEnded",
    "SessionRead",
    "SessionState",
    "SkipRequest",
]
