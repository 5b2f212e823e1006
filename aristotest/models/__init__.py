from aristotest.models.participant import Answer, Participant
from aristotest.models.quiz import Question, Quiz
from aristotest.models.result import PublicQuizResult
from aristotest.models.session import QuizSession

__all__ = ["Answer", "Participant", "PublicQuizResult", "Question", "Quiz", "QuizSession"]
