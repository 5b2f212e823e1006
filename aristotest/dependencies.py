from fastapi import Request

from aristotest.core.config import Settings
from aristotest.services.question_generator import QuestionGenerator
from aristotest.services.runtime import SessionRuntime


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_runtime(request: Request) -> SessionRuntime:
    return request.app.state.runtime


def get_question_generator(request: Request) -> QuestionGenerator:
    return request.app.state.question_generator


async def get_db_session(request: Request):
    async with request.app.state.database.session() as session:
        yield session
