from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aristotest.api.routes import public, quizzes, root, sessions
from aristotest.api.ws import router as ws_router
from aristotest.core.config import Settings
from aristotest.core.logging import configure_logging
from aristotest.db import Database
from aristotest.services.question_generator import QuestionGenerator
from aristotest.services.runtime import SessionRuntime


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        database = Database(settings.assembled_db_url)
        await database.init_db()
        app.state.settings = settings
        app.state.database = database
        app.state.runtime = SessionRuntime(database, settings)
        app.state.question_generator = QuestionGenerator(settings)
        yield
        await database.dispose()

    app = FastAPI(title="AristoTest", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # HTTP routes
    app.include_router(root.router)
    app.include_router(quizzes.router)
    app.include_router(sessions.router)
    app.include_router(public.router)

    # WebSocket routes
    app.include_router(ws_router)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("aristotest.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
