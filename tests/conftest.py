import pytest
from fastapi.testclient import TestClient

from aristotest.core.config import Settings
from aristotest.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'aristotest.db'}",
        log_dir=tmp_path / "logs",
        state_push_interval=0.05,
        openai_api_key=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Client with the lifespan entered, so the database and services exist."""
    with TestClient(app) as client:
        yield client


def quiz_payload(**overrides):
    payload = {
        "title": "World capitals",
        "description": "A short geography round",
        "category": "geography",
        "time_limit_seconds": 30,
        "pass_percentage": 50,
        "questions": [
            {
                "question_type": "multiple_choice",
                "text": "Capital of France?",
                "options": ["Paris", "Lyon", "Nice"],
                "correct_answer": "Paris",
                "points": 10,
            },
            {
                "question_type": "true_false",
                "text": "Rome is the capital of Italy.",
                "options": ["True", "False"],
                "correct_answer": True,
                "points": 10,
            },
            {
                "question_type": "short_answer",
                "text": "Capital of Japan?",
                "correct_answer": ["Tokyo", "Tōkyō"],
                "points": 20,
                "explanation": "Tokyo has been the capital since 1868.",
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def quiz(client):
    resp = client.post("/quizzes", json=quiz_payload())
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def session(client, quiz):
    resp = client.post("/sessions", json={"quiz_id": quiz["id"], "host_id": "host-1"})
    assert resp.status_code == 201
    return resp.json()
