import pytest

PARTICIPANT = {"first_name": "Ada", "last_name": "Lovelace", "email": "Ada@Example.com", "organization": "AE"}


@pytest.fixture
def public_quiz(client, quiz):
    client.patch(f"/quizzes/{quiz['id']}", json={"is_public": True})
    return quiz


def submit(client, quiz, answers):
    return client.post(
        f"/public/quizzes/{quiz['id']}/submit",
        json={"participant": PARTICIPANT, "answers": answers, "time_spent_seconds": 42},
    )


def test_private_quiz_is_hidden(client, quiz):
    assert client.get("/public/quizzes").json() == []
    assert client.get(f"/public/quizzes/{quiz['id']}").status_code == 404
    assert submit(client, quiz, {}).status_code == 404


def test_public_quiz_hides_answers(client, public_quiz):
    listing = client.get("/public/quizzes").json()
    assert [q["id"] for q in listing] == [public_quiz["id"]]
    assert listing[0]["question_count"] == 3

    body = client.get(f"/public/quizzes/{public_quiz['id']}").json()
    assert len(body["questions"]) == 3
    for question in body["questions"]:
        assert "correct_answer" not in question
        assert "explanation" not in question


def test_all_correct_passes(client, public_quiz):
    mc, tf, short = public_quiz["questions"]
    resp = submit(client, public_quiz, {mc["id"]: "Paris", tf["id"]: "true", short["id"]: "tokyo"})
    assert resp.status_code == 201
    result = resp.json()
    assert result["score"] == 100.0
    assert result["passed"] is True
    assert result["earned_points"] == result["total_points"] == 40
    assert result["participant_name"] == "Ada Lovelace"
    assert result["participant_email"] == "ada@example.com"
    assert result["time_spent_seconds"] == 42


def test_partial_score_and_pass_threshold(client, public_quiz):
    mc, tf, short = public_quiz["questions"]
    # 10 + 10 of 40 points is exactly the 50% pass mark
    result = submit(client, public_quiz, {mc["id"]: "Paris", tf["id"]: True}).json()
    assert result["score"] == 50.0
    assert result["passed"] is True
    assert result["answered_questions"] == 2
    assert result["correct_answers"] == 2
    assert result["graded_answers"][short["id"]] == {"user_answer": None, "is_correct": False, "points": 0}

    result = submit(client, public_quiz, {mc["id"]: "Paris", tf["id"]: False}).json()
    assert result["score"] == 25.0
    assert result["passed"] is False


def test_stored_result_and_times_taken(client, public_quiz):
    mc = public_quiz["questions"][0]
    created = submit(client, public_quiz, {mc["id"]: "Paris"}).json()

    fetched = client.get(f"/public/results/{created['id']}").json()
    assert fetched["id"] == created["id"]
    assert fetched["quiz_title"] == "World capitals"
    assert fetched["pass_percentage"] == 50.0
    assert fetched["graded_answers"][mc["id"]]["is_correct"] is True

    assert client.get(f"/quizzes/{public_quiz['id']}").json()["times_taken"] == 1
    assert client.get("/public/results/missing").status_code == 404


def submit_as(client, quiz, email, answers, time_spent=60):
    participant = dict(PARTICIPANT, email=email)
    resp = client.post(
        f"/public/quizzes/{quiz['id']}/submit",
        json={"participant": participant, "answers": answers, "time_spent_seconds": time_spent},
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def attempts(client, public_quiz):
    mc, tf, short = public_quiz["questions"]
    submit_as(client, public_quiz, "ada@example.com", {mc["id"]: "Paris", tf["id"]: True, short["id"]: "Tokyo"}, 30)
    submit_as(client, public_quiz, "ada@example.com", {mc["id"]: "Paris", tf["id"]: True}, 60)
    submit_as(client, public_quiz, "grace@example.com", {mc["id"]: "Paris"}, 90)
    return public_quiz


class TestPublicResultReports:
    def test_results_newest_first(self, client, attempts):
        body = client.get(f"/public/quizzes/{attempts['id']}/results").json()
        assert body["quiz_title"] == "World capitals"
        assert body["total_attempts"] == 3
        assert body["average_score"] == 58.33
        assert [r["score"] for r in body["results"]] == [25.0, 50.0, 100.0]

    def test_results_filters(self, client, attempts):
        url = f"/public/quizzes/{attempts['id']}/results"
        assert [r["score"] for r in client.get(url, params={"min_score": 50}).json()["results"]] == [50.0, 100.0]
        assert [r["score"] for r in client.get(url, params={"max_score": 49}).json()["results"]] == [25.0]
        assert client.get(url, params={"min_score": 30, "max_score": 60}).json()["total_attempts"] == 1

        future = client.get(url, params={"date_from": "2999-01-01T00:00:00"}).json()
        assert future["total_attempts"] == 0
        assert future["results"] == []
        assert future["average_score"] == 0.0
        assert client.get(url, params={"date_to": "2999-01-01T00:00:00"}).json()["total_attempts"] == 3

    def test_statistics(self, client, attempts):
        stats = client.get(f"/public/quizzes/{attempts['id']}/results/stats").json()
        assert stats["total_attempts"] == 3
        assert stats["unique_participants"] == 2
        assert stats["average_score"] == 58.33
        assert stats["min_score"] == 25.0
        assert stats["max_score"] == 100.0
        assert stats["average_time_seconds"] == 60
        # Pass mark is 50%
        assert stats["passed_count"] == 2
        assert stats["failed_count"] == 1
        assert stats["average_correct_answers"] == 2.0
        assert stats["score_distribution"] == {
            "90-100": 1,
            "80-89": 0,
            "70-79": 0,
            "60-69": 0,
            "50-59": 1,
            "0-49": 1,
        }
        assert [p["score"] for p in stats["top_performers"]] == [100.0, 50.0, 25.0]

    def test_statistics_without_attempts(self, client, public_quiz):
        stats = client.get(f"/public/quizzes/{public_quiz['id']}/results/stats").json()
        assert stats["total_attempts"] == 0
        assert stats["average_time_seconds"] is None
        assert set(stats["score_distribution"].values()) == {0}

    def test_unknown_quiz(self, client):
        assert client.get("/public/quizzes/missing/results").status_code == 404
        assert client.get("/public/quizzes/missing/results/stats").status_code == 404
