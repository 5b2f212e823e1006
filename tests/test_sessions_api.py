import pytest
from starlette.websockets import WebSocketDisconnect

from tests.conftest import quiz_payload


def join(client, session, nickname):
    resp = client.post("/sessions/join", json={"session_code": session["session_code"], "nickname": nickname})
    assert resp.status_code == 200, resp.text
    return resp.json()["participant"]


def answer(client, session, participant, question, value, response_time=5.0):
    return client.post(
        f"/sessions/{session['id']}/answers",
        json={
            "participant_id": participant["id"],
            "question_id": question["id"],
            "answer": value,
            "response_time": response_time,
        },
    )


class TestCreateAndLookup:
    def test_new_session_waits(self, session):
        assert session["status"] == "waiting"
        assert len(session["session_code"]) == 6
        assert session["session_code"].isupper() or session["session_code"].isdigit()
        assert session["current_question_index"] == 0

    def test_unknown_quiz(self, client):
        assert client.post("/sessions", json={"quiz_id": "missing"}).status_code == 404

    def test_quiz_without_questions(self, client):
        empty = client.post("/quizzes", json=quiz_payload(questions=[])).json()
        assert client.post("/sessions", json={"quiz_id": empty["id"]}).status_code == 400

    def test_lookup_by_code_is_case_insensitive(self, client, session):
        resp = client.get(f"/sessions/code/{session['session_code'].lower()}")
        assert resp.status_code == 200
        assert resp.json()["id"] == session["id"]
        assert client.get("/sessions/code/ZZZZZZZZ").status_code == 404

    def test_list_filters(self, client, session):
        assert [s["id"] for s in client.get("/sessions").json()] == [session["id"]]
        assert client.get("/sessions", params={"status": "active"}).json() == []
        assert len(client.get("/sessions", params={"host_id": "host-1"}).json()) == 1

    def test_delete_session(self, client, session):
        join(client, session, "ada")
        assert client.delete(f"/sessions/{session['id']}").json() == {"deleted": session["id"]}
        assert client.get(f"/sessions/{session['id']}").status_code == 404


class TestLifecycle:
    def test_full_transition_path(self, client, session):
        sid = session["id"]
        participant = join(client, session, "ada")
        assert participant["status"] == "waiting"

        started = client.post(f"/sessions/{sid}/start").json()
        assert started["status"] == "active"
        assert started["started_at"] is not None
        assert client.get(f"/sessions/{sid}/participants").json()[0]["status"] == "active"

        assert client.post(f"/sessions/{sid}/pause").json()["status"] == "paused"
        assert client.post(f"/sessions/{sid}/resume").json()["status"] == "active"

        ended = client.post(f"/sessions/{sid}/end")
        assert ended.status_code == 200
        body = ended.json()
        assert body["session"]["status"] == "completed"
        assert body["session"]["ended_at"] is not None
        assert body["statistics"]["total_participants"] == 1
        assert client.get(f"/sessions/{sid}/participants").json()[0]["status"] == "finished"

    @pytest.mark.parametrize("action", ["pause", "resume", "end"])
    def test_illegal_from_waiting(self, client, session, action):
        assert client.post(f"/sessions/{session['id']}/{action}").status_code == 409

    def test_completed_is_terminal(self, client, session):
        sid = session["id"]
        client.post(f"/sessions/{sid}/start")
        client.post(f"/sessions/{sid}/end")
        for action in ("start", "pause", "resume", "end", "next"):
            assert client.post(f"/sessions/{sid}/{action}").status_code == 409

    def test_resume_requires_paused(self, client, session):
        client.post(f"/sessions/{session['id']}/start")
        assert client.post(f"/sessions/{session['id']}/resume").status_code == 409

    def test_unknown_session(self, client):
        assert client.post("/sessions/missing/start").status_code == 404


class TestNavigation:
    def test_next_and_previous_stay_in_bounds(self, client, session):
        sid = session["id"]
        assert client.post(f"/sessions/{sid}/previous").status_code == 400
        assert client.post(f"/sessions/{sid}/next").json()["current_question_index"] == 1
        assert client.post(f"/sessions/{sid}/next").json()["current_question_index"] == 2
        assert client.post(f"/sessions/{sid}/next").status_code == 400
        assert client.post(f"/sessions/{sid}/previous").json()["current_question_index"] == 1

    def test_current_question_hides_answer(self, client, session, quiz):
        body = client.get(f"/sessions/{session['id']}/current-question").json()
        assert body["finished"] is False
        assert body["total_questions"] == 3
        question = body["question"]
        assert question["id"] == quiz["questions"][0]["id"]
        assert question["index"] == 0
        assert question["total"] == 3
        assert question["time_limit_seconds"] == 30
        assert "correct_answer" not in question


class TestJoining:
    def test_duplicate_nickname(self, client, session):
        join(client, session, "ada")
        resp = client.post("/sessions/join", json={"session_code": session["session_code"], "nickname": "ada"})
        assert resp.status_code == 409

    def test_anonymous_nickname(self, client, session):
        resp = client.post("/sessions/join", json={"session_code": session["session_code"]})
        assert resp.status_code == 200
        assert resp.json()["participant"]["nickname"]

    def test_unknown_code(self, client):
        resp = client.post("/sessions/join", json={"session_code": "NOPE99", "nickname": "ada"})
        assert resp.status_code == 404

    def test_late_join_allowed(self, client, session):
        client.post(f"/sessions/{session['id']}/start")
        assert join(client, session, "late")["status"] == "active"

    def test_late_join_refused(self, client, quiz):
        session = client.post("/sessions", json={"quiz_id": quiz["id"], "allow_late_join": False}).json()
        join(client, session, "early")
        client.post(f"/sessions/{session['id']}/start")
        resp = client.post("/sessions/join", json={"session_code": session["session_code"], "nickname": "late"})
        assert resp.status_code == 409

    def test_disconnected_participant_rejoins_without_late_join(self, client, quiz):
        session = client.post("/sessions", json={"quiz_id": quiz["id"], "allow_late_join": False}).json()
        participant = join(client, session, "ada")
        client.post(f"/sessions/{session['id']}/start")
        answer(client, session, participant, quiz["questions"][0], "Paris")
        client.post(f"/sessions/{session['id']}/participants/{participant['id']}/leave")

        again = join(client, session, "ada")
        assert again["id"] == participant["id"]
        assert again["status"] == "active"
        assert again["score"] > 0

        resp = client.post("/sessions/join", json={"session_code": session["session_code"], "nickname": "newcomer"})
        assert resp.status_code == 409

    def test_paused_session_refuses_joins(self, client, session):
        client.post(f"/sessions/{session['id']}/start")
        client.post(f"/sessions/{session['id']}/pause")
        resp = client.post("/sessions/join", json={"session_code": session["session_code"], "nickname": "x"})
        assert resp.status_code == 409

    def test_session_full(self, client, quiz):
        session = client.post("/sessions", json={"quiz_id": quiz["id"], "max_participants": 1}).json()
        join(client, session, "first")
        resp = client.post("/sessions/join", json={"session_code": session["session_code"], "nickname": "second"})
        assert resp.status_code == 409

    def test_leave_and_reconnect(self, client, session):
        participant = join(client, session, "ada")
        left = client.post(f"/sessions/{session['id']}/participants/{participant['id']}/leave")
        assert left.json()["status"] == "disconnected"
        again = join(client, session, "ada")
        assert again["id"] == participant["id"]
        assert again["status"] == "waiting"


class TestAnswers:
    def test_scoring_with_speed_bonus(self, client, session, quiz):
        participant = join(client, session, "ada")
        mc, tf, short = quiz["questions"]

        first = answer(client, session, participant, mc, "paris", response_time=0)
        assert first.status_code == 201
        assert first.json()["is_correct"] is True
        assert first.json()["points"] == 15

        second = answer(client, session, participant, tf, "TRUE", response_time=15)
        assert second.json()["points"] == 13
        assert second.json()["total_score"] == 28

        third = answer(client, session, participant, short, " tokyo ", response_time=30)
        body = third.json()
        assert body["points"] == 20
        assert body["total_score"] == 48
        assert body["participant_status"] == "finished"

    def test_wrong_answer_scores_zero(self, client, session, quiz):
        participant = join(client, session, "ada")
        resp = answer(client, session, participant, quiz["questions"][0], "Lyon", response_time=0)
        assert resp.json()["is_correct"] is False
        assert resp.json()["points"] == 0

    def test_duplicate_answer_conflicts(self, client, session, quiz):
        participant = join(client, session, "ada")
        question = quiz["questions"][0]
        assert answer(client, session, participant, question, "Paris").status_code == 201
        assert answer(client, session, participant, question, "Paris").status_code == 409

        roster = client.get(f"/sessions/{session['id']}/participants").json()
        assert roster[0]["answered_questions"] == 1
        assert roster[0]["score"] > 0

    def test_paused_and_completed_reject_answers(self, client, session, quiz):
        participant = join(client, session, "ada")
        client.post(f"/sessions/{session['id']}/start")
        client.post(f"/sessions/{session['id']}/pause")
        assert answer(client, session, participant, quiz["questions"][0], "Paris").status_code == 409
        client.post(f"/sessions/{session['id']}/end")
        assert answer(client, session, participant, quiz["questions"][0], "Paris").status_code == 409

    def test_unknown_participant_or_question(self, client, session, quiz):
        participant = join(client, session, "ada")
        assert answer(client, session, {"id": "ghost"}, quiz["questions"][0], "Paris").status_code == 404
        assert answer(client, session, participant, {"id": "nope"}, "Paris").status_code == 404

    def test_participant_from_other_session(self, client, quiz, session):
        other = client.post("/sessions", json={"quiz_id": quiz["id"]}).json()
        outsider = join(client, other, "ada")
        assert answer(client, session, outsider, quiz["questions"][0], "Paris").status_code == 404

    def test_null_answer_rejected(self, client, session, quiz):
        participant = join(client, session, "ada")
        assert answer(client, session, participant, quiz["questions"][0], None).status_code == 400

    def test_malformed_answer_graded_incorrect(self, client, session, quiz):
        participant = join(client, session, "ada")
        resp = answer(client, session, participant, quiz["questions"][2], ["Tokyo"])
        assert resp.status_code == 201
        assert resp.json()["is_correct"] is False

    def test_skip_current_question(self, client, session):
        participant = join(client, session, "ada")
        url = f"/sessions/{session['id']}/skip"
        resp = client.post(url, json={"participant_id": participant["id"]})
        assert resp.status_code == 201
        assert resp.json()["points"] == 0
        assert client.post(url, json={"participant_id": participant["id"]}).status_code == 409


class TestResults:
    def test_results_and_breakdown(self, client, session, quiz):
        sid = session["id"]
        ada = join(client, session, "ada")
        bob = join(client, session, "bob")
        client.post(f"/sessions/{sid}/start")
        mc, tf, short = quiz["questions"]

        answer(client, session, ada, mc, "Paris", response_time=0)
        answer(client, session, ada, tf, True, response_time=30)
        answer(client, session, ada, short, "Tokyo", response_time=30)
        answer(client, session, bob, mc, "Nice", response_time=3)
        client.post(f"/sessions/{sid}/skip", json={"participant_id": bob["id"], "question_id": tf["id"]})

        ended = client.post(f"/sessions/{sid}/end").json()
        stats = ended["statistics"]
        assert stats["total_participants"] == 2
        assert stats["max_possible_score"] == 40
        assert stats["highest_score"] == 45
        assert stats["lowest_score"] == 0
        assert stats["average_score"] == pytest.approx(22.5)
        assert stats["completion_rate"] == pytest.approx(0.5)
        by_id = {q["question_id"]: q for q in stats["questions"]}
        assert (by_id[mc["id"]]["correct_count"], by_id[mc["id"]]["incorrect_count"]) == (1, 1)
        assert by_id[tf["id"]]["skipped_count"] == 1
        assert by_id[short["id"]]["skipped_count"] == 1

        results = client.get(f"/sessions/{sid}/results").json()
        assert [entry["nickname"] for entry in results["leaderboard"]] == ["ada", "bob"]
        assert results["leaderboard"][0]["rank"] == 1

        breakdown = client.get(f"/sessions/{sid}/participants/{bob['id']}/results").json()
        assert breakdown["score"] == 0
        assert breakdown["max_possible_score"] == 40
        assert [a["skipped"] for a in breakdown["answers"]] == [False, True]
        assert breakdown["answers"][0]["correct_answer"] == "Paris"

    def test_state_payload(self, client, session, quiz):
        join(client, session, "ada")
        state = client.get(f"/sessions/{session['id']}/state").json()
        assert state["session_code"] == session["session_code"]
        assert state["participant_count"] == 1
        assert state["question"]["id"] == quiz["questions"][0]["id"]
        assert state["leaderboard"][0]["nickname"] == "ada"

    def test_state_hides_leaderboard(self, client, quiz):
        session = client.post("/sessions", json={"quiz_id": quiz["id"], "show_leaderboard": False}).json()
        assert client.get(f"/sessions/{session['id']}/state").json()["leaderboard"] is None


class TestStateSocket:
    def test_completed_session_pushes_final_state(self, client, session):
        client.post(f"/sessions/{session['id']}/start")
        client.post(f"/sessions/{session['id']}/end")
        with client.websocket_connect(f"/ws/sessions/{session['id']}") as ws:
            message = ws.receive_json()
            assert message["type"] == "state"
            assert message["state"]["status"] == "completed"
            assert message["state"]["question"] is None
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_unknown_session_reports_error(self, client):
        with client.websocket_connect("/ws/sessions/missing") as ws:
            message = ws.receive_json()
            assert message == {"type": "error", "status": 404, "detail": "Session not found"}
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()
            assert exc_info.value.code == 4404
