"""Tests for the history-service backed progress store."""

import pytest

from errors import SessionNotEditableError, SessionNotFoundError
from models import (
    AnalysisSummary,
    AnswerRecord,
    Difficulty,
    SessionSnapshot,
    SessionStatus,
)
from storage import RemoteSessionProgressStore

from fakes import FakeApiClient, not_found


def _snapshot(question_set, **kwargs) -> dict:
    return SessionSnapshot(
        id="h1",
        difficulty=Difficulty.BEGINNER,
        words=["apple"],
        question_set=question_set,
        **kwargs,
    ).to_payload()


class TestRemoteStore:
    def test_create_in_progress_posts_question_set(self, sample_question_set):
        client = FakeApiClient(
            {("POST", "/history/in-progress"): {"id": "h1", "createdAt": "2024-01-01T00:00:00Z"}}
        )
        store = RemoteSessionProgressStore(client)

        created = store.create_in_progress(Difficulty.BEGINNER, ["apple"], sample_question_set)

        method, path, payload, _ = client.requests[0]
        assert created.id == "h1"
        assert payload["difficulty"] == "beginner"
        assert payload["superJson"]["metadata"]["totalQuestions"] == 3
        assert "vocabDetails" not in payload

    def test_save_answer_rereads_snapshot(self, sample_question_set):
        answer = AnswerRecord(question_id="q1", choice_id="a", correct=True)
        client = FakeApiClient(
            {
                ("PATCH", "/history/h1/progress"): {"id": "h1"},
                ("GET", "/history/h1"): _snapshot(
                    sample_question_set, answers=[answer], current_question_index=1
                ),
            }
        )
        store = RemoteSessionProgressStore(client)

        snapshot = store.save_answer("h1", answer, 1)

        assert client.requests[0][2]["currentQuestionIndex"] == 1
        assert client.requests[0][2]["answer"]["questionId"] == "q1"
        assert snapshot.answers == [answer]

    def test_missing_session_maps_to_not_found(self):
        client = FakeApiClient({("GET", "/history/h1"): not_found()})
        store = RemoteSessionProgressStore(client)

        with pytest.raises(SessionNotFoundError):
            store.get_for_resume("h1")

    def test_list_keeps_only_in_progress(self, sample_question_set):
        client = FakeApiClient(
            {
                ("GET", "/history"): {
                    "sessions": [
                        _snapshot(sample_question_set),
                        _snapshot(sample_question_set, status=SessionStatus.COMPLETED),
                    ]
                }
            }
        )
        store = RemoteSessionProgressStore(client)

        summaries = store.list_in_progress()

        assert client.requests[0][3] == {"status": "in_progress"}
        assert len(summaries) == 1
        assert summaries[0].total_questions == 3

    def test_delete_is_idempotent(self):
        client = FakeApiClient({("DELETE", "/history/h1"): not_found()})
        assert RemoteSessionProgressStore(client).delete("h1") is False

    def test_update_question_set_on_completed_session(self, sample_question_set):
        client = FakeApiClient(
            {
                ("PATCH", "/history/h1/super-json"): not_found(),
                ("GET", "/history/h1"): _snapshot(
                    sample_question_set, status=SessionStatus.COMPLETED
                ),
            }
        )
        store = RemoteSessionProgressStore(client)

        with pytest.raises(SessionNotEditableError):
            store.update_question_set("h1", sample_question_set)

    def test_complete_posts_completed_entry(self, sample_question_set):
        answers = [AnswerRecord(question_id="q1", choice_id="a", correct=True)]
        completed = {
            **_snapshot(
                sample_question_set,
                answers=answers,
                status=SessionStatus.COMPLETED,
                score=100,
                current_question_index=1,
            ),
            "id": "h2",
        }
        client = FakeApiClient(
            {
                ("GET", "/history/h1"): _snapshot(sample_question_set),
                ("POST", "/history"): completed,
            }
        )
        store = RemoteSessionProgressStore(client)

        snapshot = store.complete("h1", answers, 100, AnalysisSummary(report="ok"))

        assert [r[:2] for r in client.requests] == [("GET", "/history/h1"), ("POST", "/history")]
        payload = client.requests[1][2]
        assert payload["mode"] == "authenticated"
        assert payload["difficulty"] == "beginner"
        assert payload["words"] == ["apple"]
        assert payload["score"] == 100
        assert payload["analysis"]["report"] == "ok"
        assert payload["superJson"]["metadata"]["totalQuestions"] == 3
        assert payload["answers"][0]["questionId"] == "q1"
        assert snapshot.id == "h2"
        assert snapshot.status == SessionStatus.COMPLETED

    def test_complete_unknown_session_posts_nothing(self, sample_question_set):
        client = FakeApiClient({("GET", "/history/h1"): not_found()})
        store = RemoteSessionProgressStore(client)

        with pytest.raises(SessionNotFoundError):
            store.complete("h1", [], 0, AnalysisSummary())
        assert [r[0] for r in client.requests] == ["GET"]
