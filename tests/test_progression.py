"""Tests for answering, waiting on generation, persistence and finalization."""

import asyncio

import pytest

from engine import EnginePhase, QuizRuntime
from errors import AnswerValidationError, FinalizationFailure, PersistenceFailure, ServiceError
from models import AnswerRecord, Difficulty, SessionStatus

from fakes import (
    FakeAnalysisService,
    FakeGenerationService,
    FlakyProgressStore,
    SlowProgressStore,
)


def _runtime(generation, progress_store, analysis=None) -> QuizRuntime:
    return QuizRuntime(
        generation,
        analysis or FakeAnalysisService(),
        progress_store,
        poll_interval=0.01,
        warning_ttl=0.05,
    )


async def _answer_all_correctly(runtime: QuizRuntime) -> EnginePhase:
    engine = runtime.engine
    await engine.submit_answer(engine.build_answer(choice_id="a"))
    await engine.submit_answer(engine.build_answer(choice_id="a"))
    return await engine.submit_answer(engine.build_answer(user_input="apple"))


@pytest.fixture
def flaky_store(test_db_path):
    def build(*failing):
        return FlakyProgressStore(test_db_path, failing=set(failing))

    return build


class TestValidation:
    def test_rejects_answers_that_do_not_fit(self, generation_service, progress_store):
        runtime = _runtime(generation_service, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            engine = runtime.engine
            with pytest.raises(AnswerValidationError):
                engine.validate(AnswerRecord(question_id="q2", choice_id="a", correct=True))
            with pytest.raises(AnswerValidationError):
                engine.validate(AnswerRecord(question_id="q1", choice_id="z", correct=False))
            with pytest.raises(AnswerValidationError):
                engine.validate(
                    AnswerRecord(question_id="q1", user_input="apple", correct=False)
                )

        asyncio.run(scenario())
        assert runtime.state.answers == []

    def test_cloze_needs_typed_answer(self, generation_service, progress_store):
        runtime = _runtime(generation_service, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            engine = runtime.engine
            await engine.submit_answer(engine.build_answer(choice_id="a"))
            await engine.submit_answer(engine.build_answer(choice_id="a"))
            blank = AnswerRecord(question_id="q3", user_input="  ", correct=False)
            with pytest.raises(AnswerValidationError):
                await engine.submit_answer(blank)
            await runtime.shutdown()

        asyncio.run(scenario())
        assert runtime.engine.current_question.id == "q3"


class TestProgression:
    def test_answers_are_persisted_in_order(self, generation_service, progress_store):
        runtime = _runtime(generation_service, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            engine = runtime.engine
            await engine.submit_answer(engine.build_answer(choice_id="a"))
            await engine.submit_answer(engine.build_answer(choice_id="c"))
            await runtime.shutdown()

        asyncio.run(scenario())

        snapshot = progress_store.get_for_resume(runtime.state.history_session_id)
        assert [a.question_id for a in snapshot.answers] == ["q1", "q2"]
        assert [a.correct for a in snapshot.answers] == [True, False]
        assert snapshot.current_question_index == 2
        assert runtime.engine.current_question.id == "q3"

    def test_overlapping_writes_keep_submission_order(self, generation_service, test_db_path):
        """A slow first save should not let the second answer land before it."""
        store = SlowProgressStore(test_db_path, save_delays=[0.1, 0.0])
        runtime = _runtime(generation_service, store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            engine = runtime.engine
            await engine.submit_answer(engine.build_answer(choice_id="a"))
            await engine.submit_answer(engine.build_answer(choice_id="a"))
            await runtime.shutdown()

        asyncio.run(scenario())

        snapshot = store.get_for_resume(runtime.state.history_session_id)
        assert [a.question_id for a in snapshot.answers] == ["q1", "q2"]
        assert snapshot.current_question_index == 2
        assert runtime.state.warning is None

    def test_waits_for_next_section_then_continues(
        self, partial_session, ready_session, progress_store
    ):
        generation = FakeGenerationService(partial_session, [partial_session, ready_session])
        runtime = _runtime(generation, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            engine = runtime.engine
            phase = await engine.submit_answer(engine.build_answer(choice_id="a"))
            assert phase == EnginePhase.PENDING_ADVANCE
            assert engine.current_question is None

            phase = await asyncio.wait_for(engine.wait_for_question(), timeout=2)
            await runtime.shutdown()
            return phase

        phase = asyncio.run(scenario())

        assert phase == EnginePhase.ANSWERING
        assert runtime.state.current_question_index == 1
        assert runtime.engine.current_question.id == "q2"
        assert len(runtime.state.answers) == 1

    def test_full_run_finalizes_with_report(self, generation_service, progress_store):
        analysis = FakeAnalysisService()
        runtime = _runtime(generation_service, progress_store, analysis)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            phase = await _answer_all_correctly(runtime)
            await runtime.shutdown()
            return phase

        phase = asyncio.run(scenario())

        result = runtime.state.last_result
        assert phase == EnginePhase.DONE
        assert result.score == 100
        assert result.incorrect_words == []
        assert analysis.calls[0]["score"] == 100
        stored = progress_store.get_for_resume(runtime.state.history_session_id)
        assert stored.status == SessionStatus.COMPLETED
        assert stored.score == 100


class TestFinalization:
    def test_failure_keeps_answers_and_can_be_retried(self, generation_service, progress_store):
        analysis = FakeAnalysisService(error=ServiceError("analysis down"))
        runtime = _runtime(generation_service, progress_store, analysis)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            phase = await _answer_all_correctly(runtime)
            assert phase == EnginePhase.FINALIZING
            assert runtime.state.finalize_error == FinalizationFailure().message
            assert runtime.state.last_result is None

            analysis.error = None
            result = await runtime.engine.finalize()
            await runtime.shutdown()
            return result

        result = asyncio.run(scenario())

        assert result.score == 100
        assert runtime.engine.phase == EnginePhase.DONE
        assert len(runtime.state.answers) == 3

    def test_without_history_link_saves_completed(self, generation_service, flaky_store):
        progress_store = flaky_store("create_in_progress")
        runtime = _runtime(generation_service, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            assert runtime.state.history_session_id is None
            await _answer_all_correctly(runtime)
            await runtime.shutdown()

        asyncio.run(scenario())

        assert "save_completed" in progress_store.calls
        assert "save_answer" not in progress_store.calls
        assert runtime.state.last_result.snapshot.status == SessionStatus.COMPLETED
        assert len(progress_store.list_all()) == 1


class TestWarnings:
    def test_failed_write_shows_warning_that_clears(self, generation_service, flaky_store):
        progress_store = flaky_store("save_answer")
        runtime = _runtime(generation_service, progress_store)
        seen = []

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            engine = runtime.engine
            await engine.submit_answer(engine.build_answer(choice_id="a"))
            await engine.drain()
            seen.append(runtime.state.warning)
            await asyncio.sleep(0.15)
            seen.append(runtime.state.warning)

        asyncio.run(scenario())

        assert seen[0].message == PersistenceFailure().message
        assert seen[1] is None
        assert len(runtime.state.answers) == 1
        assert runtime.engine.phase == EnginePhase.ANSWERING


class TestHistoryLinking:
    def test_complete_question_set_is_stored_once_ready(
        self, partial_session, ready_session, flaky_store
    ):
        progress_store = flaky_store()
        generation = FakeGenerationService(partial_session, [ready_session])
        runtime = _runtime(generation, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            await runtime.poller.join()
            await runtime.shutdown()

        asyncio.run(scenario())

        assert progress_store.calls.count("update_question_set") == 1
        stored = progress_store.get_for_resume(runtime.state.history_session_id)
        assert len(stored.question_set.questions_type_3) == 1
        assert stored.question_set.metadata.total_questions == 3

    def test_failed_sync_only_warns(self, partial_session, ready_session, flaky_store):
        progress_store = flaky_store("update_question_set")
        generation = FakeGenerationService(partial_session, [ready_session])
        runtime = _runtime(generation, progress_store)

        async def scenario():
            await runtime.start_practice(["apple"], Difficulty.BEGINNER)
            await runtime.poller.join()
            await runtime.shutdown()
            return runtime.state.warning

        warning = asyncio.run(scenario())

        assert warning.message == PersistenceFailure().message
        assert runtime.tracker.all_ready is True


class TestResume:
    def test_resume_continues_at_saved_index(self, progress_store, sample_question_set):
        created = progress_store.create_in_progress(
            Difficulty.BEGINNER, ["apple"], sample_question_set
        )
        progress_store.save_answer(
            created.id, AnswerRecord(question_id="q1", choice_id="a", correct=True), 1
        )
        runtime = _runtime(FakeGenerationService(None), progress_store)

        asyncio.run(runtime.resume(created.id))

        assert runtime.state.is_resumed_session is True
        assert runtime.engine.current_question.id == "q2"
        assert runtime.tracker.settled is True

    def test_fully_answered_snapshot_is_finalized(self, progress_store, sample_question_set):
        padded = sample_question_set.model_copy(
            update={
                "metadata": sample_question_set.metadata.model_copy(
                    update={"total_questions": 5}
                )
            }
        )
        created = progress_store.create_in_progress(Difficulty.BEGINNER, ["apple"], padded)
        for index, qid in enumerate(["q1", "q2", "q3"], start=1):
            progress_store.save_answer(
                created.id, AnswerRecord(question_id=qid, choice_id="a", correct=True), index
            )
        runtime = _runtime(FakeGenerationService(None), progress_store)

        asyncio.run(runtime.resume(created.id))

        assert runtime.engine.phase == EnginePhase.DONE
        assert runtime.state.last_result.score == 100
        assert progress_store.get_for_resume(created.id).status == SessionStatus.COMPLETED
