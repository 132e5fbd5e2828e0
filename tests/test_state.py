"""Tests for the practice state transitions and the store."""

from engine.state import (
    QUESTION_DATA_MISSING,
    Phase,
    PracticeResult,
    PracticeState,
    TransientWarning,
    apply_generation_session,
    clear_warning,
    exit_retry,
    record_answer,
    resume_session,
    show_warning,
    start_generating,
    start_retry,
)
from engine.store import PracticeStore
from models import (
    AnalysisSummary,
    AnswerRecord,
    Difficulty,
    QuestionType,
    SectionStatus,
    SessionSnapshot,
    SessionStatus,
)

from fakes import choice_question, make_session


def _result(score: int) -> PracticeResult:
    return PracticeResult(score=score, analysis=AnalysisSummary(report=f"{score}"))


class TestApplyGenerationSession:
    def test_replaces_sections_and_enters_practice(self, partial_session):
        state = start_generating(PracticeState(), ["apple"], Difficulty.BEGINNER)
        state = apply_generation_session(state, partial_session)

        assert state.phase == Phase.IN_PROGRESS
        assert state.session_id == "gen-1"
        assert state.section(QuestionType.CHOICE_ZH_TO_EN).status == SectionStatus.READY
        assert state.section(QuestionType.CLOZE_FILL).status == SectionStatus.PENDING

    def test_same_session_keeps_answers(self, partial_session, ready_session):
        state = apply_generation_session(PracticeState(), partial_session)
        state = record_answer(state, AnswerRecord(question_id="q1", choice_id="a", correct=True))

        state = apply_generation_session(state, ready_session)

        assert len(state.answers) == 1
        assert state.section(QuestionType.CLOZE_FILL).status == SectionStatus.READY

    def test_new_session_resets_answers_and_poller(self, ready_session, sample_questions):
        state = apply_generation_session(PracticeState(), ready_session)
        state = record_answer(state, AnswerRecord(question_id="q1", choice_id="a", correct=True))
        state = state.model_copy(
            update={"poller": state.poller.model_copy(update={"fallback_attempted": True})}
        )

        state = apply_generation_session(state, make_session("gen-2", sample_questions))

        assert state.answers == []
        assert state.current_question_index == 0
        assert state.poller.session_id == "gen-2"
        assert state.poller.fallback_attempted is False


class TestResumeSession:
    def _snapshot(self, question_set, **kwargs) -> SessionSnapshot:
        return SessionSnapshot(
            id="hist-1",
            difficulty=Difficulty.BEGINNER,
            words=["apple"],
            question_set=question_set,
            answers=[AnswerRecord(question_id="q1", choice_id="a", correct=True)],
            current_question_index=1,
            **kwargs,
        )

    def test_resume_is_idempotent(self, sample_question_set):
        snapshot = self._snapshot(sample_question_set)

        once = resume_session(PracticeState(), snapshot)
        twice = resume_session(once, snapshot)

        assert once == twice
        assert once.current_question_index == 1
        assert once.history_session_id == "hist-1"
        assert once.is_resumed_session is True
        assert once.session_id is None

    def test_empty_section_is_marked_as_error(self, sample_question_set):
        snapshot = self._snapshot(sample_question_set.model_copy(update={"questions_type_2": []}))

        state = resume_session(PracticeState(), snapshot)

        section = state.section(QuestionType.CHOICE_EN_TO_ZH)
        assert section.status == SectionStatus.ERROR
        assert section.error == QUESTION_DATA_MISSING
        assert state.section(QuestionType.CHOICE_ZH_TO_EN).status == SectionStatus.READY

    def test_completed_snapshot_opens_report(self, sample_question_set):
        snapshot = self._snapshot(
            sample_question_set,
            status=SessionStatus.COMPLETED,
            score=100,
            analysis=AnalysisSummary(report="done"),
        )

        state = resume_session(PracticeState(), snapshot)

        assert state.phase == Phase.REPORT
        assert state.last_result.score == 100


class TestRetryTransitions:
    def test_nested_retry_keeps_first_result(self):
        original = _result(50)
        state = PracticeState(last_result=original, phase=Phase.REPORT)

        state = start_retry(state, [choice_question("q1", "apple")])
        state = state.model_copy(update={"last_result": _result(0)})
        state = start_retry(state, [choice_question("q1", "apple")])
        state = exit_retry(state)

        assert state.is_retry_mode is False
        assert state.last_result == original
        assert state.original_last_result is None
        assert state.retry_questions == []


class TestWarnings:
    def test_clear_only_matching_warning(self):
        state = show_warning(
            PracticeState(), TransientWarning(id="w2", message="later", expires_at=0)
        )

        assert clear_warning(state, "w1").warning is not None
        assert clear_warning(state, "w2").warning is None


class TestPracticeStore:
    def test_listeners_see_new_and_previous_state(self):
        store = PracticeStore()
        seen = []
        store.subscribe(lambda new, old: seen.append((old.phase, new.phase)))

        store.dispatch(start_generating, ["apple"], Difficulty.BEGINNER)

        assert seen == [(Phase.IDLE, Phase.GENERATING)]

    def test_dispatch_from_listener_is_queued(self):
        store = PracticeStore()
        order = []

        def listener(new, old):
            order.append(new.phase)
            if new.phase == Phase.GENERATING:
                store.dispatch(start_retry, [])

        store.subscribe(listener)
        store.dispatch(start_generating, ["apple"], Difficulty.BEGINNER)

        assert order == [Phase.GENERATING, Phase.IN_PROGRESS]
        assert store.state.is_retry_mode is True

    def test_unsubscribe(self):
        store = PracticeStore()
        seen = []
        unsubscribe = store.subscribe(lambda new, old: seen.append(new))
        unsubscribe()

        store.dispatch(start_generating, ["apple"], Difficulty.BEGINNER)

        assert seen == []
