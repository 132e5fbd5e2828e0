"""SQLite implementation of the session progress store (guest history)."""

import logging
import sqlite3
import uuid
from pathlib import Path
from typing import Callable

from .base import SessionProgressStore
from .connection import get_connection, init_schema
from config import DEFAULT_DB_PATH
from errors import SessionNotEditableError, SessionNotFoundError
from models import (
    AnalysisSummary,
    AnswerRecord,
    CreatedSession,
    Difficulty,
    InProgressSessionSummary,
    QuestionSet,
    SessionSnapshot,
    SessionStatus,
    StoreMode,
    VocabularyDetail,
    compute_score,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

MAX_GUEST_HISTORY = 20


class SQLiteSessionProgressStore(SessionProgressStore):
    """Local, capacity-bounded practice history.

    Snapshots are kept most recent first; inserting beyond `max_history`
    evicts the oldest entries.
    """

    def __init__(
        self,
        db_path: Path = DEFAULT_DB_PATH,
        max_history: int = MAX_GUEST_HISTORY,
    ):
        self.db_path = db_path
        self.max_history = max_history
        init_schema(db_path)

    def create_in_progress(
        self,
        difficulty: Difficulty,
        words: list[str],
        question_set: QuestionSet,
        vocab_details: list[VocabularyDetail] | None = None,
    ) -> CreatedSession:
        """Create an in-progress snapshot."""
        now = utc_now_iso()
        snapshot = SessionSnapshot(
            id=uuid.uuid4().hex,
            mode=StoreMode.GUEST,
            difficulty=difficulty,
            words=words,
            question_set=question_set,
            status=SessionStatus.IN_PROGRESS,
            current_question_index=0,
            created_at=now,
            updated_at=now,
            has_vocab_details=bool(vocab_details),
            vocab_details=vocab_details,
        )
        self._insert(snapshot)
        logger.info("Created guest session %s (%d words)", snapshot.id, len(words))
        return CreatedSession(id=snapshot.id, created_at=now)

    def save_answer(
        self, session_id: str, answer: AnswerRecord, new_index: int
    ) -> SessionSnapshot:
        """Append an answer, move the index and complete when done."""

        def append(snapshot: SessionSnapshot) -> SessionSnapshot:
            answers = [*snapshot.answers, answer]
            total = snapshot.total_questions

            update: dict = {
                "answers": answers,
                "current_question_index": new_index,
                "updated_at": utc_now_iso(),
                "status": SessionStatus.COMPLETED
                if new_index >= total
                else SessionStatus.IN_PROGRESS,
            }
            if update["status"] == SessionStatus.COMPLETED:
                update["score"] = compute_score(answers, total)
            return snapshot.model_copy(update=update)

        return self._modify(session_id, append)

    def list_in_progress(self) -> list[InProgressSessionSummary]:
        """Summaries of in-progress sessions, most recent first."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT snapshot FROM guest_sessions WHERE status = ? ORDER BY seq DESC",
                (SessionStatus.IN_PROGRESS.value,),
            )
            return [
                self._row_to_snapshot(row).summary() for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def list_all(self) -> list[SessionSnapshot]:
        """Every stored snapshot, most recent first."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("SELECT snapshot FROM guest_sessions ORDER BY seq DESC")
            return [self._row_to_snapshot(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_for_resume(self, session_id: str) -> SessionSnapshot:
        """Load a snapshot by id."""
        conn = get_connection(self.db_path)
        try:
            return self._load(conn, session_id)
        finally:
            conn.close()

    def delete(self, session_id: str) -> bool:
        """Delete a snapshot; False if it was already gone."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("DELETE FROM guest_sessions WHERE id = ?", (session_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def update_question_set(
        self, session_id: str, question_set: QuestionSet
    ) -> SessionSnapshot:
        """Replace the question set while the session is in progress."""

        def replace(snapshot: SessionSnapshot) -> SessionSnapshot:
            if snapshot.status != SessionStatus.IN_PROGRESS:
                raise SessionNotEditableError()
            return snapshot.model_copy(
                update={"question_set": question_set, "updated_at": utc_now_iso()}
            )

        return self._modify(session_id, replace)

    def complete(
        self,
        session_id: str,
        answers: list[AnswerRecord],
        score: int,
        analysis: AnalysisSummary,
    ) -> SessionSnapshot:
        """Write the final answers, score and analysis."""

        def finish(snapshot: SessionSnapshot) -> SessionSnapshot:
            return snapshot.model_copy(
                update={
                    "answers": list(answers),
                    "score": score,
                    "analysis": analysis,
                    "status": SessionStatus.COMPLETED,
                    "current_question_index": snapshot.total_questions,
                    "updated_at": utc_now_iso(),
                }
            )

        updated = self._modify(session_id, finish)
        logger.info("Completed guest session %s (score %d)", session_id, score)
        return updated

    def save_completed(
        self,
        difficulty: Difficulty,
        words: list[str],
        question_set: QuestionSet,
        answers: list[AnswerRecord],
        score: int,
        analysis: AnalysisSummary,
    ) -> SessionSnapshot:
        """Insert a completed snapshot."""
        now = utc_now_iso()
        snapshot = SessionSnapshot(
            id=uuid.uuid4().hex,
            mode=StoreMode.GUEST,
            difficulty=difficulty,
            words=words,
            score=score,
            analysis=analysis,
            question_set=question_set,
            answers=list(answers),
            status=SessionStatus.COMPLETED,
            current_question_index=question_set.metadata.total_questions,
            created_at=now,
            updated_at=now,
        )
        self._insert(snapshot)
        return snapshot

    def _insert(self, snapshot: SessionSnapshot) -> None:
        """Insert a snapshot at the head and evict overflow."""
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                """INSERT INTO guest_sessions (id, status, created_at, updated_at, snapshot)
                VALUES (?, ?, ?, ?, ?)""",
                (
                    snapshot.id,
                    snapshot.status.value,
                    snapshot.created_at,
                    snapshot.updated_at,
                    snapshot.model_dump_json(by_alias=True),
                ),
            )
            cursor = conn.execute(
                """DELETE FROM guest_sessions WHERE seq NOT IN
                (SELECT seq FROM guest_sessions ORDER BY seq DESC LIMIT ?)""",
                (self.max_history,),
            )
            if cursor.rowcount:
                logger.info("Evicted %d old guest session(s)", cursor.rowcount)
            conn.commit()
        finally:
            conn.close()

    def _modify(
        self,
        session_id: str,
        change: Callable[[SessionSnapshot], SessionSnapshot],
    ) -> SessionSnapshot:
        """Read, change and rewrite a snapshot in one write transaction.

        BEGIN IMMEDIATE takes the database write lock before the read;
        other writers wait on it. The row keeps its position.
        """
        conn = get_connection(self.db_path)
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                snapshot = self._load(conn, session_id)
                updated = change(snapshot)
                conn.execute(
                    """UPDATE guest_sessions
                    SET status = ?, updated_at = ?, snapshot = ?
                    WHERE id = ?""",
                    (
                        updated.status.value,
                        updated.updated_at,
                        updated.model_dump_json(by_alias=True),
                        session_id,
                    ),
                )
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            return updated
        finally:
            conn.close()

    def _load(self, conn: sqlite3.Connection, session_id: str) -> SessionSnapshot:
        row = conn.execute(
            "SELECT snapshot FROM guest_sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            raise SessionNotFoundError(f"Session {session_id} not found in local history")
        return self._row_to_snapshot(row)

    def _row_to_snapshot(self, row) -> SessionSnapshot:
        """Convert a database row to a SessionSnapshot model."""
        return SessionSnapshot.model_validate_json(row["snapshot"])
