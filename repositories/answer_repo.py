"""
repositories/answer_repo.py
---------------------------
Data access layer for answers.
Answers are append-only: there is no update or delete here, they
disappear only when their question is deleted.
"""

from typing import Optional

from db.connection import get_connection, release_connection
from db.errors import CONSTRAINT_VIOLATIONS, translate_integrity_error
from models.answer import Answer
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, question_id, user_name, enrollment_no, answer_text, created_at"


class AnswerRepository:
    """Repository for create/read operations on the answers table."""

    def create(self, answer: Answer) -> Answer:
        """
        Insert a new answer.

        Args:
            answer: The Answer to persist.

        Returns:
            The same Answer with its `id` and `created_at` populated.

        Raises:
            QuestionNotFoundError: If `question_id` references no question.
            MissingFieldError: If a required column was None.
        """
        sql = """
            INSERT INTO answers (question_id, user_name, enrollment_no, answer_text)
            VALUES (%s, %s, %s, %s)
            RETURNING id, created_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    answer.question_id, answer.answerer_name,
                    answer.answerer_id, answer.text,
                ))
                row = cur.fetchone()
                answer.id = str(row[0])
                answer.created_at = row[1]
            conn.commit()
            logger.info(f"Added answer {answer.id} to question {answer.question_id}")
            return answer
        except CONSTRAINT_VIOLATIONS as e:
            conn.rollback()
            logger.error(f"Rejected answer to question {answer.question_id}: {e}")
            raise translate_integrity_error(e, question_id=answer.question_id) from e
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to add answer: {e}")
            raise
        finally:
            release_connection(conn)

    def get_by_id(self, answer_id: str) -> Optional[Answer]:
        """Fetch a single answer, or None if it does not exist."""
        sql = f"SELECT {_COLUMNS} FROM answers WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (answer_id,))
                row = cur.fetchone()
                return self._row_to_answer(row) if row else None
        finally:
            release_connection(conn)

    def list_for_question(self, question_id: str) -> list[Answer]:
        """
        Fetch all answers to a question, newest first.

        Returns:
            List of Answer objects (empty if the question has none or
            does not exist).
        """
        sql = f"""
            SELECT {_COLUMNS} FROM answers
            WHERE question_id = %s
            ORDER BY created_at DESC;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                return [self._row_to_answer(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def count_for_question(self, question_id: str) -> int:
        """Number of answers posted to a question."""
        sql = "SELECT COUNT(*) FROM answers WHERE question_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                return int(cur.fetchone()[0])
        finally:
            release_connection(conn)

    @staticmethod
    def _row_to_answer(row: tuple) -> Answer:
        """Convert a database row tuple to an Answer domain object."""
        return Answer(
            id=str(row[0]),
            question_id=str(row[1]),
            answerer_name=row[2],
            answerer_id=row[3],
            text=row[4],
            created_at=row[5],
        )
