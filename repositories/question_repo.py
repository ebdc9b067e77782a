"""
repositories/question_repo.py
-----------------------------
Data access layer for forum questions.
All SQL queries related to the `questions` table live here.
"""

from typing import Optional

from config import DEFAULT_CATEGORY
from db.connection import get_connection, release_connection
from db.errors import CONSTRAINT_VIOLATIONS, MissingFieldError, translate_integrity_error
from models.question import Question
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "id, user_name, enrollment_no, question_text, category, "
    "vote_count, created_at, updated_at"
)

# Listing orders; ties are broken by recency
ORDERINGS = {
    "votes": "vote_count DESC, created_at DESC",
    "recent": "created_at DESC",
}


class QuestionRepository:
    """Repository for CRUD operations on the questions table."""

    # ── CREATE ────────────────────────────────────────────

    def create(self, question: Question) -> Question:
        """
        Insert a new question.

        Args:
            question: The Question domain object to persist. A missing
                category falls back to ``DEFAULT_CATEGORY``.

        Returns:
            The same Question with `id`, `vote_count`, `created_at`
            and `updated_at` populated from the database.

        Raises:
            MissingFieldError: If a required column was None.
        """
        sql = """
            INSERT INTO questions (user_name, enrollment_no, question_text, category)
            VALUES (%s, %s, %s, %s)
            RETURNING id, category, vote_count, created_at, updated_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    question.asker_name, question.asker_id, question.text,
                    question.category or DEFAULT_CATEGORY,
                ))
                row = cur.fetchone()
                question.id = str(row[0])
                question.category = row[1]
                question.vote_count = row[2]
                question.created_at = row[3]
                question.updated_at = row[4]
            conn.commit()
            logger.info(f"Created question {question.id} by {question.asker_id}")
            return question
        except CONSTRAINT_VIOLATIONS as e:
            conn.rollback()
            logger.error(f"Rejected question from {question.asker_id}: {e}")
            raise translate_integrity_error(e) from e
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to create question: {e}")
            raise
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, question_id: str) -> Optional[Question]:
        """
        Fetch a single question by ID.

        Returns:
            A Question object or None if not found.
        """
        sql = f"SELECT {_COLUMNS} FROM questions WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                row = cur.fetchone()
                return self._row_to_question(row) if row else None
        finally:
            release_connection(conn)

    def get_all(self, category: Optional[str] = None, order_by: str = "votes") -> list[Question]:
        """
        List questions, optionally filtered by category.

        Args:
            category: Only return questions in this category.
            order_by: ``"votes"`` (highest tally first) or ``"recent"``
                (newest first).

        Returns:
            List of Question objects in the requested order.

        Raises:
            ValueError: If ``order_by`` is not a known ordering.
        """
        if order_by not in ORDERINGS:
            raise ValueError(
                f"Unknown ordering '{order_by}'. Expected one of: {', '.join(ORDERINGS)}"
            )
        sql = f"SELECT {_COLUMNS} FROM questions"
        params: list = []
        if category:
            sql += " WHERE category = %s"
            params.append(category)
        sql += f" ORDER BY {ORDERINGS[order_by]};"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_question(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_categories(self) -> list[dict]:
        """
        Get every category in use with its question count.

        Returns:
            List of dicts: [{'category': str, 'count': int}, ...]
        """
        sql = """
            SELECT category, COUNT(*) AS total
            FROM questions
            GROUP BY category
            ORDER BY total DESC, category;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
                return [{"category": r[0], "count": int(r[1])} for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def update_vote_count(self, question_id: str, new_count: int) -> bool:
        """
        Overwrite the cached vote tally of a question.
        The trigger refreshes `updated_at` as a side effect.

        Returns:
            True if a row was updated, False otherwise.

        Raises:
            MissingFieldError: If ``new_count`` is None.
            ValueError: If ``new_count`` is negative.
        """
        if new_count is None:
            raise MissingFieldError("vote_count")
        if new_count < 0:
            raise ValueError(f"vote_count cannot be negative: {new_count}")
        sql = "UPDATE questions SET vote_count = %s WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (new_count, question_id))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except CONSTRAINT_VIOLATIONS as e:
            conn.rollback()
            logger.error(f"Rejected vote count of question {question_id}: {e}")
            raise translate_integrity_error(e, question_id=question_id) from e
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update vote count of question {question_id}: {e}")
            raise
        finally:
            release_connection(conn)

    def update(self, question: Question) -> bool:
        """
        Update the editable fields (text and category) of a question.

        Args:
            question: Question with updated fields (must have id set).

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = """
            UPDATE questions
            SET question_text = %s, category = %s
            WHERE id = %s
            RETURNING updated_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    question.text, question.category or DEFAULT_CATEGORY, question.id,
                ))
                row = cur.fetchone()
                if row:
                    question.updated_at = row[0]
            conn.commit()
            return row is not None
        except CONSTRAINT_VIOLATIONS as e:
            conn.rollback()
            logger.error(f"Rejected edit of question {question.id}: {e}")
            raise translate_integrity_error(e, question_id=question.id) from e
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update question {question.id}: {e}")
            raise
        finally:
            release_connection(conn)

    def recount_votes(self, question_id: str) -> Optional[int]:
        """
        Recompute the cached tally of one question from the vote ledger.

        Returns:
            The new vote count, or None if the question does not exist.
        """
        sql = """
            UPDATE questions
            SET vote_count = (SELECT COUNT(*) FROM votes WHERE votes.question_id = questions.id)
            WHERE id = %s
            RETURNING vote_count;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                row = cur.fetchone()
            conn.commit()
            return row[0] if row else None
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to recount votes of question {question_id}: {e}")
            raise
        finally:
            release_connection(conn)

    def reconcile_vote_counts(self) -> int:
        """
        Repair every question whose cached tally drifted from the ledger.

        Returns:
            Number of questions whose vote_count was corrected.
        """
        sql = """
            UPDATE questions q
            SET vote_count = tally.total
            FROM (
                SELECT q2.id, COUNT(v.id) AS total
                FROM questions q2
                LEFT JOIN votes v ON v.question_id = q2.id
                GROUP BY q2.id
            ) AS tally
            WHERE q.id = tally.id AND q.vote_count IS DISTINCT FROM tally.total;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
                fixed = cur.rowcount
            conn.commit()
            if fixed:
                logger.warning(f"Reconciled vote counts of {fixed} question(s)")
            return fixed
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to reconcile vote counts: {e}")
            raise
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete(self, question_id: str) -> bool:
        """
        Delete a question. Its answers and votes are removed by cascade.

        Returns:
            True if a row was deleted, False otherwise.
        """
        sql = "DELETE FROM questions WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted question {question_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete question {question_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_question(row: tuple) -> Question:
        """Convert a database row tuple to a Question domain object."""
        return Question(
            id=str(row[0]),
            asker_name=row[1],
            asker_id=row[2],
            text=row[3],
            category=row[4],
            vote_count=row[5],
            created_at=row[6],
            updated_at=row[7],
        )
