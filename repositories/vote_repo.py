"""
repositories/vote_repo.py
-------------------------
Data access layer for the vote ledger.

The ledger is the source of truth for "has this voter voted on this
question". The `questions.vote_count` column is a cached copy; when
`update_tally` is set, the ledger write and the tally update run in the
same transaction so the two cannot drift apart.
"""

from db.connection import get_connection, release_connection
from db.errors import CONSTRAINT_VIOLATIONS, DuplicateVoteError, translate_integrity_error
from models.vote import Vote
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, question_id, user_identifier, voted_at"


class VoteRepository:
    """Repository for the votes table."""

    # ── CREATE ────────────────────────────────────────────

    def cast(self, question_id: str, voter_id: str, update_tally: bool = True) -> Vote:
        """
        Record a vote.

        Args:
            question_id: The question being voted on.
            voter_id: Opaque voter identifier (e.g. enrollment number).
            update_tally: Also increment `questions.vote_count` in the
                same transaction.

        Returns:
            The persisted Vote.

        Raises:
            DuplicateVoteError: If the voter already voted on this question.
            QuestionNotFoundError: If the question does not exist.
        """
        insert_sql = f"""
            INSERT INTO votes (question_id, user_identifier)
            VALUES (%s, %s)
            RETURNING {_COLUMNS};
        """
        tally_sql = "UPDATE questions SET vote_count = vote_count + 1 WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(insert_sql, (question_id, voter_id))
                vote = self._row_to_vote(cur.fetchone())
                if update_tally:
                    cur.execute(tally_sql, (question_id,))
            conn.commit()
            logger.info(f"Voter {voter_id} voted on question {question_id}")
            return vote
        except CONSTRAINT_VIOLATIONS as e:
            conn.rollback()
            error = translate_integrity_error(e, question_id=question_id, voter_id=voter_id)
            if isinstance(error, DuplicateVoteError):
                logger.warning(f"Duplicate vote by {voter_id} on question {question_id}")
            else:
                logger.error(f"Rejected vote by {voter_id} on question {question_id}: {e}")
            raise error from e
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to cast vote: {e}")
            raise
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def has_voted(self, question_id: str, voter_id: str) -> bool:
        """Return True if the ledger holds a row for this (question, voter) pair."""
        sql = "SELECT 1 FROM votes WHERE question_id = %s AND user_identifier = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id, voter_id))
                return cur.fetchone() is not None
        finally:
            release_connection(conn)

    def count_for_question(self, question_id: str) -> int:
        """Number of ledger rows for a question."""
        sql = "SELECT COUNT(*) FROM votes WHERE question_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                return int(cur.fetchone()[0])
        finally:
            release_connection(conn)

    def list_for_question(self, question_id: str) -> list[Vote]:
        """All votes on a question, oldest first."""
        sql = f"SELECT {_COLUMNS} FROM votes WHERE question_id = %s ORDER BY voted_at;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (question_id,))
                return [self._row_to_vote(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def list_for_voter(self, voter_id: str) -> list[Vote]:
        """All votes cast by one voter, newest first."""
        sql = f"SELECT {_COLUMNS} FROM votes WHERE user_identifier = %s ORDER BY voted_at DESC;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (voter_id,))
                return [self._row_to_vote(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def retract(self, question_id: str, voter_id: str, update_tally: bool = True) -> bool:
        """
        Remove a vote if present.

        Args:
            question_id: The question the vote was cast on.
            voter_id: The voter retracting their vote.
            update_tally: Also decrement `questions.vote_count` (never
                below zero) in the same transaction when a row was removed.

        Returns:
            True if a ledger row was removed, False if there was none.
        """
        delete_sql = "DELETE FROM votes WHERE question_id = %s AND user_identifier = %s;"
        tally_sql = """
            UPDATE questions SET vote_count = GREATEST(vote_count - 1, 0)
            WHERE id = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(delete_sql, (question_id, voter_id))
                deleted = cur.rowcount > 0
                if deleted and update_tally:
                    cur.execute(tally_sql, (question_id,))
            conn.commit()
            if deleted:
                logger.info(f"Voter {voter_id} retracted vote on question {question_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to retract vote by {voter_id} on question {question_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_vote(row: tuple) -> Vote:
        """Convert a database row tuple to a Vote domain object."""
        return Vote(
            id=str(row[0]),
            question_id=str(row[1]),
            voter_id=row[2],
            voted_at=row[3],
        )
