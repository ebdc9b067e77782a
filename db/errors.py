"""
db/errors.py
------------
Forum error hierarchy and the mapping from PostgreSQL constraint
violations to it.

The schema rejects writes in exactly three ways: a missing required
column, a reference to a question that does not exist, and a second
vote for the same (question, voter) pair.
"""

import psycopg2
from psycopg2 import errors as pg_errors


class ForumError(Exception):
    """Base class for every error raised by the forum data layer."""


class MissingFieldError(ForumError):
    """A required attribute was absent or blank."""

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class QuestionNotFoundError(ForumError):
    """An answer or vote referenced a question that does not exist."""

    def __init__(self, question_id=None):
        message = "Referenced question does not exist"
        if question_id is not None:
            message += f": {question_id}"
        super().__init__(message)
        self.question_id = question_id


class DuplicateVoteError(ForumError):
    """The voter already has a ledger row for this question."""

    def __init__(self, question_id=None, voter_id=None):
        super().__init__(f"Voter {voter_id} has already voted on question {question_id}")
        self.question_id = question_id
        self.voter_id = voter_id


class AccessDeniedError(ForumError):
    """The active access policy does not grant this operation."""

    def __init__(self, policy: str, table: str, operation: str):
        super().__init__(f"Access policy '{policy}' does not allow {operation} on {table}")
        self.policy = policy
        self.table = table
        self.operation = operation


# Driver errors that correspond to a schema-level rejection
CONSTRAINT_VIOLATIONS = (
    pg_errors.UniqueViolation,
    pg_errors.ForeignKeyViolation,
    pg_errors.NotNullViolation,
)


def translate_integrity_error(
    exc: psycopg2.Error, question_id=None, voter_id=None
) -> ForumError:
    """
    Map a driver-level constraint violation to the matching ForumError.

    Args:
        exc: One of ``CONSTRAINT_VIOLATIONS`` raised by psycopg2.
        question_id: Question the failing statement referenced, if known.
        voter_id: Voter the failing statement referenced, if known.

    Returns:
        A ForumError subclass instance.
    """
    if isinstance(exc, pg_errors.UniqueViolation):
        return DuplicateVoteError(question_id, voter_id)
    if isinstance(exc, pg_errors.ForeignKeyViolation):
        return QuestionNotFoundError(question_id)
    if isinstance(exc, pg_errors.NotNullViolation):
        column = getattr(getattr(exc, "diag", None), "column_name", None)
        return MissingFieldError(column or "unknown")
    return ForumError(str(exc))
