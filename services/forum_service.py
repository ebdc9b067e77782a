"""
services/forum_service.py
-------------------------
Business logic for the peer Q&A forum.
Orchestrates the question, answer and vote repositories, validates
required fields and checks every public operation against the active
access policy.
"""

import uuid
from typing import Optional

from config import ACCESS_POLICY, DEFAULT_CATEGORY
from db.errors import AccessDeniedError, MissingFieldError, QuestionNotFoundError
from models.answer import Answer
from models.question import Question
from models.vote import Vote
from repositories.answer_repo import AnswerRepository
from repositories.question_repo import QuestionRepository
from repositories.vote_repo import VoteRepository
from security.access_policy import AccessPolicy, get_policy
from utils.logger import get_logger

logger = get_logger(__name__)


def _require(**fields) -> None:
    """Raise MissingFieldError for the first field that is None or blank."""
    for name, value in fields.items():
        if value is None or not str(value).strip():
            raise MissingFieldError(name)


def _clean(value) -> str:
    """Identifiers and text are stored as trimmed strings (enrollment codes may arrive as ints)."""
    return str(value).strip()


def _is_valid_id(value) -> bool:
    """Return True if ``value`` parses as a UUID."""
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


class ForumService:
    """
    Entry point for a consuming API.

    Voting keeps the ledger and the cached tally together: the ledger
    write and the `vote_count` update share one transaction in the
    vote repository, so `vote_count` always equals the number of ledger
    rows for the question.
    """

    def __init__(self, policy: Optional[AccessPolicy] = None):
        self.policy = policy or get_policy(ACCESS_POLICY)
        self.question_repo = QuestionRepository()
        self.answer_repo = AnswerRepository()
        self.vote_repo = VoteRepository()

    def _authorize(self, table: str, operation: str) -> None:
        if not self.policy.allows(table, operation):
            logger.warning(f"Policy '{self.policy.name}' denied {operation} on {table}")
            raise AccessDeniedError(self.policy.name, table, operation)

    # ── QUESTIONS ─────────────────────────────────────────

    def ask_question(
        self, asker_name: str, asker_id: str, text: str, category: Optional[str] = None
    ) -> Question:
        """
        Post a new question.

        Returns:
            The stored Question (vote_count 0, default category if none given).
        """
        self._authorize("questions", "INSERT")
        _require(asker_name=asker_name, asker_id=asker_id, text=text)
        question = Question(
            asker_name=_clean(asker_name),
            asker_id=_clean(asker_id),
            text=_clean(text),
            category=(_clean(category) or None) if category is not None else None,
        )
        return self.question_repo.create(question)

    def list_questions(
        self, category: Optional[str] = None, order_by: str = "votes"
    ) -> list[Question]:
        """List questions, most voted (or most recent) first."""
        self._authorize("questions", "SELECT")
        return self.question_repo.get_all(category=category, order_by=order_by)

    def get_question(self, question_id: str) -> Optional[Question]:
        """Fetch one question, or None if it does not exist."""
        self._authorize("questions", "SELECT")
        if not _is_valid_id(question_id):
            return None
        return self.question_repo.get_by_id(question_id)

    def list_categories(self) -> list[dict]:
        """Categories in use with their question counts."""
        self._authorize("questions", "SELECT")
        return self.question_repo.get_categories()

    def edit_question(
        self, question_id: str, text: Optional[str] = None, category: Optional[str] = None
    ) -> Optional[Question]:
        """
        Change the text and/or category of a question.

        A category of None leaves it unchanged; a blank category resets it
        to ``DEFAULT_CATEGORY``.

        Returns:
            The updated Question, or None if it does not exist.
        """
        self._authorize("questions", "UPDATE")
        if text is not None:
            _require(text=text)
        question = self.get_question(question_id)
        if question is None:
            return None
        if text is not None:
            question.text = _clean(text)
        if category is not None:
            question.category = _clean(category) or DEFAULT_CATEGORY
        if not self.question_repo.update(question):
            return None
        return question

    def delete_question(self, question_id: str) -> bool:
        """
        Delete a question together with its answers and votes.

        This is a maintenance operation run with the schema owner's
        connection; the public access policy grants no DELETE on questions.
        """
        if not _is_valid_id(question_id):
            return False
        return self.question_repo.delete(question_id)

    # ── ANSWERS ───────────────────────────────────────────

    def post_answer(
        self, question_id: str, answerer_name: str, answerer_id: str, text: str
    ) -> Answer:
        """
        Answer a question.

        Raises:
            QuestionNotFoundError: If the question does not exist.
            MissingFieldError: If a required field is missing.
        """
        self._authorize("answers", "INSERT")
        _require(question_id=question_id, answerer_name=answerer_name,
                 answerer_id=answerer_id, text=text)
        if not _is_valid_id(question_id):
            raise QuestionNotFoundError(question_id)
        answer = Answer(
            question_id=question_id,
            answerer_name=_clean(answerer_name),
            answerer_id=_clean(answerer_id),
            text=_clean(text),
        )
        return self.answer_repo.create(answer)

    def get_answers(self, question_id: str) -> list[Answer]:
        """Answers to a question, newest first."""
        self._authorize("answers", "SELECT")
        if not _is_valid_id(question_id):
            return []
        return self.answer_repo.list_for_question(question_id)

    def get_answer(self, answer_id: str) -> Optional[Answer]:
        self._authorize("answers", "SELECT")
        if not _is_valid_id(answer_id):
            return None
        return self.answer_repo.get_by_id(answer_id)

    # ── VOTES ─────────────────────────────────────────────

    def cast_vote(self, question_id: str, voter_id: str) -> Vote:
        """
        Vote on a question and bump its tally atomically.

        Raises:
            DuplicateVoteError: If this voter already voted on the question.
            QuestionNotFoundError: If the question does not exist.
        """
        self._authorize("votes", "INSERT")
        self._authorize("questions", "UPDATE")
        _require(question_id=question_id, voter_id=voter_id)
        if not _is_valid_id(question_id):
            raise QuestionNotFoundError(question_id)
        return self.vote_repo.cast(question_id, _clean(voter_id), update_tally=True)

    def retract_vote(self, question_id: str, voter_id: str) -> bool:
        """
        Withdraw a vote and decrement the tally atomically.

        Returns:
            True if a vote was removed, False if the voter had not voted.
        """
        self._authorize("votes", "DELETE")
        self._authorize("questions", "UPDATE")
        _require(question_id=question_id, voter_id=voter_id)
        if not _is_valid_id(question_id):
            return False
        return self.vote_repo.retract(question_id, _clean(voter_id), update_tally=True)

    def has_voted(self, question_id: str, voter_id: str) -> bool:
        self._authorize("votes", "SELECT")
        _require(voter_id=voter_id)
        if not _is_valid_id(question_id):
            return False
        return self.vote_repo.has_voted(question_id, _clean(voter_id))

    # ── MAINTENANCE ───────────────────────────────────────

    def reconcile_vote_counts(self) -> int:
        """Bring every cached tally back in line with the ledger."""
        return self.question_repo.reconcile_vote_counts()
