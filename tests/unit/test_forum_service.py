from unittest.mock import MagicMock

import pytest

from config import DEFAULT_CATEGORY
from db.errors import (
    AccessDeniedError,
    DuplicateVoteError,
    MissingFieldError,
    QuestionNotFoundError,
)
from models.question import Question
from security.access_policy import AccessPolicy, PolicyRule
from services.forum_service import ForumService
from tests.conftest import QUESTION_ID

READ_ONLY_POLICY = AccessPolicy(
    name="read-only",
    rules=(
        PolicyRule("questions", "SELECT", "Anyone can view questions"),
        PolicyRule("answers", "SELECT", "Anyone can view answers"),
        PolicyRule("votes", "SELECT", "Anyone can view votes"),
    ),
)


@pytest.fixture
def service():
    """ForumService with the open policy and mocked repositories."""
    svc = ForumService()
    svc.question_repo = MagicMock()
    svc.answer_repo = MagicMock()
    svc.vote_repo = MagicMock()
    return svc


@pytest.fixture
def read_only_service():
    svc = ForumService(policy=READ_ONLY_POLICY)
    svc.question_repo = MagicMock()
    svc.answer_repo = MagicMock()
    svc.vote_repo = MagicMock()
    return svc


class TestQuestions:
    """Test question operations of ForumService."""

    def test_uses_open_policy_by_default(self):
        assert ForumService().policy.name == "open"

    def test_ask_question(self, service):
        """Test fields are trimmed and category left for the repository default."""
        service.question_repo.create.side_effect = lambda q: q

        question = service.ask_question("  Alice ", "A1", " What is TCP? ")

        assert question.asker_name == "Alice"
        assert question.text == "What is TCP?"
        assert question.category is None
        service.question_repo.create.assert_called_once()

    def test_ask_question_with_category(self, service):
        service.question_repo.create.side_effect = lambda q: q

        assert service.ask_question("Alice", "A1", "Q?", category="Technical").category == "Technical"

    @pytest.mark.parametrize("field, args", [
        ("asker_name", (None, "A1", "Q?")),
        ("asker_id", ("Alice", "", "Q?")),
        ("text", ("Alice", "A1", "   ")),
    ])
    def test_ask_question_requires_fields(self, service, field, args):
        """Test missing or blank required fields are rejected before writing."""
        with pytest.raises(MissingFieldError) as exc_info:
            service.ask_question(*args)

        assert exc_info.value.field == field
        service.question_repo.create.assert_not_called()

    def test_list_questions(self, service):
        service.question_repo.get_all.return_value = []

        service.list_questions(category="General", order_by="recent")

        service.question_repo.get_all.assert_called_once_with(category="General", order_by="recent")

    def test_get_question_invalid_id(self, service):
        """Test that a malformed identifier is treated as not found."""
        assert service.get_question("not-a-uuid") is None
        service.question_repo.get_by_id.assert_not_called()

    def test_edit_question(self, service):
        service.question_repo.get_by_id.return_value = Question(
            asker_name="Alice", asker_id="A1", text="Old", category="General", id=QUESTION_ID,
        )
        service.question_repo.update.return_value = True

        question = service.edit_question(QUESTION_ID, text="New", category="Academic")

        assert question.text == "New"
        assert question.category == "Academic"

    def test_edit_blank_category_resets_to_default(self, service):
        """Test that an empty category falls back to the configured default."""
        service.question_repo.get_by_id.return_value = Question(
            asker_name="Alice", asker_id="A1", text="Q", category="Technical", id=QUESTION_ID,
        )
        service.question_repo.update.return_value = True

        question = service.edit_question(QUESTION_ID, category="  ")

        assert question.category == DEFAULT_CATEGORY
        assert question.text == "Q"

    def test_edit_without_category_keeps_it(self, service):
        service.question_repo.get_by_id.return_value = Question(
            asker_name="Alice", asker_id="A1", text="Q", category="Technical", id=QUESTION_ID,
        )
        service.question_repo.update.return_value = True

        assert service.edit_question(QUESTION_ID, text="New").category == "Technical"

    def test_ask_question_accepts_numeric_asker_id(self, service):
        """Test that an enrollment code given as an int is stored as a string."""
        service.question_repo.create.side_effect = lambda q: q

        assert service.ask_question("Alice", 2024001, "Q?").asker_id == "2024001"

    def test_edit_missing_question(self, service):
        service.question_repo.get_by_id.return_value = None

        assert service.edit_question(QUESTION_ID, text="New") is None
        service.question_repo.update.assert_not_called()

    def test_delete_question(self, service):
        service.question_repo.delete.return_value = True

        assert service.delete_question(QUESTION_ID) is True
        service.question_repo.delete.assert_called_once_with(QUESTION_ID)

    def test_delete_question_invalid_id(self, service):
        assert service.delete_question("nope") is False
        service.question_repo.delete.assert_not_called()


class TestAnswers:
    """Test answer operations of ForumService."""

    def test_post_answer(self, service):
        service.answer_repo.create.side_effect = lambda a: a

        answer = service.post_answer(QUESTION_ID, "Bob", "B7", " TCP is a protocol. ")

        assert answer.question_id == QUESTION_ID
        assert answer.text == "TCP is a protocol."

    def test_post_answer_invalid_question_id(self, service):
        with pytest.raises(QuestionNotFoundError):
            service.post_answer("missing", "Bob", "B7", "text")

        service.answer_repo.create.assert_not_called()

    def test_post_answer_requires_text(self, service):
        with pytest.raises(MissingFieldError):
            service.post_answer(QUESTION_ID, "Bob", "B7", "")

    def test_get_answers_invalid_id(self, service):
        assert service.get_answers("missing") == []


class TestVotes:
    """Test vote operations of ForumService."""

    def test_cast_vote_updates_tally(self, service):
        service.cast_vote(QUESTION_ID, " A1 ")

        service.vote_repo.cast.assert_called_once_with(QUESTION_ID, "A1", update_tally=True)

    def test_cast_vote_duplicate_propagates(self, service):
        service.vote_repo.cast.side_effect = DuplicateVoteError(QUESTION_ID, "A1")

        with pytest.raises(DuplicateVoteError):
            service.cast_vote(QUESTION_ID, "A1")

    def test_cast_vote_invalid_question(self, service):
        with pytest.raises(QuestionNotFoundError):
            service.cast_vote("missing", "A1")

    def test_cast_vote_requires_voter(self, service):
        with pytest.raises(MissingFieldError):
            service.cast_vote(QUESTION_ID, None)

    def test_retract_vote_updates_tally(self, service):
        service.vote_repo.retract.return_value = True

        assert service.retract_vote(QUESTION_ID, "A1") is True
        service.vote_repo.retract.assert_called_once_with(QUESTION_ID, "A1", update_tally=True)

    def test_has_voted_uses_same_voter_identity_as_cast(self, service):
        """Test a padded voter id is trimmed identically for cast, check and retract."""
        service.cast_vote(QUESTION_ID, " A1 ")
        service.has_voted(QUESTION_ID, " A1 ")
        service.retract_vote(QUESTION_ID, " A1 ")

        cast_voter = service.vote_repo.cast.call_args[0][1]
        checked_voter = service.vote_repo.has_voted.call_args[0][1]
        retracted_voter = service.vote_repo.retract.call_args[0][1]
        assert cast_voter == checked_voter == retracted_voter == "A1"

    def test_has_voted_requires_voter(self, service):
        with pytest.raises(MissingFieldError):
            service.has_voted(QUESTION_ID, "  ")

        service.vote_repo.has_voted.assert_not_called()

    def test_cast_vote_numeric_voter_id(self, service):
        """Test that a non-string voter id is coerced rather than crashing."""
        service.cast_vote(QUESTION_ID, 2024001)

        service.vote_repo.cast.assert_called_once_with(QUESTION_ID, "2024001", update_tally=True)

    def test_has_voted(self, service):
        service.vote_repo.has_voted.return_value = False

        assert service.has_voted(QUESTION_ID, "A1") is False


class TestAccessPolicyEnforcement:
    """Test that ForumService honours the configured policy."""

    def test_read_only_policy_allows_listing(self, read_only_service):
        read_only_service.question_repo.get_all.return_value = []

        assert read_only_service.list_questions() == []

    @pytest.mark.parametrize("call", [
        lambda s: s.ask_question("Alice", "A1", "Q?"),
        lambda s: s.post_answer(QUESTION_ID, "Bob", "B7", "A"),
        lambda s: s.cast_vote(QUESTION_ID, "A1"),
        lambda s: s.retract_vote(QUESTION_ID, "A1"),
        lambda s: s.edit_question(QUESTION_ID, text="New"),
    ])
    def test_read_only_policy_denies_writes(self, read_only_service, call):
        with pytest.raises(AccessDeniedError) as exc_info:
            call(read_only_service)

        assert exc_info.value.policy == "read-only"
        read_only_service.vote_repo.cast.assert_not_called()
        read_only_service.answer_repo.create.assert_not_called()
        read_only_service.question_repo.create.assert_not_called()

    def test_reconcile_vote_counts(self, service):
        service.question_repo.reconcile_vote_counts.return_value = 2

        assert service.reconcile_vote_counts() == 2
