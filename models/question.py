"""
models/question.py
------------------
Domain model for forum questions.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Question:
    """
    Represents a question posted to the forum.

    Attributes:
        id: UUID primary key (None for new records).
        asker_name: Display name of the person asking.
        asker_id: Opaque asker identifier (e.g. enrollment number).
        text: The question body.
        category: Free-text category; None means the configured default.
        vote_count: Cached tally of ledger rows for this question.
        created_at: Timestamp when the record was created.
        updated_at: Timestamp of the last update (maintained by a trigger).
    """
    asker_name: str
    asker_id: str
    text: str
    category: Optional[str] = None
    vote_count: int = 0
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"[{self.category}] {self.text} ({self.vote_count} votes) - {self.asker_name}"
