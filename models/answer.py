"""
models/answer.py
----------------
Domain model for answers. Answers are immutable once posted.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Answer:
    """
    Represents a reply to exactly one question.

    Attributes:
        id: UUID primary key (None for new records).
        question_id: The question being answered.
        answerer_name: Display name of the person answering.
        answerer_id: Opaque answerer identifier.
        text: The answer body.
        created_at: Timestamp when the record was created.
    """
    question_id: str
    answerer_name: str
    answerer_id: str
    text: str
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"{self.answerer_name}: {self.text}"
