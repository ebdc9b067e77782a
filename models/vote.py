"""
models/vote.py
--------------
Domain model for a vote ledger row.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Vote:
    """A single (question, voter) ledger row."""
    question_id: str
    voter_id: str
    id: Optional[str] = None
    voted_at: Optional[datetime] = None
