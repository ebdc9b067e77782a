"""
main.py
-------
Entry point for the peer Q&A forum database.

Responsibilities:
    - Initialize the database connection pool.
    - Create the schema (tables, indexes, trigger, access policies).
    - Repair any drift between cached vote tallies and the vote ledger.
"""

from config import ACCESS_POLICY
from db.connection import init_pool, close_pool
from db.init_db import create_tables
from services.forum_service import ForumService
from utils.logger import get_logger

logger = get_logger(__name__)


def main() -> None:
    """Prepare the database for a consuming API."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    try:
        create_tables()

        # ── 2. Vote tally consistency ─────────────────────
        service = ForumService()
        fixed = service.reconcile_vote_counts()
        logger.info(f"Vote tallies checked, {fixed} corrected.")

        # ── 3. Summary ────────────────────────────────────
        categories = service.list_categories()
        total = sum(c["count"] for c in categories)
        logger.info(
            f"Forum ready with access policy '{ACCESS_POLICY}': "
            f"{total} question(s) in {len(categories)} categories."
        )
    finally:
        # ── 4. Cleanup ────────────────────────────────────
        close_pool()


if __name__ == "__main__":
    main()
