"""
db/init_db.py
-------------
Creates the database schema (tables, indexes, trigger and access
policies) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from typing import Optional

from config import ACCESS_POLICY
from db.connection import get_connection, release_connection
from security.access_policy import AccessPolicy, get_policy
from utils.logger import get_logger

logger = get_logger(__name__)

FORUM_TABLES = ("questions", "answers", "votes")

SCHEMA_SQL = """
-- Questions table: one row per asked question, with a cached vote tally
CREATE TABLE IF NOT EXISTS questions (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_name       TEXT NOT NULL,
    enrollment_no   TEXT NOT NULL,
    question_text   TEXT NOT NULL,
    category        TEXT DEFAULT 'General',
    vote_count      INTEGER DEFAULT 0,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Answers table: append-only replies, removed together with their question
CREATE TABLE IF NOT EXISTS answers (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    question_id     UUID NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
    user_name       TEXT NOT NULL,
    enrollment_no   TEXT NOT NULL,
    answer_text     TEXT NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Votes table: the ledger, at most one row per (question, voter)
CREATE TABLE IF NOT EXISTS votes (
    id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    question_id     UUID NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
    user_identifier TEXT NOT NULL,
    voted_at        TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE(question_id, user_identifier)
);

-- Indexes for the sorted question listing and per-question lookups
CREATE INDEX IF NOT EXISTS idx_questions_vote_count ON questions(vote_count DESC);
CREATE INDEX IF NOT EXISTS idx_questions_created_at ON questions(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_questions_category ON questions(category);
CREATE INDEX IF NOT EXISTS idx_answers_question_id ON answers(question_id);
CREATE INDEX IF NOT EXISTS idx_votes_question_id ON votes(question_id);
CREATE INDEX IF NOT EXISTS idx_votes_user_identifier ON votes(user_identifier);

-- Stamp updated_at on every update, whether or not any column changed
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS update_questions_updated_at ON questions;
CREATE TRIGGER update_questions_updated_at
    BEFORE UPDATE ON questions
    FOR EACH ROW
    EXECUTE FUNCTION update_updated_at_column();
"""

DROP_SQL = """
DROP TABLE IF EXISTS votes;
DROP TABLE IF EXISTS answers;
DROP TABLE IF EXISTS questions;
DROP FUNCTION IF EXISTS update_updated_at_column();
"""


def build_schema_sql(policy: AccessPolicy) -> str:
    """Return the full DDL: tables, indexes, trigger and the policy's RLS rules."""
    return SCHEMA_SQL + "\n" + policy.to_sql(FORUM_TABLES) + "\n"


def create_tables(policy: Optional[AccessPolicy] = None) -> None:
    """
    Execute the schema SQL to create all tables and access policies.
    Safe to call multiple times (uses IF NOT EXISTS / DROP ... IF EXISTS).

    Args:
        policy: Access policy to install. Defaults to the one named by
            ``config.ACCESS_POLICY``.
    """
    policy = policy or get_policy(ACCESS_POLICY)
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(build_schema_sql(policy))
        conn.commit()
        logger.info(f"Database schema initialized with access policy '{policy.name}'.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


def drop_tables() -> None:
    """Drop every forum table and the timestamp trigger function."""
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(DROP_SQL)
        conn.commit()
        logger.warning("Forum tables dropped.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to drop schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("Database schema created successfully.")
