"""
security/access_policy.py
-------------------------
Named row-level access policies for the forum tables.

The forum runs without authentication, so the active policy simply
grants every public operation. Keeping it as a named configuration
means switching to an authenticated policy is a matter of registering
a new AccessPolicy and pointing FORUM_ACCESS_POLICY at it.
"""

from dataclasses import dataclass

from utils.logger import get_logger

logger = get_logger(__name__)

OPERATIONS = ("SELECT", "INSERT", "UPDATE", "DELETE")


@dataclass(frozen=True)
class PolicyRule:
    """
    A single CREATE POLICY statement.

    Attributes:
        table: Table the rule applies to.
        operation: SELECT, INSERT, UPDATE or DELETE.
        name: Human-readable policy name (quoted in SQL).
        using: Row filter for existing rows (SELECT/UPDATE/DELETE).
        with_check: Row check for new rows (INSERT/UPDATE).
    """
    table: str
    operation: str
    name: str
    using: str = "true"
    with_check: str = "true"

    def __post_init__(self):
        if self.operation not in OPERATIONS:
            raise ValueError(f"Unknown policy operation: {self.operation}")

    def to_sql(self) -> str:
        """Render the DROP/CREATE pair for this rule."""
        lines = [
            f'DROP POLICY IF EXISTS "{self.name}" ON {self.table};',
            f'CREATE POLICY "{self.name}"',
            f"  ON {self.table} FOR {self.operation}",
        ]
        if self.operation in ("SELECT", "UPDATE", "DELETE"):
            lines.append(f"  USING ({self.using})")
        if self.operation in ("INSERT", "UPDATE"):
            lines.append(f"  WITH CHECK ({self.with_check})")
        return "\n".join(lines) + ";"


@dataclass(frozen=True)
class AccessPolicy:
    """A named set of PolicyRules covering the forum tables."""
    name: str
    rules: tuple[PolicyRule, ...]

    @property
    def tables(self) -> list[str]:
        """Tables touched by this policy, in first-seen order."""
        seen: list[str] = []
        for rule in self.rules:
            if rule.table not in seen:
                seen.append(rule.table)
        return seen

    def allows(self, table: str, operation: str) -> bool:
        """Return True if some rule grants ``operation`` on ``table``."""
        operation = operation.upper()
        return any(r.table == table and r.operation == operation for r in self.rules)

    def to_sql(self, tables: tuple[str, ...] = ()) -> str:
        """
        Render the row-level security DDL for this policy.

        Args:
            tables: Extra tables to enable RLS on even when no rule
                targets them (they then deny all public access).

        Returns:
            SQL enabling RLS on each table followed by every rule.
        """
        statements = []
        for table in self.tables + [t for t in tables if t not in self.tables]:
            statements.append(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")
        statements.extend(rule.to_sql() for rule in self.rules)
        return "\n\n".join(statements)


# ── Open forum: anyone may read, post and vote ────────────
OPEN_FORUM_POLICY = AccessPolicy(
    name="open",
    rules=(
        PolicyRule("questions", "SELECT", "Anyone can view questions"),
        PolicyRule("questions", "INSERT", "Anyone can ask questions"),
        PolicyRule("questions", "UPDATE", "Anyone can update question vote counts"),
        PolicyRule("answers", "SELECT", "Anyone can view answers"),
        PolicyRule("answers", "INSERT", "Anyone can post answers"),
        PolicyRule("votes", "SELECT", "Anyone can view votes"),
        PolicyRule("votes", "INSERT", "Anyone can vote"),
        PolicyRule("votes", "DELETE", "Anyone can remove their votes"),
    ),
)

_POLICIES: dict[str, AccessPolicy] = {OPEN_FORUM_POLICY.name: OPEN_FORUM_POLICY}


def register_policy(policy: AccessPolicy) -> None:
    """Make a policy selectable by name."""
    _POLICIES[policy.name] = policy
    logger.info(f"Registered access policy '{policy.name}' ({len(policy.rules)} rules)")


def get_policy(name: str) -> AccessPolicy:
    """
    Look up a registered access policy.

    Raises:
        ValueError: If no policy with that name is registered.
    """
    try:
        return _POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown access policy '{name}'. Available: {', '.join(sorted(_POLICIES))}"
        ) from None
