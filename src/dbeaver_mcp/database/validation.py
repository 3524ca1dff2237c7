"""Query safety classification.

A bounded keyword heuristic, not a SQL parser: only the first keyword of the
first statement is inspected. A CTE that wraps a data-modifying statement, a
multi-statement batch or a stored procedure call is classified by its leading
keyword alone.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import SafetyError


class SafetyLevel(str, Enum):
    SAFE_READ = "safe-read"
    MUTATING = "mutating"
    SCHEMA_CHANGE = "schema-change"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class SafetyVerdict:
    """Classification of one query string."""

    level: SafetyLevel
    requires_confirmation: bool
    keyword: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "requires_confirmation": self.requires_confirmation,
            "keyword": self.keyword,
        }


# Leading keyword -> (level, confirmation required)
KEYWORD_VERDICTS = {
    "SELECT": (SafetyLevel.SAFE_READ, False),
    "EXPLAIN": (SafetyLevel.SAFE_READ, False),
    "SHOW": (SafetyLevel.SAFE_READ, False),
    "WITH": (SafetyLevel.SAFE_READ, False),
    "DESCRIBE": (SafetyLevel.SAFE_READ, False),
    "DESC": (SafetyLevel.SAFE_READ, False),
    "PRAGMA": (SafetyLevel.SAFE_READ, False),
    "VALUES": (SafetyLevel.SAFE_READ, False),
    "INSERT": (SafetyLevel.MUTATING, False),
    "UPDATE": (SafetyLevel.MUTATING, False),
    "MERGE": (SafetyLevel.MUTATING, False),
    "REPLACE": (SafetyLevel.MUTATING, False),
    "UPSERT": (SafetyLevel.MUTATING, False),
    "CREATE": (SafetyLevel.SCHEMA_CHANGE, True),
    "ALTER": (SafetyLevel.SCHEMA_CHANGE, True),
    "GRANT": (SafetyLevel.SCHEMA_CHANGE, True),
    "REVOKE": (SafetyLevel.SCHEMA_CHANGE, True),
    "RENAME": (SafetyLevel.SCHEMA_CHANGE, True),
    "COMMENT": (SafetyLevel.SCHEMA_CHANGE, True),
    "DROP": (SafetyLevel.DESTRUCTIVE, True),
    "TRUNCATE": (SafetyLevel.DESTRUCTIVE, True),
    "DELETE": (SafetyLevel.DESTRUCTIVE, True),
}

# Anything not listed cannot be shown to be read-only
UNKNOWN_VERDICT = (SafetyLevel.MUTATING, True)

# Whitespace, line comments, block comments, stray semicolons and parentheses
LEADING_NOISE = re.compile(r"(?:\s+|--[^\n]*(?:\n|$)|/\*.*?\*/|;|\()*", re.DOTALL)
LEADING_KEYWORD = re.compile(r"[A-Za-z_]+")


def strip_leading_noise(query: str) -> str:
    """Remove leading whitespace, comments, semicolons and parentheses."""
    return query[LEADING_NOISE.match(query).end():]


def classify_query(query: str) -> SafetyVerdict:
    """Classify a query by its first statement keyword, case-insensitively.

    Args:
        query: SQL text as submitted by the caller

    Returns:
        SafetyVerdict for the query

    Raises:
        SafetyError: If the query is empty or contains only comments
    """
    if not query or not query.strip():
        raise SafetyError("Query cannot be empty")

    body = strip_leading_noise(query)
    match = LEADING_KEYWORD.match(body)
    if not match:
        if not body.strip():
            raise SafetyError("Query cannot be empty (only comments found)")
        level, confirm = UNKNOWN_VERDICT
        return SafetyVerdict(level, confirm, None)

    keyword = match.group(0).upper()
    level, confirm = KEYWORD_VERDICTS.get(keyword, UNKNOWN_VERDICT)
    return SafetyVerdict(level, confirm, keyword)
