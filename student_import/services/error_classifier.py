from __future__ import annotations

from dataclasses import dataclass

"""Store failure classification.

Maps an opaque store exception onto a fixed set of operator-facing messages by
looking for characteristic substrings in its message. Rules are evaluated in
order and the first match wins; when nothing matches the raw message is
echoed.
"""

__all__ = [
    "ClassifiedError",
    "ErrorCategory",
    "RULES",
    "classify_error",
    "describe_error",
]


class ErrorCategory:
    ACCESS_DENIED = "ACCESS_DENIED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    NETWORK_UNAVAILABLE = "NETWORK_UNAVAILABLE"
    MALFORMED_DATA = "MALFORMED_DATA"
    IDENTIFIER_CONFLICT = "IDENTIFIER_CONFLICT"
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    WRITE_FAILED = "WRITE_FAILED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class Rule:
    needles: tuple[str, ...]
    category: str
    message: str  # may reference {raw}


@dataclass(frozen=True)
class ClassifiedError:
    category: str
    message: str
    raw: str


RULES: tuple[Rule, ...] = (
    Rule(
        ("permission-denied", "permission denied", "insufficient permissions", "insufficient privilege"),
        ErrorCategory.ACCESS_DENIED,
        "Permission denied: You don't have access to create student records. "
        "Please contact your administrator.",
    ),
    Rule(
        ("quota", "resource exhausted", "resource-exhausted", "too many connections"),
        ErrorCategory.QUOTA_EXCEEDED,
        "Database quota exceeded. Please try importing fewer students at a time.",
    ),
    Rule(
        ("network", "unavailable", "timeout", "timed out", "could not connect", "connection refused"),
        ErrorCategory.NETWORK_UNAVAILABLE,
        "Network error: Please check your internet connection and try again.",
    ),
    Rule(
        ("invalid-argument", "invalid argument", "invalid input syntax"),
        ErrorCategory.MALFORMED_DATA,
        "Invalid data format: One or more fields contain invalid values.",
    ),
    Rule(
        ("already-exists", "already exists", "duplicate key"),
        ErrorCategory.IDENTIFIER_CONFLICT,
        "Record already exists: A student with this ID already exists in the system.",
    ),
    Rule(
        ("not-found", "not found", "does not exist"),
        ErrorCategory.MISSING_DEPENDENCY,
        "Required resource not found. Please refresh and try again.",
    ),
    Rule(
        ("batch", "write"),
        ErrorCategory.WRITE_FAILED,
        "Database write error: {raw}",
    ),
)


def classify_error(error: BaseException | str | None) -> ClassifiedError:
    if error is None:
        return ClassifiedError(ErrorCategory.UNKNOWN, "Unknown error occurred", "")
    raw = str(error).strip()
    if not raw:
        return ClassifiedError(ErrorCategory.UNKNOWN, "Unknown error occurred", raw)
    lowered = raw.lower()
    for rule in RULES:
        if any(needle in lowered for needle in rule.needles):
            return ClassifiedError(rule.category, rule.message.format(raw=raw), raw)
    return ClassifiedError(ErrorCategory.UNKNOWN, raw, raw)


def describe_error(error: BaseException | str | None) -> str:
    """User-facing message for a store failure."""
    return classify_error(error).message
