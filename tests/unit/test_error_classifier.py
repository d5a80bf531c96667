from __future__ import annotations

import pytest

from student_import.services.error_classifier import ErrorCategory, classify_error, describe_error
from student_import.store.base import StoreWriteError


@pytest.mark.parametrize(
    ("raw", "category"),
    [
        ("permission-denied: missing rights", ErrorCategory.ACCESS_DENIED),
        ("ERROR: permission denied for table students", ErrorCategory.ACCESS_DENIED),
        ("Quota exceeded for writes", ErrorCategory.QUOTA_EXCEEDED),
        ("FATAL: sorry, too many connections", ErrorCategory.QUOTA_EXCEEDED),
        ("service unavailable", ErrorCategory.NETWORK_UNAVAILABLE),
        ("Network is unreachable", ErrorCategory.NETWORK_UNAVAILABLE),
        ("could not connect to server", ErrorCategory.NETWORK_UNAVAILABLE),
        ("invalid-argument: batch of 600 operations exceeds limit 500", ErrorCategory.MALFORMED_DATA),
        ("invalid input syntax for type integer", ErrorCategory.MALFORMED_DATA),
        ("already-exists: students/abc", ErrorCategory.IDENTIFIER_CONFLICT),
        ("duplicate key value violates unique constraint", ErrorCategory.IDENTIFIER_CONFLICT),
        ('relation "students" does not exist', ErrorCategory.MISSING_DEPENDENCY),
        ("not-found: document", ErrorCategory.MISSING_DEPENDENCY),
        ("batch commit aborted", ErrorCategory.WRITE_FAILED),
        ("something odd happened", ErrorCategory.UNKNOWN),
    ],
)
def test_categories(raw, category):
    assert classify_error(raw).category == category


def test_first_rule_wins():
    # mentions both access and network; access is listed first
    assert classify_error("permission denied while network busy").category == ErrorCategory.ACCESS_DENIED


def test_messages():
    assert describe_error("permission-denied").startswith("Permission denied")
    assert describe_error("quota").startswith("Database quota exceeded")
    assert describe_error("timeout").startswith("Network error")
    assert describe_error("write stalled") == "Database write error: write stalled"
    assert describe_error("weird thing") == "weird thing"


def test_exception_input():
    err = StoreWriteError("already-exists: addresses/a1")
    c = classify_error(err)
    assert c.category == ErrorCategory.IDENTIFIER_CONFLICT
    assert c.raw == "already-exists: addresses/a1"


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_empty_input(raw):
    assert describe_error(raw) == "Unknown error occurred"
