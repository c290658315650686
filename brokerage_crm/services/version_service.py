"""Optimistic locking helpers.

Entities carrying a `version` column bump it on every state change; callers
may send the version they last saw and get a conflict instead of silently
overwriting someone else's change.
"""


class VersionConflictError(Exception):
    """Raised when expected_version doesn't match current version."""
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Version conflict: expected {expected}, got {actual}")


def check_version(
    current_version: int,
    expected_version: int,
) -> None:
    """
    Check if expected version matches current.

    Raises:
        VersionConflictError if mismatch
    """
    if current_version != expected_version:
        raise VersionConflictError(expected_version, current_version)
