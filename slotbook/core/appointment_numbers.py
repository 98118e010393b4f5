"""Human-readable appointment numbers (``APT-2026-000042``)."""

import secrets

SEQUENCE_WIDTH = 6
SUFFIX_BYTES = 2


def number_prefix(prefix: str, year: int) -> str:
    """Yearly prefix shared by all numbers issued in ``year``."""
    return f"{prefix}-{year}-"


def format_number(prefix: str, year: int, sequence: int) -> str:
    """Format a sequential appointment number."""
    return f"{number_prefix(prefix, year)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(number: str, prefix: str, year: int) -> int | None:
    """
    Extract the sequence part of an appointment number.

    Numbers carrying a random fallback suffix still yield their sequence.

    Returns:
        Sequence number, or None if ``number`` was not issued under this prefix/year
    """
    head = number_prefix(prefix, year)
    if not number.startswith(head):
        return None
    sequence = number[len(head) :].split("-", 1)[0]
    if not sequence.isdigit():
        return None
    return int(sequence)


def next_number(last_number: str | None, prefix: str, year: int) -> str:
    """Candidate that follows ``last_number`` (or the first one of the year)."""
    sequence = parse_sequence(last_number, prefix, year) if last_number else None
    return format_number(prefix, year, (sequence or 0) + 1)


def increment(number: str, prefix: str, year: int) -> str:
    """Candidate directly after ``number``."""
    return next_number(number, prefix, year)


def with_random_suffix(number: str) -> str:
    """Fallback number guaranteed to terminate the collision loop."""
    return f"{number}-{secrets.token_hex(SUFFIX_BYTES).upper()}"
