"""Parse and format friendly id tokens (``name`` or ``name--sequence``)."""

from __future__ import annotations

import re

SEPARATOR = "--"
DEFAULT_SEQUENCE = 1
# Largest value a primary key or sequence column can hold (signed 64-bit).
MAX_INTEGER = 2**63 - 1

_SEQUENCE_SUFFIX = re.compile(rf"\A(?P<name>.*){SEPARATOR}(?P<sequence>[0-9]+)\Z", re.DOTALL)
_NUMERIC = re.compile(r"\A[0-9]+\Z")
_MAX_DIGITS = len(str(MAX_INTEGER))


def _storable(digits: str) -> bool:
    significant = digits.lstrip("0")
    return len(significant) <= _MAX_DIGITS and int(digits) <= MAX_INTEGER


def parse(token: str) -> tuple[str, int]:
    """Split a friendly id token into its slug name and sequence.

    A suffix too large to be stored as a sequence is kept in the name.

    Args:
        token: Friendly id such as ``my-title`` or ``my-title--2``.

    Returns:
        Tuple of ``(name, sequence)``; sequence defaults to 1.
    """
    match = _SEQUENCE_SUFFIX.match(token)
    if match is None or not _storable(match.group("sequence")):
        return token, DEFAULT_SEQUENCE
    return match.group("name"), int(match.group("sequence"))


def format(name: str, sequence: int = DEFAULT_SEQUENCE) -> str:  # noqa: A001
    """Build the friendly id token for a slug name and sequence."""
    if not DEFAULT_SEQUENCE <= sequence <= MAX_INTEGER:
        msg = f"Slug sequence must be >= {DEFAULT_SEQUENCE} and <= {MAX_INTEGER}, got {sequence}"
        raise ValueError(msg)
    if sequence == DEFAULT_SEQUENCE:
        return name
    return f"{name}{SEPARATOR}{sequence}"


def in_range(value: int) -> bool:
    """Return True when an integer fits a primary key or sequence column."""
    return -MAX_INTEGER - 1 <= value <= MAX_INTEGER


def is_numeric_id(token: object) -> bool:
    """Return True when the token is a raw primary key that can be stored."""
    if isinstance(token, bool):
        return False
    if isinstance(token, int):
        return in_range(token)
    return isinstance(token, str) and _NUMERIC.match(token) is not None and _storable(token)
