"""Random alias generation.

Aliases are drawn with nanoid from the 62-character alphanumeric alphabet,
which keeps them URL-safe and case-sensitive. At the default length of 6 the
space holds 62**6 (about 5.7e10) aliases.

Names of the fixed routes are reserved: an alias equal to one of them
(case-insensitively) would be shadowed by that route and never redirect.
"""

from nanoid import generate

__all__ = ["ALPHABET", "RESERVED_ALIASES", "generate_alias", "is_reserved"]

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
RESERVED_ALIASES = frozenset({"health", "metrics", "docs", "redoc", "url"})


def generate_alias(length: int) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)


def is_reserved(alias: str) -> bool:
    return alias.lower() in RESERVED_ALIASES
