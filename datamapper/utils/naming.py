"""Naming conventions used to derive table names, column names and aliases."""

import re

_CAMEL_BOUNDARY = re.compile(r"(.)(?=[A-Z])")


def snake_case(name: str) -> str:
    """``OrderLine`` -> ``order_line``, ``placedAt`` -> ``placed_at``."""
    return _CAMEL_BOUNDARY.sub(r"\1_", name).lower()


def derive_alias(table: str) -> str:
    """Short table alias: first letter of each underscore-separated word.

    ``customer`` -> ``c``, ``order_line`` -> ``ol``.
    """
    return "".join(word[0] for word in table.split("_") if word)
