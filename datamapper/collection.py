"""Collection of hydrated entities."""

from typing import Any, Optional

SELECT_EMPTY_VALUE = "select_empty"
"""Label of the leading blank option of ``select_options``."""


class EntityCollection(list):
    """List of entities produced by hydration, in row order."""

    total_count: Optional[int] = None
    """Row count without LIMIT/OFFSET, when the producing query computed it."""

    def first(self) -> Any:
        """First entity, or None for an empty collection."""
        return self[0] if self else None

    def select_options(self, key: str, value: str, empty_value: bool = True) -> dict[Any, Any]:
        """Map one attribute of every entity to another, e.g. ``{order.id: order.status}``.

        With ``empty_value``, a blank option ``"" -> SELECT_EMPTY_VALUE`` comes first.
        """
        options: dict[Any, Any] = {}
        if empty_value:
            options[""] = SELECT_EMPTY_VALUE
        for item in self:
            options[getattr(item, key)] = getattr(item, value)
        return options
