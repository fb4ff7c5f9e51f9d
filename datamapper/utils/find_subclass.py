"""Lookup of classes by name among the subclasses of a base (association targets given as strings)."""

from typing import Iterator, Optional


def iter_subclasses(base: type) -> Iterator[type]:
    """Every class deriving from ``base``, at any depth, each once."""
    seen = set()
    pending = list(base.__subclasses__())
    while pending:
        klass = pending.pop()
        if klass in seen:
            continue
        seen.add(klass)
        pending.extend(klass.__subclasses__())
        yield klass


def find_subclass(base: type, name: str) -> Optional[type]:
    """Subclass of ``base`` whose ``__name__`` is ``name``, or None.

    Raises:
        ValueError: when more than one class has that name.
    """
    matches = [klass for klass in iter_subclasses(base) if klass.__name__ == name]
    if len(matches) > 1:
        raise ValueError(f"More than one subclass of `{base.__name__}` found with name `{name}`")
    return matches[0] if matches else None
