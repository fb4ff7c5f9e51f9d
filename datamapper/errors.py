"""Exceptions raised by the mapper, repositories and query builder."""


class MapperError(Exception):
    """Base class for all datamapper errors"""
    pass


class InvalidArgumentError(MapperError, ValueError):
    """Malformed or missing required input (e.g. a non-numeric id)"""
    pass


class NotFoundError(MapperError, LookupError):
    """A lookup by primary key matched no row"""
    pass


class InvalidStateError(MapperError, RuntimeError):
    """An operation was invoked in a state that does not allow it"""
    pass


class MappingError(InvalidStateError):
    """Entity metadata breaks one of the metadata invariants"""
    pass


class BuilderMisuseError(MapperError, AttributeError):
    """An attribute delegated from a query to its collection does not exist"""
    pass


__all__ = [
    "MapperError",
    "InvalidArgumentError",
    "NotFoundError",
    "InvalidStateError",
    "MappingError",
    "BuilderMisuseError",
]
