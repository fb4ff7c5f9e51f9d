"""datamapper: a data-mapper object-relational layer on pydantic models.

Entities are pydantic models that know nothing about SQL. A Mapper hands
out one Repository per entity type; repositories build queries from entity
metadata, run them, and turn rows into entities through an identity map, so
one row is one object per unit of work. Associations load lazily on first
access, or eagerly with ``Query.with_``.
"""

from .association import AssociationKind, Collection, Scalar, Unresolved, many, one
from .cache import MemoryResultCache, ResultCache
from .collection import EntityCollection
from .config import MapperConfig
from .connection import Connection, Execution, connect
from .entity import Entity, EntityState
from .errors import (
    BuilderMisuseError,
    InvalidArgumentError,
    InvalidStateError,
    MapperError,
    MappingError,
    NotFoundError,
)
from .hydrator import Hydrator
from .identity_map import IdentityMap
from .mapper import Mapper
from .metadata import (
    META_PREFIX,
    AssociationSpec,
    EntityMetadata,
    EntityMetadataProvider,
    MetadataProvider,
    StaticMetadataProvider,
)
from .query import Query
from .repository import Repository

__all__ = [
    "AssociationKind",
    "AssociationSpec",
    "BuilderMisuseError",
    "Collection",
    "Connection",
    "Entity",
    "EntityCollection",
    "EntityMetadata",
    "EntityMetadataProvider",
    "EntityState",
    "Execution",
    "Hydrator",
    "IdentityMap",
    "InvalidArgumentError",
    "InvalidStateError",
    "META_PREFIX",
    "Mapper",
    "MapperConfig",
    "MapperError",
    "MappingError",
    "MemoryResultCache",
    "MetadataProvider",
    "NotFoundError",
    "Query",
    "Repository",
    "ResultCache",
    "Scalar",
    "StaticMetadataProvider",
    "Unresolved",
    "connect",
    "many",
    "one",
]
