"""Mapper: composition root owning the repositories and the unit of work."""

import logging
from typing import Any, Optional

from .cache import MemoryResultCache, ResultCache
from .config import MapperConfig
from .connection import Execution, connect
from .hydrator import Hydrator
from .identity_map import IdentityMap
from .metadata import EntityMetadata, EntityMetadataProvider, MetadataProvider
from .repository import Repository

logger = logging.getLogger(__name__)


class Mapper:
    """Hands out one repository per entity type and owns the identity map they share.

    Args:
        execution: Runs SQL (e.g. a ``Connection``).
        metadata_provider: Source of entity metadata; derived from the entity
            classes by default.
        result_cache: Store for cached query results; in memory by default.
        config: Mapper settings.
        repository_classes: Repository subclass to use per entity type.

    Example::

        mapper = Mapper.from_url("sqlite:///shop.sqlite3")
        orders = mapper.get_repository(Order)
        order = orders.find_by_id(5)
        order.customer  # loaded on first access
    """

    def __init__(self, execution: Execution,
                 metadata_provider: Optional[MetadataProvider] = None,
                 result_cache: Optional[ResultCache] = None,
                 config: Optional[MapperConfig] = None,
                 repository_classes: Optional[dict[type, type[Repository]]] = None):
        self.config = config or MapperConfig()
        self.execution = execution
        self.metadata_provider = metadata_provider or EntityMetadataProvider()
        if result_cache is None:
            result_cache = MemoryResultCache(namespace=self.config.cache_namespace)
        self.result_cache = result_cache
        self.repository_classes = dict(repository_classes or {})
        self.identity_map = IdentityMap()
        self.hydrator = Hydrator(self.metadata_provider, self.identity_map, mapper=self)
        self._repositories: dict[type, Repository] = {}

    @classmethod
    def from_url(cls, database_url: str, **options: Any) -> "Mapper":
        """Mapper over a new connection to ``database_url`` (see ``connect``)."""
        return cls(connect(database_url), **options)

    def get_mapping(self, entity_type: type) -> EntityMetadata:
        return self.metadata_provider.load_mappings(entity_type)

    def get_repository(self, entity_type: type) -> Repository:
        """Repository of an entity type, created on first request."""
        repository = self._repositories.get(entity_type)
        if repository is None:
            repository_class = self.repository_classes.get(entity_type, Repository)
            repository = repository_class(entity_type, self)
            self._repositories[entity_type] = repository
            logger.debug("Created %s for %s", repository_class.__name__, entity_type.__name__)
        return repository

    def save(self, entity: Any) -> Any:
        return self.get_repository(type(entity)).save(entity)

    def delete(self, entity: Any) -> None:
        self.get_repository(type(entity)).delete(entity)

    def clear(self) -> None:
        """Start a new unit of work: entities loaded from now on are new instances."""
        self.identity_map = IdentityMap()
        self.hydrator.identity_map = self.identity_map
