"""Turns result rows into entities, through the identity map."""

import logging
from typing import Any, Iterable, Optional

from pydantic import TypeAdapter

from .collection import EntityCollection
from .entity import EntityState
from .identity_map import IdentityMap
from .metadata import EntityMetadata, MetadataProvider

logger = logging.getLogger(__name__)


class _HydrationPlan:
    """Per entity type: which column feeds which property, and how its value is coerced."""

    def __init__(self, metadata: EntityMetadata):
        fields = metadata.entity_type.model_fields
        self.setters: list[tuple[str, str, TypeAdapter]] = [
            (name, column, TypeAdapter(fields[name].annotation))
            for name, column in metadata.mapped_properties.items()
            if name in fields
        ]
        adapters = {name: adapter for name, _, adapter in self.setters}
        self.primary_adapter: Optional[TypeAdapter] = adapters.get(metadata.primary_property)

    def primary_key(self, raw: Any) -> Any:
        if self.primary_adapter is None:
            return raw
        return self.primary_adapter.validate_python(raw)


class Hydrator:
    """Builds entities from rows, returning already known instances from the identity map.

    Args:
        metadata_provider: Where entity metadata comes from.
        identity_map: Instances and collections of the current unit of work.
        mapper: Given to hydrated entities that declare associations, so they
            can load them later.
    """

    def __init__(self, metadata_provider: MetadataProvider, identity_map: IdentityMap, mapper: Any = None):
        self.metadata_provider = metadata_provider
        self.identity_map = identity_map
        self.mapper = mapper
        self._plans: dict[type, _HydrationPlan] = {}

    def _plan(self, metadata: EntityMetadata) -> _HydrationPlan:
        plan = self._plans.get(metadata.entity_type)
        if plan is None:
            plan = self._plans[metadata.entity_type] = _HydrationPlan(metadata)
        return plan

    def hydrate_one(self, row: dict[str, Any], entity_type: type,
                    metadata: Optional[EntityMetadata] = None, aliased: bool = False) -> Optional[Any]:
        """Entity for one row, or None when the row has no primary key (e.g. an outer join miss).

        An entity already in the identity map is returned as is: values from
        the row are not applied again.
        """
        if metadata is None:
            metadata = self.metadata_provider.load_mappings(entity_type)
        plan = self._plan(metadata)
        raw_key = row.get(metadata.label(metadata.primary_column, aliased))
        if raw_key is None:
            return None
        key = plan.primary_key(raw_key)
        instance = self.identity_map.get_entity_instance(entity_type, key)
        if instance is not None:
            return instance

        values = {}
        for name, column, adapter in plan.setters:
            label = metadata.label(column, aliased)
            if label in row:
                values[name] = adapter.validate_python(row[label])
        meta_data = {metadata.primary_column: key}
        for column in metadata.meta_columns:
            label = metadata.label(column, aliased)
            if label in row:
                meta_data[column] = row[label]

        instance = entity_type.model_construct(**values)
        instance.set_meta_data(meta_data)
        if metadata.associations:
            instance.set_mapper(self.mapper)
        instance._set_state(EntityState.PERSISTED)
        self.identity_map.add_entity_instance(entity_type, key, instance)
        return instance

    def hydrate_many(self, rows: Iterable[dict[str, Any]], entity_type: type,
                     aliased: bool = False, collection_key: Optional[str] = None) -> EntityCollection:
        """Entities for many rows, each instance once, in order of first appearance.

        With a ``collection_key``, the result is registered in the identity map
        before it is returned.
        """
        metadata = self.metadata_provider.load_mappings(entity_type)
        collection = EntityCollection()
        seen = set()
        for row in rows:
            instance = self.hydrate_one(row, entity_type, metadata, aliased)
            if instance is None or id(instance) in seen:
                continue
            seen.add(id(instance))
            collection.append(instance)
        if collection_key is not None:
            self.identity_map.add_collection(collection_key, collection)
        logger.debug("Hydrated %d %s", len(collection), entity_type.__name__)
        return collection

    def primary_key(self, metadata: EntityMetadata, raw: Any) -> Any:
        """Primary key value coerced to the type of the primary property."""
        return self._plan(metadata).primary_key(raw)

    def get_entity_instance(self, entity_type: type, key: Any) -> Optional[Any]:
        return self.identity_map.get_entity_instance(entity_type, key)

    def is_collection_hydrated(self, key: str) -> bool:
        return self.identity_map.has_collection(key)

    def get_collection(self, key: str) -> Optional[EntityCollection]:
        return self.identity_map.get_collection(key)
