"""Structural metadata of entity types and the providers that supply it."""

import logging
from typing import Iterable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, model_validator

from .association import AssociationKind, AssociationProperty
from .entity import Entity
from .errors import MappingError
from .expressions import ALIAS_SEPARATOR, ColumnExpression
from .utils.find_subclass import find_subclass
from .utils.naming import derive_alias, snake_case

logger = logging.getLogger(__name__)

META_PREFIX = "meta:"
"""Key prefix of ``properties`` entries for meta columns (stored in the entity's metadata bag)."""


class AssociationSpec(BaseModel):
    """How one entity type joins another."""

    model_config = {"frozen": True}

    target_entity: type
    kind: AssociationKind
    target_column: str
    own_column: str


class EntityMetadata(BaseModel):
    """Table, columns and associations of one entity type.

    ``properties`` maps property names to column names in column order. Meta
    columns (join keys without a declared property) are included under
    ``META_PREFIX + column``.
    """

    model_config = {"frozen": True}

    entity_type: type
    table: str
    primary_column: str
    alias: str
    properties: dict[str, str]
    associations: dict[str, AssociationSpec] = {}

    @model_validator(mode="after")
    def _check_invariants(self):
        columns = list(self.properties.values())
        duplicates = sorted({column for column in columns if columns.count(column) > 1})
        if duplicates:
            raise MappingError(f"`{self.entity_type.__name__}` maps columns more than once: {duplicates}")
        if self.primary_column not in columns:
            raise MappingError(
                f"Primary column `{self.primary_column}` of `{self.entity_type.__name__}` is not mapped"
            )
        for name, association in self.associations.items():
            if association.own_column not in columns:
                raise MappingError(
                    f"Association `{name}` of `{self.entity_type.__name__}` joins on "
                    f"unmapped column `{association.own_column}`"
                )
        return self

    @property
    def columns(self) -> tuple[str, ...]:
        """Every column, meta columns included, in order."""
        return tuple(self.properties.values())

    @property
    def mapped_properties(self) -> dict[str, str]:
        """Declared properties only (no meta columns)."""
        return {name: column for name, column in self.properties.items()
                if not name.startswith(META_PREFIX)}

    @property
    def meta_columns(self) -> tuple[str, ...]:
        return tuple(column for name, column in self.properties.items()
                     if name.startswith(META_PREFIX))

    @property
    def primary_property(self) -> str:
        return self.property_for_column(self.primary_column)

    def property_for_column(self, column: str) -> Optional[str]:
        """Property mapped to ``column`` (``meta:column`` for a meta column), or None."""
        for name, mapped in self.properties.items():
            if mapped == column:
                return name
        return None

    def is_meta_column(self, column: str) -> bool:
        return column in self.meta_columns

    def column_expression(self, column: str) -> ColumnExpression:
        """``alias.column`` for one of this entity's columns."""
        return ColumnExpression(alias=self.alias, name=column)

    def label(self, column: str, aliased: bool) -> str:
        """Name under which ``column`` comes back in a result row."""
        if aliased:
            return f"{self.alias}{ALIAS_SEPARATOR}{column}"
        return column


@runtime_checkable
class MetadataProvider(Protocol):
    """Supplies the metadata of an entity type; repeated calls return equal metadata."""

    def load_mappings(self, entity_type: type) -> EntityMetadata:
        ...


class EntityMetadataProvider:
    """Derives metadata from ``Entity`` class declarations.

    Defaults, each overridable with a class option:

    - table: snake_case of the class name (``OrderLine`` -> ``order_line``)
    - alias: first letter of each word of the table (``order_line`` -> ``ol``)
    - primary column: ``id``
    - columns: snake_case of the property names

    Results are cached by this provider instance.
    """

    def __init__(self):
        self._mappings: dict[type, EntityMetadata] = {}

    def load_mappings(self, entity_type: type) -> EntityMetadata:
        metadata = self._mappings.get(entity_type)
        if metadata is None:
            metadata = self._build(entity_type)
            self._mappings[entity_type] = metadata
            logger.debug("Loaded mappings of %s: table %s, alias %s",
                         entity_type.__name__, metadata.table, metadata.alias)
        return metadata

    def _build(self, entity_type: type) -> EntityMetadata:
        if not (isinstance(entity_type, type) and issubclass(entity_type, Entity)):
            raise MappingError(f"`{entity_type!r}` is not an Entity subclass")
        table = entity_type._TABLE_NAME or snake_case(entity_type.__name__)
        primary_column = entity_type._PRIMARY_COLUMN or "id"
        properties = {name: entity_type.column_for_property(name)
                      for name in entity_type.model_fields}
        associations = {}
        for name, declaration in entity_type._ASSOCIATIONS.items():
            association = self._association_spec(entity_type, name, declaration, primary_column)
            if association.own_column not in properties.values():
                properties[META_PREFIX + association.own_column] = association.own_column
            associations[name] = association
        return EntityMetadata(
            entity_type=entity_type,
            table=table,
            primary_column=primary_column,
            alias=entity_type._ALIAS or derive_alias(table),
            properties=properties,
            associations=associations,
        )

    @staticmethod
    def _association_spec(entity_type: type, name: str, declaration: AssociationProperty,
                          primary_column: str) -> AssociationSpec:
        target = declaration.target
        if isinstance(target, str):
            target = find_subclass(Entity, target)
            if target is None:
                raise MappingError(
                    f"Association `{name}` of `{entity_type.__name__}` targets unknown entity "
                    f"`{declaration.target}`"
                )
        target_column = declaration.target_column
        if target_column is None:
            if declaration.kind is AssociationKind.MANY:
                raise MappingError(
                    f"MANY association `{name}` of `{entity_type.__name__}` needs a target column"
                )
            target_column = target._PRIMARY_COLUMN or "id"
        return AssociationSpec(
            target_entity=target,
            kind=declaration.kind,
            target_column=target_column,
            own_column=declaration.own_column or primary_column,
        )


class StaticMetadataProvider:
    """Metadata given explicitly per entity type, validated when registered.

    Example::

        provider = StaticMetadataProvider([
            EntityMetadata(entity_type=Customer, table="customer", primary_column="id",
                           alias="c", properties={"id": "id", "name": "name"}),
        ])
    """

    def __init__(self, mappings: Iterable[EntityMetadata] = ()):
        self._mappings: dict[type, EntityMetadata] = {}
        for metadata in mappings:
            self.register(metadata)

    def register(self, metadata: EntityMetadata) -> None:
        self._mappings[metadata.entity_type] = metadata

    def load_mappings(self, entity_type: type) -> EntityMetadata:
        try:
            return self._mappings[entity_type]
        except KeyError as error:
            raise MappingError(f"No mappings registered for `{getattr(entity_type, '__name__', entity_type)}`") from error


__all__ = [
    "META_PREFIX",
    "AssociationSpec",
    "EntityMetadata",
    "MetadataProvider",
    "EntityMetadataProvider",
    "StaticMetadataProvider",
]
