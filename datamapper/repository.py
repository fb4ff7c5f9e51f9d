"""Per entity type façade: queries, writes and association loading."""

import logging
from typing import Any, Iterable, Optional, Union

from .association import AssociationKind, Collection, Scalar
from .collection import EntityCollection
from .entity import Entity, EntityState
from .errors import InvalidArgumentError, InvalidStateError, NotFoundError
from .expressions import ColumnExpression, Expression
from .metadata import META_PREFIX, AssociationSpec, EntityMetadata
from .query import Query, QueryTemplate
from .utils.serialize import serialize_value

logger = logging.getLogger(__name__)


class Repository:
    """Loads and stores the entities of one type.

    Repositories are handed out by a Mapper, one per entity type; subclass
    this to add entity specific finders and register the subclass with
    ``Mapper(repository_classes={Order: OrderRepository})``.
    """

    def __init__(self, entity_type: type, mapper: Any):
        self.entity_type = entity_type
        self.mapper = mapper
        self.metadata: EntityMetadata = mapper.get_mapping(entity_type)

    @property
    def entity_name(self) -> str:
        """Name used in cache keys and as the result cache tag."""
        return self.entity_type.__name__

    @property
    def execution(self):
        return self.mapper.execution

    @property
    def result_cache(self):
        return self.mapper.result_cache

    @property
    def hydrator(self):
        return self.mapper.hydrator

    @property
    def config(self):
        return self.mapper.config

    # queries

    def column(self, name: str) -> ColumnExpression:
        """Qualified column of a property (or of a column name), for building predicates.

        Example:
            orders.find_all().where(orders.column("status") == "open")
        """
        column = self.metadata.properties.get(name)
        if column is None:
            if name not in self.metadata.columns:
                raise InvalidArgumentError(f"`{self.entity_name}` has no property or column `{name}`")
            column = name
        return self.metadata.column_expression(column)

    def select_template(self, where: Iterable[Expression] = ()) -> QueryTemplate:
        """``SELECT alias.column, ... FROM table alias`` over every mapped column, meta columns included."""
        return QueryTemplate(
            table=self.metadata.table,
            alias=self.metadata.alias,
            columns=tuple(self.metadata.column_expression(column) for column in self.metadata.columns),
            where=tuple(where),
        )

    def find_all(self, where: Iterable[Expression] = ()) -> Query:
        """Unexecuted query over every entity of this type."""
        return Query(repository=self, template=self.select_template(where))

    def find_by_id(self, id: Any, with_: Iterable[str] = (), cache: Union[bool, Iterable[str]] = False,
                   force_load: bool = False):
        """Entity with the given primary key.

        Args:
            id: Positive integer (or its decimal text).
            with_: Associations to eager load.
            cache: Go through the result cache; an iterable gives extra cache tags.
            force_load: Query the database even when the entity is already in the identity map.

        Raises:
            InvalidArgumentError: when ``id`` is not a positive integer.
            NotFoundError: when no row has this primary key.
        """
        key = self._validate_id(id)
        if not force_load:
            instance = self.hydrator.get_entity_instance(self.entity_type, key)
            if instance is not None:
                return instance
        primary = self.metadata.column_expression(self.metadata.primary_column)
        query = self.find_all(where=[primary == key]).with_(*with_)
        if cache:
            query = query.use_cache(tags=() if cache is True else cache)
        if force_load:
            self.hydrator.identity_map.remove_collection(self.collection_key(query))
        entity = query.get().first()
        if entity is None:
            raise NotFoundError(f"{self.entity_name} with id {key} was not found")
        return entity

    find = find_by_id

    def find_by_predicates(self, predicates: dict[str, Any], connective: str = "AND") -> Query:
        """Query filtered by property values: ``None`` matches IS NULL, anything else equality.

        Predicates are applied in the order of the mapping.
        """
        query = self.find_all()
        for name, value in predicates.items():
            column = self.column(name)
            condition = column.is_null() if value is None else column == value
            query = query.where(condition, connective)
        return query

    def count_sql(self, query: Query) -> int:
        """Run the COUNT(*) form of a query."""
        rows = self.execution.execute(query.render(counting=True), query.count_values)
        if not rows:
            return 0
        return int(next(iter(rows[0].values())))

    def collection_key(self, query: Query) -> str:
        """Key of a query's hydrated result in the identity map."""
        return f"collection_{self.entity_name}_{query.identity}"

    def hydrate_source(self, query: Query) -> EntityCollection:
        """Entities of a query: memoized collection, else cached rows, else rows from the database.

        Eager loaded associations are attached to the entities without
        further queries.
        """
        key = self.collection_key(query)
        if self.hydrator.is_collection_hydrated(key):
            logger.debug("Reusing hydrated collection %s", key)
            return self.hydrator.get_collection(key)

        rows = None
        cache_key = f"{self.entity_name}_{query.identity}"
        if query.cache is not None:
            rows = self.result_cache.load(cache_key)
            logger.info("Result cache %s for %s", "miss" if rows is None else "hit", cache_key)
        if rows is None:
            rows = self.execution.execute(query.sql, query.values)
            if query.cache is not None:
                self.result_cache.save(cache_key, rows,
                                       tags=(self.entity_name,) + query.cache.tags,
                                       expire=query.cache.expire)
                logger.info("Saved %d rows to result cache under %s", len(rows), cache_key)

        entities = self.hydrator.hydrate_many(rows, self.entity_type, query.is_aliased, key)
        if query.repository is self:
            complete = query.limit_value is None and not query.offset_value
            for name in query.with_associations:
                self._attach_joined(name, rows, query.is_aliased, entities, complete)
        return entities

    def _attach_joined(self, name: str, rows: list[dict[str, Any]], aliased: bool,
                       entities: EntityCollection, complete: bool = True) -> None:
        """Set the association ``name`` of every parent from the joined columns of ``rows``.

        ONE targets are set directly. A MANY association gets its scoped query,
        with the joined children registered as that query's result, ordered by
        primary key as the unordered scoped query returns them. Rows cut by
        LIMIT or OFFSET (``complete`` is False) may miss children, so then the scoped
        query is only attached, to be run on first use.
        """
        association = self.metadata.associations[name]
        target = self.mapper.get_repository(association.target_entity)
        children: dict[int, EntityCollection] = {}
        for row in rows:
            parent = self.hydrator.hydrate_one(row, self.entity_type, self.metadata, aliased)
            if parent is None:
                continue
            child = self.hydrator.hydrate_one(row, association.target_entity, target.metadata, aliased)
            if association.kind is AssociationKind.ONE:
                parent._set_association(name, child, AssociationKind.ONE)
                continue
            bucket = children.setdefault(id(parent), EntityCollection())
            if child is not None and all(item is not child for item in bucket):
                bucket.append(child)
        if association.kind is AssociationKind.ONE:
            return
        for parent in entities:
            scoped = self._association_query(parent, association)
            if scoped is None:
                continue
            if complete:
                bucket = children.get(id(parent), EntityCollection())
                bucket.sort(key=lambda child: child.get_primary_key())
                self.hydrator.identity_map.add_collection(target.collection_key(scoped), bucket)
            parent._set_association(name, scoped, AssociationKind.MANY)

    # associations

    def join_value(self, entity: Entity, column: str) -> Any:
        """Value of one of the entity's columns: from its property, else from its metadata bag."""
        name = self.metadata.property_for_column(column)
        if name is not None and not name.startswith(META_PREFIX):
            return getattr(entity, name)
        return entity.get_meta(column)

    def _association_query(self, entity: Entity, association: AssociationSpec) -> Optional[Query]:
        value = self.join_value(entity, association.own_column)
        if value is None:
            return None
        target = self.mapper.get_repository(association.target_entity)
        return target.find_all().where(target.metadata.column_expression(association.target_column) == value)

    def load_association(self, entity: Entity, name: str) -> Any:
        """Load an association of an entity.

        Returns:
            For MANY, an unexecuted query over the associated entities; for
            ONE, the associated entity. None when the entity has no join value.

        Raises:
            InvalidStateError: when no association with that name is declared.
        """
        association = self.metadata.associations.get(name)
        if association is None:
            raise InvalidStateError(f"Association `{name}` of {self.entity_name} is not declared")
        query = self._association_query(entity, association)
        if query is None:
            return None
        if association.kind is AssociationKind.MANY:
            return query
        return query.get().first()

    def join_from_association(self, query: Query, name: str) -> Query:
        """Add the JOIN and target columns of an association to a query."""
        association = self.metadata.associations.get(name)
        if association is None:
            raise InvalidStateError(f"Association `{name}` of {self.entity_name} is not declared")
        target = self.mapper.get_mapping(association.target_entity)
        condition = (target.column_expression(association.target_column)
                     == self.metadata.column_expression(association.own_column))
        query = query.join(target.table, target.alias, condition, kind=self.config.join_kind)
        return query.select(*(target.column_expression(column) for column in target.columns))

    # writes

    def save(self, entity: Entity) -> Any:
        """INSERT an entity without primary key, UPDATE one with; return the primary key."""
        self._check_writable(entity)
        if not entity.get_primary_key():
            return self.create(entity)
        return self.update(entity)

    def create(self, entity: Entity) -> Any:
        """INSERT the entity and write the generated key back onto it."""
        self._check_writable(entity)
        values = self._entity_values(entity)
        if not entity.get_primary_key():
            values.pop(self.metadata.primary_column, None)
        if values:
            sql = (f"INSERT INTO {self.metadata.table} ({', '.join(values)}) "
                   f"VALUES ({', '.join('?' for _ in values)})")
        else:
            sql = f"INSERT INTO {self.metadata.table} DEFAULT VALUES"
        self.execution.execute(sql, tuple(values.values()))
        key = entity.get_primary_key() or self.hydrator.primary_key(self.metadata, self.execution.last_insert_id())
        setattr(entity, self.metadata.primary_property, key)
        self._mark_persisted(entity, key, values)
        logger.debug("Created %s %s", self.entity_name, key)
        return key

    def update(self, entity: Entity) -> Any:
        """UPDATE the entity's row; return its (unchanged) primary key."""
        self._check_writable(entity)
        key = entity.get_primary_key()
        values = self._entity_values(entity)
        values.pop(self.metadata.primary_column, None)
        if values:
            assignments = ", ".join(f"{column} = ?" for column in values)
            self.execution.execute(
                f"UPDATE {self.metadata.table} SET {assignments} WHERE {self.metadata.primary_column} = ?",
                tuple(values.values()) + (key,),
            )
        self._mark_persisted(entity, key, values)
        return key

    def update_field(self, name: str, value: Any, id: Any) -> None:
        """UPDATE one property of the row with the given primary key."""
        column = self.metadata.mapped_properties.get(name)
        if column is None:
            raise InvalidArgumentError(f"`{self.entity_name}` has no property `{name}`")
        key = self._validate_id(id)
        self.execution.execute(
            f"UPDATE {self.metadata.table} SET {column} = ? WHERE {self.metadata.primary_column} = ?",
            (self._serialize(value), key),
        )
        instance = self.hydrator.get_entity_instance(self.entity_type, key)
        if instance is not None:
            setattr(instance, name, value)
        self._after_write()

    def delete(self, entity_or_id: Union[Entity, Any]) -> None:
        """DELETE a row, given its entity or its primary key.

        The entity (given, or found in the identity map) is detached: its
        properties are cleared and it can no longer be saved. Deleting a row
        that does not exist does nothing but log a warning.

        Raises:
            InvalidArgumentError: for an unsaved entity or an invalid id.
            InvalidStateError: for an entity that was already deleted.
        """
        if isinstance(entity_or_id, Entity):
            entity = entity_or_id
            self._check_writable(entity)
            key = entity.get_primary_key()
            if key is None:
                raise InvalidArgumentError(f"Cannot delete an unsaved {self.entity_name}")
        else:
            key = self._validate_id(entity_or_id)
            entity = self.hydrator.get_entity_instance(self.entity_type, key)
        self.execution.execute(
            f"DELETE FROM {self.metadata.table} WHERE {self.metadata.primary_column} = ?", (key,)
        )
        if self.execution.affected_rows() == 0:
            logger.warning("No %s row with id %s to delete", self.entity_name, key)
        if entity is not None:
            for name in self.metadata.mapped_properties:
                setattr(entity, name, None)
            entity.reset_association()
            entity.clear_meta_data()
            entity.set_mapper(None)
            entity._set_state(EntityState.DETACHED)
        self.hydrator.identity_map.remove_entity_instance(self.entity_type, key)
        self._after_write()

    def get_property_by_column(self, column: str) -> Optional[str]:
        return self.metadata.property_for_column(column)

    # helpers

    def _validate_id(self, id: Any) -> int:
        if isinstance(id, bool):
            raise InvalidArgumentError(f"Invalid {self.entity_name} id: {id!r}")
        if isinstance(id, str) and id.strip().isdigit():
            id = int(id)
        if not isinstance(id, int) or id <= 0:
            raise InvalidArgumentError(f"Invalid {self.entity_name} id: {id!r}")
        return id

    def _check_writable(self, entity: Entity) -> None:
        if not isinstance(entity, self.entity_type):
            raise InvalidArgumentError(
                f"{self.entity_name} repository cannot store a {type(entity).__name__}"
            )
        if entity.is_detached():
            raise InvalidStateError(f"{self.entity_name} was deleted and cannot be written again")

    def _serialize(self, value: Any) -> Any:
        return serialize_value(value, self.config.datetime_format, self.config.date_format)

    def _entity_values(self, entity: Entity) -> dict[str, Any]:
        """Column -> bound value, for every mapped property and ONE association join column."""
        values = {column: self._serialize(getattr(entity, name))
                  for name, column in self.metadata.mapped_properties.items()}
        meta_data = entity.get_meta_data()
        for name, association in self.metadata.associations.items():
            if association.kind is not AssociationKind.ONE:
                continue
            state = entity.association_state(name)
            if isinstance(state, Scalar):
                target = state.value
                if target is None:
                    values[association.own_column] = None
                else:
                    target_repository = self.mapper.get_repository(association.target_entity)
                    values[association.own_column] = self._serialize(
                        target_repository.join_value(target, association.target_column)
                    )
            elif self.metadata.is_meta_column(association.own_column) and association.own_column in meta_data:
                values[association.own_column] = meta_data[association.own_column]
        return values

    def _mark_persisted(self, entity: Entity, key: Any, values: dict[str, Any]) -> None:
        meta_data = {column: value for column, value in values.items() if self.metadata.is_meta_column(column)}
        meta_data[self.metadata.primary_column] = key
        entity.set_meta_data(meta_data)
        if self.metadata.associations:
            entity.set_mapper(self.mapper)
        # MANY associations read while transient only hold local items: load them from now on
        for name, association in self.metadata.associations.items():
            state = entity.association_state(name)
            if (association.kind is AssociationKind.MANY and isinstance(state, Collection)
                    and isinstance(state.items, EntityCollection)):
                entity.reset_association(name)
        entity._set_state(EntityState.PERSISTED)
        self.hydrator.identity_map.add_entity_instance(self.entity_type, key, entity)
        self._after_write()

    def _after_write(self) -> None:
        """Drop cached results of this entity type."""
        self.result_cache.clean([self.entity_name])
        self.hydrator.identity_map.remove_collections(f"collection_{self.entity_name}_")
