"""Entity base class: plain pydantic models that know nothing about SQL."""

import enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, PrivateAttr
from pydantic._internal._model_construction import ModelMetaclass

from .association import (
    UNRESOLVED,
    AssociationKind,
    AssociationProperty,
    AssociationValue,
    Collection,
    Scalar,
    Unresolved,
    unwrap,
    wrap,
)
from .collection import EntityCollection
from .errors import InvalidStateError
from .utils.naming import snake_case


class EntityState(str, enum.Enum):
    NEW = "new"
    PERSISTED = "persisted"
    DETACHED = "detached"


class EntityMeta(ModelMetaclass):
    """Metaclass for Entity: reads the class options and collects association declarations.

    Options (all inherited by subclasses unless given again):
        table: Table name.
        alias: Short table alias used to qualify columns.
        primary: Primary key column.
        columns: ``{property: column}`` for properties whose column is not their snake_case name.
    """

    def __new__(mcs, name, bases, namespace,
                table: Optional[str] = None,
                alias: Optional[str] = None,
                primary: Optional[str] = None,
                columns: Optional[dict[str, str]] = None,
                **kwargs):
        result = super().__new__(mcs, name, bases, namespace, **kwargs)
        inherited_columns: dict[str, str] = {}
        for base in reversed(bases):
            table = table or getattr(base, "_TABLE_NAME", None)
            alias = alias or getattr(base, "_ALIAS", None)
            primary = primary or getattr(base, "_PRIMARY_COLUMN", None)
            inherited_columns.update(getattr(base, "_COLUMNS", None) or {})
        result._TABLE_NAME = table
        result._ALIAS = alias
        result._PRIMARY_COLUMN = primary
        result._COLUMNS = {**inherited_columns, **(columns or {})}
        associations = {}
        for klass in reversed(result.__mro__):
            for attribute_name, value in vars(klass).items():
                if isinstance(value, AssociationProperty):
                    associations[attribute_name] = value
        result._ASSOCIATIONS = associations
        return result


class Entity(BaseModel, metaclass=EntityMeta):
    """Base class of domain objects.

    Declare mapped properties as pydantic fields and associations with
    ``one()``/``many()``. Besides its fields, an instance carries a metadata
    bag (meta columns such as foreign keys without a property), a reference to
    the mapper that loaded it, the state of each association, and its
    lifecycle state.
    """

    model_config = {"arbitrary_types_allowed": True}

    _TABLE_NAME: ClassVar[Optional[str]] = None
    _ALIAS: ClassVar[Optional[str]] = None
    _PRIMARY_COLUMN: ClassVar[Optional[str]] = None
    _COLUMNS: ClassVar[dict[str, str]] = {}
    _ASSOCIATIONS: ClassVar[dict[str, AssociationProperty]] = {}

    _meta_data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _mapper: Any = PrivateAttr(default=None)
    _associations: dict[str, AssociationValue] = PrivateAttr(default_factory=dict)
    _state: EntityState = PrivateAttr(default=EntityState.NEW)

    def __init__(self, **data: Any):
        """Validate fields as pydantic does; association values may be passed too (``Order(customer=c)``)."""
        associations = {name: data.pop(name) for name in list(data) if name in type(self)._ASSOCIATIONS}
        super().__init__(**data)
        for name, value in associations.items():
            setattr(self, name, value)

    @classmethod
    def column_for_property(cls, name: str) -> str:
        """Column a property is stored in: the ``columns`` option, else snake_case of its name."""
        return cls._COLUMNS.get(name) or snake_case(name)

    @classmethod
    def primary_property(cls) -> str:
        """Name of the property holding the primary key."""
        primary_column = cls._PRIMARY_COLUMN or "id"
        for name in cls.model_fields:
            if cls.column_for_property(name) == primary_column:
                return name
        return primary_column

    def get_primary_key(self) -> Any:
        return getattr(self, self.primary_property(), None)

    # associations

    def association(self, name: str) -> Any:
        """Value of an association, loading it on first access.

        ONE associations give the target entity or None; MANY associations
        give a query scope that can be filtered further before iterating.
        Entities without a mapper never load anything: they only give back
        what was assigned locally (an empty collection for MANY).

        Raises:
            InvalidStateError: when no association with that name is declared.
        """
        state = self._associations.get(name, UNRESOLVED)
        if not isinstance(state, Unresolved):
            return unwrap(state)
        if self._mapper is None:
            declaration = self._ASSOCIATIONS.get(name)
            if declaration is None:
                raise InvalidStateError(f"`{type(self).__name__}` has no association `{name}`")
            if declaration.kind is AssociationKind.ONE:
                return None
            return unwrap(self._set_association(name, None, AssociationKind.MANY))
        repository = self._mapper.get_repository(type(self))
        value = repository.load_association(self, name)
        kind = repository.metadata.associations[name].kind
        return unwrap(self._set_association(name, value, kind))

    def association_state(self, name: str) -> AssociationValue:
        """Current state of an association without loading it."""
        return self._associations.get(name, UNRESOLVED)

    def reset_association(self, name: Optional[str] = None) -> None:
        """Forget a loaded association (all of them when ``name`` is None) so the next read reloads it."""
        if name is None:
            self._associations.clear()
        else:
            self._associations.pop(name, None)

    def _set_association(self, name: str, value: Any, kind: AssociationKind) -> AssociationValue:
        state = wrap(value, kind)
        self._associations[name] = state
        return state

    # metadata bag

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self._meta_data.get(key, default)

    def get_meta_data(self) -> dict[str, Any]:
        return dict(self._meta_data)

    def set_meta_data(self, data: dict[str, Any]) -> None:
        self._meta_data.update(data)

    def clear_meta_data(self) -> None:
        self._meta_data.clear()

    # mapper & lifecycle

    def set_mapper(self, mapper: Any) -> None:
        self._mapper = mapper

    def get_mapper(self) -> Any:
        return self._mapper

    def get_state(self) -> EntityState:
        return self._state

    def _set_state(self, state: EntityState) -> None:
        self._state = state

    def is_detached(self) -> bool:
        return self._state is EntityState.DETACHED

    # conversion

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """New (unsaved) entity from a dict; keys that are neither fields nor associations go to the metadata bag."""
        known = {key: value for key, value in data.items()
                 if key in cls.model_fields or key in cls._ASSOCIATIONS}
        entity = cls(**known)
        entity.set_meta_data({key: value for key, value in data.items() if key not in known})
        return entity

    def to_dict(self, flat: bool = True) -> dict[str, Any]:
        """Field values as a dict.

        Unless ``flat``, loaded associations are included too: a ONE target as
        its own dict, a MANY association as a list of dicts when its entities
        are already in memory. Nothing is loaded.
        """
        result = {name: getattr(self, name) for name in type(self).model_fields}
        if flat:
            return result
        for name, state in self._associations.items():
            if isinstance(state, Scalar):
                result[name] = None if state.value is None else state.value.to_dict()
            elif isinstance(state, Collection) and isinstance(state.items, EntityCollection):
                result[name] = [item.to_dict() for item in state.items]
        return result

    # identity

    def __eq__(self, other: Any) -> bool:
        """Same class and same primary key; unsaved entities only equal themselves."""
        if not isinstance(other, Entity):
            return NotImplemented
        key = self.get_primary_key()
        if key is None or type(other) is not type(self):
            return self is other
        return key == other.get_primary_key()

    def __hash__(self) -> int:
        key = self.get_primary_key()
        if key is None:
            return id(self)
        return hash((type(self), key))

    def __deepcopy__(self, memo):
        """Entities are identities: copies would escape the identity map."""
        return self


__all__ = ["Entity", "EntityMeta", "EntityState"]
