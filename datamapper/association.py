"""Association declarations and the states an association value can be in.

An association is declared on an entity class with ``one(...)`` (a single
target entity) or ``many(...)`` (a query over target entities)::

    class Order(Entity, table="orders"):
        id: Optional[int] = None
        customer = one("Customer", own_column="customer_id")
        lines = many("OrderLine", target_column="order_id")

Reading the attribute goes through ``Entity.association(name)``, which loads
the value on first access and keeps it until ``reset_association`` is called.
"""

import enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel

from .collection import EntityCollection


class AssociationKind(str, enum.Enum):
    ONE = "one"
    MANY = "many"


class Unresolved(BaseModel):
    """Association not loaded yet."""

    model_config = {"frozen": True}

    state: Literal["unresolved"] = "unresolved"


class Scalar(BaseModel):
    """Loaded ONE association: the target entity, or None when there is none."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    state: Literal["scalar"] = "scalar"
    value: Any = None


class Collection(BaseModel):
    """Loaded MANY association: a query scope, or locally held entities."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    state: Literal["collection"] = "collection"
    items: Any


AssociationValue = Union[Unresolved, Scalar, Collection]

UNRESOLVED = Unresolved()


def wrap(value: Any, kind: AssociationKind) -> AssociationValue:
    """State holding ``value`` for an association of the given kind."""
    if kind is AssociationKind.MANY:
        if value is None:
            value = EntityCollection()
        elif isinstance(value, (list, tuple)) and not isinstance(value, EntityCollection):
            value = EntityCollection(value)
        return Collection(items=value)
    return Scalar(value=value)


def unwrap(state: AssociationValue) -> Any:
    """Value held by a loaded state (None for ``Unresolved``)."""
    if isinstance(state, Scalar):
        return state.value
    if isinstance(state, Collection):
        return state.items
    return None


class AssociationProperty(property):
    """Class attribute declaring an association and giving attribute access to it.

    Attributes:
        kind: ONE or MANY.
        target: Target entity class, or its class name (resolved on first use).
        target_column: Join column on the target table; for ONE, defaults to
            the target's primary column.
        own_column: Join column on this entity's table; defaults to the primary
            column. When it is not a mapped property, it is kept as a meta column.
    """

    def __init__(self, kind: AssociationKind, target: Union[type, str],
                 target_column: Optional[str] = None, own_column: Optional[str] = None):
        super().__init__(self._get, self._set)
        self.kind = kind
        self.target = target
        self.target_column = target_column
        self.own_column = own_column
        self.name: Optional[str] = None

    def __set_name__(self, owner, name):
        self.name = name

    def _get(self, instance):
        return instance.association(self.name)

    def _set(self, instance, value):
        instance._set_association(self.name, value, self.kind)

    def __repr__(self) -> str:
        target = self.target if isinstance(self.target, str) else self.target.__name__
        return f"<{self.kind.value} {self.name} -> {target}>"


def one(target: Union[type, str], target_column: Optional[str] = None,
        own_column: Optional[str] = None) -> Any:
    """Declare a ONE association (e.g. ``customer = one("Customer", own_column="customer_id")``)."""
    return AssociationProperty(AssociationKind.ONE, target, target_column, own_column)


def many(target: Union[type, str], target_column: str,
         own_column: Optional[str] = None) -> Any:
    """Declare a MANY association (e.g. ``lines = many("OrderLine", target_column="order_id")``)."""
    return AssociationProperty(AssociationKind.MANY, target, target_column, own_column)
