"""Identity map: one in-memory instance per row, and memoized query results, per unit of work."""

from typing import Any, Optional


class IdentityMap:
    """Entity instances keyed by ``(entity type, primary key)`` and collections keyed by query.

    One map is meant for one unit of work (e.g. one request). It is not
    thread safe.
    """

    def __init__(self):
        self.entity_instances: dict[tuple[type, Any], Any] = {}
        self.collections: dict[str, list] = {}

    def get_entity_instance(self, entity_type: type, key: Any) -> Optional[Any]:
        return self.entity_instances.get((entity_type, key))

    def add_entity_instance(self, entity_type: type, key: Any, instance: Any) -> None:
        self.entity_instances[(entity_type, key)] = instance

    def remove_entity_instance(self, entity_type: type, key: Any) -> None:
        self.entity_instances.pop((entity_type, key), None)

    def has_collection(self, key: str) -> bool:
        return key in self.collections

    def add_collection(self, key: str, collection: list) -> None:
        self.collections[key] = collection

    def get_collection(self, key: str) -> Optional[list]:
        return self.collections.get(key)

    def remove_collection(self, key: str) -> None:
        self.collections.pop(key, None)

    def remove_collections(self, prefix: str) -> None:
        """Forget every collection whose key starts with ``prefix``."""
        for key in [key for key in self.collections if key.startswith(prefix)]:
            del self.collections[key]

    def clear(self) -> None:
        self.entity_instances.clear()
        self.collections.clear()

    def __len__(self) -> int:
        return len(self.entity_instances)

    def __contains__(self, item: tuple[type, Any]) -> bool:
        return item in self.entity_instances
