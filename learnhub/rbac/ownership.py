"""
Resource ownership lookups

The course, blog and quiz modules own their data; they register a callable
here that maps a resource id to its owner's user id. The ownership gate only
ever sees that owner id.
"""
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

OwnerLookup = Callable[[Any], Optional[Any]]


class OwnershipRegistry:
    """Maps resource type names to owner lookup callables."""

    def __init__(self):
        self._lookups: Dict[str, OwnerLookup] = {}

    def register(self, resource_type: str, lookup: OwnerLookup) -> None:
        if resource_type in self._lookups:
            logger.info(f"Replacing ownership lookup for {resource_type}")
        self._lookups[resource_type] = lookup

    def is_registered(self, resource_type: str) -> bool:
        return resource_type in self._lookups

    def owner_of(self, resource_type: str, resource_id: Any) -> Optional[Any]:
        """
        Owner id of a resource, or None if the resource does not exist.

        Raises:
            KeyError: no lookup is registered for the resource type
        """
        lookup = self._lookups.get(resource_type)
        if lookup is None:
            raise KeyError(f"No ownership lookup registered for '{resource_type}'")
        return lookup(resource_id)


def column_owner_lookup(session_factory: Callable[[], Any], model: Any, owner_column: str) -> OwnerLookup:
    """
    Build a lookup that reads ``owner_column`` from a SQLAlchemy model by
    primary key, e.g. ``column_owner_lookup(get_db, Course, 'instructor_id')``.
    """
    def lookup(resource_id):
        row = session_factory().get(model, resource_id)
        if row is None:
            return None
        return getattr(row, owner_column)

    return lookup
