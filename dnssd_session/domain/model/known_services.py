"""Ordered collection of peer services seen by the current watch."""

from typing import Iterator, List, Optional

from ..service import ServiceReference


class KnownServices:
    """Ordered references, unique by service name.

    Not thread-safe on its own; the owning session serializes access.
    """

    def __init__(self):
        self._services: List[ServiceReference] = []

    def add(self, reference: ServiceReference) -> None:
        """Append ``reference``, or replace the entry with the same name.

        A duplicate name replaces the existing entry and keeps the position of
        the first report, so names stay unique and order follows first sight.
        """
        index = self.index_of(reference.name)
        if index is None:
            self._services.append(reference)
        else:
            self._services[index] = reference

    def remove(self, name: str) -> Optional[ServiceReference]:
        """Remove the first entry named ``name``; return it, or None if absent."""
        index = self.index_of(name)
        if index is None:
            return None
        return self._services.pop(index)

    def index_of(self, name: str) -> Optional[int]:
        for i, service in enumerate(self._services):
            if service.name == name:
                return i
        return None

    def clear(self) -> None:
        self._services.clear()

    def snapshot(self) -> List[ServiceReference]:
        """Copy of the current entries; later changes do not affect it."""
        return list(self._services)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.index_of(name) is not None

    def __len__(self) -> int:
        return len(self._services)

    def __iter__(self) -> Iterator[ServiceReference]:
        return iter(self.snapshot())
