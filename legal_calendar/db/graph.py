"""Dependency graph between collections.

Edges point from a child collection to the parents it references
(``wards -> provinces``). The graph decides the order in which collections are
created (parents first) and dropped (dependents first), so neither the
migrator nor the boot sequence relies on statement order.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from sqlalchemy import MetaData


class DependencyGraph:
    def __init__(self, edges: Mapping[str, Iterable[str]]):
        self._parents: dict[str, tuple[str, ...]] = {}
        for child, parents in edges.items():
            self._parents[child] = tuple(p for p in parents if p != child)
        for parents in list(self._parents.values()):
            for parent in parents:
                self._parents.setdefault(parent, ())
        self._order = self._topological_order()

    @classmethod
    def from_metadata(cls, metadata: MetaData) -> "DependencyGraph":
        """Build the graph from the foreign keys declared on the tables."""
        edges: dict[str, list[str]] = {}
        for name, table in metadata.tables.items():
            parents = edges.setdefault(name, [])
            for fk in table.foreign_keys:
                parent = fk.column.table.name
                if parent not in parents:
                    parents.append(parent)
        return cls(edges)

    @property
    def collections(self) -> tuple[str, ...]:
        return self._order

    def parents(self, name: str) -> tuple[str, ...]:
        return self._parents.get(name, ())

    def children(self, name: str) -> tuple[str, ...]:
        return tuple(c for c in self._order if name in self._parents[c])

    def dependents(self, name: str) -> set[str]:
        """Every collection that references ``name`` directly or transitively."""
        found: set[str] = set()
        pending = list(self.children(name))
        while pending:
            current = pending.pop()
            if current in found:
                continue
            found.add(current)
            pending.extend(self.children(current))
        return found

    def creation_order(self, names: Iterable[str] | None = None) -> list[str]:
        """Parents before children, restricted to ``names`` when given."""
        if names is None:
            return list(self._order)
        wanted = set(names)
        return [n for n in self._order if n in wanted]

    def drop_order(self, names: Iterable[str]) -> list[str]:
        """Children before parents."""
        return list(reversed(self.creation_order(names)))

    def _topological_order(self) -> tuple[str, ...]:
        # Kahn's algorithm; ties keep declaration order so plans are stable.
        declared = list(self._parents)
        remaining = {name: set(parents) for name, parents in self._parents.items()}
        order: list[str] = []
        while remaining:
            ready = [n for n in declared if n in remaining and not remaining[n]]
            if not ready:
                raise ValueError(f"dependency cycle between collections: {sorted(remaining)}")
            for name in ready:
                order.append(name)
                del remaining[name]
            for parents in remaining.values():
                parents.difference_update(ready)
        return tuple(order)
