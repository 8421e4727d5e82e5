from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from moneta.errors import InvalidArgumentError


class Hierarchy:
    """Immutable multiple-inheritance graph over classification tags of one axis.

    Each tag may derive from several parents. `derive` returns a new graph and rejects edges that
    would close a cycle, so `isa` queries always terminate.

    Example:
        kinds = Hierarchy().derive("iso/fiat", "fiat").derive("fiat", "money")
        kinds.isa("iso/fiat", "money")  # True
    """

    __slots__ = ("_parents",)

    def __init__(self, parents: Mapping[str, Iterable[str]] | None = None):
        frozen = {}
        for child, child_parents in (parents or {}).items():
            frozen[child] = frozenset(child_parents)
        self._parents: Mapping[str, frozenset[str]] = MappingProxyType(frozen)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str]]) -> Hierarchy:
        """Build a hierarchy from `(child, parent)` pairs, validating each edge."""
        result = cls()
        for child, parent in edges:
            result = result.derive(child, parent)
        return result

    def to_edges(self) -> list[tuple[str, str]]:
        """Return all `(child, parent)` edges, sorted."""
        return sorted((child, parent) for child, parents in self._parents.items() for parent in parents)

    # region Queries

    def parents(self, tag: str) -> frozenset[str]:
        return self._parents.get(tag, frozenset())

    def ancestors(self, tag: str) -> frozenset[str]:
        """All tags $tag transitively derives from (excluding $tag itself)."""
        seen: set[str] = set()
        stack = list(self.parents(tag))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.parents(current))
        return frozenset(seen)

    def descendants(self, tag: str) -> frozenset[str]:
        """All tags transitively deriving from $tag."""
        return frozenset(child for child in self._parents if tag in self.ancestors(child))

    def isa(self, child: str | None, parent: str | None) -> bool:
        """True if $child equals $parent or transitively derives from it."""
        if child is None or parent is None:
            return False
        if child == parent:
            return True
        return parent in self.ancestors(child)

    # endregion

    # region Derivation

    def derive(self, child: str, parent: str) -> Hierarchy:
        """Return a new hierarchy with the edge $child -> $parent added.

        An edge that already exists returns this hierarchy unchanged.

        Raises:
            InvalidArgumentError: Tags are not non-empty strings, or the edge would create a cycle.
        """
        for name, tag in (("child", child), ("parent", parent)):
            # Raise: tags must be non-empty strings
            if not isinstance(tag, str) or not tag.strip():
                raise InvalidArgumentError(f"Cannot call `derive` because ${name} ({tag!r}) is not a non-empty string", op="derive", argument=name, value=tag)

        # Raise: an edge back to an ancestor (or self) would create a cycle
        if self.isa(parent, child):
            raise InvalidArgumentError(
                f"Cannot call `derive` because $parent ('{parent}') already derives from $child ('{child}'), the edge would create a cycle",
                op="derive",
                argument="parent",
                value=(child, parent),
            )

        if parent in self.parents(child):
            return self

        updated = dict(self._parents)
        updated[child] = self.parents(child) | {parent}
        return Hierarchy(updated)

    def underive(self, child: str, parent: str) -> Hierarchy:
        """Return a new hierarchy without the edge $child -> $parent (no-op when absent)."""
        if parent not in self.parents(child):
            return self
        updated = dict(self._parents)
        remaining = updated[child] - {parent}
        if remaining:
            updated[child] = remaining
        else:
            del updated[child]
        return Hierarchy(updated)

    # endregion

    def __iter__(self) -> Iterator[str]:
        return iter(self._parents)

    def __len__(self) -> int:
        return len(self._parents)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Hierarchy):
            return False
        return dict(self._parents) == dict(other._parents)

    def __hash__(self) -> int:
        return hash(frozenset(self._parents.items()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_edges()})"
