"""Change records produced by one reconciliation cycle.

A :class:`ChangeSet` exists only for the duration of one notification fan-out.
It names the properties that appeared, whose resolved value changed, and that
disappeared; values are deliberately absent so listeners cannot leak secrets
by logging the record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """Added, changed and removed property names for one cycle.

    Examples
    --------
    >>> changes = ChangeSet.of(added=["a", "b"], removed=["c"])
    >>> sorted(changes.touched)
    ['a', 'b', 'c']
    >>> bool(ChangeSet())
    False
    """

    added: frozenset[str] = field(default_factory=frozenset)
    changed: frozenset[str] = field(default_factory=frozenset)
    removed: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls,
        *,
        added: Iterable[str] = (),
        changed: Iterable[str] = (),
        removed: Iterable[str] = (),
    ) -> ChangeSet:
        """Build a change set from arbitrary iterables of names."""

        return cls(frozenset(added), frozenset(changed), frozenset(removed))

    @property
    def touched(self) -> frozenset[str]:
        """Every name mentioned by this change set."""

        return self.added | self.changed | self.removed

    def __bool__(self) -> bool:
        return bool(self.added or self.changed or self.removed)

    def restricted_to(self, predicate: Callable[[str], bool]) -> ChangeSet:
        """Return the subset of names for which *predicate* holds.

        Examples
        --------
        >>> changes = ChangeSet.of(added=["db.host", "web.port"])
        >>> sorted(changes.restricted_to(lambda name: name.startswith("db.")).added)
        ['db.host']
        """

        return ChangeSet(
            frozenset(filter(predicate, self.added)),
            frozenset(filter(predicate, self.changed)),
            frozenset(filter(predicate, self.removed)),
        )

    def as_dict(self) -> dict[str, list[str]]:
        """Return sorted name lists, convenient for JSON output."""

        return {
            "added": sorted(self.added),
            "changed": sorted(self.changed),
            "removed": sorted(self.removed),
        }
