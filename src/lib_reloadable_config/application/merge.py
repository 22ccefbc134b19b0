"""Application-layer overlay policy.

Purpose
-------
Combine the flattened documents of every locator/profile pair into a single
namespace. Later documents win key by key, except for list-valued groups,
and for subtrees replaced by a scalar: a later document replaces those
wholesale, so a short list never inherits the tail of a longer one from an
earlier profile.

Contents
    - ``merge_documents``: public entry point driven by a simple loop.
    - ``overlay``: merges one flat map into the accumulated result.
    - ``list_base``: extracts the non-indexed part of a key.

System Role
-----------
Receives flat maps in precedence order from
:class:`~lib_reloadable_config.application.provider.ConfigProvider` (locators
in registration order, profiles in declared order) and returns the merged map
that the diff runs against. Free of I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Iterable


def merge_documents(documents: Iterable[Mapping[str, str]]) -> dict[str, str]:
    """Overlay *documents* from lowest to highest precedence.

    Examples
    --------
    >>> merge_documents([
    ...     {"x": "1", "items[0]": "a", "items[1]": "b"},
    ...     {"x": "2", "items[0]": "c"},
    ... ])
    {'x': '2', 'items[0]': 'c'}
    """

    merged: dict[str, str] = {}
    for document in documents:
        overlay(merged, document)
    return merged


def overlay(accumulated: dict[str, str], incoming: Mapping[str, str]) -> dict[str, str]:
    """Merge *incoming* into *accumulated* in place and return it.

    Why
    ----
    Index-wise merging of lists produces configurations that no single profile
    declared, and a scalar that replaces a subtree must not inherit its old
    children. Replacing each group as a unit keeps profiles composable.

    What
    ----
    Every incoming key contributes its base name (the key itself when it has
    no index). Every accumulated key equal to a base, or continuing it with
    ``.`` or ``[``, is dropped. All incoming entries are then written.

    Examples
    --------
    >>> overlay({"a": "1", "hosts[0]": "h1", "hosts[1]": "h2", "hosts_count": "2"},
    ...         {"hosts[0]": "h3"})
    {'a': '1', 'hosts_count': '2', 'hosts[0]': 'h3'}
    >>> overlay({"db.url": "u", "db.user": "x"}, {"db": ""})
    {'db': ''}
    """

    bases = {list_base(key) or key for key in incoming}
    if bases:
        stale = [key for key in accumulated if _belongs_to_group(key, bases)]
        for key in stale:
            del accumulated[key]
    accumulated.update(incoming)
    return accumulated


def list_base(key: str) -> str | None:
    """Return the part of *key* before its first ``[``, or ``None``.

    Examples
    --------
    >>> list_base("servers[0].host")
    'servers'
    >>> list_base("plain.key") is None
    True
    """

    index = key.find("[")
    return key[:index] if index >= 0 else None


def _belongs_to_group(key: str, bases: set[str]) -> bool:
    if key in bases:
        return True
    for index, char in enumerate(key):
        if char in ".[" and key[:index] in bases:
            return True
    return False
