"""Document flattening.

Purpose
-------
Convert a decoded hierarchical document (nested mappings, lists, scalars) into
the flat ``name -> str`` namespace every other component works with. The
algorithm is format-agnostic: any parser that yields plain Python containers
can feed it.

Contents
    - ``flatten``: public entry point.
    - ``_walk``: depth-first recursion shared by mappings and sequences.
    - ``_stringify``: scalar rendering rules.

System Role
-----------
Called by :class:`~lib_reloadable_config.application.provider.ConfigProvider`
for each parsed document, and by the config-server locator to inspect remote
payloads. Output order is the first-seen order of a depth-first walk.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


def flatten(tree: object) -> dict[str, str]:
    """Flatten *tree* into dotted/bracketed keys with string values.

    Why
    ----
    Overlay and diff logic compare flat keys; flattening once at the edge keeps
    those algorithms simple.

    What
    ----
    * mapping entries compose ``parent.child`` (the root has no prefix);
    * sequence elements compose ``parent[index]`` (no dot before the bracket);
    * scalars are stringified, ``None`` becomes ``""``;
    * empty containers contribute no keys.

    Examples
    --------
    >>> flatten({"a": {"b": "1", "c": 2}})
    {'a.b': '1', 'a.c': '2'}
    >>> flatten({"a": ["x", "y"]})
    {'a[0]': 'x', 'a[1]': 'y'}
    >>> flatten({"servers": [{"host": "h1", "tls": True}]})
    {'servers[0].host': 'h1', 'servers[0].tls': 'true'}
    >>> flatten(None)
    {}
    """

    result: dict[str, str] = {}
    if tree is not None:
        _walk(result, tree, "")
    return result


def _walk(result: dict[str, str], node: object, prefix: str) -> None:
    if isinstance(node, Mapping):
        for key, value in node.items():
            child = str(key)
            _walk(result, value, f"{prefix}.{child}" if prefix else child)
    elif _is_sequence(node):
        for index, value in enumerate(node):  # type: ignore[arg-type]
            _walk(result, value, f"{prefix}[{index}]")
    else:
        result[prefix] = _stringify(node)


def _is_sequence(node: object) -> bool:
    return isinstance(node, (Sequence, set, frozenset)) and not isinstance(node, (str, bytes, bytearray))


def _stringify(value: object) -> str:
    """Render a scalar the way YAML spells it.

    Examples
    --------
    >>> _stringify(None), _stringify(False), _stringify(3.5)
    ('', 'false', '3.5')
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
