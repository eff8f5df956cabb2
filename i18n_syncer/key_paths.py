"""Dotted-key flattening and unflattening of translation sets."""
from typing import Any, Dict, List, Mapping, Tuple

KEY_DELIMITER = '.'


def flatten(nested: Any, prefix: str = '') -> Dict[str, Any]:
    """
    Flatten nested mappings into a single level with dotted keys.

    Only mappings are descended into; lists and scalars are stored as leaves.
    Calling this on a non-mapping returns ``{prefix: nested}``.

    Args:
        nested: The (possibly nested) translation set.
        prefix: Path of ``nested`` inside the root, used by the recursion.

    Returns:
        Dict[str, Any]: Flat ``{dotted.key: value}`` in depth-first order.
    """
    if not isinstance(nested, Mapping):
        return {prefix: nested}

    flat: Dict[str, Any] = {}
    for key, value in nested.items():
        path = f"{prefix}{KEY_DELIMITER}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten(value, path))
        else:
            flat[path] = value
    return flat


def unflatten(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Rebuild nested mappings from dotted keys.

    An intermediate segment that already holds a non-mapping value is
    replaced by a new mapping, and a leaf replaces whatever was at its
    path; the last key written wins. Empty keys are ignored.
    """
    nested: Dict[str, Any] = {}
    for key, value in flat.items():
        if not key:
            continue
        *parents, leaf = key.split(KEY_DELIMITER)
        node = nested
        for segment in parents:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[leaf] = value
    return nested


def find_prefix_collisions(flat: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """
    List key pairs where one key is a path prefix of another (``a`` and ``a.b``).

    Such sets cannot be represented as nested mappings without dropping a value.
    """
    keys = set(k for k in flat if k)
    collisions = []
    for key in flat:
        if not key:
            continue
        segments = key.split(KEY_DELIMITER)
        for depth in range(1, len(segments)):
            prefix = KEY_DELIMITER.join(segments[:depth])
            if prefix in keys:
                collisions.append((prefix, key))
    return collisions
