"""Deep merge for cascading config layers.

Later layers override earlier ones. Nested mappings merge key by key,
everything else (including lists) is replaced wholesale, and ``None`` in a
later layer leaves the earlier value in place so partial files stay partial.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict with ``override`` layered on top of ``base``.

    Neither input is mutated.
    """
    result = dict(base)

    for key, value in override.items():
        if value is None:
            continue

        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value

    return result


def merge_configs(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge config layers in order (system, user, project, env)."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    return merged
