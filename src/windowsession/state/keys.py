"""Storage keys for saved window state."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

KEY_PREFIX = "editor-"


def derive_key(paths: Iterable[str], *, order_independent: bool = False) -> str:
    """Derive the storage key for an ordered set of project directories.

    The sequence is significant: ``[a, b]`` and ``[b, a]`` produce different
    keys unless ``order_independent`` is set, in which case the paths are
    sorted first. Paths are newline-joined before hashing, so distinct
    sequences of newline-free paths never share a digest input.
    """
    items = [str(p) for p in paths]
    if order_independent:
        items.sort()
    digest = hashlib.sha1("\n".join(items).encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}{digest}"
