"""Saved-state storage: key derivation and the backing store."""

from windowsession.state.keys import KEY_PREFIX, derive_key
from windowsession.state.store import StateStore

__all__ = [
    "KEY_PREFIX",
    "StateStore",
    "derive_key",
]
