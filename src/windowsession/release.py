"""Release-channel classification of version strings."""

from __future__ import annotations

import re
from enum import Enum

_RELEASED_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")
_BETA_PATTERN = re.compile(r"-beta")


class ReleaseChannel(str, Enum):
    STABLE = "stable"
    BETA = "beta"
    DEV = "dev"

    def __str__(self) -> str:
        return self.value


def get_release_channel(version: str) -> ReleaseChannel:
    """Classify a version string.

    ``X.Y.Z`` is stable, ``X.Y.Z-beta...`` is beta, and anything else
    (other prerelease tags, bare commit hashes) is dev.
    """
    if _RELEASED_PATTERN.match(version):
        return ReleaseChannel.STABLE
    if _BETA_PATTERN.search(version):
        return ReleaseChannel.BETA
    return ReleaseChannel.DEV


def is_released_version(version: str) -> bool:
    """True for stable and beta builds, False for dev builds."""
    return get_release_channel(version) is not ReleaseChannel.DEV
