"""Payloads exchanged with the host process.

The host speaks camelCase JSON; models accept either the wire alias or
the Python field name.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IpcModel(BaseModel):
    """Base model for IPC payloads with populate_by_name enabled."""

    model_config = ConfigDict(populate_by_name=True)


class Location(IpcModel):
    """A path the host asked this window to open."""

    path_to_open: str | None = Field(default=None, alias="pathToOpen")
    force_add_to_window: bool = Field(default=False, alias="forceAddToWindow")
    initial_line: int | None = Field(default=None, alias="initialLine")
    initial_column: int | None = Field(default=None, alias="initialColumn")


class LoadSettings(IpcModel):
    """Settings the host passes to a window when it is created."""

    initial_paths: list[str] = Field(default_factory=list, alias="initialPaths")
    dev_mode: bool = Field(default=False, alias="devMode")
    safe_mode: bool = Field(default=False, alias="safeMode")
    env: dict[str, str] = Field(default_factory=dict)


class UpdateAvailable(IpcModel):
    """A downloaded update is ready to install."""

    release_version: str = Field(alias="releaseVersion")
    release_notes: str | None = Field(default=None, alias="releaseNotes")
