"""Library registry: version metadata lookup.

The registry file is TOML, one table per library version::

    [libraries.lapack.versions."3.12"]
    include_paths = ["/opt/libs/lapack/3.12/include"]
    lib_paths = ["/opt/libs/lapack/3.12/lib"]
    static_lib_links = ["lapack"]
    dependencies = ["blas"]
    packaged_headers = false
"""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Optional, Protocol

from fortlink.internals.errors import RegistryError
from fortlink.libraries.models import LibraryVersionInfo, SelectedLibrary

_LIST_FIELDS = ("include_paths", "lib_paths", "static_lib_links", "dependencies", "lib_links")


class LibraryResolver(Protocol):
    def resolve(self, selected: SelectedLibrary) -> Optional[LibraryVersionInfo]:
        """Return metadata for the requested version, or None if unknown."""


class LibraryRegistry:
    """In-memory registry keyed by (library id, version)."""

    def __init__(self, versions: dict[tuple[str, str], LibraryVersionInfo] | None = None) -> None:
        self._versions = dict(versions or {})

    def add(self, lib_id: str, version: str, info: LibraryVersionInfo) -> None:
        self._versions[(lib_id, version)] = info

    def resolve(self, selected: SelectedLibrary) -> Optional[LibraryVersionInfo]:
        return self._versions.get((selected.id, selected.version))

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, selected: SelectedLibrary) -> bool:
        return (selected.id, selected.version) in self._versions


def load_registry(path: Path) -> LibraryRegistry:
    """Load a registry TOML file."""
    if not path.exists():
        raise RegistryError("LE0001", path=str(path), reason="file not found")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise RegistryError("LE0001", path=str(path), reason=str(e))
    return _parse_registry(data, str(path))


def load_registry_from_string(text: str, origin: str = "<string>") -> LibraryRegistry:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise RegistryError("LE0001", path=origin, reason=str(e))
    return _parse_registry(data, origin)


def _parse_registry(data: dict, origin: str) -> LibraryRegistry:
    registry = LibraryRegistry()
    libraries = data.get("libraries", {})
    if not isinstance(libraries, dict):
        raise RegistryError("LE0001", path=origin, reason="[libraries] must be a table")

    for lib_id, lib_table in libraries.items():
        versions = lib_table.get("versions", {}) if isinstance(lib_table, dict) else None
        if not isinstance(versions, dict):
            raise RegistryError("LE0001", path=origin,
                                reason=f"library '{lib_id}' has no versions table")
        for version, entry in versions.items():
            registry.add(lib_id, version, _parse_version(entry, origin, f"{lib_id}/{version}"))
    return registry


def _parse_version(entry: dict, origin: str, where: str) -> LibraryVersionInfo:
    if not isinstance(entry, dict):
        raise RegistryError("LE0001", path=origin, reason=f"{where}: version entry must be a table")
    fields = {}
    for name in _LIST_FIELDS:
        value = entry.get(name, [])
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise RegistryError("LE0001", path=origin,
                                reason=f"{where}: '{name}' must be a list of strings")
        fields[name] = tuple(value)

    packaged_headers = entry.get("packaged_headers", False)
    if not isinstance(packaged_headers, bool):
        raise RegistryError("LE0001", path=origin,
                            reason=f"{where}: 'packaged_headers' must be a boolean")
    return LibraryVersionInfo(packaged_headers=packaged_headers, **fields)
