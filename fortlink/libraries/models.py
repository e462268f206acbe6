"""Library selection and version metadata types."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SelectedLibrary:
    """A requested dependency: library id plus the version asked for."""
    id: str
    version: str

    @classmethod
    def parse(cls, text: str) -> "SelectedLibrary":
        """Parse ``id/version`` (as given on the command line)."""
        lib_id, sep, version = text.partition("/")
        if not sep or not lib_id or not version:
            raise ValueError(f"expected ID/VERSION, got '{text}'")
        return cls(id=lib_id, version=version)


@dataclass(frozen=True)
class LibraryVersionInfo:
    include_paths: tuple[str, ...] = ()
    lib_paths: tuple[str, ...] = ()
    packaged_headers: bool = False
    # Archive base names this version provides, in link order (``lapack`` for liblapack.a)
    static_lib_links: tuple[str, ...] = ()
    # Archive base names that must come after this version's archives on the link line
    dependencies: tuple[str, ...] = ()
    lib_links: tuple[str, ...] = ()
