"""Static archive lookup.

Fortran toolchains are linked against static archives by full path rather
than ``-l<name>``, so archives must already be on disk before the link line
can be built.
"""
from __future__ import annotations

import os
from typing import Iterable, Optional

from fortlink.backend.platform_detect import TargetPlatform, get_current_platform


class StaticLibraryLocator:
    """Finds the archive for a library name in an ordered list of directories."""

    def __init__(self, platform: Optional[TargetPlatform] = None) -> None:
        self.platform = platform or get_current_platform()

    def archive_filename(self, lib: str) -> str:
        return self.platform.static_lib_filename(lib)

    def locate(self, lib: str, lib_paths: Iterable[str]) -> str:
        """Return the path of the first existing archive, or '' if there is none."""
        filename = self.archive_filename(lib)
        for directory in lib_paths:
            candidate = os.path.join(directory, filename)
            if os.path.exists(candidate):
                return candidate
        return ''
