"""Compiler argument construction for selected libraries.

Projects one ordered list of selected libraries into the argument shapes a
Fortran toolchain needs:

- include arguments (``-I<path>``, plus the packaged ``mod``/``include`` dirs),
- static archive paths, ordered so dependents precede their dependencies,
- shared library search paths, each as a runtime-path and a link-path flag.

Libraries without registry metadata and archives missing from disk are left
out rather than failing the compilation. Each omission is recorded as a
diagnostic on the returned `ResolvedArguments`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from fortlink.compiler.config import (
    DEFAULT_INCLUDE_FLAG,
    DEFAULT_LIB_PATH_FLAG,
    BuildEnvironment,
    CompilerToolchainConfig,
)
from fortlink.internals import errors as er
from fortlink.internals.report import Diagnostic, Reporter
from fortlink.libraries.locator import StaticLibraryLocator
from fortlink.libraries.models import LibraryVersionInfo, SelectedLibrary
from fortlink.libraries.registry import LibraryResolver

logger = logging.getLogger(__name__)

# gfortran looks up .mod files on the include path
MODULE_PATH_FLAG = "-I"
DEFAULT_LIB_DOWNLOAD_PATH = "./lib"


@dataclass(frozen=True)
class ResolvedArguments:
    include_arguments: list[str] = field(default_factory=list)
    static_links: list[str] = field(default_factory=list)
    shared_arguments: list[str] = field(default_factory=list)
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def arguments(self) -> list[str]:
        """Flat argument vector in command-line order."""
        return [*self.include_arguments, *self.static_links, *self.shared_arguments]

    @property
    def omitted_libraries(self) -> list[str]:
        return list(dict.fromkeys(d.library for d in self.diagnostics if d.library))


def _ordered_union(*groups: Iterable[str]) -> list[str]:
    """Union of `groups` keeping the first occurrence of each entry."""
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen)


class ArgumentListBuilder:
    def __init__(
        self,
        resolver: LibraryResolver,
        config: Optional[CompilerToolchainConfig] = None,
        build_env: Optional[BuildEnvironment] = None,
        locator: Optional[StaticLibraryLocator] = None,
    ) -> None:
        self.resolver = resolver
        self.config = config or CompilerToolchainConfig()
        self.build_env = build_env
        self.locator = locator or StaticLibraryLocator()

    @property
    def include_flag(self) -> str:
        return self.config.include_flag or DEFAULT_INCLUDE_FLAG

    @property
    def lib_path_flag(self) -> str:
        return self.config.lib_path_flag or DEFAULT_LIB_PATH_FLAG

    @property
    def rpath_flag(self) -> str:
        return self.config.rpath_flag or self.locator.platform.default_rpath_flag

    def find_lib_version(self, selected: SelectedLibrary,
                         reporter: Optional[Reporter] = None) -> Optional[LibraryVersionInfo]:
        info = self.resolver.resolve(selected)
        if info is None and reporter is not None:
            er.emit(reporter, er.ERR.LW0001, selected.id, lib=selected.id, version=selected.version)
        return info

    # ------------------------------------------------------------------
    # Static archives
    # ------------------------------------------------------------------

    def sorted_static_libraries(self, libraries: Sequence[SelectedLibrary],
                                reporter: Optional[Reporter] = None) -> list[str]:
        """Archive names in link order.

        Each library contributes its own archives followed by the archives it
        depends on. A name is placed before the first already-placed archive
        that it (through its owning version's dependencies) needs.
        """
        owners: dict[str, tuple[str, LibraryVersionInfo]] = {}
        links: list[str] = []
        for selected in libraries:
            info = self.find_lib_version(selected, reporter)
            if info is None:
                continue
            # A link name declared by several versions takes the last one's dependencies
            for link in info.static_lib_links:
                if link:
                    owners[link] = (selected.id, info)
            links.extend(info.static_lib_links)
            links.extend(info.dependencies)

        sorted_links: list[str] = []
        for name in dict.fromkeys(links):
            if not name:
                continue
            position = len(sorted_links)
            owner = owners.get(name)
            if owner is not None:
                needs = set(owner[1].dependencies)
                for idx, placed in enumerate(sorted_links):
                    placed_owner = owners.get(placed)
                    if placed_owner is not None and needs & set(placed_owner[1].static_lib_links):
                        position = idx
                        break
                    if placed in needs:
                        position = idx
                        break
            sorted_links.insert(position, name)
        return sorted_links

    def static_lib_search_paths(self, libraries: Sequence[SelectedLibrary] = (),
                                dir_path: Optional[str] = None) -> list[str]:
        """Directories searched for archives: configured, toolchain, then per-library."""
        return _ordered_union(
            self.config.static_lib_search_paths,
            self.config.lib_paths,
            self.shared_library_paths(libraries, dir_path),
        )

    def static_library_links(self, libraries: Sequence[SelectedLibrary],
                             lib_paths: Optional[Sequence[str]] = None,
                             dir_path: Optional[str] = None,
                             reporter: Optional[Reporter] = None) -> list[str]:
        """Full archive paths in link order; archives not found on disk are dropped."""
        if lib_paths is None:
            lib_paths = self.static_lib_search_paths(libraries, dir_path)
        owners = self._static_link_owners(libraries)

        links = []
        missing: dict[str, list[str]] = {}
        for lib in self.sorted_static_libraries(libraries, reporter):
            path = self.locator.locate(lib, lib_paths)
            if path:
                links.append(path)
            else:
                missing.setdefault(owners.get(lib, lib), []).append(self.locator.archive_filename(lib))

        if reporter is not None:
            for owner, archives in missing.items():
                er.emit(reporter, er.ERR.LW0002, owner,
                        archives=", ".join(archives),
                        paths=", ".join(lib_paths) or "<none>")
        return links

    def _static_link_owners(self, libraries: Sequence[SelectedLibrary]) -> dict[str, str]:
        """Map each archive name to the requested library that brought it in."""
        resolved = [(selected.id, self.resolver.resolve(selected)) for selected in libraries]
        resolved = [(lib_id, info) for lib_id, info in resolved if info is not None]

        owners: dict[str, str] = {}
        for lib_id, info in resolved:
            for link in info.static_lib_links:
                owners[link] = lib_id
        # Dependencies nobody provides are charged to the first library needing them
        for lib_id, info in resolved:
            for dependency in info.dependencies:
                owners.setdefault(dependency, lib_id)
        return owners

    # ------------------------------------------------------------------
    # Shared library paths
    # ------------------------------------------------------------------

    def shared_library_paths(self, libraries: Sequence[SelectedLibrary],
                             dir_path: Optional[str] = None,
                             reporter: Optional[Reporter] = None) -> list[str]:
        paths: list[str] = []
        for selected in libraries:
            info = self.find_lib_version(selected, reporter)
            if info is None:
                continue
            paths.extend(info.lib_paths)
            if self.build_env is not None and not self.build_env.extract_all_to_root and dir_path:
                paths.append(os.path.join(dir_path, selected.id, "lib"))
        return paths

    def shared_library_paths_as_arguments(self, libraries: Sequence[SelectedLibrary],
                                          lib_download_path: Optional[str] = None,
                                          toolchain_path: Optional[str] = None,
                                          dir_path: Optional[str] = None,
                                          reporter: Optional[Reporter] = None) -> list[str]:
        """Runtime-path and link-path flags, deduplicated in search order.

        Download root entries come first so they win over toolchain paths.
        """
        path_flag = self.rpath_flag
        lib_path_flag = self.lib_path_flag

        toolchain_library_paths: list[str] = []
        if toolchain_path:
            toolchain_library_paths = [os.path.join(toolchain_path, "lib64"),
                                       os.path.join(toolchain_path, "lib32")]

        if not lib_download_path:
            lib_download_path = DEFAULT_LIB_DOWNLOAD_PATH

        shared_paths = self.shared_library_paths(libraries, dir_path, reporter)
        return _ordered_union(
            [lib_path_flag + lib_download_path],
            [path_flag + lib_download_path],
            [path_flag + path for path in self.config.lib_paths],
            [path_flag + path for path in toolchain_library_paths],
            [path_flag + path for path in shared_paths],
            [lib_path_flag + path for path in shared_paths],
        )

    # ------------------------------------------------------------------
    # Includes
    # ------------------------------------------------------------------

    def include_arguments(self, libraries: Sequence[SelectedLibrary],
                          dir_path: Optional[str] = None,
                          reporter: Optional[Reporter] = None) -> list[str]:
        include_flag = self.include_flag
        dir_path = dir_path or DEFAULT_LIB_DOWNLOAD_PATH

        arguments: list[str] = []
        for selected in libraries:
            info = self.find_lib_version(selected, reporter)
            if info is None:
                continue
            arguments.extend(include_flag + path for path in info.include_paths)
            if info.packaged_headers:
                arguments.append(MODULE_PATH_FLAG + os.path.join(dir_path, selected.id, "mod"))
                arguments.append(include_flag + os.path.join(dir_path, selected.id, "include"))
        return arguments

    # ------------------------------------------------------------------

    def resolve(self, libraries: Sequence[SelectedLibrary],
                download_root: Optional[str] = None,
                toolchain_root: Optional[str] = None) -> ResolvedArguments:
        """Build every argument list for `libraries` and collect what was left out."""
        reporter = Reporter()
        result = ResolvedArguments(
            include_arguments=self.include_arguments(libraries, download_root, reporter),
            static_links=self.static_library_links(libraries, dir_path=download_root, reporter=reporter),
            shared_arguments=self.shared_library_paths_as_arguments(
                libraries, download_root, toolchain_root, download_root, reporter),
            # Each derivation reports the same missing version; keep one per library and code
            diagnostics=tuple(dict.fromkeys(reporter.items)),
        )
        logger.debug("resolved %d libraries into %d arguments (%d omitted)",
                     len(libraries), len(result.arguments), len(result.omitted_libraries))
        return result
