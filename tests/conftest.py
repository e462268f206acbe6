"""Shared test fixtures."""
from __future__ import annotations

import pytest

from fortlink.backend.platform_detect import TargetPlatform, parse_triple
from fortlink.compiler.config import CompilerToolchainConfig
from fortlink.libraries.arguments import ArgumentListBuilder
from fortlink.libraries.locator import StaticLibraryLocator
from fortlink.libraries.models import LibraryVersionInfo
from fortlink.libraries.registry import LibraryRegistry


@pytest.fixture
def linux() -> TargetPlatform:
    return parse_triple("x86_64-pc-linux-gnu")


@pytest.fixture
def locator(linux: TargetPlatform) -> StaticLibraryLocator:
    return StaticLibraryLocator(platform=linux)


@pytest.fixture
def registry() -> LibraryRegistry:
    """A few Fortran libraries, one of them shipping packaged module files."""
    reg = LibraryRegistry()
    reg.add("lapack", "3.12", LibraryVersionInfo(
        include_paths=("/opt/lapack/include",),
        lib_paths=("/opt/lapack/lib", "/opt/shared/lib"),
        static_lib_links=("lapack",),
        dependencies=("blas",),
    ))
    reg.add("blas", "3.12", LibraryVersionInfo(
        include_paths=("/opt/blas/include",),
        lib_paths=("/opt/blas/lib", "/opt/shared/lib"),
        static_lib_links=("blas",),
    ))
    reg.add("json-fortran", "8.3", LibraryVersionInfo(
        include_paths=("/opt/json/include",),
        lib_paths=("/opt/json/lib",),
        packaged_headers=True,
        static_lib_links=("jsonfortran",),
    ))
    return reg


@pytest.fixture
def builder(registry: LibraryRegistry, locator: StaticLibraryLocator) -> ArgumentListBuilder:
    return ArgumentListBuilder(registry, CompilerToolchainConfig(), locator=locator)
