from pathlib import Path

import pytest

from fortlink.internals.errors import RegistryError
from fortlink.libraries.models import LibraryVersionInfo, SelectedLibrary
from fortlink.libraries.registry import load_registry, load_registry_from_string

REGISTRY_TOML = """
[libraries.lapack.versions."3.12"]
include_paths = ["/opt/lapack/include"]
lib_paths = ["/opt/lapack/lib"]
static_lib_links = ["lapack"]
dependencies = ["blas"]

[libraries.stdlib.versions.trunk]
packaged_headers = true
"""


def test_load_registry_from_file(tmp_path: Path) -> None:
    path = tmp_path / "libraries.toml"
    path.write_text(REGISTRY_TOML, encoding="utf-8")

    registry = load_registry(path)

    assert len(registry) == 2
    assert registry.resolve(SelectedLibrary("lapack", "3.12")) == LibraryVersionInfo(
        include_paths=("/opt/lapack/include",),
        lib_paths=("/opt/lapack/lib",),
        static_lib_links=("lapack",),
        dependencies=("blas",),
    )
    stdlib = registry.resolve(SelectedLibrary("stdlib", "trunk"))
    assert stdlib is not None and stdlib.packaged_headers


def test_unknown_version_resolves_to_none() -> None:
    registry = load_registry_from_string(REGISTRY_TOML)
    assert registry.resolve(SelectedLibrary("lapack", "3.11")) is None
    assert SelectedLibrary("lapack", "3.11") not in registry


def test_missing_registry_file(tmp_path: Path) -> None:
    with pytest.raises(RegistryError) as excinfo:
        load_registry(tmp_path / "nope.toml")
    assert excinfo.value.code == "LE0001"


@pytest.mark.parametrize(
    "text",
    [
        "[libraries.lapack]\nname = 'LAPACK'\nversions = 3\n",
        "[libraries.lapack.versions.'1']\ninclude_paths = '/opt/include'\n",
        "[libraries.lapack.versions.'1']\npackaged_headers = 'yes'\n",
        "libraries = [",
    ],
)
def test_malformed_registry_is_rejected(text: str) -> None:
    with pytest.raises(RegistryError):
        load_registry_from_string(text)


def test_selected_library_parse() -> None:
    assert SelectedLibrary.parse("lapack/3.12") == SelectedLibrary("lapack", "3.12")
    with pytest.raises(ValueError):
        SelectedLibrary.parse("lapack")
