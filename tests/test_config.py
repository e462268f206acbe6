from pathlib import Path

import pytest

from fortlink.compiler.config import (
    BuildEnvironment,
    CompilerToolchainConfig,
    load_toolchain_config,
)
from fortlink.internals.errors import ConfigError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "toolchain.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_when_table_is_empty(tmp_path: Path) -> None:
    config, build_env = load_toolchain_config(_write(tmp_path, ""))

    assert config == CompilerToolchainConfig()
    assert config.include_flag == "-I"
    assert config.lib_path_flag == "-L"
    assert config.rpath_flag == ""
    assert build_env is None


def test_full_config(tmp_path: Path) -> None:
    config, build_env = load_toolchain_config(_write(tmp_path, """
[toolchain]
include_flag = "-isystem"
rpath_flag = "-R"
lib_paths = ["/opt/gcc/lib64"]
static_lib_search_paths = ["/opt/static"]
timeout = 20

[toolchain.env]
LANG = "C"

[build_environment]
extract_all_to_root = true
"""))

    assert config.include_flag == "-isystem"
    assert config.lib_path_flag == "-L"
    assert config.rpath_flag == "-R"
    assert config.lib_paths == ("/opt/gcc/lib64",)
    assert config.static_lib_search_paths == ("/opt/static",)
    assert config.env == {"LANG": "C"}
    assert config.timeout == 20.0
    assert build_env == BuildEnvironment(extract_all_to_root=True)


def test_empty_flag_keeps_default(tmp_path: Path) -> None:
    config, _ = load_toolchain_config(_write(tmp_path, '[toolchain]\ninclude_flag = ""\n'))
    assert config.include_flag == "-I"


@pytest.mark.parametrize(
    "text",
    [
        "[toolchain]\ntimeout = -1\n",
        "[toolchain]\ninclude_flag = 3\n",
        "[toolchain]\nlib_paths = '/opt'\n",
        "[build_environment]\nextract_all_to_root = 'no'\n",
        "[toolchain\n",
    ],
)
def test_invalid_config(tmp_path: Path, text: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_toolchain_config(_write(tmp_path, text))
    assert excinfo.value.code == "LE0002"
