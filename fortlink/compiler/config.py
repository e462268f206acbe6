"""Toolchain configuration (flags, search paths, execution defaults).

Loaded from a TOML file::

    [toolchain]
    include_flag = "-I"
    lib_path_flag = "-L"
    rpath_flag = "-Wl,-rpath,"
    lib_paths = ["/opt/compiler/lib"]
    static_lib_search_paths = ["/opt/libs/static"]
    timeout = 30.0

    [toolchain.env]
    LANG = "C"

    [build_environment]
    extract_all_to_root = false
"""
from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fortlink.internals.errors import ConfigError

DEFAULT_INCLUDE_FLAG = "-I"
DEFAULT_LIB_PATH_FLAG = "-L"


@dataclass(frozen=True)
class CompilerToolchainConfig:
    include_flag: str = DEFAULT_INCLUDE_FLAG
    lib_path_flag: str = DEFAULT_LIB_PATH_FLAG
    rpath_flag: str = ""  # empty: the target platform's default
    lib_paths: tuple[str, ...] = ()  # toolchain-global shared library paths
    static_lib_search_paths: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None


@dataclass(frozen=True)
class BuildEnvironment:
    """How library artifacts were laid out by the environment that fetched them."""
    extract_all_to_root: bool = False


def load_toolchain_config(path: Path) -> tuple[CompilerToolchainConfig, Optional[BuildEnvironment]]:
    """Load toolchain config and optional build environment from TOML."""
    if not path.exists():
        raise ConfigError("LE0002", path=str(path), reason="file not found")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError("LE0002", path=str(path), reason=str(e))
    return _parse_config(data, str(path))


def _parse_config(data: dict, origin: str) -> tuple[CompilerToolchainConfig, Optional[BuildEnvironment]]:
    tc = data.get("toolchain", {})
    if not isinstance(tc, dict):
        raise ConfigError("LE0002", path=origin, reason="[toolchain] must be a table")
    kwargs: dict = {}

    # Empty strings fall back to defaults, like an unset flag
    for name in ("include_flag", "lib_path_flag", "rpath_flag"):
        value = tc.get(name)
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            raise ConfigError("LE0002", path=origin, reason=f"'{name}' must be a string")
        kwargs[name] = value

    for name in ("lib_paths", "static_lib_search_paths"):
        value = tc.get(name, [])
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError("LE0002", path=origin, reason=f"'{name}' must be a list of strings")
        kwargs[name] = tuple(value)

    env = tc.get("env", {})
    if not isinstance(env, dict):
        raise ConfigError("LE0002", path=origin, reason="'env' must be a table")
    kwargs["env"] = {str(k): str(v) for k, v in env.items()}

    timeout = tc.get("timeout")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError("LE0002", path=origin, reason="'timeout' must be a positive number")
        kwargs["timeout"] = float(timeout)

    build_env = None
    if "build_environment" in data:
        section = data["build_environment"]
        if not isinstance(section, dict):
            raise ConfigError("LE0002", path=origin, reason="[build_environment] must be a table")
        extract = section.get("extract_all_to_root", False)
        if not isinstance(extract, bool):
            raise ConfigError("LE0002", path=origin,
                              reason="'extract_all_to_root' must be a boolean")
        build_env = BuildEnvironment(extract_all_to_root=extract)

    return CompilerToolchainConfig(**kwargs), build_env
