# fortlink/internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from fortlink.internals.report import Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    LIBRARY   = "library"
    REGISTRY  = "registry"
    CONFIG    = "config"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.LIBRARY
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)

def emit(r: Reporter, em: ErrorMessage, library: Optional[str] = None, **kwargs) -> None:
    text = _fmt(em.code, **kwargs)
    if em.severity == Severity.ERROR:
        r.error(em.code, text, library)
    else:
        r.warn(em.code, text, library)


def explain(code: str) -> str:
    """Long-form description of a diagnostic code (``fortlink --explain``)."""
    msg = _get(code)
    return f"{msg.code} [{msg.severity.value}, {msg.category.value}]: {msg.text}\n\n{msg.doc}"


class FortlinkError(Exception):
    """Base exception for errors that carry a catalog code."""

    def __init__(self, code: str, **kwargs):
        self.code = code
        self.kwargs = kwargs
        self.message = _fmt(code, **kwargs)
        super().__init__(f"{code}: {self.message}")


class RegistryError(FortlinkError):
    """Library registry file is missing or malformed."""


class ConfigError(FortlinkError):
    """Toolchain configuration file is missing or malformed."""


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def _fmt(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Resolution warnings (LWxxxx): the library is left off the command line
_add(ErrorMessage("LW0001", Severity.WARNING,
    "no metadata for library '{lib}' version '{version}'",
    Category.LIBRARY, "The registry has no entry for this library/version pair. "
    "It contributes no include, link or search-path arguments."))

_add(ErrorMessage("LW0002", Severity.WARNING,
    "static archives not found: {archives} (searched: {paths})",
    Category.LIBRARY, "None of the static library search directories contains these archives. "
    "They are left out of the link line."))

# Loading errors (LExxxx)
_add(ErrorMessage("LE0001", Severity.ERROR,
    "invalid library registry '{path}': {reason}",
    Category.REGISTRY, "The registry file could not be read or does not follow the expected layout."))

_add(ErrorMessage("LE0002", Severity.ERROR,
    "invalid toolchain config '{path}': {reason}",
    Category.CONFIG, "The toolchain configuration file could not be read or has an invalid field."))
