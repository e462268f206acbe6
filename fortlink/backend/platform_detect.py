"""
Platform detection and target triple parsing.

Provides utilities to determine the current compilation target and make
platform-specific naming decisions for library artifacts.
"""
from __future__ import annotations
from dataclasses import dataclass
from llvmlite import binding as llvm


@dataclass(frozen=True)
class TargetPlatform:
    """Represents a compilation target platform."""
    arch: str      # arm64, x86_64, riscv64, etc.
    vendor: str    # apple, pc, unknown, etc.
    os: str        # darwin, linux, windows, etc.
    abi: str       # (empty), gnu, musl, msvc, etc.

    @property
    def is_windows(self) -> bool:
        return self.os == 'windows'

    @property
    def static_lib_prefix(self) -> str:
        """Filename prefix of a static archive (``lib`` except for MSVC)."""
        return '' if self.is_windows and self.abi == 'msvc' else 'lib'

    @property
    def static_lib_suffix(self) -> str:
        return '.lib' if self.is_windows and self.abi == 'msvc' else '.a'

    def static_lib_filename(self, name: str) -> str:
        """Conventional archive filename for library `name` (``lapack`` -> ``liblapack.a``)."""
        return f"{self.static_lib_prefix}{name}{self.static_lib_suffix}"

    @property
    def default_rpath_flag(self) -> str:
        """Runtime search path flag understood by the target's linker driver."""
        if self.os.startswith('solaris'):
            return '-R'
        return '-Wl,-rpath,'

    @property
    def triple(self) -> str:
        """Reconstruct the target triple string."""
        parts = [self.arch, self.vendor, self.os]
        if self.abi:
            parts.append(self.abi)
        return '-'.join(parts)


def parse_triple(triple: str) -> TargetPlatform:
    """
    Parse an LLVM target triple into components.

    Examples:
        arm64-apple-darwin25.0.0 -> TargetPlatform(arm64, apple, darwin, '')
        x86_64-pc-linux-gnu -> TargetPlatform(x86_64, pc, linux, gnu)
        x86_64-pc-windows-msvc -> TargetPlatform(x86_64, pc, windows, msvc)
    """
    parts = triple.split('-')

    # Handle version numbers in OS (e.g., darwin25.0.0)
    os_part = parts[2] if len(parts) > 2 else 'unknown'
    if os_part.startswith('darwin'):
        os_part = 'darwin'
    elif '.' in os_part:
        os_part = os_part.split('.')[0]

    return TargetPlatform(
        arch=parts[0] if len(parts) > 0 else 'unknown',
        vendor=parts[1] if len(parts) > 1 else 'unknown',
        os=os_part,
        abi=parts[3] if len(parts) > 3 else '',
    )


def get_current_platform() -> TargetPlatform:
    """Get the platform for the current compilation."""
    return parse_triple(llvm.get_default_triple())
