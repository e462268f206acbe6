"""Single compilation request: resolve library arguments, then run the compiler."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Sequence

from fortlink.compiler.config import BuildEnvironment, CompilerToolchainConfig
from fortlink.compiler.invoker import (
    CompilationOutcome,
    CompilerInvoker,
    ExecutionOptions,
    Executor,
    exec_process,
)
from fortlink.libraries.arguments import ArgumentListBuilder, ResolvedArguments
from fortlink.libraries.locator import StaticLibraryLocator
from fortlink.libraries.models import SelectedLibrary
from fortlink.libraries.registry import LibraryResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilationRequest:
    compiler: str
    input_filename: str
    options: Sequence[str] = ()
    libraries: Sequence[SelectedLibrary] = ()
    exec_options: Optional[ExecutionOptions] = None
    download_root: Optional[str] = None
    toolchain_root: Optional[str] = None


@dataclass(frozen=True)
class CompilationResult:
    outcome: CompilationOutcome
    resolved: ResolvedArguments
    command: list[str] = field(default_factory=list)

    @property
    def diagnostics(self):
        return self.resolved.diagnostics


def build_command_line(request: CompilationRequest,
                       builder: ArgumentListBuilder) -> tuple[list[str], ResolvedArguments]:
    """Compiler arguments for `request`: its own options, the source, then library arguments."""
    input_filename = os.path.abspath(request.input_filename)
    resolved = builder.resolve(request.libraries,
                               download_root=request.download_root,
                               toolchain_root=request.toolchain_root)
    return [*request.options, input_filename, *resolved.arguments], resolved


async def compile_request(
    request: CompilationRequest,
    resolver: LibraryResolver,
    config: Optional[CompilerToolchainConfig] = None,
    build_env: Optional[BuildEnvironment] = None,
    locator: Optional[StaticLibraryLocator] = None,
    executor: Executor = exec_process,
) -> CompilationResult:
    config = config or CompilerToolchainConfig()
    builder = ArgumentListBuilder(resolver, config, build_env, locator)
    command, resolved = build_command_line(request, builder)

    for diagnostic in resolved.diagnostics:
        logger.debug("%s: %s", diagnostic.code, diagnostic.message)

    invoker = CompilerInvoker(config, executor)
    outcome = await invoker.run_compiler(request.compiler, command,
                                         os.path.abspath(request.input_filename),
                                         request.exec_options)
    return CompilationResult(outcome=outcome, resolved=resolved, command=command)
