"""Compiler process execution and output normalization."""
from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Mapping, Optional, Sequence

from fortlink.compiler.config import CompilerToolchainConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionOptions:
    env: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None  # seconds; None waits indefinitely
    custom_cwd: Optional[str] = None
    max_output: Optional[int] = None  # characters kept per stream


@dataclass(frozen=True)
class ExecResult:
    code: int  # -1 when the process was killed on timeout
    stdout: str
    stderr: str
    timed_out: bool = False
    truncated: bool = False
    exec_time: float = 0.0


@dataclass(frozen=True)
class CompilationOutcome:
    exit_code: int
    stdout: str
    stderr: str
    input_filename: str
    timed_out: bool = False
    truncated: bool = False
    exec_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


Executor = Callable[[str, Sequence[str], ExecutionOptions], Awaitable[ExecResult]]


def _truncate(text: str, limit: Optional[int]) -> tuple[str, bool]:
    if limit is None or len(text) <= limit:
        return text, False
    return text[:limit], True


async def exec_process(command: str, args: Sequence[str], options: ExecutionOptions) -> ExecResult:
    """Run `command` with `args` and capture its output.

    Launch failures (missing binary, permission denied) propagate as OSError.
    """
    env = {**os.environ, **options.env}
    logger.debug("exec %s %s (cwd=%s)", command, " ".join(args), options.custom_cwd)

    start = time.monotonic()
    proc = await asyncio.create_subprocess_exec(
        command, *args,
        cwd=options.custom_cwd,
        env=env,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    timed_out = False
    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=options.timeout)
    except asyncio.TimeoutError:
        proc.kill()
        out, err = await proc.communicate()
        timed_out = True
        logger.debug("%s killed after %ss", command, options.timeout)
    exec_time = time.monotonic() - start

    stdout, out_truncated = _truncate(out.decode(errors="replace"), options.max_output)
    stderr, err_truncated = _truncate(err.decode(errors="replace"), options.max_output)
    return ExecResult(
        code=-1 if timed_out else proc.returncode,
        stdout=stdout,
        stderr=stderr,
        timed_out=timed_out,
        truncated=out_truncated or err_truncated,
        exec_time=exec_time,
    )


def parse_output(text: str, input_filename: str, base_filename: str) -> str:
    """Replace every mention of the absolute input path with its ``./name`` form."""
    if not input_filename:
        return text
    return text.replace(input_filename, base_filename)


class CompilerInvoker:
    """Runs a compiler next to its source file and normalizes what it prints."""

    def __init__(self, config: Optional[CompilerToolchainConfig] = None,
                 executor: Executor = exec_process) -> None:
        self.config = config or CompilerToolchainConfig()
        self.executor = executor

    def default_exec_options(self) -> ExecutionOptions:
        return ExecutionOptions(env=dict(self.config.env), timeout=self.config.timeout)

    async def run_compiler(self, compiler: str, options: Sequence[str], input_filename: str,
                           exec_options: Optional[ExecutionOptions] = None) -> CompilationOutcome:
        if exec_options is None:
            exec_options = self.default_exec_options()
        # The compiler writes .mod files to its working directory; they have to
        # land next to the source for later units to pick them up.
        exec_options = replace(exec_options, custom_cwd=os.path.dirname(input_filename) or None)

        result = await self.executor(compiler, list(options), exec_options)

        base_filename = "./" + os.path.basename(input_filename)
        return CompilationOutcome(
            exit_code=result.code,
            stdout=parse_output(result.stdout, input_filename, base_filename),
            stderr=parse_output(result.stderr, input_filename, base_filename),
            input_filename=input_filename,
            timed_out=result.timed_out,
            truncated=result.truncated,
            exec_time=result.exec_time,
        )
