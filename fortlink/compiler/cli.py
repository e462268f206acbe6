"""CLI entry point and argument parsing."""
from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
import sys
from pathlib import Path

from fortlink.internals.version import print_banner


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="fortlink",
        description="Compile a Fortran source against registry libraries",
    )
    ap.add_argument("source", nargs="?", help="Path to the source file (compiler arguments follow --)")
    ap.add_argument("--version", action="store_true", help="Show version and exit")
    ap.add_argument("--compiler", default="gfortran", help="Compiler executable (default: gfortran)")
    ap.add_argument("--registry", metavar="FILE", help="Library registry TOML file")
    ap.add_argument("--config", metavar="FILE", help="Toolchain config TOML file")
    ap.add_argument("--lib", action="append", default=[], metavar="ID/VERSION",
                    help="Library to compile against (repeatable, order is kept)")
    ap.add_argument("--download-root", metavar="DIR",
                    help="Directory holding downloaded libraries (<DIR>/<id>/lib, mod, include)")
    ap.add_argument("--toolchain-root", metavar="DIR",
                    help="Toolchain install root; its lib64/lib32 are added as runtime paths")
    ap.add_argument("--timeout", type=float, metavar="SECONDS",
                    help="Kill the compiler after this many seconds")
    ap.add_argument("--print-args", action="store_true",
                    help="Print the resolved command line and exit without compiling")
    ap.add_argument("--explain", metavar="CODE", help="Describe a diagnostic code (e.g. LW0001) and exit")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else list(argv)
    # Everything after "--" goes to the compiler untouched
    compiler_args: list[str] = []
    if "--" in argv:
        idx = argv.index("--")
        argv, compiler_args = argv[:idx], argv[idx + 1:]

    ap = build_parser()
    args = ap.parse_args(argv)

    if args.version:
        print_banner()
        return 0

    if args.explain:
        from fortlink.internals.errors import explain
        try:
            print(explain(args.explain.upper()))
        except KeyError:
            print(f"error: unknown diagnostic code '{args.explain}'", file=sys.stderr)
            return 2
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if not args.source:
        print("error: source file required", file=sys.stderr)
        return 2

    from fortlink.compiler.config import CompilerToolchainConfig, load_toolchain_config
    from fortlink.compiler.invoker import ExecutionOptions
    from fortlink.compiler.pipeline import CompilationRequest, build_command_line, compile_request
    from fortlink.internals.errors import FortlinkError
    from fortlink.internals.report import Reporter
    from fortlink.libraries.arguments import ArgumentListBuilder
    from fortlink.libraries.models import SelectedLibrary
    from fortlink.libraries.registry import LibraryRegistry, load_registry

    try:
        libraries = [SelectedLibrary.parse(text) for text in args.lib]
    except ValueError as e:
        print(f"error: --lib: {e}", file=sys.stderr)
        return 2

    try:
        registry = load_registry(Path(args.registry)) if args.registry else LibraryRegistry()
        if args.config:
            config, build_env = load_toolchain_config(Path(args.config))
        else:
            config, build_env = CompilerToolchainConfig(), None
    except FortlinkError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    exec_options = ExecutionOptions(
        env=dict(config.env),
        timeout=args.timeout if args.timeout is not None else config.timeout,
    )
    request = CompilationRequest(
        compiler=args.compiler,
        input_filename=str(Path(args.source).resolve()),
        options=compiler_args,
        libraries=libraries,
        exec_options=exec_options,
        download_root=args.download_root,
        toolchain_root=args.toolchain_root,
    )

    reporter = Reporter()

    if args.print_args:
        builder = ArgumentListBuilder(registry, config, build_env)
        command, resolved = build_command_line(request, builder)
        reporter.extend(resolved.diagnostics)
        reporter.print()
        print(shlex.join([request.compiler, *command]))
        return 0

    try:
        result = asyncio.run(compile_request(request, registry, config, build_env))
    except OSError as e:
        print(f"error: cannot run {args.compiler}: {e}", file=sys.stderr)
        return 2

    reporter.extend(result.diagnostics)
    reporter.print()

    outcome = result.outcome
    if outcome.stdout:
        sys.stdout.write(outcome.stdout)
    if outcome.stderr:
        sys.stderr.write(outcome.stderr)
    if outcome.timed_out:
        print(f"error: {args.compiler} timed out after {request.exec_options.timeout}s", file=sys.stderr)
        return 1
    return outcome.exit_code if outcome.exit_code >= 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
