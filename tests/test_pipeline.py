import asyncio
import shlex
import sys
from pathlib import Path

from fortlink.compiler import cli
from fortlink.compiler.config import CompilerToolchainConfig
from fortlink.compiler.invoker import ExecResult
from fortlink.compiler.pipeline import CompilationRequest, compile_request
from fortlink.libraries.locator import StaticLibraryLocator
from fortlink.libraries.models import SelectedLibrary
from fortlink.libraries.registry import LibraryRegistry

REGISTRY_TOML = """
[libraries.blas.versions."3.12"]
include_paths = ["/opt/blas/include"]
lib_paths = ["{lib}"]
static_lib_links = ["blas"]
"""


def test_compile_request_appends_library_arguments(tmp_path: Path, registry: LibraryRegistry,
                                                   locator: StaticLibraryLocator) -> None:
    (tmp_path / "libblas.a").write_bytes(b"")
    source = tmp_path / "prog.f90"
    seen = {}

    async def executor(command, args, options):
        seen.update(command=command, args=list(args), cwd=options.custom_cwd)
        return ExecResult(code=0, stdout=f"{source}: ok\n", stderr="")

    request = CompilationRequest(
        compiler="gfortran",
        input_filename=str(source),
        options=["-O2", "-c"],
        libraries=[SelectedLibrary("blas", "3.12"), SelectedLibrary("ghost", "0")],
        download_root="/dl",
    )
    config = CompilerToolchainConfig(static_lib_search_paths=(str(tmp_path),))

    result = asyncio.run(compile_request(request, registry, config, locator=locator, executor=executor))

    assert seen["command"] == "gfortran"
    assert seen["cwd"] == str(tmp_path)
    assert seen["args"][:4] == ["-O2", "-c", str(source), "-I/opt/blas/include"]
    assert str(tmp_path / "libblas.a") in seen["args"]
    assert seen["args"] == result.command
    assert result.outcome.stdout == "./prog.f90: ok\n"
    assert [d.library for d in result.diagnostics] == ["ghost"]


def test_cli_print_args(tmp_path: Path, capsys) -> None:
    (tmp_path / "libblas.a").write_bytes(b"")
    registry = tmp_path / "libraries.toml"
    registry.write_text(REGISTRY_TOML.format(lib=tmp_path), encoding="utf-8")
    source = tmp_path / "prog.f90"

    code = cli.main([str(source), "--registry", str(registry), "--lib", "blas/3.12",
                     "--lib", "ghost/1", "--download-root", "/dl", "--print-args", "--", "-O2"])

    out, err = capsys.readouterr()
    assert code == 0
    argv = shlex.split(out.strip())
    assert argv[:4] == ["gfortran", "-O2", str(source.resolve()), "-I/opt/blas/include"]
    assert str(tmp_path / "libblas.a") in argv
    assert "-L/dl" in argv
    assert "LW0001" in err and "ghost" in err


def test_cli_runs_compiler_and_returns_its_exit_code(tmp_path: Path, capsys) -> None:
    source = tmp_path / "prog.f90"
    source.write_text("program p\nend program p\n", encoding="utf-8")
    compiler = tmp_path / "fake-gfortran"
    compiler.write_text(
        f"#!{sys.executable}\n"
        "import sys\n"
        "print(sys.argv[1] + ':1:1: Error: boom', file=sys.stderr)\n"
        "sys.exit(1)\n",
        encoding="utf-8",
    )
    compiler.chmod(0o755)

    code = cli.main(["--compiler", str(compiler), str(source)])

    _, err = capsys.readouterr()
    assert code == 1
    assert "./prog.f90:1:1: Error: boom" in err


def test_cli_rejects_bad_library_and_missing_config(tmp_path: Path, capsys) -> None:
    assert cli.main([str(tmp_path / "p.f90"), "--lib", "lapack"]) == 2
    assert cli.main([str(tmp_path / "p.f90"), "--config", str(tmp_path / "none.toml")]) == 2
    assert cli.main([]) == 2
    _, err = capsys.readouterr()
    assert "LE0002" in err


def test_cli_explain(capsys) -> None:
    assert cli.main(["--explain", "lw0001"]) == 0
    out, _ = capsys.readouterr()
    assert out.startswith("LW0001 [warning, library]")

    assert cli.main(["--explain", "XX0000"]) == 2
    _, err = capsys.readouterr()
    assert "unknown diagnostic code 'XX0000'" in err
