"""klo compiler CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from klo import __version__
from klo.builder import SOURCE_SUFFIX, BuildResult, build_file, run_file, transpile_file
from klo.compiler import parse_source, transpile
from klo.config import config_for
from klo.errors import CompileError, DiagnosticRenderer
from klo.project import scaffold


def _source_path(file: str) -> Path:
    """Validate a .klo source argument, exiting 1 when it is not one."""
    path = Path(file)
    if path.suffix != SOURCE_SUFFIX:
        click.echo(f"error: '{file}' is not a {SOURCE_SUFFIX} file", err=True)
        raise SystemExit(1)
    if not path.is_file():
        click.echo(f"error: '{file}' does not exist", err=True)
        raise SystemExit(1)
    return path


def _report(error: CompileError, source: str | None = None, filename: str = "") -> None:
    renderer = DiagnosticRenderer(color=sys.stderr.isatty())
    if source is not None:
        renderer.add_source(filename, source)
    for diag in error.diagnostics:
        click.echo(renderer.render(diag), err=True)


def _finish(result: BuildResult) -> None:
    """Print diagnostics or toolchain output of a failed result and exit 1."""
    if result.ok:
        return
    renderer = DiagnosticRenderer(color=sys.stderr.isatty())
    for diag in result.diagnostics:
        click.echo(renderer.render(diag), err=True)
    if result.go_error:
        click.echo(f"error: {result.go_error}", err=True)
    raise SystemExit(1)


def _parse_or_exit(source: str, filename: str):
    try:
        return parse_source(source, filename)
    except CompileError as e:
        _report(e, source, filename)
        raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="klo")
@click.option("-v", "--verbose", is_flag=True, help="Log pipeline stages to stderr.")
def main(verbose: bool) -> None:
    """The klo compiler: Python-like source in, Go out."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@click.argument("file")
@click.option("-o", "--output", type=click.Path(), help="Keep the generated Go file here.")
def run(file: str, output: str | None) -> None:
    """Transpile a .klo file and execute it with `go run`."""
    source = _source_path(file)
    config = config_for(source)
    result = run_file(source, config, Path(output) if output else None)
    _finish(result)


@main.command(name="transpile")
@click.argument("file")
@click.option("-o", "--output", type=click.Path(), help="Path of the Go file to write.")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the Go program instead.")
def transpile_cmd(file: str, output: str | None, to_stdout: bool) -> None:
    """Translate a .klo file into a Go source file."""
    source = _source_path(file)

    if to_stdout:
        text = source.read_text()
        try:
            go_code = transpile(text, str(source))
        except CompileError as e:
            _report(e, text, str(source))
            raise SystemExit(1)
        click.echo(go_code, nl=False)
        return

    config = config_for(source)
    result = transpile_file(source, config, Path(output) if output else None)
    _finish(result)
    click.echo(f"transpiled {file} -> {result.go_file}")


@main.command()
@click.argument("file")
@click.option("-o", "--output", type=click.Path(), help="Path of the binary to write.")
def build(file: str, output: str | None) -> None:
    """Transpile a .klo file and compile it with `go build`."""
    source = _source_path(file)
    config = config_for(source)
    result = build_file(source, config, Path(output) if output else None)
    _finish(result)
    click.echo(f"built {file} -> {result.binary}")


@main.command()
@click.argument("file")
def check(file: str) -> None:
    """Lex and parse a .klo file without generating Go."""
    source = _source_path(file)
    program = _parse_or_exit(source.read_text(), str(source))
    click.echo(f"checked {file}: {len(program.statements)} statements, no errors")


@main.command()
@click.argument("name")
def new(name: str) -> None:
    """Create a new klo project."""
    try:
        project_dir = scaffold(name)
        click.echo(f"created project '{name}' at {project_dir}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
def format_cmd(path: str, check: bool, use_stdin: bool) -> None:
    """Format klo source files."""
    from klo.formatter import KloFormatter

    formatter = KloFormatter()

    if use_stdin:
        source = sys.stdin.read()
        formatted = formatter.format(_parse_or_exit(source, "<stdin>"))
        if check:
            if formatted != source:
                raise SystemExit(1)
        else:
            click.echo(formatted, nl=False)
        return

    target = Path(path)
    klo_files = sorted(target.rglob(f"*{SOURCE_SUFFIX}")) if target.is_dir() else [target]

    if not klo_files:
        click.echo(f"no {SOURCE_SUFFIX} files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for klo_file in klo_files:
        source = klo_file.read_text()
        filename = str(klo_file)
        try:
            program = parse_source(source, filename)
        except CompileError as e:
            _report(e, source, filename)
            had_errors = True
            continue

        formatted = formatter.format(program)
        if formatted != source:
            if check:
                click.echo(f"would reformat {filename}")
                needs_formatting = True
            else:
                klo_file.write_text(formatted)
                click.echo(f"formatted {filename}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
def lsp() -> None:
    """Start the klo language server."""
    from klo.lsp import main as lsp_main

    lsp_main()


@main.command()
@click.argument("file")
def view(file: str) -> None:
    """View the AST of a klo source file."""
    source = _source_path(file)
    program = _parse_or_exit(source.read_text(), str(source))
    _dump_ast(program, 0)


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        click.echo(f"{indent}{name}")
        for field_name in node.__dataclass_fields__:  # type: ignore[union-attr]
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, (list, tuple)):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
