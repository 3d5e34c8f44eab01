"""Kalos command line interface."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from kalos import __version__
from kalos.ast_nodes import Program
from kalos.config import KalosConfig, config_for
from kalos.errors import CompileError, DiagnosticRenderer
from kalos.parser import parse
from kalos.source import SourceFile

SOURCE_SUFFIX = ".kls"


def _collect_sources(target: Path) -> list[Path]:
    if target.is_dir():
        return sorted(target.rglob(f"*{SOURCE_SUFFIX}"))
    return [target]


def _parse_source(
    source: str, filename: str, renderer: DiagnosticRenderer,
) -> Program | None:
    """Parse source text, echoing diagnostics on failure."""
    try:
        return parse(source, filename)
    except CompileError as e:
        renderer.add_source(filename, source)
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        return None


def _renderer(config: KalosConfig) -> DiagnosticRenderer:
    return DiagnosticRenderer(color=config.diagnostics.color)


@click.group()
@click.version_option(__version__, prog_name="kalos")
def main() -> None:
    """The Kalos language front end."""


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
def check(path: str) -> None:
    """Parse Kalos sources and report syntax errors."""
    target = Path(path)
    files = _collect_sources(target)
    if not files:
        click.echo(f"warning: no {SOURCE_SUFFIX} files found", err=True)
        return

    renderer = _renderer(config_for(target))
    failed = 0
    for kls_file in files:
        source = SourceFile(kls_file)
        if _parse_source(source.content, str(kls_file), renderer) is None:
            failed += 1

    if failed:
        click.echo(f"{failed} of {len(files)} file(s) failed to parse", err=True)
        raise SystemExit(1)
    click.echo(f"checked {len(files)} file(s), no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def view(file: str) -> None:
    """View the AST of a Kalos source file."""
    path = Path(file)
    program = _parse_source(
        SourceFile(path).content, str(path), _renderer(config_for(path)),
    )
    if program is None:
        raise SystemExit(1)
    _dump_ast(program, 0)


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
def format_cmd(path: str, check: bool, use_stdin: bool) -> None:
    """Format Kalos source files."""
    from kalos.formatter import KalosFormatter

    target = Path(path)
    config = config_for(target)
    formatter = KalosFormatter(indent_width=config.format.indent_width)
    renderer = _renderer(config)

    if use_stdin:
        source = sys.stdin.read()
        program = _parse_source(source, "<stdin>", renderer)
        if program is None:
            raise SystemExit(1)
        formatted = formatter.format(program)
        if check:
            if formatted != source:
                raise SystemExit(1)
        else:
            sys.stdout.write(formatted)
        return

    files = _collect_sources(target)
    if not files:
        click.echo(f"no {SOURCE_SUFFIX} files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for kls_file in files:
        source = kls_file.read_text(encoding="utf-8")
        filename = str(kls_file)
        program = _parse_source(source, filename, renderer)
        if program is None:
            had_errors = True
            continue

        formatted = formatter.format(program)
        if formatted != source:
            if check:
                click.echo(f"would reformat {filename}")
                needs_formatting = True
            else:
                kls_file.write_text(formatted, encoding="utf-8")
                click.echo(f"formatted {filename}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def highlight(file: str) -> None:
    """Print a Kalos source file with terminal syntax colors."""
    from pygments import highlight as pygmentize
    from pygments.formatters import TerminalFormatter

    from kalos.highlight import KalosLexer

    source = Path(file).read_text(encoding="utf-8")
    click.echo(pygmentize(source, KalosLexer(), TerminalFormatter()), nl=False)


@main.command()
def lsp() -> None:
    """Start the Kalos language server."""
    from kalos.lsp import main as lsp_main

    lsp_main()


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, tuple):
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
