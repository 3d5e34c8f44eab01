"""Kalos Language Server: pygls-based LSP for .kls files.

Provides parse diagnostics, hover, completion, go-to-definition,
document symbols, signature help, and formatting via stdio transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from kalos import __version__
from kalos.ast_nodes import Def, Program
from kalos.errors import CompileError, Severity
from kalos.formatter import KalosFormatter
from kalos.lexer import Lexer
from kalos.parser import Parser
from kalos.source import Span
from kalos.tokens import KEYWORDS, Token

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
}

_KEYWORD_COMPLETIONS = sorted(KEYWORDS.keys())


def span_to_range(span: Span | None) -> lsp.Range:
    """Convert a 1-indexed Kalos Span to a 0-indexed LSP Range."""
    if span is None:
        return lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


def signature_text(fd: Def) -> str:
    """Render a def header for hover and signature help."""
    params = [f"{p.name}: {p.type_expr.name}" for p in fd.params]
    if fd.is_variadic:
        params.append("...")
    text = f"def {fd.name}({', '.join(params)})"
    if fd.return_type is not None:
        text += f" -> {fd.return_type.name}"
    if fd.is_extern:
        text += " extern"
    return text


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    program: Program | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)

    def find_def(self, name: str) -> Def | None:
        if self.program is None:
            return None
        for fd in self.program.defs:
            if fd.name == name:
                return fd
        return None


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "kalos-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _compile_diag(d: object) -> lsp.Diagnostic:
    """Convert a kalos Diagnostic to an LSP Diagnostic."""
    span_range = span_to_range(None)
    if hasattr(d, "labels") and d.labels:
        span_range = span_to_range(d.labels[0].span)
    sev = _SEVERITY_MAP.get(getattr(d, "severity", None), lsp.DiagnosticSeverity.Error)
    code = getattr(d, "code", "E000")
    msg = getattr(d, "message", str(d))
    return lsp.Diagnostic(
        range=span_range, severity=sev, source="kalos",
        code=code, message=f"[{code}] {msg}",
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Run Lexer → Parser, cache results, return state."""
    ds = DocumentState(source=source)
    try:
        ds.tokens = Lexer(source, uri).lex()
        ds.program = Parser(ds.tokens, uri).parse()
    except CompileError as e:
        ds.diagnostics = [_compile_diag(d) for d in e.diagnostics]
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        # Try character-1 in case cursor is right after the word
        if character > 0 and character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1

    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1

    return text[start:end]


def _enclosing_call(source: str, line: int, character: int) -> tuple[str, int] | None:
    """Find the callee name and argument index around the cursor."""
    lines = source.splitlines()
    if line >= len(lines):
        return None
    text = lines[line]
    pos = min(character, len(text)) - 1

    depth = 0
    commas = 0
    while pos >= 0:
        ch = text[pos]
        if ch == ")":
            depth += 1
        elif ch == "(":
            if depth == 0:
                break
            depth -= 1
        elif ch == "," and depth == 0:
            commas += 1
        pos -= 1

    if pos < 0:
        return None

    end = pos
    while end > 0 and (text[end - 1].isalnum() or text[end - 1] == "_"):
        end -= 1
    name = text[end:pos]
    if not name:
        return None
    return name, commas


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: take last content change
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


def hover_text(ds: DocumentState, line: int, character: int) -> str | None:
    word = _get_word_at(ds.source, line, character)
    if not word:
        return None
    fd = ds.find_def(word)
    if fd is not None:
        return f"```kalos\n{signature_text(fd)}\n```"
    if word in KEYWORDS:
        return f"**keyword** `{word}`"
    return None


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    content = hover_text(ds, params.position.line, params.position.character)
    if content is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=content,
    ))


def completion_items(ds: DocumentState | None) -> list[lsp.CompletionItem]:
    items = [
        lsp.CompletionItem(label=kw, kind=lsp.CompletionItemKind.Keyword)
        for kw in _KEYWORD_COMPLETIONS
    ]
    if ds is not None and ds.program is not None:
        for fd in ds.program.defs:
            items.append(lsp.CompletionItem(
                label=fd.name,
                kind=lsp.CompletionItemKind.Function,
                detail=signature_text(fd),
            ))
            for p in fd.params:
                items.append(lsp.CompletionItem(
                    label=p.name,
                    kind=lsp.CompletionItemKind.Variable,
                    detail=p.type_expr.name,
                ))

    # Deduplicate by label
    seen: set[str] = set()
    unique: list[lsp.CompletionItem] = []
    for item in items:
        if item.label not in seen:
            seen.add(item.label)
            unique.append(item)
    return unique


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=["("]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    ds = _state.get(params.text_document.uri)
    return lsp.CompletionList(is_incomplete=False, items=completion_items(ds))


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
def definition(params: lsp.DefinitionParams) -> lsp.Location | None:
    uri = params.text_document.uri
    ds = _state.get(uri)
    if ds is None:
        return None
    word = _get_word_at(ds.source, params.position.line, params.position.character)
    fd = ds.find_def(word) if word else None
    if fd is None:
        return None
    return lsp.Location(uri=uri, range=span_to_range(fd.span))


def def_to_symbol(fd: Def) -> lsp.DocumentSymbol:
    """Convert a def to an LSP DocumentSymbol with its parameters as children."""
    children = [
        lsp.DocumentSymbol(
            name=p.name,
            kind=lsp.SymbolKind.Variable,
            range=span_to_range(p.span),
            selection_range=span_to_range(p.span),
            detail=p.type_expr.name,
        )
        for p in fd.params
    ]
    return lsp.DocumentSymbol(
        name=fd.name,
        kind=lsp.SymbolKind.Function,
        range=span_to_range(fd.span),
        selection_range=span_to_range(fd.span),
        detail=signature_text(fd),
        children=children if children else None,
    )


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.program is None:
        return []
    return [def_to_symbol(fd) for fd in ds.program.defs]


def signature_info(ds: DocumentState, line: int, character: int) -> lsp.SignatureHelp | None:
    found = _enclosing_call(ds.source, line, character)
    if found is None:
        return None
    name, arg_index = found
    fd = ds.find_def(name)
    if fd is None:
        return None

    params_info = [
        lsp.ParameterInformation(label=f"{p.name}: {p.type_expr.name}")
        for p in fd.params
    ]
    if fd.is_variadic:
        params_info.append(lsp.ParameterInformation(label="..."))
    active = min(arg_index, len(params_info) - 1) if params_info else 0
    return lsp.SignatureHelp(
        signatures=[
            lsp.SignatureInformation(
                label=signature_text(fd),
                parameters=params_info,
            ),
        ],
        active_signature=0,
        active_parameter=active,
    )


@server.feature(
    lsp.TEXT_DOCUMENT_SIGNATURE_HELP,
    lsp.SignatureHelpOptions(trigger_characters=["(", ","]),
)
def signature_help(params: lsp.SignatureHelpParams) -> lsp.SignatureHelp | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    return signature_info(ds, params.position.line, params.position.character)


def format_edits(ds: DocumentState, indent_width: int = 4) -> list[lsp.TextEdit] | None:
    if ds.program is None:
        return None
    formatted = KalosFormatter(indent_width=indent_width).format(ds.program)
    if formatted == ds.source:
        return None

    # Replace entire document
    lines = ds.source.splitlines()
    end_line = len(lines)
    end_char = len(lines[-1]) if lines else 0
    return [lsp.TextEdit(
        range=lsp.Range(
            start=lsp.Position(0, 0),
            end=lsp.Position(end_line, end_char),
        ),
        new_text=formatted,
    )]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    indent = params.options.tab_size if params.options.insert_spaces else 4
    return format_edits(ds, indent)


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the Kalos language server on stdio."""
    server.start_io()
