"""Tests for the Kalos LSP server."""

from __future__ import annotations

from lsprotocol import types as lsp

from kalos.errors import Severity
from kalos.lsp import (
    _SEVERITY_MAP,
    DocumentState,
    _analyze,
    _enclosing_call,
    _get_word_at,
    completion_items,
    def_to_symbol,
    format_edits,
    hover_text,
    signature_info,
    signature_text,
    span_to_range,
)
from kalos.source import Span

_SOURCE = (
    "def printf(fmt: int, ...) -> int extern;\n"
    "\n"
    "def add(a: int, b: int) -> int {\n"
    "    return add(a, b) + printf(1, 2, 3);\n"
    "}\n"
)


def _state(source: str = _SOURCE) -> DocumentState:
    return _analyze("file:///test.kls", source)


class TestSpanConversion:
    def test_span_to_range_basic(self):
        r = span_to_range(Span("test.kls", 1, 1, 1, 5))
        assert (r.start.line, r.start.character) == (0, 0)
        assert (r.end.line, r.end.character) == (0, 5)

    def test_span_to_range_multiline(self):
        r = span_to_range(Span("test.kls", 5, 3, 7, 10))
        assert (r.start.line, r.start.character) == (4, 2)
        assert (r.end.line, r.end.character) == (6, 10)

    def test_span_to_range_none(self):
        r = span_to_range(None)
        assert (r.start.line, r.start.character) == (0, 0)
        assert (r.end.line, r.end.character) == (0, 0)


class TestSeverityMap:
    def test_error_maps(self):
        assert _SEVERITY_MAP[Severity.ERROR] == lsp.DiagnosticSeverity.Error

    def test_every_severity_maps(self):
        assert set(_SEVERITY_MAP) == set(Severity)


class TestGetWordAt:
    def test_word_middle(self):
        assert _get_word_at("var count = 1;", 0, 6) == "count"

    def test_word_end(self):
        assert _get_word_at("hello", 0, 5) == "hello"

    def test_underscore_word(self):
        assert _get_word_at("my_var + 1", 0, 2) == "my_var"

    def test_empty(self):
        assert _get_word_at("", 0, 0) == ""

    def test_out_of_range(self):
        assert _get_word_at("hello", 5, 0) == ""


class TestAnalyze:
    def test_analyze_valid_source(self):
        ds = _state()
        assert ds.program is not None
        assert [fd.name for fd in ds.program.defs] == ["printf", "add"]
        assert ds.tokens[-1].kind.name == "EOF"
        assert ds.diagnostics == []

    def test_analyze_syntax_error(self):
        ds = _state("def f() {\n  return 1\n}\n")
        assert ds.program is None
        assert len(ds.diagnostics) == 1
        diag = ds.diagnostics[0]
        assert diag.message.startswith("[E200] expected ")
        assert diag.severity == lsp.DiagnosticSeverity.Error
        assert diag.source == "kalos"
        assert (diag.range.start.line, diag.range.start.character) == (2, 0)

    def test_analyze_lex_error(self):
        ds = _state("def f() { @ }")
        assert ds.tokens == []
        assert ds.diagnostics[0].code == "E100"
        assert "unexpected character '@'" in ds.diagnostics[0].message

    def test_analyze_deep_nesting(self):
        ds = _state("def f() { return " + "(" * 5000 + "1" + ")" * 5000 + "; }")
        assert ds.program is None
        assert "nested too deeply" in ds.diagnostics[0].message

    def test_analyze_caches_state(self):
        from kalos.lsp import _state as cache

        uri = "file:///cache_test.kls"
        ds = _analyze(uri, "def main() {}")
        assert cache.get(uri) is ds
        cache.pop(uri, None)


class TestDocumentState:
    def test_default_state(self):
        ds = DocumentState()
        assert ds.source == ""
        assert ds.tokens == []
        assert ds.program is None
        assert ds.diagnostics == []
        assert ds.find_def("main") is None

    def test_find_def(self):
        ds = _state()
        assert ds.find_def("add").name == "add"
        assert ds.find_def("missing") is None


class TestHover:
    def test_hover_def(self):
        text = hover_text(_state(), 2, 5)
        assert text == "```kalos\ndef add(a: int, b: int) -> int\n```"

    def test_hover_extern(self):
        text = hover_text(_state(), 3, 25)
        assert "def printf(fmt: int, ...) -> int extern" in text

    def test_hover_keyword(self):
        assert hover_text(_state(), 3, 6) == "**keyword** `return`"

    def test_hover_plain_name(self):
        assert hover_text(_state(), 3, 15) is None

    def test_hover_blank_line(self):
        assert hover_text(_state(), 1, 0) is None


class TestCompletion:
    def test_keywords_without_document(self):
        labels = [item.label for item in completion_items(None)]
        assert labels == sorted(labels)
        assert "while" in labels
        assert "extern" in labels

    def test_defs_and_params(self):
        items = {item.label: item for item in completion_items(_state())}
        assert items["add"].kind == lsp.CompletionItemKind.Function
        assert items["add"].detail == "def add(a: int, b: int) -> int"
        assert items["fmt"].kind == lsp.CompletionItemKind.Variable
        assert items["fmt"].detail == "int"

    def test_no_duplicates(self):
        ds = _state("def f(x: int) {} def g(x: bool) {}")
        labels = [item.label for item in completion_items(ds)]
        assert labels.count("x") == 1


class TestSymbols:
    def test_def_to_symbol(self):
        add = _state().find_def("add")
        sym = def_to_symbol(add)
        assert sym.name == "add"
        assert sym.kind == lsp.SymbolKind.Function
        assert [c.name for c in sym.children] == ["a", "b"]
        assert sym.range.start.line == 2

    def test_symbol_without_params(self):
        ds = _state("def main() {}")
        assert def_to_symbol(ds.find_def("main")).children is None

    def test_signature_text(self):
        ds = _state("def log(...) extern;")
        assert signature_text(ds.find_def("log")) == "def log(...) extern"


class TestSignatureHelp:
    def test_enclosing_call(self):
        assert _enclosing_call("    return add(1, 2);", 0, 18) == ("add", 1)

    def test_enclosing_call_skips_nested(self):
        assert _enclosing_call("f(g(1, 2), ", 0, 11) == ("f", 1)

    def test_outside_call(self):
        assert _enclosing_call("x = 1;", 0, 3) is None

    def test_signature_info(self):
        ds = _state()
        # cursor on "b" inside add(a, b)
        help_ = signature_info(ds, 3, 18)
        assert help_.signatures[0].label == "def add(a: int, b: int) -> int"
        assert help_.active_parameter == 1

    def test_variadic_clamps_to_ellipsis(self):
        ds = _state()
        help_ = signature_info(ds, 3, 36)
        labels = [p.label for p in help_.signatures[0].parameters]
        assert labels == ["fmt: int", "..."]
        assert help_.active_parameter == 1

    def test_unknown_callee(self):
        ds = _state("def f() { g(1); }")
        assert signature_info(ds, 0, 13) is None


class TestFormatting:
    def test_format_edits(self):
        ds = _state("def f(){}")
        edits = format_edits(ds)
        assert len(edits) == 1
        assert edits[0].new_text == "def f() {}\n"
        assert (edits[0].range.start.line, edits[0].range.start.character) == (0, 0)

    def test_already_formatted(self):
        assert format_edits(_state("def f() {}\n")) is None

    def test_broken_document(self):
        assert format_edits(_state("def f(")) is None

    def test_indent_width(self):
        ds = _state("def f() { return; }")
        assert format_edits(ds, 2)[0].new_text == "def f() {\n  return;\n}\n"
