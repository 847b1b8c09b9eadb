"""
Tests for the buildlint lexer and parser.
"""

import pytest

from buildlint.parser import (
    AssignExpr,
    BinaryExpr,
    CallExpr,
    DictExpr,
    DotExpr,
    FileType,
    Ident,
    Lexer,
    LexerError,
    ListExpr,
    LoadStmt,
    NumberExpr,
    ParseError,
    Position,
    StringExpr,
    TokenType,
    UnaryExpr,
    file_type_for_path,
    parse_file,
    parse_source,
)


class TestLexer:
    """Test tokenization."""

    def test_newlines_only_outside_brackets(self):
        """Newlines inside parentheses are not tokens."""
        tokens = Lexer('f(\n  a,\n)\ng()\n').tokenize_all()
        types = [t.type for t in tokens]
        assert types.count(TokenType.NEWLINE) == 2

    def test_token_end_positions(self):
        """Tokens record where they end."""
        token = Lexer('"abc"').tokenize_all()[0]
        assert (token.line, token.column) == (1, 1)
        assert (token.end_line, token.end_column) == (1, 6)

    def test_double_star(self):
        tokens = Lexer('**kwargs').tokenize_all()
        assert tokens[0].type == TokenType.DOUBLE_STAR
        assert tokens[1].value == "kwargs"

    def test_keywords(self):
        tokens = Lexer('a and not b').tokenize_all()
        assert [t.type for t in tokens[:4]] == [
            TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.KEYWORD, TokenType.IDENTIFIER,
        ]

    def test_comments_skipped(self):
        tokens = Lexer('# comment\nx').tokenize_all()
        assert TokenType.COMMENT not in [t.type for t in tokens]
        tokens = Lexer('# comment\nx').tokenize_all(include_comments=True)
        assert tokens[0].type == TokenType.COMMENT
        assert tokens[0].value == " comment"

    def test_string_escapes(self):
        token = Lexer(r'"a\"b\n"').tokenize_all()[0]
        assert token.value == 'a"b\n'

    def test_numeric_escapes(self):
        """Octal, hex and control escapes are decoded."""
        token = Lexer(r'"\x41\101\0\r\a"').tokenize_all()[0]
        assert token.value == "AA\x00\r\a"

    def test_invalid_hex_escape(self):
        with pytest.raises(LexerError):
            Lexer(r'"\xZ1"').tokenize_all()

    def test_unknown_escape_kept(self):
        token = Lexer(r'"a\d"').tokenize_all()[0]
        assert token.value == "a\\d"

    def test_raw_string(self):
        """r"..." keeps backslashes and starts at the prefix."""
        tokens = Lexer(r'x = r"a\.b\"c"').tokenize_all()
        assert tokens[2].type == TokenType.STRING
        assert tokens[2].value == 'a\\.b\\"c'
        assert (tokens[2].line, tokens[2].column) == (1, 5)

    def test_raw_string_in_call(self):
        f = parse_source("x = re.compile(R'[a-z]+\\d')")
        call = f.stmts[0].rhs
        assert isinstance(call.args[0], StringExpr)
        assert call.args[0].value == "[a-z]+\\d"

    def test_triple_quoted_string(self):
        token = Lexer('"""line1\nline2"""').tokenize_all()[0]
        assert token.type == TokenType.STRING
        assert token.value == "line1\nline2"

    def test_unterminated_string(self):
        with pytest.raises(LexerError):
            Lexer('"abc').tokenize_all()

    def test_unexpected_character(self):
        with pytest.raises(LexerError):
            Lexer('x = $').tokenize_all()


class TestBasicParsing:
    """Test parsing of build file statements."""

    def test_empty_source(self):
        f = parse_source("")
        assert f.stmts == []

    def test_rule_call(self):
        """Parse a rule call with keyword arguments."""
        f = parse_source('cc_library(name = "lib", srcs = ["a.cc"])')
        assert len(f.stmts) == 1
        call = f.stmts[0]
        assert isinstance(call, CallExpr)
        assert isinstance(call.func, Ident)
        assert call.func.name == "cc_library"
        assert len(call.args) == 2
        assert all(isinstance(a, AssignExpr) for a in call.args)
        assert call.args[0].lhs.name == "name"
        assert call.args[0].rhs.value == "lib"
        assert isinstance(call.args[1].rhs, ListExpr)

    def test_dotted_call(self):
        f = parse_source('native.cc_library(name = "x")')
        call = f.stmts[0]
        assert isinstance(call.func, DotExpr)
        assert call.func.name == "cc_library"
        assert isinstance(call.func.x, Ident)
        assert call.func.x.name == "native"

    def test_multiline_call_with_trailing_comma(self):
        source = '''
cc_library(
    name = "lib",
    deps = [
        ":a",
        ":b",
    ],
)
'''
        f = parse_source(source)
        assert len(f.stmts) == 1
        assert len(f.stmts[0].args[1].rhs.items) == 2

    def test_multiple_statements(self):
        f = parse_source('a()\nb()\n\nc()')
        assert [s.func.name for s in f.stmts] == ["a", "b", "c"]

    def test_semicolon_separated(self):
        f = parse_source('a(); b()')
        assert len(f.stmts) == 2

    def test_top_level_assignment(self):
        f = parse_source('SRCS = ["a.cc"] + glob(["*.h"])')
        stmt = f.stmts[0]
        assert isinstance(stmt, AssignExpr)
        assert stmt.lhs.name == "SRCS"
        assert isinstance(stmt.rhs, BinaryExpr)
        assert stmt.rhs.op == "+"
        assert isinstance(stmt.rhs.y, CallExpr)

    def test_augmented_assignment(self):
        f = parse_source('x += [1]')
        assert f.stmts[0].op == "+="

    def test_star_arguments(self):
        f = parse_source('f(x, *args, **kwargs)')
        args = f.stmts[0].args
        assert isinstance(args[0], Ident)
        assert isinstance(args[1], UnaryExpr) and args[1].op == "*"
        assert isinstance(args[2], UnaryExpr) and args[2].op == "**"
        assert args[2].x.name == "kwargs"

    def test_dict_and_select(self):
        f = parse_source('x = select({"//cond:a": ["a.cc"], "//conditions:default": []})')
        select = f.stmts[0].rhs
        assert isinstance(select, CallExpr)
        d = select.args[0]
        assert isinstance(d, DictExpr)
        assert len(d.entries) == 2
        assert d.entries[0].key.value == "//cond:a"

    def test_load_statement(self):
        f = parse_source('load("//tools:defs.bzl", "my_rule", alias = "other")')
        load = f.stmts[0]
        assert isinstance(load, LoadStmt)
        assert load.module.value == "//tools:defs.bzl"
        assert len(load.args) == 2
        assert isinstance(load.args[1], AssignExpr)

    def test_operator_precedence(self):
        f = parse_source('x = a + b * c')
        rhs = f.stmts[0].rhs
        assert rhs.op == "+"
        assert rhs.y.op == "*"

    def test_not_in(self):
        f = parse_source('x = a not in b')
        assert f.stmts[0].rhs.op == "not in"

    def test_negative_number(self):
        f = parse_source('x = -1')
        rhs = f.stmts[0].rhs
        assert isinstance(rhs, UnaryExpr)
        assert isinstance(rhs.x, NumberExpr)

    def test_adjacent_strings_concatenate(self):
        f = parse_source('x = "a" "b"')
        assert f.stmts[0].rhs.value == "ab"

    def test_unsupported_statement(self):
        with pytest.raises(ParseError):
            parse_source('def foo():\n    pass')

    def test_missing_close_paren(self):
        with pytest.raises(ParseError):
            parse_source('cc_library(name = "x"')

    def test_garbage_after_statement(self):
        with pytest.raises(ParseError):
            parse_source('a() b()')


class TestPositions:
    """Spans are 1-based and cover the whole expression."""

    def test_call_span(self):
        f = parse_source('\n  foo(1,\n 2)')
        call = f.stmts[0]
        assert call.start == Position(2, 3)
        assert call.end == Position(3, 4)

    def test_string_span(self):
        f = parse_source('glob(["README.md"])')
        literal = f.stmts[0].args[0].items[0]
        assert isinstance(literal, StringExpr)
        assert literal.span() == (Position(1, 7), Position(1, 18))

    def test_dot_span(self):
        f = parse_source('native.foo')
        dot = f.stmts[0]
        assert dot.span() == (Position(1, 1), Position(1, 11))

    def test_keyword_argument_span(self):
        f = parse_source('f(name = "x")')
        arg = f.stmts[0].args[0]
        assert arg.start == Position(1, 3)
        assert arg.rhs.start == Position(1, 10)


class TestFileModel:
    """File and Rule helpers."""

    def test_file_type_for_path(self):
        assert file_type_for_path("pkg/BUILD") == FileType.BUILD
        assert file_type_for_path("pkg/BUILD.bazel") == FileType.BUILD
        assert file_type_for_path("third_party/zlib.BUILD") == FileType.BUILD
        assert file_type_for_path("pkg/defs.bzl") == FileType.BZL
        assert file_type_for_path("WORKSPACE") == FileType.DEFAULT

    def test_parse_source_infers_type(self):
        assert parse_source("", "x/BUILD").type == FileType.BUILD
        assert parse_source("", "x/defs.bzl").type == FileType.BZL
        assert parse_source("", "x/defs.bzl", FileType.DEFAULT).type == FileType.DEFAULT

    def test_rules(self):
        f = parse_source('x = 1\ncc_library(name = "a")\nnative.genrule(name = "b")\nload(":a.bzl", "z")')
        rules = f.rules()
        assert [r.kind() for r in rules] == ["cc_library", "native.genrule"]
        assert [r.explicit_name() for r in rules] == ["a", "b"]
        assert [r.kind() for r in f.rules("cc_library")] == ["cc_library"]

    def test_rule_without_literal_name(self):
        f = parse_source('cc_library(name = NAME)\ncc_test()')
        rules = f.rules()
        assert rules[0].explicit_name() == ""
        assert isinstance(rules[0].attr("name"), Ident)
        assert rules[1].attr("name") is None

    def test_parse_file(self, tmp_path):
        path = tmp_path / "BUILD"
        path.write_text('cc_library(name = "x")\n', encoding="utf-8")
        f = parse_file(path)
        assert f.type == FileType.BUILD
        assert f.path == str(path)
        assert f.rules()[0].explicit_name() == "x"
