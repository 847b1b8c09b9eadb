"""
buildlint.parser - Build File Parser

Lexer, parser and syntax tree for BUILD and .bzl files, plus the
walk/edit traversal primitives the warning rules are written against.
"""

from buildlint.parser.lexer import Lexer, Token, TokenType, LexerError, tokenize_file
from buildlint.parser.parser import (
    Parser,
    ParseError,
    file_type_for_path,
    parse_file,
    parse_source,
)
from buildlint.parser.nodes import (
    # Syntax tree
    AssignExpr,
    BinaryExpr,
    CallExpr,
    DictExpr,
    DotExpr,
    Expr,
    File,
    FileType,
    Ident,
    KeyValueExpr,
    ListExpr,
    LoadStmt,
    NumberExpr,
    Position,
    Rule,
    StringExpr,
    UnaryExpr,
)
from buildlint.parser.traversal import DELETE, edit, edit_function, walk

__all__ = [
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "LexerError",
    "tokenize_file",
    # Parser
    "Parser",
    "ParseError",
    "file_type_for_path",
    "parse_file",
    "parse_source",
    # Syntax tree
    "AssignExpr",
    "BinaryExpr",
    "CallExpr",
    "DictExpr",
    "DotExpr",
    "Expr",
    "File",
    "FileType",
    "Ident",
    "KeyValueExpr",
    "ListExpr",
    "LoadStmt",
    "NumberExpr",
    "Position",
    "Rule",
    "StringExpr",
    "UnaryExpr",
    # Traversal
    "DELETE",
    "edit",
    "edit_function",
    "walk",
]
