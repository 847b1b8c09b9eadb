"""
Build File Formatter

Serializes a syntax tree back to source text:
- One statement per line, blank line between top-level rule calls
- Calls with keyword arguments broken one argument per line
- Short lists of simple values kept inline

Comments and original line breaks are not preserved.

Usage:
    python -m buildlint.tools.format <file>              # Format and print to stdout
    python -m buildlint.tools.format <file> --inplace    # Format in place
    python -m buildlint.tools.format <file> --check      # Exit 1 if not formatted
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

from buildlint.parser import parse_file, parse_source
from buildlint.parser.lexer import read_source
from buildlint.parser.parser import Parser
from buildlint.parser.nodes import (
    AssignExpr,
    BinaryExpr,
    CallExpr,
    DictExpr,
    DotExpr,
    Expr,
    File,
    Ident,
    KeyValueExpr,
    ListExpr,
    LoadStmt,
    NumberExpr,
    StringExpr,
    UnaryExpr,
)


# Operator binding strength, loosest first. Unary 'not' binds between 'and'
# and the comparisons; unary '-'/'+' bind tighter than any binary operator.
NOT_PRECEDENCE = 2
SIGN_PRECEDENCE = len(Parser.BINARY_LEVELS) + 1
ATOM_PRECEDENCE = SIGN_PRECEDENCE + 1


def _binary_precedence():
    table = {}
    for level, ops in enumerate(Parser.BINARY_LEVELS):
        for op in ops:
            table[op] = level if level < NOT_PRECEDENCE else level + 1
    return table


BINARY_PRECEDENCE = _binary_precedence()

STRING_ESCAPES = {
    "\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r",
    "\a": "\\a", "\b": "\\b", "\f": "\\f", "\v": "\\v",
}


def _precedence(expr: Expr) -> int:
    if isinstance(expr, BinaryExpr):
        return BINARY_PRECEDENCE[expr.op]
    if isinstance(expr, UnaryExpr):
        if expr.op == "not":
            return NOT_PRECEDENCE
        if expr.op in ("-", "+"):
            return SIGN_PRECEDENCE
        return 0  # *args / **kwargs
    return ATOM_PRECEDENCE


@dataclass
class FormatOptions:
    """Configuration for the formatter."""
    indent: str = "    "
    inline_list_max_items: int = 3       # Max simple items for an inline list
    blank_lines_between_rules: int = 1
    max_line_length: int = 79


class BuildFormatter:
    """
    Formats build files to a consistent style.

    The formatter works by:
    1. Parsing the file to a syntax tree (or taking an already fixed one)
    2. Walking the tree and serializing each node
    3. Outputting the result
    """

    def __init__(self, options: FormatOptions = None):
        self.options = options or FormatOptions()

    def format_file(self, file_path: Path) -> str:
        """Format a file and return the formatted content."""
        return self.format_ast(parse_file(file_path))

    def format_string(self, content: str, filename: str = "<string>") -> str:
        return self.format_ast(parse_source(content, filename))

    def format_ast(self, f: File) -> str:
        """Format a File to string."""
        if not f.stmts:
            return ""

        lines = []
        previous = None
        for stmt in f.stmts:
            if previous is not None and self._separates(previous, stmt):
                lines.extend([""] * self.options.blank_lines_between_rules)
            lines.append(self._format(stmt, 0))
            previous = stmt
        return "\n".join(lines) + "\n"

    @staticmethod
    def _separates(previous: Expr, stmt: Expr) -> bool:
        """Blank line between statements unless both are loads."""
        return not (isinstance(previous, LoadStmt) and isinstance(stmt, LoadStmt))

    def _indent(self, level: int) -> str:
        return self.options.indent * level

    def _format(self, expr: Expr, level: int) -> str:
        if isinstance(expr, Ident):
            return expr.name
        if isinstance(expr, StringExpr):
            return self._format_string(expr)
        if isinstance(expr, NumberExpr):
            return expr.value
        if isinstance(expr, DotExpr):
            return f"{self._operand(expr.x, level, ATOM_PRECEDENCE)}.{expr.name}"
        if isinstance(expr, UnaryExpr):
            space = " " if expr.op == "not" else ""
            operand = self._operand(expr.x, level, _precedence(expr))
            return f"{expr.op}{space}{operand}"
        if isinstance(expr, BinaryExpr):
            # Left-associative: a right operand at the same level needs brackets.
            precedence = _precedence(expr)
            x = self._operand(expr.x, level, precedence)
            y = self._operand(expr.y, level, precedence + 1)
            return f"{x} {expr.op} {y}"
        if isinstance(expr, AssignExpr):
            return f"{self._format(expr.lhs, level)} {expr.op} {self._format(expr.rhs, level)}"
        if isinstance(expr, KeyValueExpr):
            return f"{self._format(expr.key, level)}: {self._format(expr.value, level)}"
        if isinstance(expr, ListExpr):
            return self._format_list(expr, level)
        if isinstance(expr, DictExpr):
            return self._format_sequence("{", expr.entries, "}", level)
        if isinstance(expr, CallExpr):
            return self._format_call(expr, level)
        if isinstance(expr, LoadStmt):
            args = [expr.module] + expr.args
            return "load(" + ", ".join(self._format(a, level) for a in args) + ")"
        raise TypeError(f"Cannot format {type(expr).__name__}")

    def _operand(self, expr: Expr, level: int, min_precedence: int) -> str:
        """Format expr, bracketed if it binds more loosely than min_precedence."""
        text = self._format(expr, level)
        if _precedence(expr) < min_precedence:
            return f"({text})"
        return text

    @staticmethod
    def _format_string(expr: StringExpr) -> str:
        parts = []
        for ch in expr.value:
            if ch in STRING_ESCAPES:
                parts.append(STRING_ESCAPES[ch])
            elif ord(ch) < 0x20 or ord(ch) == 0x7f:
                parts.append(f"\\x{ord(ch):02x}")
            else:
                parts.append(ch)
        return '"' + "".join(parts) + '"'

    def _format_list(self, lst: ListExpr, level: int) -> str:
        simple = all(isinstance(i, (StringExpr, NumberExpr, Ident)) for i in lst.items)
        if simple and len(lst.items) <= self.options.inline_list_max_items:
            return "[" + ", ".join(self._format(i, level) for i in lst.items) + "]"
        return self._format_sequence("[", lst.items, "]", level)

    def _format_call(self, call: CallExpr, level: int) -> str:
        func = self._operand(call.func, level, ATOM_PRECEDENCE)
        one_line = f"{func}(" + ", ".join(self._format(a, level) for a in call.args) + ")"
        has_keywords = any(isinstance(a, AssignExpr) for a in call.args)
        if not has_keywords or (level > 0 and len(one_line) <= self.options.max_line_length):
            if "\n" not in one_line:
                return one_line
        return func + self._format_sequence("(", call.args, ")", level)

    def _format_sequence(self, opener: str, items: List[Expr], closer: str, level: int) -> str:
        if not items:
            return opener + closer
        inner = self._indent(level + 1)
        lines = [opener]
        for item in items:
            lines.append(f"{inner}{self._format(item, level + 1)},")
        lines.append(f"{self._indent(level)}{closer}")
        return "\n".join(lines)


def format_file(file_path: Path, options: FormatOptions = None) -> str:
    """Convenience function to format a file."""
    return BuildFormatter(options).format_file(file_path)


def main():
    parser = argparse.ArgumentParser(description="Format BUILD and .bzl files")
    parser.add_argument("file", type=Path, help="File to format")
    parser.add_argument("--inplace", "-i", action="store_true", help="Modify in place")
    parser.add_argument("--check", action="store_true",
                        help="Exit with 1 if the file is not formatted")
    args = parser.parse_args()

    formatted = format_file(args.file)

    if args.check:
        return 0 if read_source(str(args.file)) == formatted else 1
    if args.inplace:
        with open(args.file, "w", encoding="utf-8") as f:
            f.write(formatted)
        print(f"Formatted: {args.file}")
    else:
        sys.stdout.write(formatted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
