"""
Build File Syntax Tree

Typed nodes for the Starlark subset used in BUILD and .bzl files.
Every node carries the start and end position it was parsed from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple


@dataclass(frozen=True)
class Position:
    """A 1-based source position."""
    line: int = 0
    column: int = 0

    def __str__(self):
        return f"{self.line}:{self.column}"


class FileType(Enum):
    """Dialect of a build-description file."""
    BUILD = "build"      # BUILD, BUILD.bazel
    BZL = "bzl"          # extension files
    DEFAULT = "default"  # anything else (WORKSPACE, generic Starlark)


@dataclass
class Expr:
    """Base class for syntax nodes."""
    start: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)

    # Names of child slots, in source order. A slot holds a node or a list of nodes.
    _fields: ClassVar[Tuple[str, ...]] = ()

    def span(self) -> Tuple[Position, Position]:
        return self.start, self.end

    def children(self) -> List["Expr"]:
        """Direct child nodes in source order."""
        result = []
        for name in self._fields:
            value = getattr(self, name)
            if isinstance(value, list):
                result.extend(value)
            elif value is not None:
                result.append(value)
        return result


@dataclass
class Ident(Expr):
    """A bare identifier: cc_library, native, True"""
    name: str = ""

    def __repr__(self):
        return f"Ident({self.name})"


@dataclass
class StringExpr(Expr):
    """A string literal; value is the decoded content."""
    value: str = ""
    quote: str = '"'

    def __repr__(self):
        return f"String({self.value!r})"


@dataclass
class NumberExpr(Expr):
    value: str = ""

    def __repr__(self):
        return f"Number({self.value})"


@dataclass
class ListExpr(Expr):
    """[item, item, ...]"""
    items: List[Expr] = field(default_factory=list)
    _fields = ("items",)

    def __repr__(self):
        return f"List({self.items})"


@dataclass
class KeyValueExpr(Expr):
    """key: value inside a dict literal."""
    key: Optional[Expr] = None
    value: Optional[Expr] = None
    _fields = ("key", "value")


@dataclass
class DictExpr(Expr):
    """{key: value, ...}"""
    entries: List[KeyValueExpr] = field(default_factory=list)
    _fields = ("entries",)

    def __repr__(self):
        return f"Dict({len(self.entries)} entries)"


@dataclass
class DotExpr(Expr):
    """x.name"""
    x: Optional[Expr] = None
    name: str = ""
    _fields = ("x",)

    def __repr__(self):
        return f"Dot({self.x!r}.{self.name})"


@dataclass
class CallExpr(Expr):
    """func(arg, key = value, *args, **kwargs)"""
    func: Optional[Expr] = None
    args: List[Expr] = field(default_factory=list)
    _fields = ("func", "args")

    def __repr__(self):
        return f"Call({self.func!r}, {len(self.args)} args)"


@dataclass
class UnaryExpr(Expr):
    """op x, where op is '*', '**', '-', '+' or 'not'."""
    op: str = ""
    x: Optional[Expr] = None
    _fields = ("x",)

    def __repr__(self):
        return f"Unary({self.op}{self.x!r})"


@dataclass
class BinaryExpr(Expr):
    """x op y"""
    op: str = ""
    x: Optional[Expr] = None
    y: Optional[Expr] = None
    _fields = ("x", "y")

    def __repr__(self):
        return f"Binary({self.x!r} {self.op} {self.y!r})"


@dataclass
class AssignExpr(Expr):
    """lhs = rhs; used both for keyword arguments and top-level assignments."""
    lhs: Optional[Expr] = None
    op: str = "="
    rhs: Optional[Expr] = None
    _fields = ("lhs", "rhs")

    def __repr__(self):
        return f"Assign({self.lhs!r} {self.op} {self.rhs!r})"


@dataclass
class LoadStmt(Expr):
    """load("//pkg:defs.bzl", "symbol", alias = "symbol")"""
    module: Optional[StringExpr] = None
    args: List[Expr] = field(default_factory=list)
    _fields = ("module", "args")

    def __repr__(self):
        return f"Load({self.module!r})"


class Rule:
    """
    A rule-like declaration: a top-level call such as cc_library(name = "x").
    """

    def __init__(self, call: CallExpr):
        self.call = call

    def __repr__(self):
        return f"Rule({self.kind()}, name={self.explicit_name()!r})"

    def kind(self) -> str:
        """The callee as a dotted name, e.g. "cc_library" or "native.genrule"."""
        return _dotted_name(self.call.func) or ""

    def attr(self, key: str) -> Optional[Expr]:
        """Value of the keyword argument `key`, or None."""
        for arg in self.call.args:
            if (isinstance(arg, AssignExpr) and isinstance(arg.lhs, Ident)
                    and arg.lhs.name == key):
                return arg.rhs
        return None

    def attr_string(self, key: str) -> str:
        value = self.attr(key)
        if isinstance(value, StringExpr):
            return value.value
        return ""

    def explicit_name(self) -> str:
        """The literal `name` argument, or "" when absent or not a string."""
        return self.attr_string("name")


def _dotted_name(expr: Optional[Expr]) -> Optional[str]:
    if isinstance(expr, Ident):
        return expr.name
    if isinstance(expr, DotExpr):
        prefix = _dotted_name(expr.x)
        if prefix is None:
            return None
        return f"{prefix}.{expr.name}"
    return None


@dataclass
class File(Expr):
    """A parsed build-description file."""
    path: str = "<unknown>"
    type: FileType = FileType.DEFAULT
    stmts: List[Expr] = field(default_factory=list)
    _fields = ("stmts",)

    def __repr__(self):
        return f"File({self.path}, {self.type.value}, {len(self.stmts)} statements)"

    def rules(self, kind: str = "") -> List[Rule]:
        """
        Top-level calls treated as rule declarations.

        If kind is given, only rules whose callee matches it are returned.
        """
        rules = []
        for stmt in self.stmts:
            if not isinstance(stmt, CallExpr):
                continue
            rule = Rule(stmt)
            if not rule.kind():
                continue
            if kind and rule.kind() != kind:
                continue
            rules.append(rule)
        return rules
