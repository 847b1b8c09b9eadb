"""
Bazel-specific warnings

Checks BUILD and .bzl files for common issues:
- Glob patterns without wildcards
- Use of the `native` module in BUILD files
- native.package() in .bzl files
- Rules sharing the same name
- Calls passing positional arguments
- *args / **kwargs in BUILD files
"""

import logging
from typing import AbstractSet, Dict, List, Optional

from buildlint.parser.nodes import (
    AssignExpr,
    CallExpr,
    DotExpr,
    Expr,
    File,
    FileType,
    Ident,
    ListExpr,
    StringExpr,
    UnaryExpr,
)
from buildlint.parser.traversal import edit, edit_function, walk
from buildlint.warn.finding import Finding, make_finding

logger = logging.getLogger(__name__)


# Functions whose arguments are positional by design.
FUNCTIONS_WITH_POSITIONAL_ARGUMENTS = frozenset({
    "distribs",
    "exports_files",
    "licenses",
    "print",
    "register_execution_platforms",
    "register_toolchains",
    "vardef",
})


# ============================================================================
# RULES
# ============================================================================

class WarningRule:
    """Base class for warning rules."""

    category: str = ""

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        """Check a file and return any findings; may rewrite the tree if fix is set."""
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.category})"


class ConstantGlobRule(WarningRule):
    """glob() patterns that match exactly one file."""

    category = "constant-glob"

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        findings = []

        if f.type == FileType.DEFAULT:
            # Only applicable to Bazel files
            return findings

        def visit(call: CallExpr, stack: List[Expr]) -> Optional[Expr]:
            if not call.args:
                return None
            patterns = call.args[0]
            if not isinstance(patterns, ListExpr):
                return None
            for expr in patterns.items:
                if not isinstance(expr, StringExpr):
                    continue
                if "*" not in expr.value:
                    start, end = expr.span()
                    findings.append(make_finding(
                        f, start, end, self.category,
                        f"Glob pattern `{expr.value}` has no wildcard ('*'). "
                        "Constant patterns can be error-prone, move the file outside the glob.",
                        True,
                    ))
                    return None  # at most one warning per glob
            return None

        edit_function(f, "glob", visit)
        return findings


class NativeInBuildRule(WarningRule):
    """`native.xxx` in BUILD files, where the members are globals."""

    category = "native-build"

    # existing_rule(s) are not available as globals in BUILD files yet.
    EXEMPT_MEMBERS = frozenset({"existing_rule", "existing_rules"})

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        findings = []

        if f.type != FileType.BUILD:
            return findings

        def visit(expr: Expr, stack: List[Expr]) -> Optional[Expr]:
            if not isinstance(expr, DotExpr):
                return None
            ident = expr.x
            if not isinstance(ident, Ident) or ident.name != "native":
                return None
            if expr.name in self.EXEMPT_MEMBERS:
                return None

            if fix:
                start, end = expr.span()
                logger.debug(f"{f.path}:{start}: rewriting native.{expr.name} to {expr.name}")
                return Ident(name=expr.name, start=start, end=end)

            start, end = expr.span()
            findings.append(make_finding(
                f, start, end, self.category,
                'The "native" module shouldn\'t be used in BUILD files, '
                'its members are available as global symbols.',
                True,
            ))
            return None

        edit(f, visit)
        return findings


class NativePackageRule(WarningRule):
    """native.package() calls in .bzl files."""

    category = "native-package"

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        findings = []

        if f.type != FileType.BZL:
            return findings

        def visit(expr: Expr, stack: List[Expr]) -> None:
            if not isinstance(expr, CallExpr):
                return
            dot = expr.func
            if not isinstance(dot, DotExpr) or dot.name != "package":
                return
            ident = dot.x
            if not isinstance(ident, Ident) or ident.name != "native":
                return

            start, end = expr.span()
            findings.append(make_finding(
                f, start, end, self.category,
                '"native.package()" shouldn\'t be used in .bzl files.',
                True,
            ))

        walk(f, visit)
        return findings


class DuplicatedNameRule(WarningRule):
    """Two rules in one BUILD file with the same name."""

    category = "duplicated-name"

    MESSAGE = ('A rule with name "{name}" was already found on line {line}. '
               "Even if it's valid for Blaze, this may confuse other tools. "
               "Please rename it and use different names.")

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        findings = []

        if f.type in (FileType.BZL, FileType.DEFAULT):
            return findings

        names: Dict[str, int] = {}  # name -> line of first occurrence
        for rule in f.rules():
            name = rule.explicit_name()
            if not name:
                continue
            start, end = rule.call.span()
            name_node = rule.attr("name")
            if name_node is not None:
                start, end = name_node.span()
            if name in names:
                findings.append(make_finding(
                    f, start, end, self.category,
                    self.MESSAGE.format(name=name, line=names[name]),
                    True,
                ))
            else:
                names[name] = start.line
        return findings


class PositionalArgumentsRule(WarningRule):
    """Top-level calls to rules or macros passing positional arguments."""

    category = "positional-args"

    MESSAGE = "All calls to rules or macros should pass arguments by keyword (arg_name=value) syntax."

    def __init__(self, exempt: AbstractSet[str] = FUNCTIONS_WITH_POSITIONAL_ARGUMENTS):
        self.exempt = frozenset(exempt)

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        findings = []
        for stmt in f.stmts:
            finding = self.check_statement(f, stmt)
            if finding is not None:
                findings.append(finding)
        return findings

    def check_statement(self, f: File, stmt: Expr) -> Optional[Finding]:
        if not isinstance(stmt, CallExpr):
            return None
        func = stmt.func
        if not isinstance(func, Ident) or func.name in self.exempt:
            return None
        for arg in stmt.args:
            if isinstance(arg, AssignExpr):
                continue
            start, end = arg.span()
            return make_finding(f, start, end, self.category, self.MESSAGE, True)
        return None


class ArgsKwargsInBuildRule(WarningRule):
    """*args and **kwargs in BUILD files."""

    category = "build-args-kwargs"

    MESSAGES = {
        "*": "*args are not allowed in BUILD files.",
        "**": "**kwargs are not allowed in BUILD files.",
    }

    def check(self, f: File, fix: bool = False) -> List[Finding]:
        findings = []

        if f.type != FileType.BUILD:
            return findings

        def visit(expr: Expr, stack: List[Expr]) -> None:
            if not isinstance(expr, CallExpr):
                return
            for param in expr.args:
                if not isinstance(param, UnaryExpr) or param.op not in self.MESSAGES:
                    continue
                start, end = param.span()
                findings.append(make_finding(
                    f, start, end, self.category, self.MESSAGES[param.op], True,
                ))

        walk(f, visit)
        return findings
