"""
Tree traversal primitives.

walk() observes every node; edit() may replace or delete nodes as it goes;
edit_function() is edit() restricted to calls of one well-known function.
All three visit nodes in source order, so findings come out in a stable order.
"""

from typing import Callable, List, Optional

from buildlint.parser.nodes import CallExpr, Expr, Ident


class _Delete:
    """Sentinel type returned by an edit visitor to drop the visited node."""

    def __repr__(self):
        return "DELETE"


DELETE = _Delete()

WalkVisitor = Callable[[Expr, List[Expr]], None]
EditVisitor = Callable[[Expr, List[Expr]], Optional[Expr]]
CallVisitor = Callable[[CallExpr, List[Expr]], Optional[Expr]]


def walk(node: Expr, visitor: WalkVisitor) -> None:
    """
    Call visitor(expr, stack) on node and every descendant, pre-order.

    stack holds the ancestors of expr, outermost first. The visitor must not
    change the tree; use edit() for that.
    """
    _walk(node, [], visitor)


def _walk(node: Expr, stack: List[Expr], visitor: WalkVisitor) -> None:
    visitor(node, stack)
    stack.append(node)
    for child in node.children():
        _walk(child, stack, visitor)
    stack.pop()


def edit(node: Expr, visitor: EditVisitor) -> Expr:
    """
    Call visitor(expr, stack) on node and every descendant, pre-order.

    If the visitor returns a node, it takes the place of expr in its parent
    and is not descended into. If it returns DELETE, expr is dropped from the
    enclosing sequence (statements, list items, call arguments, dict
    entries); a deletion in a single-node slot leaves the node in place.

    Returns the root, which differs from node only if the visitor replaced it.
    """
    result = _edit(node, [], visitor)
    if result is DELETE:
        return node
    return result


def _edit(node: Expr, stack: List[Expr], visitor: EditVisitor):
    replacement = visitor(node, stack)
    if replacement is not None:
        return replacement

    stack.append(node)
    for name in node._fields:
        value = getattr(node, name)
        if isinstance(value, list):
            rebuilt = []
            for child in value:
                new_child = _edit(child, stack, visitor)
                if new_child is not DELETE:
                    rebuilt.append(new_child)
            setattr(node, name, rebuilt)
        elif value is not None:
            new_child = _edit(value, stack, visitor)
            if new_child is not DELETE:
                setattr(node, name, new_child)
    stack.pop()
    return node


def edit_function(node: Expr, name: str, visitor: CallVisitor) -> Expr:
    """
    Like edit(), but only calls visitor for calls whose callee is the
    identifier `name`, e.g. every glob(...) in a file.
    """
    def call_visitor(expr: Expr, stack: List[Expr]) -> Optional[Expr]:
        if isinstance(expr, CallExpr):
            func = expr.func
            if isinstance(func, Ident) and func.name == name:
                return visitor(expr, stack)
        return None

    return edit(node, call_visitor)
