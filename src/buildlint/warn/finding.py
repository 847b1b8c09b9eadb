"""
Findings produced by warning rules.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from buildlint.parser.nodes import File, Position


@dataclass(frozen=True)
class Replacement:
    """A suggested textual fix: replace `old` with `new`."""
    old: str
    new: str


@dataclass(frozen=True)
class Finding:
    """A single diagnostic reported by a rule."""
    file: str                # path of the analyzed file
    start: Position
    end: Position
    category: str            # e.g. "constant-glob"
    message: str
    actionable: bool = True
    replacement: Optional[Replacement] = None

    def __str__(self):
        return f"{self.file}:{self.start.line}:{self.start.column}: {self.category}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "category": self.category,
            "message": self.message,
            "span": {
                "start": {"line": self.start.line, "col": self.start.column},
                "end": {"line": self.end.line, "col": self.end.column},
            },
            "fixable": self.actionable,
        }


def make_finding(f: File, start: Position, end: Position, category: str, message: str,
                 actionable: bool, replacement: Optional[Replacement] = None) -> Finding:
    return Finding(
        file=f.path,
        start=start,
        end=end,
        category=category,
        message=message,
        actionable=actionable,
        replacement=replacement,
    )
