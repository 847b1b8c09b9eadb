"""
buildlint.warn - Warning rules and runner

Each rule checks one anti-pattern and may fix it in place. The runner
selects rules by category and concatenates their findings.
"""

import logging
from typing import AbstractSet, Dict, Iterable, List, Optional

from buildlint.errors import UnknownWarningError
from buildlint.parser.nodes import File
from buildlint.warn.bazel import (
    FUNCTIONS_WITH_POSITIONAL_ARGUMENTS,
    ArgsKwargsInBuildRule,
    ConstantGlobRule,
    DuplicatedNameRule,
    NativeInBuildRule,
    NativePackageRule,
    PositionalArgumentsRule,
    WarningRule,
)
from buildlint.warn.finding import Finding, Replacement, make_finding

logger = logging.getLogger(__name__)


def create_rules(positional_exempt: AbstractSet[str] = FUNCTIONS_WITH_POSITIONAL_ARGUMENTS
                 ) -> Dict[str, WarningRule]:
    """Instantiate every rule, keyed by category, in registration order."""
    rules = [
        ConstantGlobRule(),
        DuplicatedNameRule(),
        NativeInBuildRule(),
        NativePackageRule(),
        PositionalArgumentsRule(exempt=positional_exempt),
        ArgsKwargsInBuildRule(),
    ]
    return {rule.category: rule for rule in rules}


ALL_WARNINGS = tuple(create_rules())

# positional-args fires on many legitimate macros, so it is opt-in.
DEFAULT_WARNINGS = tuple(c for c in ALL_WARNINGS if c != "positional-args")


def file_warnings(f: File, categories: Optional[Iterable[str]] = None, fix: bool = False,
                  rules: Optional[Dict[str, WarningRule]] = None) -> List[Finding]:
    """
    Run the selected rules on f, one after another, and return all findings.

    With fix=True rules rewrite the tree in place where a safe fix exists.
    """
    if rules is None:
        rules = create_rules()
    if categories is None:
        categories = DEFAULT_WARNINGS
    categories = list(categories)

    unknown = set(categories) - set(rules)
    if unknown:
        raise UnknownWarningError(unknown)

    findings = []
    for category in categories:
        rule_findings = rules[category].check(f, fix)
        logger.debug(f"{f.path}: {category} -> {len(rule_findings)} findings")
        findings.extend(rule_findings)
    return findings


__all__ = [
    "ALL_WARNINGS",
    "DEFAULT_WARNINGS",
    "FUNCTIONS_WITH_POSITIONAL_ARGUMENTS",
    "ArgsKwargsInBuildRule",
    "ConstantGlobRule",
    "DuplicatedNameRule",
    "Finding",
    "NativeInBuildRule",
    "NativePackageRule",
    "PositionalArgumentsRule",
    "Replacement",
    "WarningRule",
    "create_rules",
    "file_warnings",
    "make_finding",
]
