"""
CLI entry point for buildlint.

Usage:
    buildlint <path>...                    Lint files or directories
    buildlint <dir> -r                     Lint a directory tree
    buildlint BUILD --fix                  Print the fixed file, if anything was fixed
    buildlint BUILD --fix --inplace        Fix the file in place
    buildlint <path> --json                Output findings as JSON
    buildlint <path> --warnings a,b        Only run the named warnings

Exit codes: 0 clean, 1 findings reported, 2 usage, config or parse errors.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional

from buildlint import __version__
from buildlint.config import LintConfig, load_config
from buildlint.errors import BuildLintError
from buildlint.parser import FileType, file_type_for_path, parse_file
from buildlint.tools.format import BuildFormatter
from buildlint.warn import ALL_WARNINGS, Finding, create_rules, file_warnings

logger = logging.getLogger(__name__)

BUILD_FILE_NAMES = ("BUILD", "BUILD.bazel")


def is_build_file(path: Path) -> bool:
    """Whether discovery should pick up this file."""
    return path.name in BUILD_FILE_NAMES or path.suffix == ".bzl" or path.name.endswith(".BUILD")


def discover_files(paths: List[Path], recursive: bool = False) -> Iterator[Path]:
    """Expand directories into the build files they contain, sorted by path."""
    for path in paths:
        if path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for candidate in sorted(candidates):
                if candidate.is_file() and is_build_file(candidate):
                    yield candidate
        else:
            yield path


class LintResult:
    """Findings and fixed source for one file."""

    def __init__(self, path: Path, findings: List[Finding], fixed_source: Optional[str] = None,
                 error: Optional[str] = None):
        self.path = path
        self.findings = findings
        self.fixed_source = fixed_source
        self.error = error


def lint_path(path: Path, config: LintConfig, fix: bool = False) -> LintResult:
    """Parse and lint one file; parse failures are reported, not raised."""
    file_type = config.file_type or file_type_for_path(path)
    try:
        f = parse_file(path, file_type)
    except (BuildLintError, OSError) as e:
        logger.warning(f"Skipping {path}: {e}")
        return LintResult(path, [], error=str(e))

    formatter = BuildFormatter()
    before = formatter.format_ast(f) if fix else None

    rules = create_rules(positional_exempt=config.positional_exempt)
    findings = file_warnings(f, config.warnings, fix=fix, rules=rules)

    # Only hand back source when a fix edited the tree; the formatter drops comments.
    fixed_source = None
    if fix:
        after = formatter.format_ast(f)
        if after != before:
            fixed_source = after
    return LintResult(path, findings, fixed_source)


def _print_findings(results: List[LintResult], as_json: bool) -> None:
    findings = [finding for result in results for finding in result.findings]
    if as_json:
        output = {
            "findings": [finding.to_dict() for finding in findings],
            "errors": [{"file": str(r.path), "message": r.error} for r in results if r.error],
        }
        print(json.dumps(output, indent=2))
        return

    for finding in findings:
        print(finding)
    for result in results:
        if result.error:
            print(f"{result.path}: parse-error: {result.error}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="buildlint",
        description="Lint Bazel BUILD and .bzl files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Available warnings: {', '.join(ALL_WARNINGS)}",
    )
    parser.add_argument('--version', action='version', version=f'buildlint {__version__}')
    parser.add_argument("paths", nargs="+", type=Path, help="Files or directories to lint")
    parser.add_argument("-r", "--recursive", action="store_true", help="Recurse into directories")
    parser.add_argument("--fix", action="store_true", help="Apply automatic fixes")
    parser.add_argument("-i", "--inplace", action="store_true",
                        help="With --fix, write fixed files back instead of printing them")
    parser.add_argument("--json", action="store_true", help="Output findings as JSON")
    parser.add_argument("--type", choices=[t.value for t in FileType],
                        help="Treat every file as this dialect")
    parser.add_argument("--warnings", help="Comma-separated warnings to run")
    parser.add_argument("--config", type=Path, help="Path to a .buildlint.yaml file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        config = load_config(args.config, warnings=args.warnings, file_type=args.type)
    except BuildLintError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    results = []
    for path in discover_files(args.paths, args.recursive):
        if not path.exists():
            print(f"Error: {path} not found", file=sys.stderr)
            return 2
        result = lint_path(path, config, fix=args.fix)
        results.append(result)

        if result.fixed_source is not None:
            if args.inplace:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(result.fixed_source)
                logger.info(f"Fixed: {path}")
            elif not args.json:
                sys.stdout.write(result.fixed_source)

    _print_findings(results, args.json)

    if any(r.error for r in results):
        return 2
    if any(r.findings for r in results):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
