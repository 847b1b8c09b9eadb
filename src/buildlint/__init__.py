"""
buildlint - Bazel BUILD File Linter

Parses BUILD and .bzl files, reports anti-patterns as findings and,
where a safe rewrite exists, fixes them in the syntax tree.
"""

__version__ = "0.1.0"

from buildlint.parser import parse_file, parse_source
from buildlint.warn import file_warnings
