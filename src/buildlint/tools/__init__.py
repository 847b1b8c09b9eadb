"""
buildlint.tools - Development Utilities

- format: serialize a (possibly fixed) syntax tree back to source text
"""

from .format import BuildFormatter, FormatOptions

__all__ = [
    "BuildFormatter",
    "FormatOptions",
]
