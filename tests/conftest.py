"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from buildlint.parser import FileType, parse_source


# =============================================================================
# PARSE HELPERS
# =============================================================================

def parse_build(source: str):
    """Parse source as a BUILD file."""
    return parse_source(source, "BUILD", FileType.BUILD)


def parse_bzl(source: str):
    """Parse source as a .bzl file."""
    return parse_source(source, "defs.bzl", FileType.BZL)


def parse_default(source: str):
    """Parse source as a generic Starlark file."""
    return parse_source(source, "WORKSPACE", FileType.DEFAULT)


@pytest.fixture
def build_file():
    """Factory fixture: parse source as a BUILD file."""
    return parse_build


@pytest.fixture
def bzl_file():
    """Factory fixture: parse source as a .bzl file."""
    return parse_bzl


@pytest.fixture
def default_file():
    """Factory fixture: parse source as a generic file."""
    return parse_default


@pytest.fixture
def workspace(tmp_path):
    """A small Bazel workspace on disk."""
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "BUILD").write_text(
        'native.cc_library(\n    name = "lib",\n    srcs = glob(["lib.cc"]),\n)\n',
        encoding="utf-8",
    )
    (tmp_path / "pkg" / "defs.bzl").write_text(
        "def_rules = 1\nnative.package(default_visibility = [])\n",
        encoding="utf-8",
    )
    (tmp_path / "pkg" / "README.md").write_text("not a build file\n", encoding="utf-8")
    (tmp_path / "clean").mkdir()
    (tmp_path / "clean" / "BUILD.bazel").write_text(
        'cc_library(\n    name = "ok",\n    srcs = glob(["*.cc"]),\n)\n',
        encoding="utf-8",
    )
    return tmp_path
