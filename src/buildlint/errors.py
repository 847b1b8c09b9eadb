"""
Exception types shared across buildlint.

Rules never raise; these cover input the tool cannot process at all
(unparseable files, bad configuration, unknown warning names).
"""


class BuildLintError(Exception):
    """Base class for buildlint errors."""


class ConfigError(BuildLintError):
    """Invalid or unreadable configuration."""


class UnknownWarningError(BuildLintError):
    """A warning category that no rule implements."""

    def __init__(self, names):
        self.names = sorted(names)
        super().__init__(f"Unknown warning categories: {', '.join(self.names)}")
