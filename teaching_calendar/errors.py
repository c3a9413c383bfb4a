from __future__ import annotations


class ConfigurationError(ValueError):
    """A schedule configuration is missing required fields or is inconsistent."""

    def __init__(self, issues: list[str] | str):
        if isinstance(issues, str):
            issues = [issues]
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))


class MissingContextError(RuntimeError):
    """No active schedule or configuration is available for an operation."""
