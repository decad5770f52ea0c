"""Errors raised while reading enrichrun settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable.

    ``name`` is the environment variable at fault when there is a single one.
    """

    def __init__(self, message: str, *, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class MissingConfigurationError(ConfigurationError):
    """One or more required settings are unset or blank."""

    def __init__(self, names: list[str]) -> None:
        self.names = sorted(names)
        super().__init__(
            f"Missing configuration for: {', '.join(self.names)}",
            name=self.names[0] if len(self.names) == 1 else None,
        )
