"""Engine configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Tunable limits of the query engine."""
    cache_size: int = 256        # compiled queries kept by jqlite.evaluate()
    regex_cache_size: int = 128  # compiled regular expressions

    def __post_init__(self) -> None:
        for name in ("cache_size", "regex_cache_size"):
            size = getattr(self, name)
            if isinstance(size, bool) or not isinstance(size, int) or size < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {size!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a config from JQLITE_* environment variables.

        Unset variables keep their defaults.
        """
        if environ is None:
            environ = os.environ
        kwargs = {}
        for name, variable in (
            ("cache_size", "JQLITE_CACHE_SIZE"),
            ("regex_cache_size", "JQLITE_REGEX_CACHE_SIZE"),
        ):
            raw = environ.get(variable)
            if raw is None or raw.strip() == "":
                continue
            try:
                kwargs[name] = int(raw)
            except ValueError:
                raise ValueError(f"{variable} must be a non-negative integer, got {raw!r}") from None
        return cls(**kwargs)
