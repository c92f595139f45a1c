"""Explicit configuration for a deplock session.

Nothing in the library reads the environment except ``Settings.from_env``;
components receive their roots through a ``Settings`` instance.

Environment variables:
    DEPLOCK_CACHE_DIR       Cache root (default ``~/.cache/deplock``).
    DEPLOCK_MANIFEST        Manifest path (default ``deplock.yaml``).
    DEPLOCK_LOCKFILE        Lockfile path (default ``deplock.lock``).
    DEPLOCK_POLICY          Policy file path (default ``deplock-policy.json``).
    DEPLOCK_JOBS            Parallel fetch workers (default 4).
    DEPLOCK_RESOLUTION_TTL  Resolution cache lifetime in seconds (default 3600).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

DEFAULT_CACHE_DIR = Path("~/.cache/deplock")
DEFAULT_MANIFEST = Path("deplock.yaml")
DEFAULT_LOCKFILE = Path("deplock.lock")
DEFAULT_POLICY = Path("deplock-policy.json")
DEFAULT_JOBS = 4
DEFAULT_RESOLUTION_TTL = 3600.0

RESOLUTION_CACHE_NAME = "resolution-cache.json"


@dataclass(frozen=True)
class Settings:
    cache_dir: Path = field(default_factory=lambda: DEFAULT_CACHE_DIR.expanduser())
    manifest_path: Path = DEFAULT_MANIFEST
    lockfile_path: Path = DEFAULT_LOCKFILE
    policy_path: Path = DEFAULT_POLICY
    jobs: int = DEFAULT_JOBS
    resolution_ttl: float = DEFAULT_RESOLUTION_TTL

    def __post_init__(self) -> None:
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")
        if self.resolution_ttl < 0:
            raise ValueError(f"resolution_ttl must not be negative, got {self.resolution_ttl}")

    @property
    def resolution_cache_path(self) -> Path:
        return self.cache_dir / RESOLUTION_CACHE_NAME

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``DEPLOCK_*`` variables, falling back to defaults.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get("DEPLOCK_CACHE_DIR"):
            values["cache_dir"] = Path(env["DEPLOCK_CACHE_DIR"]).expanduser()
        if env.get("DEPLOCK_MANIFEST"):
            values["manifest_path"] = Path(env["DEPLOCK_MANIFEST"])
        if env.get("DEPLOCK_LOCKFILE"):
            values["lockfile_path"] = Path(env["DEPLOCK_LOCKFILE"])
        if env.get("DEPLOCK_POLICY"):
            values["policy_path"] = Path(env["DEPLOCK_POLICY"])
        if env.get("DEPLOCK_JOBS"):
            values["jobs"] = int(env["DEPLOCK_JOBS"])
        if env.get("DEPLOCK_RESOLUTION_TTL"):
            values["resolution_ttl"] = float(env["DEPLOCK_RESOLUTION_TTL"])
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> Settings:
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
