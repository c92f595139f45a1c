"""Tests for ``Settings``."""

from __future__ import annotations

from pathlib import Path

import pytest

from deplock.config import Settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.cache_dir == Path("~/.cache/deplock").expanduser()
        assert settings.manifest_path == Path("deplock.yaml")
        assert settings.lockfile_path == Path("deplock.lock")
        assert settings.jobs == 4
        assert settings.resolution_cache_path == settings.cache_dir / "resolution-cache.json"

    def test_from_env(self, tmp_path: Path) -> None:
        settings = Settings.from_env({
            "DEPLOCK_CACHE_DIR": str(tmp_path / "c"),
            "DEPLOCK_MANIFEST": "m.yaml",
            "DEPLOCK_LOCKFILE": "m.lock",
            "DEPLOCK_POLICY": "p.json",
            "DEPLOCK_JOBS": "8",
            "DEPLOCK_RESOLUTION_TTL": "60",
        })
        assert settings.cache_dir == tmp_path / "c"
        assert settings.manifest_path == Path("m.yaml")
        assert settings.lockfile_path == Path("m.lock")
        assert settings.policy_path == Path("p.json")
        assert settings.jobs == 8
        assert settings.resolution_ttl == 60.0

    def test_empty_env_uses_defaults(self) -> None:
        assert Settings.from_env({}) == Settings()

    def test_bad_number(self) -> None:
        with pytest.raises(ValueError):
            Settings.from_env({"DEPLOCK_JOBS": "many"})

    @pytest.mark.parametrize("kwargs", [{"jobs": 0}, {"resolution_ttl": -1.0}])
    def test_validation(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            Settings(**kwargs)

    def test_with_overrides_skips_none(self, tmp_path: Path) -> None:
        base = Settings(cache_dir=tmp_path)
        updated = base.with_overrides(jobs=2, lockfile_path=None)
        assert updated.jobs == 2
        assert updated.lockfile_path == base.lockfile_path
        assert base.jobs == 4
