"""Tests for lockfile serialization, loading and atomic saving."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from deplock.core.lockfile import Lockfile, Provenance
from deplock.exceptions import LockfileError


class TestToDict:
    """Tests for the on-disk document shape."""

    def test_header(self) -> None:
        data = Lockfile().to_dict()
        assert data == {"lockfile_version": "1", "generated_by": "deplock", "dependencies": []}

    def test_optional_fields_omitted(self, make_entry, make_lockfile) -> None:
        block = make_lockfile(make_entry("http")).to_dict()["dependencies"][0]
        assert set(block) == {"name", "version", "hash", "source"}

    def test_optional_fields_present(self, make_entry, make_lockfile) -> None:
        prov = Provenance(origin="https://example.com/http.git", digest="d", fetched_at="t")
        block = make_lockfile(
            make_entry("http", dependencies=["tls"], provenance=prov)
        ).to_dict()["dependencies"][0]
        assert block["dependencies"] == ["tls"]
        assert block["provenance"] == {
            "origin": "https://example.com/http.git",
            "digest": "d",
            "fetched_at": "t",
        }


class TestDeterminism:
    """Tests for byte-identical output."""

    def test_insertion_order_irrelevant(self, make_entry, make_lockfile) -> None:
        a, b, c = make_entry("a"), make_entry("b"), make_entry("c")
        assert make_lockfile(a, b, c).to_json() == make_lockfile(c, a, b).to_json()

    def test_keys_sorted_trailing_newline(self, make_entry, make_lockfile) -> None:
        text = make_lockfile(make_entry("http")).to_json()
        assert text.endswith("\n")
        assert text == json.dumps(json.loads(text), indent=2, sort_keys=True) + "\n"


class TestRoundTrip:
    """Tests for from_dict / from_json / load / save."""

    def test_json_round_trip(self, make_entry, make_lockfile) -> None:
        prov = Provenance.now("https://example.com/x.tar.gz", "ab" * 32, 1234)
        original = make_lockfile(
            make_entry("http", dependencies=["tls"], provenance=prov),
            make_entry("tls"),
        )
        restored = Lockfile.from_json(original.to_json())
        assert restored.to_json() == original.to_json()
        assert restored.get("http").provenance.size_bytes == 1234

    def test_save_and_load(self, make_entry, make_lockfile, tmp_path: Path) -> None:
        path = tmp_path / "sub" / "deplock.lock"
        original = make_lockfile(make_entry("http"))
        original.save(path)
        assert path.read_text() == original.to_json()
        assert Lockfile.load(path).to_json() == original.to_json()
        assert [p.name for p in path.parent.iterdir()] == ["deplock.lock"]

    def test_load_missing_is_empty(self, tmp_path: Path) -> None:
        assert len(Lockfile.load(tmp_path / "absent.lock")) == 0

    def test_load_invalid_json_propagates(self, tmp_path: Path) -> None:
        path = tmp_path / "deplock.lock"
        path.write_text("{broken")
        with pytest.raises(json.JSONDecodeError):
            Lockfile.load(path)

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"dependencies": {}},
            {"dependencies": [{"version": "1.0.0"}]},
            {"dependencies": [{"name": "a"}, {"name": "a"}]},
        ],
    )
    def test_bad_shape_raises(self, document: object) -> None:
        with pytest.raises(LockfileError):
            Lockfile.from_dict(document)

    def test_provenance_stamp_is_utc_iso(self) -> None:
        prov = Provenance.now("origin", "digest", 10)
        assert prov.fetched_at.endswith("+00:00")
        assert prov.to_dict()["size_bytes"] == 10
