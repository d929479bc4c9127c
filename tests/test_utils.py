from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

from combine_excel.utils import sha256_file, utcnow_iso


def test_sha256_file_matches_known_digest(tmp_path: Path) -> None:
    path = tmp_path / "data.bin"
    path.write_bytes(b"abc")

    assert sha256_file(path) == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


def test_utcnow_iso_is_timezone_aware_utc() -> None:
    parsed = datetime.fromisoformat(utcnow_iso())

    assert parsed.utcoffset() == timedelta(0)
