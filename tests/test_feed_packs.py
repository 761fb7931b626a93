from pathlib import Path

import pytest

from ingest.feed_packs import load_feed_pack_entries


def _write(dir_: Path, name: str, text: str) -> None:
    (dir_ / name).write_text(text, encoding="utf-8")


def test_load_feed_pack_entries(tmp_path) -> None:
    _write(
        tmp_path,
        "south.yaml",
        """
- name: TX_TILED
  transformer: tomtom
  url: https://tiles.example/incidents
  tiled: true
  params:
    key: abc
    page: 1
- name: TX_OFF
  transformer: drivetexas
  url: https://tx.example
  enabled: false
""",
    )
    _write(tmp_path, "empty.yaml", "")

    packs = load_feed_pack_entries(tmp_path)
    assert packs["empty"] == []

    tiled, off = packs["south"]
    assert tiled.pack_id == "south"
    assert tiled.tiled is True
    assert tiled.enabled is True
    assert tiled.params == {"key": "abc", "page": "1"}
    assert tiled.headers == {}
    assert off.enabled is False
    assert off.tiled is False


def test_missing_feeds_dir_is_empty(tmp_path) -> None:
    assert load_feed_pack_entries(tmp_path / "nope") == {}


@pytest.mark.parametrize(
    "text",
    [
        "name: not-a-list\n",
        "- just a string\n",
        "- name: X\n  transformer: rss\n  url: https://x.example\n",
        "- name: X\n  transformer: ohgo\n  url: https://x.example\n  headers: [a, b]\n",
        "- transformer: ohgo\n  url: https://x.example\n",
        "- name: X\n  transformer: ohgo\n",
    ],
)
def test_invalid_feed_packs_raise(tmp_path, text: str) -> None:
    _write(tmp_path, "bad.yaml", text)
    with pytest.raises(ValueError):
        load_feed_pack_entries(tmp_path)


def test_shipped_feed_packs_load() -> None:
    feeds_dir = Path(__file__).resolve().parents[1] / "feeds"
    packs = load_feed_pack_entries(feeds_dir)
    assert packs
    assert all(e.enabled is False for entries in packs.values() for e in entries)
