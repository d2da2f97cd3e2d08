"""Tests for the YAML configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from config import DEFAULTS, ConfigError, load_config
from processor import IntcodeMachine


def test_defaults() -> None:
    cfg = load_config()
    assert cfg == DEFAULTS
    assert cfg is not DEFAULTS


def test_dict_overlay() -> None:
    cfg = load_config({"min_memory": "64", "trace": True})
    assert cfg["min_memory"] == 64
    assert cfg["trace"] is True
    assert cfg["grow_memory"] is True


def test_yaml_file(tmp_path: Path) -> None:
    p = tmp_path / "vm.yaml"
    p.write_text("min_memory: 32\ngrow_memory: false\nrestore_on_reset: true\n", encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg["min_memory"] == 32
    assert cfg["grow_memory"] is False
    assert cfg["restore_on_reset"] is True

    m = IntcodeMachine([99], config=cfg)
    assert len(m.memory) == 32


@pytest.mark.parametrize(
    "bad",
    [
        {"min_memory": -1},
        {"min_memory": "lots"},
        {"min_memory": 1.5},
        {"min_memory": True},
        {"max_memory": 0},
        {"max_memory": 2.0},
        {"min_memory": 128, "max_memory": 64},
        {"grow_memory": "no"},
        {"trace": 1},
        {"stack_size": 10},
    ],
)
def test_bad_values(bad: dict) -> None:
    with pytest.raises(ConfigError):
        load_config(bad)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_file(tmp_path: Path) -> None:
    p = tmp_path / "list.yaml"
    p.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


def test_broken_yaml(tmp_path: Path) -> None:
    p = tmp_path / "broken.yaml"
    p.write_text("min_memory: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to load"):
        load_config(p)


def test_unsupported_input() -> None:
    with pytest.raises(ConfigError):
        load_config(42)  # type: ignore[arg-type]


def test_integer_strings_accepted() -> None:
    cfg = load_config({"min_memory": "16", "max_memory": "4096"})
    assert cfg["min_memory"] == 16
    assert cfg["max_memory"] == 4096


def test_default_memory_limit() -> None:
    assert load_config()["max_memory"] == 2**24
