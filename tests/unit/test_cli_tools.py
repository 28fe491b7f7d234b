"""Keymap and command-line helper tests."""

import argparse
import json
from pathlib import Path

import pytest

from chip8emu import app
from chip8emu.keymap import (
    DEFAULT_KEYMAP,
    KeymapError,
    load_keymap,
    parse_key,
    parse_key_list,
    resolve_keymap,
    write_keymap_template,
)


def test_default_keymap_covers_keypad() -> None:
    assert sorted(DEFAULT_KEYMAP) == list(range(16))
    assert len(set(DEFAULT_KEYMAP.values())) == 16
    assert DEFAULT_KEYMAP[0x1] == "1"
    assert DEFAULT_KEYMAP[0xC] == "4"
    assert DEFAULT_KEYMAP[0x0] == "x"


def test_write_keymap_template(tmp_path: Path) -> None:
    target = tmp_path / "keymap.json"
    write_keymap_template(target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["C"] == "4"
    assert data["F"] == "v"
    assert len(data) == 16


def test_template_roundtrips_through_loader(tmp_path: Path) -> None:
    target = tmp_path / "keymap.json"
    write_keymap_template(target)
    assert load_keymap(target) == DEFAULT_KEYMAP


def test_load_keymap_overrides_and_keeps_defaults(tmp_path: Path) -> None:
    target = tmp_path / "keymap.json"
    target.write_text(json.dumps({"0x5": "Up", "a": "space"}), encoding="utf-8")
    keymap = load_keymap(target)
    assert keymap[0x5] == "up"
    assert keymap[0xA] == "space"
    assert keymap[0x1] == "1"


@pytest.mark.parametrize(
    "payload",
    ["not json", json.dumps([1, 2]), json.dumps({"G": "a"}), json.dumps({"1": ""}), json.dumps({"1": 5})],
)
def test_load_keymap_rejects_bad_files(tmp_path: Path, payload: str) -> None:
    target = tmp_path / "keymap.json"
    target.write_text(payload, encoding="utf-8")
    with pytest.raises(KeymapError):
        load_keymap(target)


def test_load_keymap_missing_file(tmp_path: Path) -> None:
    with pytest.raises(KeymapError):
        load_keymap(tmp_path / "nope.json")


def test_parse_key_and_lists() -> None:
    assert parse_key("0xA") == 0xA
    assert parse_key(" f ") == 0xF
    assert parse_key_list("5,A") == {0x5, 0xA}
    assert parse_key_list("") == set()
    with pytest.raises(ValueError):
        parse_key("10")
    with pytest.raises(ValueError):
        parse_key_list("1,,z")


def test_resolve_keymap_uses_lookup() -> None:
    codes = {"1": 49, "q": 113}
    resolved = resolve_keymap({0x1: "1", 0x4: "q"}, codes.__getitem__)
    assert resolved == {49: 0x1, 113: 0x4}


def test_resolve_keymap_reports_unknown_names() -> None:
    def lookup(name: str) -> int:
        raise ValueError(name)

    with pytest.raises(KeymapError):
        resolve_keymap({0x1: "bogus"}, lookup)


def test_app_writes_template_and_exits(tmp_path: Path) -> None:
    target = tmp_path / "template.json"
    app.main(["--write-keymap-template", str(target)])
    assert json.loads(target.read_text(encoding="utf-8"))["1"] == "1"


@pytest.mark.parametrize(
    "argv",
    [["--scale", "0"], ["--fps", "0"], ["--cycles-per-frame", "0"], ["--decay", "1.5"]],
)
def test_app_rejects_bad_options(argv) -> None:
    with pytest.raises(SystemExit):
        app.main(argv)


def test_app_reports_bad_keymap(tmp_path: Path) -> None:
    target = tmp_path / "keymap.json"
    target.write_text("[]", encoding="utf-8")
    with pytest.raises(SystemExit, match="keymap"):
        app.main(["--keymap", str(target)])


def test_parse_color() -> None:
    assert app._parse_color("#102030") == 0x102030
    assert app._parse_color("0xFFFFFF") == 0xFFFFFF
    with pytest.raises(argparse.ArgumentTypeError):
        app._parse_color("12345")
