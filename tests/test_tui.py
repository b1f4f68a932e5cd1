"""Tests for shh.tui — picker input handling (no terminal needed)."""

from __future__ import annotations

from pathlib import Path

import pytest

from shh.config import ShhConfig
from shh.store import IMPORT_DONE_KEY, HostStore
from shh.tui import Picker


@pytest.fixture()
def store(tmp_path: Path):
    s = HostStore(tmp_path / "hosts.db")
    s.add_host("web1.example.com", "frontend")
    s.add_host("db1.example.com", "postgres primary")
    s.add_host("cache1", "redis")
    yield s
    s.close()


@pytest.fixture()
def picker(store: HostStore, tmp_path: Path) -> Picker:
    return Picker(store, ShhConfig(data_dir=tmp_path))


class TestPicker:
    def test_initial_order_is_store_order(self, picker: Picker):
        assert [picker.snapshot[i].host for i in picker.indices] == [
            "cache1", "db1.example.com", "web1.example.com",
        ]

    def test_filter(self, picker: Picker):
        assert picker.handle("postgres") == (False, None)
        assert picker.query == "postgres"
        assert [picker.snapshot[i].host for i in picker.indices] == ["db1.example.com"]

    def test_filter_without_matches_keeps_previous(self, picker: Picker):
        picker.handle("web")
        picker.handle("zzzz")
        assert picker.query == "web"

    def test_clear_filter(self, picker: Picker):
        picker.handle("web")
        picker.handle("/")
        assert picker.query == ""
        assert len(picker.indices) == 3

    def test_select_number_marks_used(self, picker: Picker, store: HostStore):
        picker.handle("web")
        assert picker.handle("1") == (True, "web1.example.com")
        assert store.get_host("web1.example.com").use_count == 1

    def test_empty_input_selects_top(self, picker: Picker):
        assert picker.handle("") == (True, "cache1")

    def test_out_of_range(self, picker: Picker):
        assert picker.handle("9") == (False, None)

    def test_quit(self, picker: Picker):
        assert picker.handle("q") == (True, None)

    def test_unknown_command(self, picker: Picker):
        assert picker.handle(":x") == (False, None)

    def test_delete_requires_row(self, picker: Picker, store: HostStore):
        picker.handle(":d")
        assert len(store.list_hosts()) == 3

    def test_delete_confirmed(self, picker: Picker, store: HostStore, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("shh.tui.confirm_action", lambda msg, **kw: True)
        picker.handle(":d 1")
        assert store.get_host("cache1") is None
        assert len(picker.snapshot) == 2

    def test_import(self, picker: Picker, store: HostStore, tmp_path: Path,
                    monkeypatch: pytest.MonkeyPatch):
        hist = tmp_path / "hist"
        hist.write_text("ssh new-box\nssh cache1\n")
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.setenv("HISTFILE", str(hist))
        picker.handle(":r")
        assert store.get_host("new-box") is not None
        assert store.get_meta(IMPORT_DONE_KEY) == "1"
        assert len(picker.snapshot) == 4
