"""Tests for shh.config — YAML loading and validation."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from shh.config import (
    DB_FILE_NAME,
    ENV_CONFIG_VAR,
    ConfigError,
    ShhConfig,
    default_data_dir,
    get_config_path,
    load_config,
    validate_config_file,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    version: 1
    data_dir: "{data_dir}"
    history_files:
      - "~/work/.bash_history"
      - "/var/tmp/history"
    ssh_options:
      - "-o"
      - "ConnectTimeout=5"
    auto_import: false
    on_select: print
""")

BAD_VERSION_YAML = textwrap.dedent("""\
    version: 99
""")

BAD_ON_SELECT_YAML = textwrap.dedent("""\
    version: 1
    on_select: teleport
""")

BAD_HISTORY_FILES_YAML = textwrap.dedent("""\
    version: 1
    history_files: "/just/one/path"
""")

BAD_AUTO_IMPORT_YAML = textwrap.dedent("""\
    version: 1
    auto_import: "sometimes"
""")


@pytest.fixture()
def sample_config(tmp_path: Path) -> Path:
    p = tmp_path / "config.yaml"
    p.write_text(SAMPLE_YAML.format(data_dir=tmp_path / "data"))
    return p


def _write(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "config.yaml"
    p.write_text(content)
    return p


# ---------------------------------------------------------------------------
# Tests — loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_load_sample(self, sample_config: Path, tmp_path: Path):
        cfg = load_config(sample_config)
        assert cfg.version == 1
        assert cfg.data_dir == tmp_path / "data"
        assert cfg.db_path == tmp_path / "data" / DB_FILE_NAME
        assert cfg.ssh_options == ["-o", "ConnectTimeout=5"]
        assert cfg.auto_import is False
        assert cfg.on_select == "print"
        assert cfg.config_path == sample_config

    def test_history_files_expanded(self, sample_config: Path):
        cfg = load_config(sample_config)
        assert cfg.history_files == [
            Path.home() / "work" / ".bash_history",
            Path("/var/tmp/history"),
        ]

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        cfg = load_config(tmp_path / "nonexistent.yaml")
        assert cfg.data_dir == default_data_dir()
        assert cfg.history_files == []
        assert cfg.ssh_options == []
        assert cfg.auto_import is True
        assert cfg.on_select == "exec"

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        cfg = load_config(_write(tmp_path, ""))
        assert cfg == ShhConfig(config_path=tmp_path / "config.yaml")

    def test_bad_version(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Unsupported config version"):
            load_config(_write(tmp_path, BAD_VERSION_YAML))

    def test_bad_on_select(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="on_select"):
            load_config(_write(tmp_path, BAD_ON_SELECT_YAML))

    def test_history_files_must_be_list(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="must be a list"):
            load_config(_write(tmp_path, BAD_HISTORY_FILES_YAML))

    def test_auto_import_must_be_bool(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="auto_import"):
            load_config(_write(tmp_path, BAD_AUTO_IMPORT_YAML))

    def test_invalid_yaml(self, tmp_path: Path):
        p = tmp_path / "bad.yaml"
        p.write_text(":\n  :\n    - [\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(p)

    def test_non_mapping_yaml(self, tmp_path: Path):
        p = tmp_path / "list.yaml"
        p.write_text("- item1\n- item2\n")
        with pytest.raises(ConfigError, match="must be a YAML mapping"):
            load_config(p)


class TestConfigPath:
    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(ENV_CONFIG_VAR, str(tmp_path / "custom.yaml"))
        assert get_config_path() == (tmp_path / "custom.yaml").resolve()

    def test_load_uses_env(self, sample_config: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv(ENV_CONFIG_VAR, str(sample_config))
        assert load_config().on_select == "print"


class TestDefaultDataDir:
    def test_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("shh.config.sys.platform", "linux")
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        assert default_data_dir() == tmp_path / "shh"

    def test_linux_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("shh.config.sys.platform", "linux")
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_data_dir() == tmp_path / ".local" / "share" / "shh"

    def test_other_platforms(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("shh.config.sys.platform", "darwin")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_data_dir() == tmp_path / ".shh"


# ---------------------------------------------------------------------------
# Tests — validation helper
# ---------------------------------------------------------------------------


class TestValidation:
    def test_validate_ok(self, sample_config: Path):
        ok, msg = validate_config_file(sample_config)
        assert ok is True
        assert "Config OK" in msg
        assert DB_FILE_NAME in msg

    def test_validate_missing_is_ok(self, tmp_path: Path):
        ok, msg = validate_config_file(tmp_path / "missing.yaml")
        assert ok is True
        assert "defaults" in msg

    def test_validate_bad(self, tmp_path: Path):
        ok, msg = validate_config_file(_write(tmp_path, BAD_VERSION_YAML))
        assert ok is False
        assert "Unsupported" in msg
