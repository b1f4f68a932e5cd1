"""Tests for shh.ssh and shh.executor — command construction and hand-off."""

from __future__ import annotations

import pytest

from shh import executor
from shh.ssh import (
    build_login_shell_command,
    build_ssh_command,
    ssh_command_string,
    user_shell,
)
from shh.validation import InvalidHost


class TestBuildSshCommand:
    def test_plain(self):
        assert build_ssh_command("example.com") == ["ssh", "example.com"]

    def test_options(self):
        assert build_ssh_command("example.com", ["-o", "ConnectTimeout=5"]) == [
            "ssh", "-o", "ConnectTimeout=5", "example.com",
        ]

    @pytest.mark.parametrize("host", ["a;b", "x y", "$(id)", "", "example.com\n"])
    def test_refuses_unsafe(self, host: str):
        with pytest.raises(InvalidHost):
            build_ssh_command(host)

    def test_command_string_quotes(self):
        assert ssh_command_string("example.com") == "ssh example.com"
        assert ssh_command_string("[::1]") == "ssh '[::1]'"
        assert ssh_command_string("h", ["-o", "ProxyJump=a b"]) == "ssh -o 'ProxyJump=a b' h"


class TestLoginShellCommand:
    @pytest.mark.parametrize("shell", ["/bin/bash", "/usr/bin/zsh", "/opt/homebrew/bin/fish"])
    def test_login_shells(self, shell: str):
        assert build_login_shell_command("example.com", shell) == [
            shell, "-l", "-i", "-c", "exec ssh example.com",
        ]

    def test_other_shell(self):
        assert build_login_shell_command("example.com", "/bin/sh") == [
            "/bin/sh", "-i", "-c", "exec ssh example.com",
        ]

    def test_uses_env_shell(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SHELL", "/usr/bin/zsh")
        assert build_login_shell_command("h")[0] == "/usr/bin/zsh"

    def test_default_shell(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("SHELL", raising=False)
        assert user_shell() == "/bin/bash"

    def test_refuses_unsafe(self):
        with pytest.raises(InvalidHost):
            build_login_shell_command("h;reboot", "/bin/bash")


class TestConnect:
    def test_execs_login_shell(self, monkeypatch: pytest.MonkeyPatch):
        calls: list[tuple[str, list[str]]] = []
        monkeypatch.setattr(executor.sys, "platform", "linux")
        monkeypatch.setenv("SHELL", "/bin/zsh")
        monkeypatch.setattr(executor.os, "execvp", lambda f, argv: calls.append((f, argv)))

        executor.connect("example.com", ["-A"])

        assert calls == [
            ("/bin/zsh", ["/bin/zsh", "-l", "-i", "-c", "exec ssh -A example.com"]),
        ]

    def test_exec_missing_binary(self, monkeypatch: pytest.MonkeyPatch):
        def boom(file, argv):
            raise FileNotFoundError(file)

        monkeypatch.setattr(executor.os, "execvp", boom)
        with pytest.raises(SystemExit) as excinfo:
            executor.exec_replace(["/nonexistent/shell"])
        assert excinfo.value.code == 127
