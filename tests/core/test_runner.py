# This file is part of Absbuild, a tool for building Arch Linux packages from ABS and CachyOS recipes.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only
#
# Absbuild is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License version 3, as published by the
# Free Software Foundation.
#
# Absbuild is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranties of MERCHANTABILITY,
# SATISFACTORY QUALITY, or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with
# Absbuild. If not, see <http://www.gnu.org/licenses/>.

"""Tests for absbuild.core.runner module."""

from __future__ import annotations

import io
from pathlib import Path
from types import SimpleNamespace

import pytest

from absbuild.core import runner
from absbuild.core.runner import CommandResult, SubprocessRunner


class TestCommandResult:
    """Tests for CommandResult."""

    def test_ok(self) -> None:
        assert CommandResult(["true"], 0).ok
        assert not CommandResult(["false"], 1).ok


class TestSubprocessRunner:
    """Tests for SubprocessRunner."""

    def test_inherits_terminal_without_log(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        seen: dict = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            seen.update(kwargs)
            return SimpleNamespace(returncode=3)

        monkeypatch.setattr(runner.subprocess, "run", fake_run)

        result = SubprocessRunner().run(["sudo", "pacman", "-U", Path("/tmp/x.pkg.tar.zst")], cwd=tmp_path)

        assert result.returncode == 3
        assert result.output == ""
        assert seen["cmd"] == ["sudo", "pacman", "-U", "/tmp/x.pkg.tar.zst"]
        assert seen["cwd"] == tmp_path
        assert "stdout" not in seen

    def test_tees_output_to_stream_and_log(self, tmp_path: Path) -> None:
        stream = io.StringIO()
        log = tmp_path / "logs" / "demo-build.log"

        result = SubprocessRunner(stream=stream).run(
            ["sh", "-c", "echo out; echo err >&2; exit 3"], log_path=log
        )

        assert result.returncode == 3
        assert "out\n" in result.output and "err\n" in result.output
        assert stream.getvalue() == result.output
        assert log.read_text() == result.output

    def test_carriage_returns_pass_through(self, tmp_path: Path) -> None:
        stream = io.StringIO(newline="")
        log = tmp_path / "progress.log"

        result = SubprocessRunner(stream=stream).run(
            ["printf", "10%%\\r50%%\\r100%%\\ndone\\n"], log_path=log
        )

        assert result.output == "10%\r50%\r100%\ndone\n"
        assert stream.getvalue() == "10%\r50%\r100%\ndone\n"
        assert log.read_bytes() == b"10%\r50%\r100%\ndone\n"

    def test_partial_line_reaches_stream(self, tmp_path: Path) -> None:
        stream = io.StringIO()

        result = SubprocessRunner(stream=stream).run(
            ["printf", "Proceed? [Y/n] "], log_path=tmp_path / "prompt.log"
        )

        assert result.output == "Proceed? [Y/n] "
        assert stream.getvalue() == "Proceed? [Y/n] "

    def test_raw_bytes_go_to_buffer(self, tmp_path: Path) -> None:
        raw = io.BytesIO()
        stream = io.TextIOWrapper(raw, encoding="utf-8", newline="")

        result = SubprocessRunner(stream=stream).run(
            ["printf", "dl \\342\\226\\210\\r"], log_path=tmp_path / "bar.log"
        )

        assert raw.getvalue() == "dl █\r".encode()
        assert result.output == "dl █\r"

    def test_log_is_overwritten(self, tmp_path: Path) -> None:
        log = tmp_path / "build.log"
        log.write_text("previous attempt\n")

        SubprocessRunner(stream=io.StringIO()).run(["sh", "-c", "echo fresh"], log_path=log)

        assert log.read_text() == "fresh\n"

    def test_missing_program(self, tmp_path: Path) -> None:
        result = SubprocessRunner(stream=io.StringIO()).run(
            ["absbuild-no-such-tool-xyz"], log_path=tmp_path / "x.log"
        )
        assert result.returncode == runner.EXIT_TOOL_MISSING

    def test_missing_program_without_log(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        monkeypatch.setattr(runner.subprocess, "run", fake_run)
        assert SubprocessRunner().run(["makechrootpkg"]).returncode == 127

    def test_not_executable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd, **kwargs):
            raise PermissionError(13, "Permission denied", cmd[0])

        monkeypatch.setattr(runner.subprocess, "run", fake_run)
        assert SubprocessRunner().run(["./makepkg"]).returncode == runner.EXIT_NOT_EXECUTABLE

    def test_env_passed_through(self, tmp_path: Path) -> None:
        stream = io.StringIO()
        result = SubprocessRunner(stream=stream).run(
            ["sh", "-c", 'echo "$PKGDEST"'],
            env={"PATH": "/usr/bin:/bin", "PKGDEST": "/srv/ready"},
            log_path=tmp_path / "env.log",
        )
        assert result.output == "/srv/ready\n"


class TestWithSudo:
    """Tests for with_sudo."""

    def test_prefixes(self) -> None:
        assert runner.with_sudo(["rm", "-rf", Path("/x")], True) == ["sudo", "rm", "-rf", "/x"]

    def test_unchanged(self) -> None:
        assert runner.with_sudo(["rm", "-rf", "/x"], False) == ["rm", "-rf", "/x"]


class TestRemovePath:
    """Tests for remove_path."""

    def test_removes_tree(self, fake_runner, tmp_path: Path) -> None:
        target = tmp_path / "zlib"
        (target / "src").mkdir(parents=True)
        (target / "PKGBUILD").write_text("pkgname=zlib\n")

        result = runner.remove_path(fake_runner, target)

        assert result.ok
        assert result.command == ["rm", "-rf", str(target)]
        assert not target.exists()

    def test_removes_file(self, fake_runner, tmp_path: Path) -> None:
        target = tmp_path / "demo.pkg.tar.zst"
        target.write_bytes(b"")
        assert runner.remove_path(fake_runner, target).ok
        assert not target.exists()

    def test_missing_is_ok(self, fake_runner, tmp_path: Path) -> None:
        assert runner.remove_path(fake_runner, tmp_path / "absent").ok

    def test_removal_error(self, fake_runner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "locked"
        target.mkdir()

        def fail(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(runner.shutil, "rmtree", fail)
        result = runner.remove_path(fake_runner, target)

        assert result.returncode == 1
        assert "Permission denied" in result.output

    def test_sudo(self, fake_runner, tmp_path: Path) -> None:
        fake_runner.on("sudo", returncode=1)
        result = runner.remove_path(fake_runner, tmp_path / "x", use_sudo=True)
        assert fake_runner.commands() == [["sudo", "rm", "-rf", str(tmp_path / "x")]]
        assert result.returncode == 1
