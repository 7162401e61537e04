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

"""Tests for absbuild.core.run module."""

from __future__ import annotations

import json
import re
from pathlib import Path

from absbuild.core import run


class TestRunContext:
    """Tests for RunContext class."""

    def test_creates_run_and_logs_directory(self, tmp_path: Path) -> None:
        with run.RunContext(tmp_path, "build") as ctx:
            assert ctx.run_path.is_dir()
            assert ctx.logs_path.is_dir()
            assert ctx.run_path.parent == tmp_path

    def test_run_id_format(self, tmp_path: Path) -> None:
        with run.RunContext(tmp_path, "build") as ctx:
            pattern = r"^\d{8}T\d{6}Z-build-[a-f0-9]{8}$"
            assert re.match(pattern, ctx.run_id), f"Run ID {ctx.run_id} doesn't match pattern"

    def test_log_path_for_package(self, tmp_path: Path) -> None:
        with run.RunContext(tmp_path, "build") as ctx:
            assert ctx.log_path_for("zlib") == ctx.logs_path / "zlib-build.log"

    def test_events_jsonl(self, tmp_path: Path) -> None:
        with run.RunContext(tmp_path, "build") as ctx:
            ctx.log_event({"event": "custom", "path": Path("/x")})
            events_file = ctx.run_path / "events.jsonl"

        events = [json.loads(line) for line in events_file.read_text().splitlines()]
        assert [e["event"] for e in events] == ["run.start", "custom", "run.end"]
        assert events[1]["path"] == "/x"
        assert all("timestamp" in e for e in events)

    def test_summary_on_success(self, tmp_path: Path) -> None:
        with run.RunContext(tmp_path, "build") as ctx:
            ctx.write_summary(packages=["zlib"])
            summary_file = ctx.run_path / "summary.json"

        summary = json.loads(summary_file.read_text())
        assert summary["command"] == "build"
        assert summary["status"] == "success"
        assert summary["packages"] == ["zlib"]
        assert "start_utc" in summary and "end_utc" in summary

    def test_summary_records_exception(self, tmp_path: Path) -> None:
        try:
            with run.RunContext(tmp_path, "build") as ctx:
                raise ValueError("boom")
        except ValueError:
            pass

        summary = json.loads((ctx.run_path / "summary.json").read_text())
        assert summary["status"] == "failed"
        assert summary["error"] == "boom"

    def test_caller_status_wins(self, tmp_path: Path) -> None:
        with run.RunContext(tmp_path, "build") as ctx:
            ctx.write_summary(status="failed", exit_code=4)

        summary = json.loads((ctx.run_path / "summary.json").read_text())
        assert summary["status"] == "failed"
        assert summary["exit_code"] == 4


class TestReporter:
    """Tests for Reporter output rules."""

    def test_detail_only_when_verbose(self, capsys) -> None:
        run.Reporter().detail("build", "hidden")
        run.Reporter(verbose=True).detail("build", "shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "[build] shown" in out

    def test_status_hidden_when_silent(self, capsys) -> None:
        run.Reporter(silent=True).status("done", "hidden")
        run.Reporter().status("done", "shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "[done] shown" in out

    def test_warning_and_error_always_on_stderr(self, capsys) -> None:
        reporter = run.Reporter(silent=True)
        reporter.warning("fetch", "pull failed")
        reporter.error("absbuild", "bad things")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[fetch] Warning: pull failed" in captured.err
        assert "[absbuild] ERROR: bad things" in captured.err

    def test_silent_spinner_prints_nothing(self, capsys) -> None:
        with run.Reporter(silent=True).spinner("fetch", "Cloning"):
            pass
        assert "Cloning" not in capsys.readouterr().out
