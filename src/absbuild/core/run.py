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

"""Run records and operator output for Absbuild.

A RunContext owns one run directory containing per-package build logs, a JSONL
event stream and a summary.json. Unlike a log-capturing wrapper it never
redirects stdout/stderr: build tools stream to the terminal and install
prompts must stay interactive.

Reporter decides what reaches the terminal: ``detail`` lines only in verbose
mode, ``status`` lines unless silent, warnings and errors always.
"""

from __future__ import annotations

import contextlib
import datetime
import json
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

from absbuild.core.spinner import activity_spinner


@dataclass(frozen=True)
class Reporter:
    """Phase-prefixed operator output honouring verbose/silent flags."""

    verbose: bool = False
    silent: bool = False

    def detail(self, phase: str, message: str) -> None:
        if self.verbose:
            typer.echo(f"[{phase}] {message}")

    def status(self, phase: str, message: str) -> None:
        if not self.silent:
            typer.echo(f"[{phase}] {message}")

    def warning(self, phase: str, message: str) -> None:
        typer.secho(f"[{phase}] Warning: {message}", fg=typer.colors.YELLOW, err=True)

    def error(self, phase: str, message: str) -> None:
        typer.secho(f"[{phase}] ERROR: {message}", fg=typer.colors.RED, err=True)

    @contextlib.contextmanager
    def spinner(self, phase: str, description: str) -> Iterator[None]:
        with activity_spinner(phase, description, disable=self.silent):
            yield


class RunContext:
    """Context manager that creates a run directory and records events.

    Usage:
        with RunContext(runs_root, "build") as run:
            run.log_event({"event": "build.start", "package": "zlib"})
            log = run.log_path_for("zlib")
    """

    def __init__(self, runs_root: Path, command: str) -> None:
        self.command = command
        self.runs_root = runs_root
        now_utc = datetime.datetime.now(datetime.UTC)
        self.run_id = now_utc.strftime("%Y%m%dT%H%M%SZ") + f"-{command}-" + uuid.uuid4().hex[:8]
        self.run_path = self.runs_root / self.run_id
        self.logs_path = self.run_path / "logs"
        self.events_file: Any | None = None
        self.summary: dict[str, Any] = {"command": command, "start_utc": now_utc.isoformat()}

    def __enter__(self) -> RunContext:
        self.logs_path.mkdir(parents=True, exist_ok=True)
        self.events_file = (self.run_path / "events.jsonl").open("a", encoding="utf-8")
        self.log_event({"event": "run.start", "run_id": self.run_id})
        return self

    def log_path_for(self, package: str) -> Path:
        """Return the build log path for a package inside this run."""
        return self.logs_path / f"{package}-build.log"

    def log_event(self, event: dict[str, Any]) -> None:
        """Write a JSONL event with a timestamp."""
        if self.events_file is None:  # pragma: no cover
            return
        payload = {"timestamp": datetime.datetime.now(datetime.UTC).isoformat(), **event}
        self.events_file.write(json.dumps(payload, default=str) + "\n")
        self.events_file.flush()

    def write_summary(self, **kwargs: Any) -> None:
        self.summary.update(kwargs)
        (self.run_path / "summary.json").write_text(json.dumps(self.summary, indent=2, default=str))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: object,
    ) -> bool | None:
        # A status already written by the caller (e.g. "failed" with an exit
        # code) wins over the generic outcome derived here.
        if "status" not in self.summary:
            self.summary["status"] = "success" if exc is None else "failed"
        if exc is not None and "error" not in self.summary:
            self.summary["error"] = str(exc)

        self.summary["end_utc"] = datetime.datetime.now(datetime.UTC).isoformat()
        self.write_summary()

        try:
            self.log_event({"event": "run.end", "status": self.summary["status"]})
        finally:
            if self.events_file is not None:
                self.events_file.close()
                self.events_file = None

        return None
