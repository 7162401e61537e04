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

"""External command execution for Absbuild.

Every packaging tool is invoked through a CommandRunner so that callers can
inject a fake in tests. SubprocessRunner is the real implementation:

- Without ``log_path`` the child inherits the terminal, which keeps sudo and
  pacman prompts interactive.
- With ``log_path`` stdout and stderr are merged and copied byte for byte, as
  they arrive, to the terminal and the log file. Carriage returns and partial
  lines (progress meters, prompts) pass through untouched. The combined output
  is decoded and returned for inspection.
"""

from __future__ import annotations

import codecs
import logging
import os
import shlex
import shutil
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, TextIO

from absbuild.core.exceptions import EXIT_TOOL_MISSING

logger = logging.getLogger(__name__)

EXIT_NOT_EXECUTABLE = 126
READ_SIZE = 4096


@dataclass
class CommandResult:
    """Outcome of one external command invocation."""

    command: list[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def run(
        self,
        command: Sequence[str | Path],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        log_path: Path | None = None,
    ) -> CommandResult: ...


class SubprocessRunner:
    """CommandRunner backed by the subprocess module."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def run(
        self,
        command: Sequence[str | Path],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        log_path: Path | None = None,
    ) -> CommandResult:
        cmd = [str(part) for part in command]
        logger.debug("Running: %s (cwd=%s)", shlex.join(cmd), cwd)
        try:
            if log_path is None:
                proc = subprocess.run(cmd, cwd=cwd, env=env, check=False)
                return CommandResult(command=cmd, returncode=proc.returncode)
            return self._run_teed(cmd, cwd=cwd, env=env, log_path=log_path)
        except FileNotFoundError as e:
            logger.warning("Cannot run %s: %s", cmd[0], e)
            return CommandResult(command=cmd, returncode=EXIT_TOOL_MISSING, output=f"{cmd[0]}: {e}\n")
        except PermissionError as e:
            logger.warning("Cannot run %s: %s", cmd[0], e)
            return CommandResult(command=cmd, returncode=EXIT_NOT_EXECUTABLE, output=f"{cmd[0]}: {e}\n")

    def _run_teed(
        self,
        cmd: list[str],
        *,
        cwd: Path | None,
        env: Mapping[str, str] | None,
        log_path: Path,
    ) -> CommandResult:
        stream = self._stream or sys.stdout
        # Raw bytes go to the underlying buffer when the stream has one.
        sink = getattr(stream, "buffer", None)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        log_path.parent.mkdir(parents=True, exist_ok=True)
        chunks: list[bytes] = []

        with log_path.open("wb") as log, subprocess.Popen(
            cmd,
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        ) as proc:
            assert proc.stdout is not None
            fd = proc.stdout.fileno()
            while True:
                chunk = os.read(fd, READ_SIZE)
                if not chunk:
                    break
                if sink is not None:
                    stream.flush()
                    sink.write(chunk)
                    sink.flush()
                else:
                    stream.write(decoder.decode(chunk))
                    stream.flush()
                log.write(chunk)
                log.flush()
                chunks.append(chunk)
            if sink is None:
                stream.write(decoder.decode(b"", final=True))
            returncode = proc.wait()

        output = b"".join(chunks).decode("utf-8", errors="replace")
        return CommandResult(command=cmd, returncode=returncode, output=output)


def with_sudo(command: Sequence[str | Path], use_sudo: bool) -> list[str]:
    """Prefix a command with sudo when requested."""
    cmd = [str(part) for part in command]
    return ["sudo", *cmd] if use_sudo else cmd


def remove_path(runner: CommandRunner, path: Path, *, use_sudo: bool = False) -> CommandResult:
    """Remove a file or directory tree, like ``rm -rf``.

    With ``use_sudo`` the removal is delegated to ``sudo rm -rf`` through the
    runner; otherwise it happens in-process. A missing path is not an error.
    """
    cmd = ["rm", "-rf", str(path)]
    if use_sudo:
        return runner.run(with_sudo(cmd, use_sudo))

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    except OSError as e:
        return CommandResult(command=cmd, returncode=1, output=f"{e}\n")
    return CommandResult(command=cmd, returncode=0)
