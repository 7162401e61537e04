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

"""Missing-key recovery for makepkg and makechrootpkg.

makepkg refuses to verify a source signature whose key is not in the user's
keyring and reports ``unknown public key <ID>``. KeyRecoveryExecutor runs a
build command, imports exactly the keys it reports missing and runs it again
from scratch, until it succeeds or no new key shows up.

The loop is a small state machine:

    RUN --exit 0--> SUCCEEDED
    RUN --exit !0--> INSPECT
    INSPECT --new keys--> FETCH_KEYS --> RUN
    INSPECT --nothing new--> EXHAUSTED

A key is marked as seen when its import is attempted, whether or not gpg
succeeds, and the number of invocations is bounded by ``max_attempts``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from absbuild.core.run import Reporter
    from absbuild.core.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_KEYSERVER = "hkps://keyserver.ubuntu.com"
DEFAULT_MAX_ATTEMPTS = 10

UNKNOWN_KEY_RE = re.compile(r"unknown public key ([0-9A-F]+)")


class RecoveryState(str, Enum):
    RUN = "run"
    INSPECT = "inspect"
    FETCH_KEYS = "fetch_keys"
    EXHAUSTED = "exhausted"
    SUCCEEDED = "succeeded"


@dataclass
class KeyRecoveryResult:
    """Outcome of a KeyRecoveryExecutor run."""

    returncode: int
    attempts: int
    state: RecoveryState
    imported_keys: list[str] = field(default_factory=list)
    failed_keys: list[str] = field(default_factory=list)
    log_path: Path | None = None

    @property
    def success(self) -> bool:
        return self.state is RecoveryState.SUCCEEDED


def find_missing_keys(output: str) -> set[str]:
    """Return the key IDs reported as unknown in build output."""
    return set(UNKNOWN_KEY_RE.findall(output))


def recv_key_command(key: str, keyserver: str = DEFAULT_KEYSERVER) -> list[str]:
    return ["gpg", "--keyserver", keyserver, "--recv-keys", key]


def import_keys(
    runner: CommandRunner,
    keys: Iterable[str],
    keyserver: str = DEFAULT_KEYSERVER,
) -> tuple[list[str], list[str]]:
    """Fetch keys from a keyserver into the user's keyring.

    Returns:
        Tuple of (imported, failed) key IDs, in the order attempted.
    """
    imported: list[str] = []
    failed: list[str] = []
    for key in keys:
        result = runner.run(recv_key_command(key, keyserver))
        if result.ok:
            imported.append(key)
        else:
            logger.warning("gpg could not import key %s (exit %d)", key, result.returncode)
            failed.append(key)
    return imported, failed


class KeyRecoveryExecutor:
    """Run a command, importing missing signing keys and retrying."""

    def __init__(
        self,
        runner: CommandRunner,
        keyserver: str = DEFAULT_KEYSERVER,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        reporter: Reporter | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.runner = runner
        self.keyserver = keyserver
        self.max_attempts = max_attempts
        self.reporter = reporter

    def _detail(self, message: str) -> None:
        if self.reporter is not None:
            self.reporter.detail("keys", message)
        else:
            logger.debug(message)

    def run(
        self,
        command: Sequence[str | Path],
        *,
        log_path: Path,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> KeyRecoveryResult:
        """Run ``command`` until it succeeds or no new missing key appears.

        Args:
            command: Program and arguments.
            log_path: File receiving the combined output; overwritten on
                every attempt.
            cwd: Working directory for the command.
            env: Environment for the command.

        Returns:
            KeyRecoveryResult; ``returncode`` is the last exit status.
        """
        seen: set[str] = set()
        imported: list[str] = []
        failed: list[str] = []
        attempts = 0
        last: CommandResult | None = None
        new_keys: list[str] = []
        state = RecoveryState.RUN

        while True:
            if state is RecoveryState.RUN:
                attempts += 1
                self._detail(f"Running command (attempt {attempts}): {' '.join(map(str, command))}")
                last = self.runner.run(command, cwd=cwd, env=env, log_path=log_path)
                state = RecoveryState.SUCCEEDED if last.ok else RecoveryState.INSPECT

            elif state is RecoveryState.INSPECT:
                assert last is not None
                new_keys = sorted(find_missing_keys(last.output) - seen)
                if not new_keys:
                    self._detail("Build failed, no new missing keys detected. Giving up.")
                    state = RecoveryState.EXHAUSTED
                elif attempts >= self.max_attempts:
                    logger.warning(
                        "Giving up after %d attempts; still missing keys: %s",
                        attempts,
                        ", ".join(new_keys),
                    )
                    state = RecoveryState.EXHAUSTED
                else:
                    self._detail(f"Missing keys detected: {' '.join(new_keys)}")
                    state = RecoveryState.FETCH_KEYS

            elif state is RecoveryState.FETCH_KEYS:
                ok, bad = import_keys(self.runner, new_keys, self.keyserver)
                imported.extend(ok)
                failed.extend(bad)
                seen.update(new_keys)
                self._detail("Retrying command after importing missing keys...")
                state = RecoveryState.RUN

            else:
                break

        assert last is not None
        if state is RecoveryState.SUCCEEDED:
            self._detail("Command succeeded")
        return KeyRecoveryResult(
            returncode=last.returncode,
            attempts=attempts,
            state=state,
            imported_keys=imported,
            failed_keys=failed,
            log_path=log_path,
        )
