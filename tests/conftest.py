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

"""Pytest fixtures and configuration for Absbuild tests."""

from __future__ import annotations

import tempfile
from collections.abc import Generator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import pytest

from absbuild.core.context import BuildConfig, BuildContext, BuildPaths, Settings
from absbuild.core.run import Reporter, RunContext
from absbuild.core.runner import CommandResult


@dataclass
class FakeCall:
    command: list[str]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    log_path: Path | None = None


class FakeRunner:
    """Scripted CommandRunner.

    ``on(prefix..., outputs=[(rc, text), ...])`` answers commands starting with
    the prefix; responses are consumed in order and the last one repeats.
    Unmatched commands succeed with no output.
    """

    def __init__(self) -> None:
        self.calls: list[FakeCall] = []
        self._rules: list[tuple[tuple[str, ...], list[tuple[int, str]]]] = []

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        output: str = "",
        outputs: list[tuple[int, str]] | None = None,
    ) -> FakeRunner:
        self._rules.append((prefix, list(outputs) if outputs else [(returncode, output)]))
        return self

    def run(
        self,
        command: Sequence[str | Path],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        log_path: Path | None = None,
    ) -> CommandResult:
        cmd = [str(part) for part in command]
        self.calls.append(FakeCall(command=cmd, cwd=cwd, env=env, log_path=log_path))

        returncode, output = 0, ""
        for prefix, responses in self._rules:
            if tuple(cmd[: len(prefix)]) == prefix:
                returncode, output = responses.pop(0) if len(responses) > 1 else responses[0]
                break

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_path.write_text(output)
        return CommandResult(command=cmd, returncode=returncode, output=output)

    def commands(self, program: str | None = None) -> list[list[str]]:
        """Return the commands run, optionally only those whose argv contains ``program``."""
        return [c.command for c in self.calls if program is None or program in c.command]


@pytest.fixture
def temp_home(monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create a temporary home directory and point HOME at it."""
    with tempfile.TemporaryDirectory() as tmpdir:
        home = Path(tmpdir)
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.setattr(Path, "home", lambda: home)
        yield home


@pytest.fixture
def mock_config(temp_home: Path) -> Path:
    """Create a minimal config file in the temp home."""
    config_dir = temp_home / ".config" / "absbuild"
    config_dir.mkdir(parents=True, exist_ok=True)
    config_file = config_dir / "config.yaml"
    config_file.write_text("""
paths:
  packages_root: "~/abs/packages"
  chroot_root: "~/abs/chroot"
  output_dir: "~/abs/ready"
  runs_root: "~/abs/runs"

keys:
  keyserver: "hkps://keys.example.org"
  max_recovery_attempts: 5
""")
    return config_file


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def build_paths(tmp_path: Path) -> BuildPaths:
    paths = BuildPaths(
        packages_root=tmp_path / "packages",
        chroot_root=tmp_path / "chroot",
        output_dir=tmp_path / "ready",
        runs_root=tmp_path / "runs",
    )
    for p in (paths.packages_root, paths.chroot_root, paths.output_dir, paths.runs_root):
        p.mkdir(parents=True)
    return paths


@pytest.fixture
def make_context(
    build_paths: BuildPaths, fake_runner: FakeRunner
) -> Generator[Callable[..., BuildContext], None, None]:
    """Factory building a BuildContext around the fake runner.

    Keyword arguments are BuildConfig.from_flags flags; ``settings`` takes a
    dict of Settings overrides.
    """
    runs: list[RunContext] = []

    def _make(settings: dict[str, Any] | None = None, **flags: Any) -> BuildContext:
        packages = flags.pop("packages", ())
        config = BuildConfig.from_flags(packages, **flags)
        run = RunContext(build_paths.runs_root, "test").__enter__()
        runs.append(run)
        return BuildContext(
            config=config,
            settings=Settings(paths=build_paths, **(settings or {})),
            runner=fake_runner,
            reporter=Reporter(verbose=config.verbose, silent=config.silent),
            run=run,
        )

    yield _make
    for run in runs:
        run.__exit__(None, None, None)


def _write_pkgbuild(directory: Path, body: str = "pkgname=demo\npkgver=1.0\npkgrel=1\n") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    pkgbuild = directory / "PKGBUILD"
    pkgbuild.write_text(body)
    return pkgbuild


def _unknown_key_output(*keys: str) -> str:
    lines = ["==> Verifying source file signatures with gpg..."]
    for key in keys:
        lines.append(f"    demo-1.0.tar.gz ... FAILED (unknown public key {key})")
    lines.append("==> ERROR: One or more PGP signatures could not be verified!")
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_pkgbuild() -> Callable[..., Path]:
    """Write a PKGBUILD into a directory, creating it."""
    return _write_pkgbuild


@pytest.fixture
def key_output() -> Callable[..., str]:
    """makepkg output reporting the given keys as unknown."""
    return _unknown_key_output
