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

"""Tests for absbuild.build.host and absbuild.build.execute."""

from __future__ import annotations

import json

import pytest

from absbuild.build import host
from absbuild.build.execute import make_executor
from absbuild.core.exceptions import CommandFailedError


def _events(ctx) -> list[dict]:
    lines = (ctx.run.run_path / "events.jsonl").read_text().splitlines()
    return [json.loads(line) for line in lines]


class TestBuildOnHost:
    """Tests for build_on_host."""

    def test_runs_makepkg_in_recipe_dir(self, make_context, fake_runner, write_pkgbuild) -> None:
        ctx = make_context(packages=["demo"])
        recipe_dir = ctx.paths.packages_root / "demo"
        write_pkgbuild(recipe_dir)

        result = host.build_on_host(ctx, "demo", recipe_dir)

        assert result is not None and result.success
        call = fake_runner.calls[0]
        assert call.command == host.MAKEPKG_COMMAND
        assert call.cwd == recipe_dir
        assert call.env["PKGDEST"] == str(ctx.paths.output_dir)
        assert call.log_path == ctx.run.log_path_for("demo")
        assert ctx.built == ["demo"]

    def test_existing_archive_skips_build(self, make_context, fake_runner) -> None:
        """No command at all is run when the archive is already there."""
        ctx = make_context(packages=["demo"])
        (ctx.paths.output_dir / "demo-1.0-1.2-x86_64.pkg.tar.zst").write_bytes(b"")

        assert host.build_on_host(ctx, "demo", ctx.paths.packages_root / "demo") is None
        assert fake_runner.calls == []
        assert ctx.built == []
        assert any(e["event"] == "build.skip" for e in _events(ctx))

    def test_archive_of_other_package_does_not_skip(self, make_context, fake_runner) -> None:
        ctx = make_context(packages=["demo"])
        (ctx.paths.output_dir / "demo2-1.0-1-x86_64.pkg.tar.zst").write_bytes(b"")
        (ctx.paths.output_dir / "demo-1.0-1-x86_64.pkg.tar.xz").write_bytes(b"")

        host.build_on_host(ctx, "demo", ctx.paths.packages_root / "demo")
        assert fake_runner.commands("makepkg")

    def test_new_build_rebuilds(self, make_context, fake_runner) -> None:
        ctx = make_context(packages=["demo"], new_build=True)
        (ctx.paths.output_dir / "demo-1.0-1.2-x86_64.pkg.tar.zst").write_bytes(b"")

        host.build_on_host(ctx, "demo", ctx.paths.packages_root / "demo")
        assert fake_runner.commands("makepkg") == [host.MAKEPKG_COMMAND]

    def test_failure_carries_tool_exit_code(self, make_context, fake_runner) -> None:
        ctx = make_context(packages=["demo"])
        fake_runner.on("makepkg", returncode=4, output="==> ERROR: A failure occurred in build().\n")

        with pytest.raises(CommandFailedError) as exc_info:
            host.build_on_host(ctx, "demo", ctx.paths.packages_root / "demo")

        assert exc_info.value.exit_code == 4
        assert exc_info.value.command == host.MAKEPKG_COMMAND
        result_events = [e for e in _events(ctx) if e["event"] == "build.result"]
        assert result_events[0]["exit_code"] == 4


class TestMakeExecutor:
    """Tests for make_executor."""

    def test_uses_settings(self, make_context, fake_runner) -> None:
        ctx = make_context(settings={"keyserver": "hkps://keys.example.org", "max_recovery_attempts": 3})
        executor = make_executor(ctx)
        assert executor.runner is fake_runner
        assert executor.keyserver == "hkps://keys.example.org"
        assert executor.max_attempts == 3
