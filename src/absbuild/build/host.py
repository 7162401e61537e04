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

"""Building on the host with makepkg."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from absbuild.build.artifacts import find_archives, should_skip_build
from absbuild.build.errors import log_phase_event
from absbuild.build.execute import run_build

if TYPE_CHECKING:
    from absbuild.build.keys import KeyRecoveryExecutor, KeyRecoveryResult
    from absbuild.core.context import BuildContext

MAKEPKG_COMMAND = ["makepkg", "--syncdeps", "--noconfirm", "--needed", "-f"]


def build_on_host(
    ctx: BuildContext,
    package: str,
    recipe_dir: Path,
    executor: KeyRecoveryExecutor | None = None,
) -> KeyRecoveryResult | None:
    """Build ``package`` from ``recipe_dir`` with makepkg.

    Returns None when an archive already exists and no rebuild was requested.
    """
    ctx.reporter.detail("build", f"Building {package} locally")

    archives = find_archives(ctx.paths.output_dir, package, ctx.settings.archive_suffix)
    if should_skip_build(archives, ctx.config.new_build):
        log_phase_event(
            ctx, "build", "Package already built, skipping", "build.skip",
            package=package, archives=[str(a) for a in archives],
        )
        return None

    return run_build(ctx, package, MAKEPKG_COMMAND, recipe_dir, executor)
