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

"""Interactive installation of built archives."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from absbuild.build.artifacts import find_archives
from absbuild.build.errors import log_phase_event
from absbuild.core.exceptions import CommandFailedError

if TYPE_CHECKING:
    from absbuild.core.context import BuildContext

Confirm = Callable[[str], bool]

# pacman -U is run once more when it fails, e.g. after a stale database lock.
INSTALL_ATTEMPTS = 2


def _confirm(prompt: str) -> bool:
    return typer.confirm(prompt, default=True)


def install_command(archive: Path) -> list[str]:
    return ["sudo", "pacman", "-U", str(archive)]


def install_built_packages(
    ctx: BuildContext,
    package: str,
    confirm: Confirm | None = None,
) -> list[Path]:
    """Offer to install every archive built for ``package``.

    Returns the archives that were installed.

    Raises:
        CommandFailedError: pacman failed on every attempt.
    """
    confirm = confirm or _confirm
    installed: list[Path] = []

    for archive in find_archives(ctx.paths.output_dir, package, ctx.settings.archive_suffix):
        if not confirm(f"Install {archive} ?"):
            ctx.run.log_event({"event": "install.declined", "archive": str(archive)})
            continue

        command = install_command(archive)
        for attempt in range(1, INSTALL_ATTEMPTS + 1):
            result = ctx.runner.run(command)
            if result.ok:
                break
            ctx.reporter.detail("install", f"pacman -U failed (attempt {attempt}, exit {result.returncode})")
        else:
            raise CommandFailedError(
                message=f"Could not install {archive}",
                exit_code=result.returncode,
                command=command,
            )

        installed.append(archive)
        log_phase_event(ctx, "install", f"Installed {archive.name}", "install.done", archive=str(archive))

    return installed
