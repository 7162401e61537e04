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

"""Clean-chroot builds with devtools.

A single master chroot (``<chroot_root>/base``) is created once with
mkarchroot, upgraded with arch-nspawn before every build, and handed to
makechrootpkg, which builds in a throwaway copy of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from absbuild.build.artifacts import find_archives, remove_archives, should_skip_build
from absbuild.build.errors import log_phase_event
from absbuild.build.execute import run_build
from absbuild.build.keys import import_keys
from absbuild.core.exceptions import CommandFailedError
from absbuild.core.runner import CommandResult, remove_path
from absbuild.recipes.pkgbuild import PKGBUILD_NAME, read_valid_pgp_keys

if TYPE_CHECKING:
    from absbuild.build.keys import KeyRecoveryExecutor, KeyRecoveryResult
    from absbuild.core.context import BuildContext


@dataclass
class ChrootResult:
    """Result of ensuring the master chroot exists."""

    path: Path
    exists: bool
    created: bool = False


def mkarchroot_command(root: Path, packages: tuple[str, ...]) -> list[str]:
    return ["mkarchroot", str(root), *packages]


def update_command(root: Path) -> list[str]:
    return ["arch-nspawn", str(root), "pacman", "-Syu", "--noconfirm"]


def makechrootpkg_command(chroot: Path, recipe_dir: Path) -> list[str]:
    return ["makechrootpkg", "-c", "-r", str(chroot), "-d", str(recipe_dir)]


def _require(result: CommandResult, message: str) -> None:
    if not result.ok:
        raise CommandFailedError(message=message, exit_code=result.returncode, command=result.command)


def ensure_master_chroot(ctx: BuildContext) -> ChrootResult:
    """Create the master chroot if its root filesystem is missing.

    Raises:
        CommandFailedError: mkarchroot failed.
    """
    root = ctx.paths.master_chroot_root
    if root.is_dir():
        return ChrootResult(path=root, exists=True)

    ctx.reporter.status("chroot", f"Creating master chroot at {root}")
    ctx.paths.master_chroot.mkdir(parents=True, exist_ok=True)
    result = ctx.runner.run(mkarchroot_command(root, ctx.settings.chroot_packages))
    _require(result, f"Could not create master chroot at {root}")
    ctx.run.log_event({"event": "chroot.created", "path": str(root)})
    return ChrootResult(path=root, exists=True, created=True)


def update_chroot(ctx: BuildContext) -> None:
    """Upgrade the master chroot.

    Raises:
        CommandFailedError: arch-nspawn/pacman failed.
    """
    root = ctx.paths.master_chroot_root
    ctx.reporter.detail("chroot", "Updating chroot")
    result = ctx.runner.run(update_command(root))
    _require(result, f"Could not update master chroot at {root}")
    ctx.run.log_event({"event": "chroot.updated", "path": str(root)})


def remove_chroot(ctx: BuildContext) -> None:
    """Remove the master chroot and leave an empty directory in its place."""
    master = ctx.paths.master_chroot
    result = remove_path(ctx.runner, master, use_sudo=ctx.config.use_sudo)
    _require(result, f"Could not remove chroot {master}")
    master.mkdir(parents=True, exist_ok=True)
    ctx.run.log_event({"event": "chroot.removed", "path": str(master)})


def import_recipe_keys(ctx: BuildContext, recipe_dir: Path) -> list[str]:
    """Import the PKGBUILD's validpgpkeys ahead of the build.

    Failures are reported and ignored; the key-recovery loop still catches
    anything missing. Returns the keys that were imported.
    """
    keys = read_valid_pgp_keys(recipe_dir / PKGBUILD_NAME)
    if not keys:
        return []

    ctx.reporter.detail("keys", f"Importing keys: {' '.join(keys)}")
    imported, failed = import_keys(ctx.runner, keys, ctx.settings.keyserver)
    ctx.run.log_event({"event": "keys.pkgbuild", "imported": imported, "failed": failed})
    return imported


def build_in_chroot(
    ctx: BuildContext,
    package: str,
    recipe_dir: Path,
    executor: KeyRecoveryExecutor | None = None,
) -> KeyRecoveryResult | None:
    """Build ``package`` in a clean copy of the master chroot.

    Returns None when an archive already exists and no rebuild was requested.
    """
    ctx.reporter.detail("build", f"Building {package} in chroot")

    ensure_master_chroot(ctx)
    update_chroot(ctx)

    archives = find_archives(ctx.paths.output_dir, package, ctx.settings.archive_suffix)
    if should_skip_build(archives, ctx.config.new_build):
        log_phase_event(
            ctx, "build", "Package already built, skipping", "build.skip",
            package=package, archives=[str(a) for a in archives],
        )
        return None

    if ctx.config.new_build and archives:
        for result in remove_archives(ctx.runner, archives, use_sudo=ctx.config.use_sudo):
            _require(result, f"Could not remove old archive {result.command[-1]}")

    import_recipe_keys(ctx, recipe_dir)

    command = makechrootpkg_command(ctx.paths.master_chroot, recipe_dir)
    return run_build(ctx, package, command, recipe_dir, executor)
