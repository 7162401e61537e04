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

"""Built package archives in the output directory."""

from __future__ import annotations

import glob
import os
from pathlib import Path

from absbuild.core.runner import CommandResult, CommandRunner, remove_path

DEFAULT_ARCHIVE_SUFFIX = ".pkg.tar.zst"


def find_archives(output_dir: Path, package: str, suffix: str = DEFAULT_ARCHIVE_SUFFIX) -> list[Path]:
    """Return archives named ``<package>-*<suffix>``, sorted by name.

    The package name is escaped so that names like ``libc++`` match literally.
    """
    pattern = f"{glob.escape(package)}-*{glob.escape(suffix)}"
    return sorted(p for p in output_dir.glob(pattern) if p.is_file())


def should_skip_build(archives: list[Path], new_build: bool) -> bool:
    """An existing archive satisfies the build unless a rebuild is forced."""
    return bool(archives) and not new_build


def remove_archives(runner: CommandRunner, archives: list[Path], *, use_sudo: bool = False) -> list[CommandResult]:
    return [remove_path(runner, archive, use_sudo=use_sudo) for archive in archives]


def build_environment(output_dir: Path) -> dict[str, str]:
    """Environment for makepkg/makechrootpkg that routes archives to output_dir."""
    return {**os.environ, "PKGDEST": str(output_dir)}
