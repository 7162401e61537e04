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

"""Keyring population and cache cleaning.

These steps run once per invocation, before any package is processed. All of
them are best effort: a failing step is reported and the run continues.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from absbuild.build.chroot import remove_chroot
from absbuild.build.errors import best_effort
from absbuild.build.tools import find_tool
from absbuild.core.runner import CommandResult, remove_path

if TYPE_CHECKING:
    from absbuild.core.context import BuildContext

# (tool, command) pairs; a cleaner is skipped when its tool is not installed.
CACHE_CLEANERS: list[tuple[str, list[str]]] = [
    ("go", ["go", "clean", "-modcache"]),
    ("go", ["go", "clean", "-cache"]),
    ("npm", ["npm", "cache", "clean", "--force"]),
    ("pacman", ["sudo", "pacman", "-Scc"]),
]


def cargo_cache_dir() -> Path:
    return Path.home() / ".cargo" / "registry" / "cache"


def populate_keyrings(ctx: BuildContext) -> list[CommandResult]:
    """Install and populate the distribution keyrings, then refresh keys."""
    settings = ctx.settings
    steps: list[tuple[str, list[str]]] = [
        (
            "Installing keyrings",
            ["sudo", "pacman", "-Sy", "--noconfirm", *settings.keyring_packages],
        ),
    ]
    for keyring in settings.keyrings:
        steps.append((f"Populating {keyring} keys", ["sudo", "pacman-key", "--populate", keyring]))
    steps.append(
        (
            "Refreshing keys from keyserver",
            ["sudo", "pacman-key", "--keyserver", settings.keyserver, "--refresh-keys"],
        )
    )

    results: list[CommandResult] = []
    for description, command in steps:
        ctx.reporter.detail("keys", description)
        result = ctx.runner.run(command)
        best_effort(ctx, "keys", result, f"{description} failed")
        results.append(result)

    ctx.run.log_event({"event": "keys.populated", "failed": sum(1 for r in results if not r.ok)})
    return results


def remove_all_caches(ctx: BuildContext) -> list[CommandResult]:
    """Clear the cargo, Go, npm and pacman caches that can wedge builds."""
    results = [remove_path(ctx.runner, cargo_cache_dir())]
    best_effort(ctx, "clean", results[0], "Could not remove cargo registry cache")

    for tool, command in CACHE_CLEANERS:
        if find_tool(tool) is None:
            ctx.reporter.detail("clean", f"{tool} not installed, skipping {' '.join(command)}")
            continue
        ctx.reporter.detail("clean", f"Running {' '.join(command)}")
        result = ctx.runner.run(command)
        best_effort(ctx, "clean", result, f"{' '.join(command)} failed")
        results.append(result)

    return results


def full_clean(ctx: BuildContext) -> None:
    """Remove the master chroot and every tool cache.

    The companion clean/new_build flags are already forced on in BuildConfig.
    """
    remove_chroot(ctx)
    remove_all_caches(ctx)
    ctx.run.log_event({"event": "clean.full"})
