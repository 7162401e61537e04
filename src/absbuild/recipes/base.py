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

"""Common behaviour of recipe sources.

A RecipeSource fetches or updates a package's PKGBUILD directory and returns
its location; ``prepare`` then applies the optional checksum refresh and the
pkgrel bump, which are the same for every source.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from absbuild.build.errors import best_effort, log_phase_event, phase_warning
from absbuild.core.exceptions import CommandFailedError
from absbuild.core.runner import remove_path
from absbuild.recipes.gitfetch import FetchResult, GitFetcher
from absbuild.recipes.pkgbuild import PKGBUILD_NAME, bump_pkgrel, update_checksums

if TYPE_CHECKING:
    from absbuild.core.context import BuildContext


class RecipeSource(ABC):
    """Fetches build recipes into the packages root."""

    name = ""

    def __init__(self, ctx: BuildContext, fetcher: GitFetcher | None = None) -> None:
        self.ctx = ctx
        self.fetcher = fetcher or GitFetcher()

    @abstractmethod
    def fetch(self, package: str) -> Path:
        """Fetch or update the recipe and return the directory holding its PKGBUILD."""

    def prepare(self, package: str) -> Path:
        recipe_dir = self.fetch(package)
        log_phase_event(
            self.ctx, "prepare", f"Package folder: {recipe_dir}", "prepare.recipe",
            package=package, path=str(recipe_dir), source=self.name,
        )
        finalize_recipe(self.ctx, recipe_dir)
        return recipe_dir

    def remove_checkout(self, path: Path) -> None:
        """Delete a checkout, with sudo when configured; failure aborts the run."""
        result = remove_path(self.ctx.runner, path, use_sudo=self.ctx.config.use_sudo)
        if not result.ok:
            raise CommandFailedError(
                message=f"Could not remove {path}",
                exit_code=result.returncode,
                command=result.command,
            )

    def update_checkout(self, path: Path, ff_only: bool = False) -> FetchResult:
        """Pull an existing checkout; a failed pull leaves what is on disk in use."""
        with self.ctx.reporter.spinner("fetch", f"Updating {path.name}"):
            result = self.fetcher.update(path, ff_only=ff_only)
        if result.ok:
            log_phase_event(self.ctx, "fetch", f"Updated {path}", "fetch.update", path=str(path))
        else:
            phase_warning(
                self.ctx, "fetch", f"{result.error}; using the existing checkout",
                event_key="fetch.update_failed", path=str(path),
            )
        return result


def finalize_recipe(ctx: BuildContext, recipe_dir: Path) -> None:
    """Refresh checksums and bump pkgrel as the run is configured to."""
    if ctx.config.update_checksums:
        ctx.reporter.detail("prepare", "Updating PKGBUILD checksums...")
        result = update_checksums(ctx.runner, recipe_dir)
        best_effort(ctx, "prepare", result, "updpkgsums failed", path=str(recipe_dir))
    else:
        ctx.reporter.detail("prepare", "pkgsums not requested to update")

    if not ctx.settings.bump_pkgrel:
        return

    bump = bump_pkgrel(recipe_dir / PKGBUILD_NAME)
    if bump is None:
        ctx.reporter.detail("prepare", "PKGBUILD not found, skipping pkgrel bump")
        return
    log_phase_event(
        ctx, "prepare", f"pkgrel {bump.old or '(unset)'} -> {bump.new}", "prepare.pkgrel",
        path=str(bump.path), old=bump.old, new=bump.new, appended=bump.appended,
    )
