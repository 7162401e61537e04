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

"""Recipes from the CachyOS-PKGBUILDS overlay.

The overlay is a single repository holding many packages, so one shared
checkout is kept and the requested package's directory is located inside it.
"""

from __future__ import annotations

from pathlib import Path

from absbuild.build.errors import log_phase_event
from absbuild.core.exceptions import RecipeFetchError, RecipeNotFoundError
from absbuild.recipes.base import RecipeSource
from absbuild.recipes.pkgbuild import PKGBUILD_NAME


def recipe_dirs(checkout: Path) -> list[Path]:
    """Return every directory under ``checkout`` holding a PKGBUILD, sorted."""
    dirs = {
        p.parent
        for p in checkout.rglob(PKGBUILD_NAME)
        if p.is_file() and ".git" not in p.relative_to(checkout).parts
    }
    return sorted(dirs)


def locate_recipe(checkout: Path, package: str) -> Path | None:
    """Find the recipe directory for ``package`` inside the overlay checkout.

    Candidates are directories whose path relative to the checkout contains
    the package name, case-insensitively. A directory named exactly after the
    package wins; otherwise the first candidate in sorted order is used.
    """
    needle = package.lower()
    matches = [d for d in recipe_dirs(checkout) if needle in d.relative_to(checkout).as_posix().lower()]
    if not matches:
        return None
    for d in matches:
        if d.name.lower() == needle:
            return d
    return matches[0]


class CachyosRecipeSource(RecipeSource):
    name = "cachyos"

    def fetch(self, package: str) -> Path:
        checkout = self.ctx.paths.cachyos_checkout

        if self.ctx.config.clean and checkout.exists():
            log_phase_event(self.ctx, "fetch", "Cleaning CachyOS repo", "fetch.clean", path=str(checkout))
            self.remove_checkout(checkout)

        if (checkout / ".git").is_dir():
            self.ctx.reporter.detail("fetch", "Updating CachyOS-PKGBUILDS repo")
            self.update_checkout(checkout, ff_only=True)
        else:
            url = self.ctx.settings.cachyos_repo
            self.ctx.reporter.detail("fetch", "Cloning CachyOS-PKGBUILDS repo")
            with self.ctx.reporter.spinner("fetch", f"Cloning {url}"):
                result = self.fetcher.clone(url, checkout)
            if not result.ok:
                raise RecipeFetchError(
                    message=result.error or f"Could not clone {url}",
                    exit_code=result.exit_code,
                    package=package,
                )
            log_phase_event(self.ctx, "fetch", f"Cloned to: {checkout}", "fetch.clone", url=url, path=str(checkout))

        recipe_dir = locate_recipe(checkout, package)
        if recipe_dir is None:
            raise RecipeNotFoundError(message=f"Package {package} not found in CachyOS repo", package=package)
        return recipe_dir
