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

"""Recipes from the Arch Linux GitLab packaging namespace, one repo per package."""

from __future__ import annotations

from pathlib import Path

from absbuild.build.errors import log_phase_event
from absbuild.core.exceptions import RecipeFetchError
from absbuild.recipes.base import RecipeSource


class ArchRecipeSource(RecipeSource):
    name = "arch"

    def recipe_url(self, package: str) -> str:
        return f"{self.ctx.settings.arch_gitlab.rstrip('/')}/{package}.git"

    def fetch(self, package: str) -> Path:
        pkg_dir = self.ctx.paths.packages_root / package

        if self.ctx.config.clean and pkg_dir.exists():
            log_phase_event(self.ctx, "fetch", f"Cleaning repo for {package}", "fetch.clean", path=str(pkg_dir))
            self.remove_checkout(pkg_dir)

        if pkg_dir.is_dir():
            self.ctx.reporter.detail("fetch", f"Updating repo for {package}")
            self.update_checkout(pkg_dir)
            return pkg_dir

        url = self.recipe_url(package)
        self.ctx.reporter.detail("fetch", f"Cloning repo for {package}")
        with self.ctx.reporter.spinner("fetch", f"Cloning {url}"):
            result = self.fetcher.clone(url, pkg_dir)
        if not result.ok:
            raise RecipeFetchError(
                message=result.error or f"Could not clone {url}",
                exit_code=result.exit_code,
                package=package,
            )
        log_phase_event(self.ctx, "fetch", f"Cloned to: {pkg_dir}", "fetch.clone", url=url, path=str(pkg_dir))
        return pkg_dir
