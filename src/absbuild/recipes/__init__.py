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

"""Recipe sources: where PKGBUILDs come from."""

from __future__ import annotations

from typing import TYPE_CHECKING

from absbuild.core.context import RecipeOrigin
from absbuild.recipes.arch import ArchRecipeSource
from absbuild.recipes.base import RecipeSource, finalize_recipe
from absbuild.recipes.cachyos import CachyosRecipeSource

if TYPE_CHECKING:
    from absbuild.core.context import BuildContext
    from absbuild.recipes.gitfetch import GitFetcher

__all__ = [
    "ArchRecipeSource",
    "CachyosRecipeSource",
    "RecipeSource",
    "finalize_recipe",
    "make_recipe_source",
]


def make_recipe_source(ctx: BuildContext, fetcher: GitFetcher | None = None) -> RecipeSource:
    """Return the recipe source selected by the run configuration."""
    if ctx.config.origin is RecipeOrigin.CACHYOS:
        return CachyosRecipeSource(ctx, fetcher)
    return ArchRecipeSource(ctx, fetcher)
