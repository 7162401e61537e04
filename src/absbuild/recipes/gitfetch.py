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

"""Git clone and pull for recipe repositories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import git


@dataclass
class FetchResult:
    """Result of a git clone or pull."""

    path: Path
    url: str = ""
    cloned: bool = False
    updated: bool = False
    error: str | None = None
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def _status_of(error: git.GitCommandError) -> int:
    return error.status if isinstance(error.status, int) and error.status > 0 else 1


class GitFetcher:
    """Clones and updates recipe checkouts with GitPython."""

    def clone(self, url: str, path: Path) -> FetchResult:
        """Clone ``url`` into ``path``."""
        result = FetchResult(path=path, url=url)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            git.Repo.clone_from(url, path).close()
            result.cloned = True
        except git.GitCommandError as e:
            result.error = f"Clone failed: {e}"
            result.exit_code = _status_of(e)
        return result

    def update(self, path: Path, ff_only: bool = False) -> FetchResult:
        """Pull the checkout at ``path`` from its origin remote.

        Args:
            path: Existing checkout.
            ff_only: Refuse anything but a fast-forward.
        """
        result = FetchResult(path=path)
        try:
            with git.Repo(path) as repo:
                origin = repo.remotes.origin
                result.url = origin.url
                if ff_only:
                    origin.pull(ff_only=True)
                else:
                    origin.pull()
            result.updated = True
        except git.GitCommandError as e:
            result.error = f"Pull failed: {e}"
            result.exit_code = _status_of(e)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            result.error = f"Not a git checkout: {e}"
            result.exit_code = 1
        except AttributeError:
            result.error = "Checkout has no origin remote"
            result.exit_code = 1
        return result
