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

"""Context objects for Absbuild runs.

Immutable configs (frozen=True):
- BuildConfig: Flags and package list from the command line
- BuildPaths: Resolved working directories
- Settings: Values read from config.yaml

Run context:
- BuildContext: What every phase receives; bundles the above with the
  command runner, the reporter and the run record
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from absbuild.core.config import DEFAULT_CONFIG

if TYPE_CHECKING:
    from absbuild.core.run import Reporter, RunContext
    from absbuild.core.runner import CommandRunner

CACHYOS_CHECKOUT_NAME = "CachyOS-PKGBUILDS"
MASTER_CHROOT_NAME = "base"


class BuildMode(str, Enum):
    LOCAL = "local"
    CHROOT = "chroot"


class RecipeOrigin(str, Enum):
    ARCH = "arch"
    CACHYOS = "cachyos"


@dataclass(frozen=True)
class BuildConfig:
    """Immutable run configuration assembled from command-line flags.

    Attributes:
        packages: Package names, processed in order.
        mode: Build on the host or in the master chroot.
        origin: Which recipe repository to fetch from.
        download_only: Fetch and prepare recipes, skip building.
        compile_only: Build but never offer to install.
        new_build: Rebuild even when an archive already exists.
        clean: Delete the recipe checkout before fetching.
        use_sudo: Use sudo for removals.
        remove_chroot: Remove the master chroot before processing.
        populate_keys: Refresh pacman keyrings before processing.
        update_checksums: Run updpkgsums on each recipe.
        verbose: Show detail lines.
        silent: Hide status lines.
        full_clean: Remove the chroot and tool caches; implies clean and new_build.
    """

    packages: tuple[str, ...] = ()
    mode: BuildMode = BuildMode.LOCAL
    origin: RecipeOrigin = RecipeOrigin.ARCH
    download_only: bool = False
    compile_only: bool = False
    new_build: bool = False
    clean: bool = False
    use_sudo: bool = False
    remove_chroot: bool = False
    populate_keys: bool = False
    update_checksums: bool = False
    verbose: bool = False
    silent: bool = False
    full_clean: bool = False

    @classmethod
    def from_flags(
        cls,
        packages: Sequence[str] | None = None,
        *,
        chroot: bool = False,
        cachyos: bool = False,
        download_only: bool = False,
        compile_only: bool = False,
        new_build: bool = False,
        clean: bool = False,
        use_sudo: bool = False,
        remove_chroot: bool = False,
        populate_keys: bool = False,
        update_checksums: bool = False,
        verbose: bool = False,
        silent: bool = False,
        full_clean: bool = False,
    ) -> BuildConfig:
        """Create a BuildConfig, deriving the flags a full clean forces on."""
        return cls(
            packages=tuple(packages or ()),
            mode=BuildMode.CHROOT if chroot else BuildMode.LOCAL,
            origin=RecipeOrigin.CACHYOS if cachyos else RecipeOrigin.ARCH,
            download_only=download_only,
            compile_only=compile_only,
            new_build=new_build or full_clean,
            clean=clean or full_clean,
            use_sudo=use_sudo,
            remove_chroot=remove_chroot,
            populate_keys=populate_keys,
            update_checksums=update_checksums,
            verbose=verbose,
            silent=silent,
            full_clean=full_clean,
        )


@dataclass(frozen=True)
class BuildPaths:
    packages_root: Path
    chroot_root: Path
    output_dir: Path
    runs_root: Path

    @property
    def master_chroot(self) -> Path:
        """Chroot directory handed to makechrootpkg -r."""
        return self.chroot_root / MASTER_CHROOT_NAME

    @property
    def master_chroot_root(self) -> Path:
        """Root filesystem of the master chroot."""
        return self.master_chroot / "root"

    @property
    def cachyos_checkout(self) -> Path:
        return self.packages_root / CACHYOS_CHECKOUT_NAME

    @classmethod
    def from_mapping(cls, paths: Mapping[str, Path]) -> BuildPaths:
        return cls(
            packages_root=paths["packages_root"],
            chroot_root=paths["chroot_root"],
            output_dir=paths["output_dir"],
            runs_root=paths["runs_root"],
        )


@dataclass(frozen=True)
class Settings:
    """Values loaded from config.yaml, with defaults applied."""

    paths: BuildPaths
    arch_gitlab: str = DEFAULT_CONFIG["sources"]["arch_gitlab"]
    cachyos_repo: str = DEFAULT_CONFIG["sources"]["cachyos_repo"]
    keyserver: str = DEFAULT_CONFIG["keys"]["keyserver"]
    keyrings: tuple[str, ...] = tuple(DEFAULT_CONFIG["keys"]["keyrings"])
    keyring_packages: tuple[str, ...] = tuple(DEFAULT_CONFIG["keys"]["keyring_packages"])
    max_recovery_attempts: int = DEFAULT_CONFIG["keys"]["max_recovery_attempts"]
    archive_suffix: str = DEFAULT_CONFIG["build"]["archive_suffix"]
    chroot_packages: tuple[str, ...] = tuple(DEFAULT_CONFIG["build"]["chroot_packages"])
    bump_pkgrel: bool = DEFAULT_CONFIG["build"]["bump_pkgrel"]

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], paths: Mapping[str, Path]) -> Settings:
        sources = cfg.get("sources", {})
        keys = cfg.get("keys", {})
        build = cfg.get("build", {})
        return cls(
            paths=BuildPaths.from_mapping(paths),
            arch_gitlab=str(sources.get("arch_gitlab", cls.arch_gitlab)),
            cachyos_repo=str(sources.get("cachyos_repo", cls.cachyos_repo)),
            keyserver=str(keys.get("keyserver", cls.keyserver)),
            keyrings=tuple(keys.get("keyrings", cls.keyrings)),
            keyring_packages=tuple(keys.get("keyring_packages", cls.keyring_packages)),
            max_recovery_attempts=int(keys.get("max_recovery_attempts", cls.max_recovery_attempts)),
            archive_suffix=str(build.get("archive_suffix", cls.archive_suffix)),
            chroot_packages=tuple(build.get("chroot_packages", cls.chroot_packages)),
            bump_pkgrel=bool(build.get("bump_pkgrel", cls.bump_pkgrel)),
        )


@dataclass
class BuildContext:
    """Everything a build phase needs, passed explicitly.

    Attributes:
        config: Flags and packages for this run.
        settings: Values from config.yaml.
        runner: Executes external tools.
        reporter: Operator output.
        run: Run record (events, summary, build logs).
        built: Packages that went through the build phase this run.
    """

    config: BuildConfig
    settings: Settings
    runner: CommandRunner
    reporter: Reporter
    run: RunContext
    built: list[str] = field(default_factory=list)

    @property
    def paths(self) -> BuildPaths:
        return self.settings.paths
