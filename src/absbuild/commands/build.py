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

"""Implementation of the ``absbuild`` build command.

Per invocation:
1. Optional maintenance: populate keyrings, remove the chroot, full clean
2. Validate the package list and the required tools
3. For each package, in order: fetch and prepare the recipe, build it on the
   host or in the chroot, then offer to install the archives

The first unrecoverable failure ends the run with that failure's exit code.
"""

from __future__ import annotations

import logging

import typer

from absbuild.build.chroot import build_in_chroot, ensure_master_chroot, remove_chroot, update_chroot
from absbuild.build.errors import EXIT_SUCCESS
from absbuild.build.host import build_on_host
from absbuild.build.maintenance import full_clean, populate_keyrings
from absbuild.build.tools import check_tools, get_missing_tools_message, required_tools
from absbuild.core.config import load_config
from absbuild.core.context import BuildConfig, BuildContext, BuildMode, Settings
from absbuild.core.exceptions import AbsbuildError, ToolMissingError, UsageError
from absbuild.core.paths import ensure_directories
from absbuild.core.run import Reporter, RunContext
from absbuild.core.runner import CommandRunner, SubprocessRunner
from absbuild.install import Confirm, install_built_packages
from absbuild.recipes import make_recipe_source
from absbuild.recipes.gitfetch import GitFetcher

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def validate_tools(ctx: BuildContext) -> None:
    """Fail with exit 127 when a needed executable is not on PATH."""
    check = check_tools(required_tools(ctx.config))
    if not check.is_complete():
        raise ToolMissingError(message=get_missing_tools_message(check.missing), missing=check.missing)


def run_maintenance(ctx: BuildContext) -> None:
    config = ctx.config
    if config.populate_keys:
        populate_keyrings(ctx)
        ctx.reporter.status("keys", "Keys installed.")
    if config.remove_chroot:
        remove_chroot(ctx)
        ctx.reporter.status("chroot", "Chroot Removed.")
    if config.full_clean:
        full_clean(ctx)
        ctx.reporter.status("clean", "Full cleaning done.")


def process_packages(
    ctx: BuildContext,
    fetcher: GitFetcher | None = None,
    confirm: Confirm | None = None,
) -> None:
    """Run every phase for every package of the run.

    Raises:
        AbsbuildError: The first failure that ends the run.
    """
    config = ctx.config
    run_maintenance(ctx)

    if not config.packages:
        if config.mode is not BuildMode.CHROOT:
            raise UsageError(message="No packages to build.")
        validate_tools(ctx)
        ctx.reporter.status("chroot", "No packages specified, preparing/updating chroot")
        ensure_master_chroot(ctx)
        update_chroot(ctx)
        ctx.reporter.detail("chroot", "Chroot ready")
        return

    validate_tools(ctx)
    source = make_recipe_source(ctx, fetcher)

    for package in config.packages:
        ctx.run.log_event({"event": "package.start", "package": package})
        recipe_dir = source.prepare(package)
        if config.download_only:
            continue

        ctx.reporter.detail("build", f"MODE={config.mode.value}, building package {package}...")
        if config.mode is BuildMode.CHROOT:
            build_in_chroot(ctx, package, recipe_dir)
        else:
            build_on_host(ctx, package, recipe_dir)

        if not config.compile_only:
            install_built_packages(ctx, package, confirm)

    ctx.reporter.status("done", "All requested packages processed successfully")


def execute(
    config: BuildConfig,
    runner: CommandRunner | None = None,
    fetcher: GitFetcher | None = None,
    confirm: Confirm | None = None,
) -> int:
    """Run the build command for ``config`` and return the process exit code."""
    cfg = load_config()
    settings = Settings.from_config(cfg, ensure_directories(cfg))
    reporter = Reporter(verbose=config.verbose, silent=config.silent)

    with RunContext(settings.paths.runs_root, "build") as run:
        ctx = BuildContext(
            config=config,
            settings=settings,
            runner=runner or SubprocessRunner(),
            reporter=reporter,
            run=run,
        )
        run.write_summary(
            packages=list(config.packages),
            mode=config.mode.value,
            origin=config.origin.value,
        )
        try:
            process_packages(ctx, fetcher=fetcher, confirm=confirm)
        except AbsbuildError as e:
            reporter.error("absbuild", e.message)
            run.log_event({"event": "run.error", "message": e.message, "exit_code": e.exit_code})
            run.write_summary(status="failed", error=e.message, exit_code=e.exit_code, built=ctx.built)
            reporter.detail("report", f"Logs: {run.run_path}")
            return e.exit_code

        run.write_summary(status="success", exit_code=EXIT_SUCCESS, built=ctx.built)
    return EXIT_SUCCESS


def build(
    packages: list[str] | None = typer.Argument(None, metavar="PKGNAME...", help="Packages to fetch and build"),
    download_only: bool = typer.Option(False, "-d", "--download-only", help="Download only (no build)"),
    local: bool = typer.Option(False, "-l", "--local", help="Build locally (default)"),
    chroot: bool = typer.Option(False, "-h", "--chroot", help="Build in chroot"),
    compile_only: bool = typer.Option(
        False, "-o", "--compile-only", help="Only compiles, doesn't install built packages"
    ),
    new_build: bool = typer.Option(False, "-n", "--new-build", help="Force new build"),
    clean: bool = typer.Option(False, "-c", "--clean", help="Clean repo (delete + reclone)"),
    full_clean: bool = typer.Option(
        False, "-e", "--full-clean", help="Do full cleaning (chroot, cargo/go/npm/pacman caches)"
    ),
    use_sudo: bool = typer.Option(False, "-s", "--sudo", help="Use sudo for cleaning repo"),
    remove_chroot_: bool = typer.Option(False, "-r", "--remove-chroot", help="Remove chroot"),
    populate_keys: bool = typer.Option(
        False, "-k", "--populate-keys", help="Populate keys (to fix unknown public key)"
    ),
    update_checksums: bool = typer.Option(False, "-u", "--update-checksums", help="Update pkgsums before building"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose mode"),
    silent: bool = typer.Option(False, "-i", "--silent", help="Silent mode"),
    cachyos: bool = typer.Option(False, "--cachyos", help="Use CachyOS-PKGBUILDS repo instead of Arch Linux"),
) -> None:
    """Fetch, build and optionally install Arch Linux packages.

    Flags can be combined (e.g. -ch, -hnc). When both -l and -h are given the
    chroot build wins.
    """
    configure_logging(verbose)
    if local and chroot:
        logger.debug("Both -l and -h given; building in chroot")

    config = BuildConfig.from_flags(
        packages,
        chroot=chroot,
        cachyos=cachyos,
        download_only=download_only,
        compile_only=compile_only,
        new_build=new_build,
        clean=clean,
        use_sudo=use_sudo,
        remove_chroot=remove_chroot_,
        populate_keys=populate_keys,
        update_checksums=update_checksums,
        verbose=verbose,
        silent=silent,
        full_clean=full_clean,
    )
    exit_code = execute(config)
    if exit_code != EXIT_SUCCESS:
        raise typer.Exit(code=exit_code)
