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

"""Running a build command under missing-key recovery."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from absbuild.build.artifacts import build_environment
from absbuild.build.errors import log_phase_event
from absbuild.build.keys import KeyRecoveryExecutor, KeyRecoveryResult
from absbuild.core.exceptions import CommandFailedError

if TYPE_CHECKING:
    from absbuild.core.context import BuildContext


def make_executor(ctx: BuildContext) -> KeyRecoveryExecutor:
    return KeyRecoveryExecutor(
        ctx.runner,
        keyserver=ctx.settings.keyserver,
        max_attempts=ctx.settings.max_recovery_attempts,
        reporter=ctx.reporter,
    )


def run_build(
    ctx: BuildContext,
    package: str,
    command: Sequence[str | Path],
    recipe_dir: Path,
    executor: KeyRecoveryExecutor | None = None,
) -> KeyRecoveryResult:
    """Run a build command in ``recipe_dir`` with PKGDEST set to the output dir.

    Raises:
        CommandFailedError: The build still failed after key recovery; the
            exit code is the build tool's.
    """
    executor = executor or make_executor(ctx)
    result = executor.run(
        command,
        cwd=recipe_dir,
        env=build_environment(ctx.paths.output_dir),
        log_path=ctx.run.log_path_for(package),
    )
    ctx.built.append(package)
    log_phase_event(
        ctx, "build", f"{package}: {result.state.value} after {result.attempts} attempt(s)", "build.result",
        package=package,
        command=[str(c) for c in command],
        exit_code=result.returncode,
        attempts=result.attempts,
        imported_keys=result.imported_keys,
        failed_keys=result.failed_keys,
        log=str(result.log_path),
    )
    if not result.success:
        raise CommandFailedError(
            message=f"Build of {package} failed; see {result.log_path}",
            exit_code=result.returncode,
            command=[str(c) for c in command],
        )
    return result
