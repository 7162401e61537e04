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

"""Event and outcome helpers shared by the build phases.

Every phase action reports both a human-readable line and a structured event
in the run's events.jsonl; these helpers keep the two in step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from absbuild.core.context import BuildContext
    from absbuild.core.runner import CommandResult


def log_phase_event(
    ctx: BuildContext,
    phase: str,
    message: str,
    event_key: str,
    **event_data: Any,
) -> None:
    """Log a detail line and a structured event together.

    Example:
        log_phase_event(
            ctx, "fetch", f"Cloned to: {pkg_dir}",
            "fetch.clone",
            path=str(pkg_dir),
        )
    """
    ctx.reporter.detail(phase, message)
    ctx.run.log_event({"event": event_key, **event_data})


def phase_warning(
    ctx: BuildContext,
    phase: str,
    message: str,
    *,
    event_key: str | None = None,
    **event_data: Any,
) -> None:
    """Log a phase warning without affecting exit status."""
    ctx.reporter.warning(phase, message)
    ctx.run.log_event({"event": event_key or f"{phase}.warning", "message": message, **event_data})


def best_effort(
    ctx: BuildContext,
    phase: str,
    result: CommandResult,
    message: str,
    **event_data: Any,
) -> bool:
    """Report a failed best-effort step and carry on.

    Returns True when the step succeeded. The caller decides nothing further;
    a failure is only reported.
    """
    if result.ok:
        return True
    phase_warning(
        ctx,
        phase,
        f"{message} (exit {result.returncode}), continuing",
        command=result.command,
        exit_code=result.returncode,
        **event_data,
    )
    return False


# Exit codes
EXIT_SUCCESS = 0
EXIT_USAGE = 1
