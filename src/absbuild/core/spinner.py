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

"""Activity indicator for quiet, long-running steps such as git clones.

On a terminal a rich status spinner runs while the step is in progress, and
the finished step is left behind as a plain ``[phase] description`` line.
Elsewhere the line is printed once, up front. Steps that stream their own
output (makepkg, arch-nspawn) must not run inside it.
"""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Iterator

from rich.console import Console
from rich.text import Text


def is_tty() -> bool:
    """Return True if the real stdout is a terminal."""
    stream = sys.__stdout__
    if stream is None:  # pragma: no cover
        return False
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


@contextlib.contextmanager
def activity_spinner(phase: str, description: str, disable: bool = False) -> Iterator[None]:
    """Indicate activity while the wrapped block runs.

    Args:
        phase: Short phase label (e.g., "fetch", "chroot").
        description: What is being done.
        disable: Print nothing at all.
    """
    if disable:
        yield
        return

    # Text, not markup: "[fetch]" would otherwise be parsed as a style tag.
    line = Text(f"[{phase}] {description}")

    if not is_tty():
        print(line.plain, file=sys.__stdout__, flush=True)
        yield
        return

    console = Console(file=sys.__stdout__, force_terminal=True)
    with console.status(line, spinner="dots"):
        yield
    console.print(line)
