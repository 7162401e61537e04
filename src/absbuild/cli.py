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

"""CLI application definition for Absbuild."""

from __future__ import annotations

import sys

import click
from typer import Typer

from absbuild.build.errors import EXIT_SUCCESS, EXIT_USAGE
from absbuild.commands.build import build

app: Typer = Typer(
    name="absbuild",
    help="A tool for building Arch Linux packages from ABS and CachyOS recipes.",
    add_completion=False,
)

app.command(name="build")(build)


def main() -> None:
    """Console entry point.

    Click reports usage errors with exit status 2; bad flags and missing
    arguments exit with 1 here instead.
    """
    try:
        rv = app(standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(EXIT_USAGE)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(EXIT_USAGE)
    sys.exit(rv if isinstance(rv, int) else EXIT_SUCCESS)
