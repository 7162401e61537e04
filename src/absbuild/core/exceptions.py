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

"""Absbuild-specific exception types with associated exit codes."""

from __future__ import annotations

from dataclasses import dataclass, field

# Same status a shell reports for a command that is not on PATH.
EXIT_TOOL_MISSING = 127


@dataclass
class AbsbuildError(Exception):
    """Base class for Absbuild errors with an exit code."""

    message: str = "An error occurred"
    exit_code: int = field(default=1)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (exit {self.exit_code})"


@dataclass
class UsageError(AbsbuildError):
    exit_code: int = field(default=1)


@dataclass
class RecipeNotFoundError(AbsbuildError):
    """Raised when no recipe directory matches the requested package."""

    exit_code: int = field(default=1)
    package: str = ""


@dataclass
class RecipeFetchError(AbsbuildError):
    """Raised when a recipe repository cannot be cloned."""

    exit_code: int = field(default=1)
    package: str = ""


@dataclass
class CommandFailedError(AbsbuildError):
    """Raised when an external tool fails and the run cannot continue.

    The exit code is the tool's own exit status.
    """

    exit_code: int = field(default=1)
    command: list[str] = field(default_factory=list)


@dataclass
class ToolMissingError(AbsbuildError):
    exit_code: int = field(default=EXIT_TOOL_MISSING)
    missing: list[str] = field(default_factory=list)
