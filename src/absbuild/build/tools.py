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

"""External tool validation for Absbuild runs.

Which tools a run needs depends on its flags: makepkg for host builds, the
devtools trio for chroot builds, pacman only when installing, and so on.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from absbuild.core.context import BuildConfig, BuildMode

CHROOT_TOOLS = ["mkarchroot", "arch-nspawn", "makechrootpkg"]

# Arch package providing each tool
TOOL_PACKAGES: dict[str, str] = {
    "git": "git",
    "makepkg": "pacman",
    "pacman": "pacman",
    "pacman-key": "pacman",
    "updpkgsums": "pacman-contrib",
    "mkarchroot": "devtools",
    "arch-nspawn": "devtools",
    "makechrootpkg": "devtools",
    "gpg": "gnupg",
    "sudo": "sudo",
}


@dataclass
class ToolCheck:
    """Result of checking for required external tools."""

    tools: dict[str, Path | None] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)

    def is_complete(self) -> bool:
        """Return True if all required tools are available."""
        return len(self.missing) == 0


def find_tool(name: str) -> Path | None:
    """Find an executable tool in PATH."""
    path = shutil.which(name)
    if path:
        return Path(path)
    return None


def required_tools(config: BuildConfig) -> list[str]:
    """Return the tools a run with this configuration will invoke."""
    needed = ["git"]
    if config.populate_keys:
        needed.append("pacman-key")
    if config.update_checksums:
        needed.append("updpkgsums")

    builds = bool(config.packages) and not config.download_only
    # A chroot run without packages still prepares the master chroot.
    if config.mode is BuildMode.CHROOT and (builds or not config.packages):
        needed.extend(CHROOT_TOOLS)
    if builds:
        if config.mode is BuildMode.LOCAL:
            needed.append("makepkg")
        needed.append("gpg")
        if not config.compile_only:
            needed.append("pacman")

    # Installs, keyring steps, pacman -Scc and sudo removals all go through sudo.
    if config.use_sudo or config.full_clean or {"pacman", "pacman-key"} & set(needed):
        needed.append("sudo")
    return needed


def check_tools(names: list[str]) -> ToolCheck:
    result = ToolCheck()
    for tool in names:
        path = find_tool(tool)
        result.tools[tool] = path
        if path is None:
            result.missing.append(tool)
    return result


def get_missing_tools_message(missing: list[str]) -> str:
    """Generate a user-friendly message for installing missing tools.

    Args:
        missing: List of missing tool names.

    Returns:
        Multi-line string with installation instructions.
    """
    if not missing:
        return ""

    lines = ["The following required tools are missing:"]
    for tool in missing:
        lines.append(f"  - {tool}: provided by {TOOL_PACKAGES.get(tool, tool)}")

    packages = sorted({TOOL_PACKAGES.get(t, t) for t in missing})
    lines.append("")
    lines.append("Quick install:")
    lines.append(f"  sudo pacman -S --needed {' '.join(packages)}")

    return "\n".join(lines)
