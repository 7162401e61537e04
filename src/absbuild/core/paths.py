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

"""Path helpers and directory creation for Absbuild."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from absbuild.core.config import load_config

REQUIRED_PATH_KEYS = ("packages_root", "chroot_root", "output_dir", "runs_root")


def resolve_paths(cfg: Mapping[str, Any]) -> dict[str, Path]:
    """Return resolved Path objects for configured paths."""
    paths: Mapping[str, Any] = cfg.get("paths", {})
    return {key: Path(str(val)).expanduser().resolve() for key, val in paths.items()}


def ensure_directories(cfg: Mapping[str, Any] | None = None) -> dict[str, Path]:
    """Ensure the recipe, chroot, output and run directories exist.

    Returns a mapping of keys to Path objects that were created/ensured.
    """
    if cfg is None:
        cfg = load_config()
    paths = resolve_paths(cfg)

    missing = [key for key in REQUIRED_PATH_KEYS if key not in paths]
    if missing:
        raise KeyError(f"paths section is missing: {', '.join(missing)}")

    for key in REQUIRED_PATH_KEYS:
        paths[key].mkdir(parents=True, exist_ok=True)

    return paths


if __name__ == "__main__":
    for k, p in ensure_directories().items():
        print(f"{k}: {p}")
