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

"""Configuration utilities for Absbuild."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "paths": {
        "packages_root": "~/.cache/absbuild/packages",
        "chroot_root": "~/.cache/absbuild/chroot",
        "output_dir": "~/.cache/absbuild/ready",
        "runs_root": "~/.cache/absbuild/runs",
    },
    "sources": {
        "arch_gitlab": "https://gitlab.archlinux.org/archlinux/packaging/packages",
        "cachyos_repo": "https://github.com/CachyOS/CachyOS-PKGBUILDS.git",
    },
    "keys": {
        "keyserver": "hkps://keyserver.ubuntu.com",
        "keyrings": ["archlinux", "cachyos"],
        "keyring_packages": ["archlinux-keyring", "cachyos-keyring"],
        "max_recovery_attempts": 10,
    },
    "build": {
        "archive_suffix": ".pkg.tar.zst",
        "chroot_packages": ["base", "base-devel"],
        "bump_pkgrel": True,
    },
}


def get_config_path() -> Path:
    """Return the path to the config file."""
    return Path.home() / ".config" / "absbuild" / "config.yaml"


def ensure_config_exists() -> None:
    """Create the config file with defaults if it does not exist."""
    if not get_config_path().exists():
        write_config(DEFAULT_CONFIG)


def load_config() -> dict[str, Any]:
    """Load configuration from disk and merge with defaults.

    Each top-level section of the on-disk file is merged over the matching
    section of DEFAULT_CONFIG, so a file that only overrides ``paths.output_dir``
    still gets every other default.
    """
    ensure_config_exists()
    cfg_path = get_config_path()
    try:
        raw = yaml.safe_load(cfg_path.read_text()) or {}
    except yaml.YAMLError as e:
        logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
        raw = {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", cfg_path)
        raw = {}

    merged: dict[str, Any] = {}
    for key, val in DEFAULT_CONFIG.items():
        if key in raw and isinstance(raw[key], dict):
            merged[key] = {**copy.deepcopy(val), **raw[key]}
        else:
            merged[key] = copy.deepcopy(val)

    # Expand tilde paths in place for convenience.
    for pkey, pval in merged["paths"].items():
        merged["paths"][pkey] = str(Path(str(pval)).expanduser())

    return merged


def write_config(data: dict[str, Any]) -> None:
    """Write the provided data as YAML to the config path.

    The caller should pass a complete configuration mapping.
    """
    cfg_path = get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(yaml.safe_dump(data))


if __name__ == "__main__":
    print(json.dumps(load_config(), indent=2))
