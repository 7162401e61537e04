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

"""PKGBUILD reading and rewriting.

Only two fields are touched: ``pkgrel`` is bumped to ``<base>.2`` so a local
rebuild sorts above the repository package, and ``validpgpkeys`` is read so
its keys can be imported before a chroot build.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from absbuild.core.runner import CommandResult, CommandRunner

PKGBUILD_NAME = "PKGBUILD"
DEFAULT_BUMPED_PKGREL = "1.2"
BUMP_SUFFIX = "2"

PKGREL_RE = re.compile(r"^pkgrel=(.*)$", re.MULTILINE)
# Shell comment: '#' at line start or after whitespace.
COMMENT_RE = re.compile(r"(^|\s)#.*$")
# Long key IDs (16 hex) up to full fingerprints (40 hex).
PGP_KEY_RE = re.compile(r"\b[0-9A-Fa-f]{16,40}\b")


@dataclass
class PkgrelBump:
    """Record of a pkgrel rewrite."""

    path: Path
    old: str | None
    new: str
    appended: bool = False


def bumped_pkgrel(current: str) -> str:
    """Return the bumped form of a pkgrel value.

    The integer part before the first '.' is kept and the suffix becomes
    ``.2``: ``3`` -> ``3.2``, ``7.1`` -> ``7.2``.
    """
    base = COMMENT_RE.sub("", current).strip().strip("'\"").split(".", 1)[0]
    if not base:
        return DEFAULT_BUMPED_PKGREL
    return f"{base}.{BUMP_SUFFIX}"


def split_comment(value: str) -> tuple[str, str]:
    """Split a shell value into its text and any trailing ``# comment``."""
    match = COMMENT_RE.search(value)
    if match is None:
        return value.strip(), ""
    return value[: match.start()].strip(), value[match.start():]


def bump_pkgrel(pkgbuild: Path) -> PkgrelBump | None:
    """Rewrite ``pkgrel`` in a PKGBUILD, appending it when absent.

    Returns None when the PKGBUILD does not exist.
    """
    if not pkgbuild.is_file():
        return None

    text = pkgbuild.read_text(encoding="utf-8")
    match = PKGREL_RE.search(text)
    if match is None:
        sep = "\n" if text and not text.endswith("\n") else ""
        pkgbuild.write_text(f"{text}{sep}pkgrel={DEFAULT_BUMPED_PKGREL}\n", encoding="utf-8")
        return PkgrelBump(path=pkgbuild, old=None, new=DEFAULT_BUMPED_PKGREL, appended=True)

    old, _ = split_comment(match.group(1))
    new = bumped_pkgrel(old)

    def rewrite(m: re.Match[str]) -> str:
        _, comment = split_comment(m.group(1))
        return f"pkgrel={new}{comment}"

    pkgbuild.write_text(PKGREL_RE.sub(rewrite, text), encoding="utf-8")
    return PkgrelBump(path=pkgbuild, old=old, new=new)


def read_valid_pgp_keys(pkgbuild: Path) -> list[str]:
    """Return the keys listed in ``validpgpkeys``, uppercased and de-duplicated.

    Handles both ``validpgpkeys=('A' 'B')`` on one line and arrays spread over
    several lines with trailing comments.
    """
    if not pkgbuild.is_file():
        return []

    chunks: list[str] = []
    collecting = False
    for raw in pkgbuild.read_text(encoding="utf-8", errors="replace").splitlines():
        line = COMMENT_RE.sub("", raw)
        if not collecting:
            if not line.startswith("validpgpkeys="):
                continue
            line = line[len("validpgpkeys="):]
            if not line.lstrip().startswith("("):
                chunks.append(line)
                break
            collecting = True
        chunks.append(line)
        if ")" in line:
            break

    keys: list[str] = []
    for key in PGP_KEY_RE.findall(" ".join(chunks)):
        key = key.upper()
        if key not in keys:
            keys.append(key)
    return keys


def update_checksums(runner: CommandRunner, recipe_dir: Path) -> CommandResult:
    """Refresh the PKGBUILD checksum arrays with updpkgsums."""
    return runner.run(["updpkgsums"], cwd=recipe_dir)
