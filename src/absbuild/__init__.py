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

"""Absbuild: fetch, build and install Arch Linux packages from ABS and CachyOS recipes."""

__version__ = "0.1.0"
