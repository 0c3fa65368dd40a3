# -*- coding: utf-8 -*-
"""Solid-modeling kernel: BSP mesh booleans and RMF profile sweeps."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cadkernel")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"
