# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Process-wide defaults used when a tensor type or buffer is created without
explicit parameters.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import RLock
from typing import Iterator, Union

from .dtypes import ScalarType, scalar_type
from .layout import Layout, as_layout

_CONFIG_LOCK = RLock()
_DEFAULT_DTYPE: ScalarType = scalar_type("float32")
_DEFAULT_LAYOUT: Layout = Layout.ROW_MAJOR
_ALLOC_ALIGNMENT = 16


# Global default dtype management


def set_default_dtype(dtype: Union[str, ScalarType]) -> None:
    """Set the global default element type for new tensor types."""

    global _DEFAULT_DTYPE
    resolved = scalar_type(dtype)
    with _CONFIG_LOCK:
        _DEFAULT_DTYPE = resolved


def get_default_dtype() -> str:
    """Get the current global default element type name."""

    with _CONFIG_LOCK:
        return _DEFAULT_DTYPE.name


@contextmanager
def default_dtype(dtype: Union[str, ScalarType]) -> Iterator[None]:
    """Temporarily change the default element type."""

    resolved = scalar_type(dtype)
    with _CONFIG_LOCK:
        previous = get_default_dtype()
        set_default_dtype(resolved)
    try:
        yield
    finally:
        set_default_dtype(previous)


# Global default layout management


def set_default_layout(layout: Union[str, Layout]) -> None:
    """Set the layout used by tensor types declared without one."""

    global _DEFAULT_LAYOUT
    resolved = as_layout(layout)
    with _CONFIG_LOCK:
        _DEFAULT_LAYOUT = resolved


def get_default_layout() -> Layout:
    with _CONFIG_LOCK:
        return _DEFAULT_LAYOUT


@contextmanager
def default_layout(layout: Union[str, Layout]) -> Iterator[None]:
    """Temporarily change the default layout."""

    resolved = as_layout(layout)
    with _CONFIG_LOCK:
        previous = get_default_layout()
        set_default_layout(resolved)
    try:
        yield
    finally:
        set_default_layout(previous)


# Buffer alignment


def set_alloc_alignment(alignment: int) -> None:
    """Set the byte alignment of newly allocated tensor storage."""

    global _ALLOC_ALIGNMENT
    if alignment <= 0 or alignment & (alignment - 1):
        raise ValueError(f"Alignment must be a positive power of two, got {alignment}")
    with _CONFIG_LOCK:
        _ALLOC_ALIGNMENT = int(alignment)


def get_alloc_alignment() -> int:
    with _CONFIG_LOCK:
        return _ALLOC_ALIGNMENT


__all__ = [
    "set_default_dtype",
    "get_default_dtype",
    "default_dtype",
    "set_default_layout",
    "get_default_layout",
    "default_layout",
    "set_alloc_alignment",
    "get_alloc_alignment",
]
