# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""Memory layouts of native tensors."""

from __future__ import annotations

import enum
from typing import Sequence, Tuple, Union


class Layout(enum.Enum):
    """Element order along axes."""

    ROW_MAJOR = "C"
    COL_MAJOR = "F"

    @property
    def order(self) -> str:
        """NumPy ``order`` letter for this layout."""
        return self.value

    @property
    def flag_name(self) -> str:
        """Contiguity flag spelled the way NumPy reports it."""
        if self is Layout.ROW_MAJOR:
            return "flags.c_contiguous"
        return "flags.f_contiguous"

    def element_strides(self, shape: Sequence[int]) -> Tuple[int, ...]:
        """Strides, counted in elements, of a contiguous block of ``shape``."""
        strides = [0] * len(shape)
        step = 1
        axes = range(len(shape) - 1, -1, -1) if self is Layout.ROW_MAJOR else range(len(shape))
        for axis in axes:
            strides[axis] = step
            step *= max(int(shape[axis]), 1)
        return tuple(strides)

    def byte_strides(self, shape: Sequence[int], itemsize: int) -> Tuple[int, ...]:
        return tuple(s * itemsize for s in self.element_strides(shape))

    def __str__(self) -> str:
        return "RowMajor" if self is Layout.ROW_MAJOR else "ColMajor"


def as_layout(layout: Union[Layout, str]) -> Layout:
    """Accept a ``Layout`` or one of ``"C"``, ``"F"``, ``"row"``, ``"col"``."""

    if isinstance(layout, Layout):
        return layout
    key = str(layout).lower()
    if key in {"c", "row", "row_major", "rowmajor"}:
        return Layout.ROW_MAJOR
    if key in {"f", "col", "col_major", "colmajor", "column_major"}:
        return Layout.COL_MAJOR
    raise ValueError(f"Unsupported layout '{layout}'")


__all__ = ["Layout", "as_layout"]
