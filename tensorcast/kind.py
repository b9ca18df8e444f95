# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

from __future__ import annotations

from dataclasses import dataclass

from .dtypes import ScalarType
from .layout import Layout
from .shape import ShapeDescriptor


@dataclass(frozen=True)
class TensorKind:
    """Element type, layout and shape descriptor of a native tensor type."""

    scalar: ScalarType
    layout: Layout
    shape: ShapeDescriptor

    @property
    def rank(self) -> int:
        return self.shape.rank

    @property
    def is_fixed(self) -> bool:
        return self.shape.is_fixed

    def descriptor(self) -> str:
        """Signature string shown in conversion diagnostics, e.g.
        ``numpy.ndarray[numpy.float32[2, 3], flags.writeable, flags.c_contiguous]``.
        """
        return (
            f"numpy.ndarray[{self.scalar.descriptor_name}"
            f"[{self.shape.dimensions_descriptor}], flags.writeable, "
            f"{self.layout.flag_name}]"
        )

    def __str__(self) -> str:
        dims = self.shape.dimensions_descriptor
        return f"{self.scalar.name}[{dims}] ({self.layout})"


__all__ = ["TensorKind"]
