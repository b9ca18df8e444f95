# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Shape descriptors.

Every tensor kind carries exactly one descriptor, chosen when the tensor type
is declared: ``DynamicShape`` for tensors whose extents are only known at run
time and ``FixedShape`` for tensors whose every extent is a constant. The two
classes are the only implementations of :class:`ShapeDescriptor`.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

Shape = Tuple[int, ...]


class ShapeDescriptor:
    """Shape predicate and diagnostics for one tensor kind."""

    __slots__ = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.__module__ != __name__:
            raise TypeError(
                "ShapeDescriptor is sealed; use DynamicShape or FixedShape"
            )

    @property
    def rank(self) -> int:
        raise NotImplementedError

    @property
    def is_fixed(self) -> bool:
        raise NotImplementedError

    def get_shape(self, tensor: Optional[Any] = None) -> Shape:
        raise NotImplementedError

    def is_correct_shape(self, shape: Sequence[int]) -> bool:
        raise NotImplementedError

    @property
    def dimensions_descriptor(self) -> str:
        raise NotImplementedError


class DynamicShape(ShapeDescriptor):
    """Any shape of the right rank; extents are read from the instance."""

    __slots__ = ("_rank",)

    def __init__(self, rank: int):
        rank = int(rank)
        if rank < 0:
            raise ValueError(f"Rank must be non-negative, got {rank}")
        self._rank = rank

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def is_fixed(self) -> bool:
        return False

    def get_shape(self, tensor: Optional[Any] = None) -> Shape:
        if tensor is None:
            raise TypeError("A dynamic shape can only be read from a tensor instance")
        return tuple(int(d) for d in tensor.dimensions())

    def is_correct_shape(self, shape: Sequence[int]) -> bool:
        # rank is checked by the loaders
        return True

    @property
    def dimensions_descriptor(self) -> str:
        return ", ".join("?" for _ in range(self._rank))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DynamicShape) and other._rank == self._rank

    def __hash__(self) -> int:
        return hash(("dynamic", self._rank))

    def __repr__(self) -> str:
        return f"DynamicShape(rank={self._rank})"


class FixedShape(ShapeDescriptor):
    """Every extent is a constant; candidate shapes must match exactly."""

    __slots__ = ("_dims",)

    def __init__(self, dims: Sequence[int]):
        dims = tuple(int(d) for d in dims)
        if any(d < 0 for d in dims):
            raise ValueError(f"Fixed dimensions must be non-negative, got {dims}")
        self._dims = dims

    @property
    def dims(self) -> Shape:
        return self._dims

    @property
    def rank(self) -> int:
        return len(self._dims)

    @property
    def is_fixed(self) -> bool:
        return True

    def get_shape(self, tensor: Optional[Any] = None) -> Shape:
        return self._dims

    def is_correct_shape(self, shape: Sequence[int]) -> bool:
        return tuple(int(d) for d in shape) == self._dims

    @property
    def dimensions_descriptor(self) -> str:
        return ", ".join(str(d) for d in self._dims)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FixedShape) and other._dims == self._dims

    def __hash__(self) -> int:
        return hash(("fixed", self._dims))

    def __repr__(self) -> str:
        return f"FixedShape(dims={self._dims})"


__all__ = ["Shape", "ShapeDescriptor", "DynamicShape", "FixedShape"]
