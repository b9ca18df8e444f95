# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Native tensors.

Tensor types are generated per kind with :func:`tensor_type`,
:func:`fixed_tensor_type` and :func:`map_type`; the kind (element type,
layout, shape descriptor) is a class attribute and never changes for the
lifetime of the type. ``Tensor`` and ``TensorFixedSize`` own their storage,
``TensorMap`` aliases storage owned by somebody else.
"""

from __future__ import annotations

import math
from threading import RLock
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

from .config import get_default_dtype, get_default_layout
from .dtypes import ScalarType, scalar_type
from .errors import TensorReleasedError
from .kind import TensorKind
from .layout import Layout, as_layout
from .memory import RawBuffer, allocate_buffer
from .shape import DynamicShape, FixedShape, Shape

Index = Union[int, Tuple[int, ...]]


def _infer_shape(values: Any, rank: int) -> Shape:
    """Extents of a regular nested sequence of depth ``rank``."""

    shape: List[int] = []
    level = values
    for axis in range(rank):
        if not isinstance(level, (list, tuple)):
            raise ValueError(f"Expected a nested sequence of depth {rank}")
        shape.append(len(level))
        if not level:
            shape.extend([0] * (rank - axis - 1))
            break
        level = level[0]
    return tuple(shape)


class _TensorStorage:
    """Element access shared by owning tensors and maps."""

    kind: ClassVar[Optional[TensorKind]] = None

    _dims: Shape
    _buffer: Optional[RawBuffer]
    _elements: Optional[memoryview]

    @classmethod
    def _require_kind(cls) -> TensorKind:
        if cls.kind is None:
            raise TypeError(
                f"{cls.__name__} has no tensor kind; create a concrete type with "
                "tensor_type(), fixed_tensor_type() or map_type()"
            )
        return cls.kind

    def _bind(self, buffer: RawBuffer, dims: Sequence[int]) -> None:
        kind = self._require_kind()
        dims = tuple(int(d) for d in dims)
        needed = math.prod(dims) * kind.scalar.itemsize
        if buffer.nbytes < needed:
            raise ValueError(
                f"Buffer of {buffer.nbytes} bytes is too small for shape {dims} "
                f"of {kind.scalar.name} ({needed} bytes)"
            )
        if buffer.nbytes > needed:
            buffer = RawBuffer(buffer.view[:needed], buffer.address, buffer.owner)
        self._dims = dims
        self._buffer = buffer
        self._elements = buffer.elements(kind.scalar.format)

    def _live_elements(self) -> memoryview:
        if self._elements is None:
            raise TensorReleasedError(
                f"{type(self).__name__} storage has already been destroyed"
            )
        return self._elements

    # Core properties
    @property
    def shape(self) -> Shape:
        """Current extents as a tuple."""
        return self._dims

    @property
    def rank(self) -> int:
        return self._require_kind().rank

    @property
    def dtype(self) -> str:
        return self._require_kind().scalar.name

    @property
    def layout(self) -> Layout:
        return self._require_kind().layout

    @property
    def size(self) -> int:
        """Total number of elements."""
        return math.prod(self._dims)

    @property
    def nbytes(self) -> int:
        return self.size * self._require_kind().scalar.itemsize

    def dimensions(self) -> Shape:
        return self._dims

    def dimension(self, axis: int) -> int:
        return self._dims[axis]

    def data(self) -> RawBuffer:
        """Raw storage of the tensor."""
        self._live_elements()
        return self._buffer

    # Element access
    def _flat_index(self, index: Index) -> int:
        if not isinstance(index, tuple):
            index = (index,)
        if len(index) != len(self._dims):
            raise IndexError(
                f"Expected {len(self._dims)} indices, got {len(index)}"
            )
        strides = self._require_kind().layout.element_strides(self._dims)
        flat = 0
        for axis, (i, extent) in enumerate(zip(index, self._dims)):
            i = int(i)
            if i < 0:
                i += extent
            if not 0 <= i < extent:
                raise IndexError(
                    f"Index {index[axis]} is out of bounds for axis {axis} with size {extent}"
                )
            flat += i * strides[axis]
        return flat

    def __getitem__(self, index: Index) -> Any:
        elements = self._live_elements()
        return elements[self._flat_index(index)]

    def __setitem__(self, index: Index, value: Any) -> None:
        elements = self._live_elements()
        elements[self._flat_index(index)] = self._require_kind().scalar.coerce(value)

    def fill(self, value: Any) -> None:
        """Set every element to ``value``."""
        elements = self._live_elements()
        value = self._require_kind().scalar.coerce(value)
        for i in range(len(elements)):
            elements[i] = value

    def tolist(self) -> Any:
        """Nested lists of Python scalars in logical (index) order."""

        elements = self._live_elements()
        dims = self._dims
        strides = self._require_kind().layout.element_strides(dims)

        def build(axis: int, offset: int) -> Any:
            if axis == len(dims):
                return elements[offset]
            return [build(axis + 1, offset + i * strides[axis]) for i in range(dims[axis])]

        return build(0, 0)

    def set_values(self, values: Any) -> None:
        """Assign from a nested sequence whose shape equals the tensor's shape."""

        if hasattr(values, "tolist"):
            values = values.tolist()
        elements = self._live_elements()
        dims = self._dims
        strides = self._require_kind().layout.element_strides(dims)
        coerce = self._require_kind().scalar.coerce

        def assign(axis: int, offset: int, level: Any) -> None:
            if axis == len(dims):
                elements[offset] = coerce(level)
                return
            if not isinstance(level, (list, tuple)) or len(level) != dims[axis]:
                raise ValueError(
                    f"Values do not match tensor shape {dims} along axis {axis}"
                )
            for i, item in enumerate(level):
                assign(axis + 1, offset + i * strides[axis], item)

        assign(0, 0, values)

    def assign(self, other: "_TensorStorage") -> None:
        """Copy every element of ``other`` (same shape) into this tensor."""

        if other.dimensions() != self._dims:
            raise ValueError(
                f"Cannot assign shape {other.dimensions()} to shape {self._dims}"
            )
        elements = self._live_elements()
        source = other._live_elements()
        if (
            other.layout is self.layout
            and other._require_kind().scalar == self._require_kind().scalar
        ):
            elements[:] = source
            return
        coerce = self._require_kind().scalar.coerce
        for index in _iter_indices(self._dims):
            elements[self._flat_index(index)] = coerce(source[other._flat_index(index)])

    # Data conversion methods
    def numpy(self, policy=None, parent: Any = None):
        """Convert to a NumPy array; owning tensors copy unless ``policy`` says otherwise."""
        from .caster import to_numpy

        return to_numpy(self, policy=policy, parent=parent)

    def __array__(self, dtype=None, copy=None):
        """Support NumPy's array protocol.

        ``copy=False`` aliases the storage (``REFERENCE``) and raises
        ``ValueError`` when ``dtype`` would require a conversion.
        """
        if copy is False:
            from .policy import ReturnValuePolicy

            array = self.numpy(ReturnValuePolicy.REFERENCE)
            if dtype is not None and array.dtype != dtype:
                raise ValueError(
                    f"Cannot view {type(self).__name__} as {dtype} without copying"
                )
            return array
        array = self.numpy()
        if copy:
            array = array.copy()
        if dtype is not None:
            return array.astype(dtype, copy=False)
        return array

    def __repr__(self) -> str:
        if self._elements is None:
            return f"{type(self).__name__}(<released>)"
        return f"{type(self).__name__}({self.tolist()!r})"


def _iter_indices(dims: Shape):
    if not dims:
        yield ()
        return
    if any(d == 0 for d in dims):
        return
    index = [0] * len(dims)
    while True:
        yield tuple(index)
        axis = len(dims) - 1
        while axis >= 0:
            index[axis] += 1
            if index[axis] < dims[axis]:
                break
            index[axis] = 0
            axis -= 1
        if axis < 0:
            return


class Tensor(_TensorStorage):
    """An owning tensor whose extents are chosen at construction time.

    Examples:
        >>> Matrix = tensor_type("float32", 2)
        >>> m = Matrix(2, 3)
        >>> m[1, 2] = 5.0
        >>> m.dimensions()
        (2, 3)
    """

    def __init__(self, *dims: Union[int, Sequence[int]]):
        kind = self._require_kind()
        if len(dims) == 1 and isinstance(dims[0], (list, tuple)):
            dims = tuple(dims[0])
        if len(dims) != kind.rank:
            raise ValueError(
                f"{type(self).__name__} expects {kind.rank} dimensions, got {len(dims)}"
            )
        if any(int(d) < 0 for d in dims):
            raise ValueError(f"Dimensions must be non-negative, got {tuple(dims)}")
        self._allocate(dims)

    def _allocate(self, dims: Sequence[int], alignment: Optional[int] = None) -> None:
        kind = self._require_kind()
        nbytes = math.prod(int(d) for d in dims) * kind.scalar.itemsize
        self._bind(allocate_buffer(nbytes, alignment), dims)

    @classmethod
    def _empty(cls, alignment: Optional[int] = None) -> "Tensor":
        """An instance with zero extents, used as a move target."""
        instance = cls.__new__(cls)
        instance._allocate((0,) * cls._require_kind().rank, alignment)
        return instance

    @classmethod
    def from_values(cls, values: Any) -> "Tensor":
        """Create a tensor from a nested sequence (or NumPy array)."""
        if hasattr(values, "tolist"):
            values = values.tolist()
        tensor = cls(*_infer_shape(values, cls._require_kind().rank))
        tensor.set_values(values)
        return tensor

    def copy(self) -> "Tensor":
        duplicate = type(self)(*self._dims)
        duplicate.assign(self)
        return duplicate

    def _move_from(self, other: "Tensor") -> None:
        """Take over ``other``'s storage, leaving it empty."""
        other._live_elements()
        self._dims = other._dims
        self._buffer = other._buffer
        self._elements = other._elements
        other._allocate((0,) * other.rank)

    @property
    def released(self) -> bool:
        return self._elements is None

    def release(self) -> None:
        """Destroy the storage. Further element access raises."""
        self._elements = None
        self._buffer = None


class TensorFixedSize(Tensor):
    """An owning tensor whose every extent is fixed by its type."""

    def __init__(self, *dims: Union[int, Sequence[int]]):
        kind = self._require_kind()
        if len(dims) == 1 and isinstance(dims[0], (list, tuple)):
            dims = tuple(dims[0])
        fixed = kind.shape.get_shape()
        if dims and tuple(int(d) for d in dims) != fixed:
            raise ValueError(
                f"{type(self).__name__} has fixed shape {fixed}, got {tuple(dims)}"
            )
        self._allocate(fixed)

    @classmethod
    def _empty(cls, alignment: Optional[int] = None) -> "TensorFixedSize":
        instance = cls.__new__(cls)
        instance._allocate(cls._require_kind().shape.get_shape(), alignment)
        return instance

    @classmethod
    def from_values(cls, values: Any) -> "TensorFixedSize":
        tensor = cls()
        tensor.set_values(values)
        return tensor

    def _move_from(self, other: "Tensor") -> None:
        # fixed-size storage is inline; relocation copies and the source keeps its values
        self._live_elements()[:] = other._live_elements()


class TensorMap(_TensorStorage):
    """A non-owning view over storage owned elsewhere.

    A map never allocates, copies or frees; it is valid only while the memory
    it aliases is.
    """

    tensor_type: ClassVar[Optional[Type[Tensor]]] = None
    const: ClassVar[bool] = False

    def __init__(self, pointer: RawBuffer, *dims: Union[int, Sequence[int]]):
        kind = self._require_kind()
        if len(dims) == 1 and isinstance(dims[0], (list, tuple)):
            dims = tuple(dims[0])
        if not dims and kind.is_fixed:
            dims = kind.shape.get_shape()
        if len(dims) != kind.rank or not kind.shape.is_correct_shape(dims):
            raise ValueError(f"Shape {tuple(dims)} is not valid for {type(self).__name__}")
        if self.const:
            pointer = pointer.as_readonly()
        self._bind(pointer, dims)

    @classmethod
    def of(cls, tensor: _TensorStorage) -> "TensorMap":
        """Map the storage of ``tensor``."""
        return cls(tensor.data(), tensor.dimensions())

    def numpy(self, policy=None, parent: Any = None):
        """Alias the mapped storage as a NumPy array (``REFERENCE`` by default)."""
        from .caster import to_numpy
        from .policy import ReturnValuePolicy

        if policy is None:
            policy = ReturnValuePolicy.REFERENCE
        return to_numpy(self, policy=policy, parent=parent)

    @property
    def writeable(self) -> bool:
        return not self.const and not self._buffer.readonly


_TYPE_CACHE: Dict[Any, type] = {}
_TYPE_LOCK = RLock()


def _kind_for(dtype: Any, shape, layout: Any) -> TensorKind:
    scalar: ScalarType = scalar_type(get_default_dtype() if dtype is None else dtype)
    resolved_layout = get_default_layout() if layout is None else as_layout(layout)
    return TensorKind(scalar, resolved_layout, shape)


def _cached_type(key: Any, factory):
    with _TYPE_LOCK:
        cached = _TYPE_CACHE.get(key)
        if cached is None:
            cached = factory()
            _TYPE_CACHE[key] = cached
        return cached


def tensor_type(dtype: Any, rank: int, layout: Any = None) -> Type[Tensor]:
    """Return the dynamic-shape tensor type of ``dtype``, ``rank`` and ``layout``.

    ``dtype`` and ``layout`` fall back to the configured defaults when ``None``.
    """

    kind = _kind_for(dtype, DynamicShape(rank), layout)
    name = f"Tensor[{kind.scalar.name}, {kind.rank}, {kind.layout}]"
    return _cached_type(
        ("tensor", kind), lambda: type(name, (Tensor,), {"kind": kind})
    )


def fixed_tensor_type(dtype: Any, dims: Sequence[int], layout: Any = None) -> Type[TensorFixedSize]:
    """Return the fixed-shape tensor type with extents ``dims``."""

    kind = _kind_for(dtype, FixedShape(dims), layout)
    name = f"TensorFixedSize[{kind.scalar.name}, {kind.shape.get_shape()}, {kind.layout}]"
    return _cached_type(
        ("tensor", kind), lambda: type(name, (TensorFixedSize,), {"kind": kind})
    )


def map_type(tensor_cls: Type[Tensor], const: bool = False) -> Type[TensorMap]:
    """Return the map type aliasing storage laid out like ``tensor_cls``."""

    if not (isinstance(tensor_cls, type) and issubclass(tensor_cls, Tensor)):
        raise TypeError(f"map_type() expects a tensor type, got {tensor_cls!r}")
    kind = tensor_cls._require_kind()
    qualifier = "const " if const else ""
    name = f"TensorMap[{qualifier}{tensor_cls.__name__}]"
    return _cached_type(
        ("map", kind, bool(const)),
        lambda: type(
            name,
            (TensorMap,),
            {"kind": kind, "tensor_type": tensor_cls, "const": bool(const)},
        ),
    )


__all__ = [
    "Tensor",
    "TensorFixedSize",
    "TensorMap",
    "tensor_type",
    "fixed_tensor_type",
    "map_type",
]
