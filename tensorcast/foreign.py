# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Adapter over ``numpy.ndarray``, the foreign array type.

NumPy is imported lazily so that native tensors remain usable without it;
the adapter raises ``ModuleNotFoundError`` on first use when it is missing.
"""

from __future__ import annotations

import importlib
import math
from typing import Any, Optional, Sequence, Tuple

from .dtypes import ScalarType, scalar_type
from .errors import NotWriteableError
from .layout import Layout
from .memory import RawBuffer

np: Any | None = None
_HAS_NUMPY = False


def _attempt_enable_numpy() -> bool:
    """Import NumPy lazily and cache the module if it becomes available."""

    global np, _HAS_NUMPY

    if _HAS_NUMPY:
        return True

    try:
        np_module = importlib.import_module("numpy")
    except ModuleNotFoundError:
        return False

    np = np_module
    _HAS_NUMPY = True
    return True


def _ensure_numpy_available(message: str) -> None:
    """Ensure NumPy is importable, raising ``ModuleNotFoundError`` otherwise."""

    if _attempt_enable_numpy():
        return
    raise ModuleNotFoundError(message)


class _Empty:
    """Marker for "no base object": :meth:`ForeignArray.make` copies the data."""

    _instance: Optional["_Empty"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False


EMPTY = _Empty()


class _ArrayOwner:
    """Exposes raw memory through the array interface.

    NumPy records an instance of this class as the ``base`` of the array it
    builds, so ``base`` (a capsule, a parent object or ``None``) and the
    memory itself stay reachable for as long as the array does.
    """

    def __init__(self, interface: dict, base: Any, memory: Any):
        self.__array_interface__ = interface
        self.base = base
        self.memory = memory


class ForeignArray:
    """Read-only accessors and a constructor over a NumPy array."""

    __slots__ = ("_array",)

    def __init__(self, array: Any):
        _ensure_numpy_available("NumPy is required to exchange tensors with NumPy arrays.")
        if not isinstance(array, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(array).__name__}")
        self._array = array

    @staticmethod
    def is_array(obj: Any) -> bool:
        _ensure_numpy_available("NumPy is required to exchange tensors with NumPy arrays.")
        return isinstance(obj, np.ndarray)

    @property
    def array(self):
        return self._array

    @property
    def ndim(self) -> int:
        return self._array.ndim

    def rank(self) -> int:
        return self._array.ndim

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._array.shape)

    @property
    def dtype(self):
        return self._array.dtype

    @property
    def scalar_type(self) -> Optional[ScalarType]:
        """The matching element type, or ``None`` if there is none."""
        try:
            scalar = scalar_type(self._array.dtype.name)
        except ValueError:
            return None
        if self._array.dtype != np.dtype(scalar.numpy_name):
            return None
        return scalar

    def has_layout(self, layout: Layout) -> bool:
        """Whether the array carries the contiguity flag of ``layout``."""
        flags = self._array.flags
        if layout is Layout.ROW_MAJOR:
            return bool(flags.c_contiguous)
        return bool(flags.f_contiguous)

    @property
    def layout(self) -> Optional[Layout]:
        for candidate in (Layout.ROW_MAJOR, Layout.COL_MAJOR):
            if self.has_layout(candidate):
                return candidate
        return None

    @property
    def writeable(self) -> bool:
        return bool(self._array.flags.writeable)

    def _raw(self) -> RawBuffer:
        array = self._array
        if self.layout is None:
            raise ValueError("Array memory is not contiguous")
        # order="A" keeps memory order for Fortran-contiguous arrays, so this is a view
        flat = array.reshape(-1, order="A").view(np.uint8)
        address = array.__array_interface__["data"][0]
        return RawBuffer(memoryview(flat), address, array)

    def data(self) -> RawBuffer:
        """Read-only access to the array's memory."""
        return self._raw().as_readonly()

    def mutable_data(self) -> RawBuffer:
        """Writable access to the array's memory."""
        if not self.writeable:
            raise NotWriteableError("array is not writeable")
        return self._raw()

    def set_writeable(self, writeable: bool) -> None:
        self._array.flags.writeable = writeable

    def release(self):
        """Hand the wrapped array to the caller."""
        return self._array

    @classmethod
    def coerce(cls, obj: Any, scalar: ScalarType, layout: Layout) -> Optional["ForeignArray"]:
        """Convert ``obj`` to a contiguous array of ``scalar`` in ``layout``.

        NumPy arrays and scalars are only converted when NumPy considers the
        cast safe; other Python objects are converted by ``numpy.asarray``.
        Returns ``None`` when ``obj`` cannot be converted.
        """

        _ensure_numpy_available("NumPy is required to exchange tensors with NumPy arrays.")
        target = np.dtype(scalar.numpy_name)
        try:
            if isinstance(obj, (np.ndarray, np.generic)):
                array = np.asarray(obj)
                if not np.can_cast(array.dtype, target, casting="safe"):
                    return None
            else:
                array = np.asarray(obj, dtype=target)
            array = np.require(array, dtype=target, requirements=[layout.order])
        except (TypeError, ValueError, OverflowError):
            return None
        return cls(array)

    @classmethod
    def make(
        cls,
        shape: Sequence[int],
        pointer: RawBuffer,
        scalar: ScalarType,
        layout: Layout,
        base: Any = EMPTY,
    ) -> "ForeignArray":
        """Build an array of ``shape`` over the memory behind ``pointer``.

        With ``base=EMPTY`` the result owns an independent copy of the data.
        Otherwise it aliases ``pointer`` and keeps ``base`` (a capsule, a
        parent object, or ``None`` for no binding) alive.
        """

        _ensure_numpy_available("NumPy is required to exchange tensors with NumPy arrays.")
        shape = tuple(int(d) for d in shape)
        dtype = np.dtype(scalar.numpy_name)
        needed = math.prod(shape) * dtype.itemsize
        if pointer.nbytes < needed:
            raise ValueError(
                f"Buffer of {pointer.nbytes} bytes is too small for shape {shape} ({needed} bytes)"
            )

        interface = {
            "version": 3,
            "shape": shape,
            "typestr": dtype.str,
            "data": (pointer.address, pointer.readonly),
            "strides": layout.byte_strides(shape, dtype.itemsize),
        }
        array = np.asarray(_ArrayOwner(interface, base, pointer.owner))
        if base is EMPTY:
            array = array.copy(order=layout.order)
        return cls(array)

    def __repr__(self) -> str:
        return f"ForeignArray(shape={self.shape}, dtype={self.dtype}, layout={self.layout})"


__all__ = ["ForeignArray", "EMPTY"]
