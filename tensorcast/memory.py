# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Raw storage for native tensors.

A :class:`RawBuffer` plays the role of a data pointer: it carries the byte
view, the integer address NumPy needs to alias it and the Python object that
keeps the memory alive.
"""

from __future__ import annotations

import ctypes
import logging
from threading import RLock
from typing import Any, Optional

from .config import get_alloc_alignment

logger = logging.getLogger(__name__)


class RawBuffer:
    """A contiguous byte range with a known address."""

    __slots__ = ("view", "address", "owner")

    def __init__(self, view: memoryview, address: int, owner: Any):
        if view.ndim != 1 or view.format != "B":
            view = view.cast("B")
        self.view = view
        self.address = int(address)
        self.owner = owner

    @property
    def nbytes(self) -> int:
        return self.view.nbytes

    @property
    def readonly(self) -> bool:
        return self.view.readonly

    def elements(self, fmt: str) -> memoryview:
        """View the bytes as a flat sequence of ``fmt`` items."""
        return self.view.cast(fmt)

    def as_readonly(self) -> "RawBuffer":
        if self.readonly:
            return self
        return RawBuffer(self.view.toreadonly(), self.address, self.owner)

    def __repr__(self) -> str:
        access = "ro" if self.readonly else "rw"
        return f"RawBuffer(0x{self.address:x}, nbytes={self.nbytes}, {access})"


def allocate_buffer(nbytes: int, alignment: Optional[int] = None) -> RawBuffer:
    """Allocate ``nbytes`` zeroed bytes whose address is a multiple of ``alignment``."""

    if nbytes < 0:
        raise ValueError(f"Cannot allocate a negative number of bytes ({nbytes})")
    if alignment is None:
        alignment = get_alloc_alignment()

    storage = bytearray(nbytes + alignment)
    base_address = ctypes.addressof(ctypes.c_char.from_buffer(storage))
    offset = -base_address % alignment
    view = memoryview(storage)[offset : offset + nbytes]
    return RawBuffer(view, base_address + offset, storage)


class TensorAllocator:
    """Allocator for tensors relocated by ``MOVE`` casts.

    Every slot handed out by :meth:`allocate` must be returned exactly once
    through :meth:`deallocate`; the counters make leaks and double frees
    observable.
    """

    def __init__(self, alignment: Optional[int] = None):
        self.alignment = alignment
        self.allocations = 0
        self.deallocations = 0
        self._lock = RLock()
        self._slots: set[int] = set()

    @property
    def live(self) -> int:
        """Number of slots currently allocated."""
        with self._lock:
            return len(self._slots)

    def allocate(self, tensor_cls):
        """Return an empty instance of ``tensor_cls`` to move-construct into."""

        slot = tensor_cls._empty(self.alignment)
        with self._lock:
            self._slots.add(id(slot))
            self.allocations += 1
        logger.debug("allocated %s slot 0x%x", tensor_cls.__name__, id(slot))
        return slot

    def deallocate(self, slot) -> None:
        """Destroy ``slot`` and give it back to the allocator."""

        with self._lock:
            if id(slot) not in self._slots:
                raise RuntimeError(
                    f"Slot 0x{id(slot):x} was not allocated by this allocator "
                    "or has already been released"
                )
            self._slots.discard(id(slot))
            self.deallocations += 1
        slot.release()
        logger.debug("deallocated %s slot 0x%x", type(slot).__name__, id(slot))


default_allocator = TensorAllocator()


__all__ = ["RawBuffer", "allocate_buffer", "TensorAllocator", "default_allocator"]
