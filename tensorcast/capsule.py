# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

from __future__ import annotations

import logging
import weakref
from typing import Any, Callable, Optional

from .errors import TensorReleasedError

logger = logging.getLogger(__name__)


class LifetimeCapsule:
    """Binds a pointer to a destructor that runs exactly once.

    The destructor is invoked with the pointer when the capsule is garbage
    collected (typically when the last NumPy array using it as ``base`` goes
    away) or when :meth:`release` is called, whichever happens first. The
    destructor must not reference the capsule itself.
    """

    __slots__ = ("_pointer", "_name", "_finalizer", "__weakref__")

    def __init__(
        self,
        pointer: Any,
        destructor: Callable[[Any], None],
        name: Optional[str] = None,
    ):
        self._pointer = pointer
        self._name = name
        self._finalizer = weakref.finalize(self, _destroy, destructor, pointer, name)

    @property
    def pointer(self) -> Any:
        if not self._finalizer.alive:
            raise TensorReleasedError("Capsule has already been released")
        return self._pointer

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def alive(self) -> bool:
        return self._finalizer.alive

    def release(self) -> None:
        """Run the destructor now; later releases are no-ops."""
        self._finalizer()

    def __repr__(self) -> str:
        state = "alive" if self.alive else "released"
        label = f" {self._name!r}" if self._name else ""
        return f"<LifetimeCapsule{label} {state}>"


def _destroy(destructor: Callable[[Any], None], pointer: Any, name: Optional[str]) -> None:
    logger.debug("capsule %s: destroying %s", name or "<unnamed>", type(pointer).__name__)
    destructor(pointer)


__all__ = ["LifetimeCapsule"]
