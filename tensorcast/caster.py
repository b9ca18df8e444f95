# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Conversions between native tensors and NumPy arrays.

Loading goes NumPy -> native and reports incompatible inputs by returning
``False`` (the reason is kept in ``caster.error``) so a caller can try a
different conversion. Casting goes native -> NumPy under a
:class:`~tensorcast.policy.ReturnValuePolicy`; misuse of a policy raises
:class:`~tensorcast.errors.CastPolicyError`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Type, Union

from .capsule import LifetimeCapsule
from .errors import (
    CastPolicyError,
    ElementTypeMismatch,
    LoadError,
    MapIncompatible,
    ShapeMismatch,
)
from .foreign import EMPTY, ForeignArray
from .kind import TensorKind
from .memory import TensorAllocator, default_allocator
from .policy import (
    ReturnValuePolicy,
    as_policy,
    as_source,
    resolve_map_policy,
    resolve_tensor_policy,
)
from .tensor import Tensor, TensorMap, map_type

logger = logging.getLogger(__name__)


def _delete_tensor(tensor: Tensor) -> None:
    tensor.release()


def _finish(result: ForeignArray, writeable: bool):
    if not writeable:
        result.set_writeable(False)
    return result.release()


class _CasterBase:
    """State shared by both casters: the target type and the last load outcome."""

    def __init__(self, cls: type, base: type):
        if not (isinstance(cls, type) and issubclass(cls, base)) or cls.kind is None:
            raise TypeError(f"{type(self).__name__} expects a concrete {base.__name__} type, got {cls!r}")
        self.type = cls
        self.value = None
        self.error: Optional[LoadError] = None

    @property
    def kind(self) -> TensorKind:
        return self.type.kind

    @property
    def name(self) -> str:
        """Descriptor used in diagnostics."""
        return self.kind.descriptor()

    def _reject(self, error: LoadError) -> bool:
        self.value = None
        self.error = error
        logger.debug("%s rejected input: %s", self.type.__name__, error)
        return False

    def _accept(self, value: Any) -> bool:
        self.value = value
        self.error = None
        return True

    def _check_source(self, target: Any) -> None:
        if not isinstance(target, self.type):
            raise TypeError(f"Expected {self.type.__name__}, got {type(target).__name__}")


class TensorCaster(_CasterBase):
    """Converts NumPy arrays to and from an owning tensor type."""

    def __init__(self, tensor_cls: Type[Tensor]):
        super().__init__(tensor_cls, Tensor)

    def load(self, src: Any, convert: bool = True) -> bool:
        """Load ``src`` into a private copy stored in ``self.value``.

        ``convert`` is not consulted: the owning path always copies and lets
        the array adapter decide element type conversions.
        """

        kind = self.kind
        array = ForeignArray.coerce(src, kind.scalar, kind.layout)
        if array is None:
            return self._reject(
                ElementTypeMismatch(f"Cannot convert {type(src).__name__} to {self.name}")
            )

        if array.ndim != kind.rank:
            return self._reject(
                ShapeMismatch(f"Expected rank {kind.rank}, got {array.ndim} for {self.name}")
            )

        shape = array.shape
        if not kind.shape.is_correct_shape(shape):
            return self._reject(ShapeMismatch(f"Shape {shape} does not match {self.name}"))

        view = map_type(self.type, const=True)(array.data(), shape)
        tensor = self.type(*shape)
        tensor.assign(view)
        return self._accept(tensor)

    def cast(
        self,
        src: Any,
        policy: Union[ReturnValuePolicy, str, None] = ReturnValuePolicy.AUTOMATIC,
        parent: Any = None,
        allocator: Optional[TensorAllocator] = None,
    ):
        """Produce a NumPy array from a tensor (optionally wrapped by ``lvalue``,
        ``cref``, ``rvalue`` or ``pointer``) under ``policy``.

        Args:
            src: The tensor or a value-category wrapper around it.
            policy: Ownership policy; automatic policies are resolved from the
                source's value category.
            parent: Object whose lifetime bounds a ``REFERENCE_INTERNAL`` result.
            allocator: Allocator receiving tensors relocated by ``MOVE``.

        Raises:
            CastPolicyError: If ``policy`` cannot be honoured for ``src``.
        """

        source = as_source(src)
        tensor = source.target
        self._check_source(tensor)
        requested = as_policy(policy)
        resolved = resolve_tensor_policy(requested, source)
        if resolved is not requested:
            logger.debug("%s: policy %s resolved to %s", self.type.__name__, requested.value, resolved.value)

        # destroyed tensors raise here, before any capsule or slot exists
        tensor.data()
        base: Any
        if resolved is ReturnValuePolicy.MOVE:
            if source.const:
                raise CastPolicyError("Cannot move from a constant reference")
            allocator = default_allocator if allocator is None else allocator
            relocated = allocator.allocate(type(tensor))
            relocated._move_from(tensor)
            tensor = relocated
            base = LifetimeCapsule(relocated, allocator.deallocate, name=self.type.__name__)
            writeable = True

        elif resolved is ReturnValuePolicy.TAKE_OWNERSHIP:
            if source.const:
                raise CastPolicyError("Cannot take ownership of a const reference")
            base = LifetimeCapsule(tensor, _delete_tensor, name=self.type.__name__)
            writeable = True

        elif resolved is ReturnValuePolicy.COPY:
            base = EMPTY
            writeable = True

        elif resolved is ReturnValuePolicy.REFERENCE:
            base = None
            writeable = not source.const

        elif resolved is ReturnValuePolicy.REFERENCE_INTERNAL:
            if parent is None:
                raise CastPolicyError("reference_internal requires a parent object")
            base = parent
            writeable = not source.const

        else:
            raise CastPolicyError(f"Unhandled return value policy {resolved!r} for {self.type.__name__}")

        kind = self.kind
        result = ForeignArray.make(
            kind.shape.get_shape(tensor), tensor.data(), kind.scalar, kind.layout, base
        )
        return _finish(result, writeable)


class TensorMapCaster(_CasterBase):
    """Aliases NumPy arrays as maps and maps as NumPy arrays, never copying."""

    def __init__(self, map_cls: Type[TensorMap]):
        super().__init__(map_cls, TensorMap)

    def load(self, src: Any, convert: bool = True) -> bool:
        """Alias ``src`` without copying; any mismatch rejects it.

        Raises:
            NotWriteableError: If ``src`` is read-only and the map is not const.
        """

        kind = self.kind
        if not ForeignArray.is_array(src):
            return self._reject(MapIncompatible(f"Expected numpy.ndarray for {self.name}"))
        array = ForeignArray(src)

        if not array.has_layout(kind.layout):
            return self._reject(
                MapIncompatible(f"Array is not {kind.layout.flag_name.split('.')[1]} for {self.name}")
            )

        if array.scalar_type != kind.scalar:
            return self._reject(
                MapIncompatible(f"Array dtype {array.dtype} is not {kind.scalar.name} for {self.name}")
            )

        if array.ndim != kind.rank:
            return self._reject(
                MapIncompatible(f"Expected rank {kind.rank}, got {array.ndim} for {self.name}")
            )

        shape = array.shape
        if not kind.shape.is_correct_shape(shape):
            return self._reject(MapIncompatible(f"Shape {shape} does not match {self.name}"))

        pointer = array.data() if self.type.const else array.mutable_data()
        return self._accept(self.type(pointer, shape))

    def cast(
        self,
        src: Any,
        policy: Union[ReturnValuePolicy, str, None] = ReturnValuePolicy.AUTOMATIC,
        parent: Any = None,
    ):
        """Produce a NumPy array aliasing the map's memory.

        Only ``REFERENCE`` and ``REFERENCE_INTERNAL`` are valid: a map owns no
        buffer that could be copied from, moved or adopted.
        """

        source = as_source(src)
        view = source.target
        self._check_source(view)
        resolved = resolve_map_policy(as_policy(policy), source)
        writeable = not (source.const or view.const)

        if resolved is ReturnValuePolicy.REFERENCE:
            base = None
        elif resolved is ReturnValuePolicy.REFERENCE_INTERNAL:
            if parent is None:
                raise CastPolicyError("reference_internal requires a parent object")
            base = parent
        else:
            raise CastPolicyError(
                f"Invalid return value policy {resolved.value!r} for a tensor map, "
                "must be either reference or reference_internal"
            )

        kind = self.kind
        result = ForeignArray.make(
            kind.shape.get_shape(view), view.data(), kind.scalar, kind.layout, base
        )
        return _finish(result, writeable)


def type_caster(cls: type) -> Union[TensorCaster, TensorMapCaster]:
    """Return a fresh caster for the tensor or map type ``cls``."""

    if isinstance(cls, type) and issubclass(cls, TensorMap):
        return TensorMapCaster(cls)
    if isinstance(cls, type) and issubclass(cls, Tensor):
        return TensorCaster(cls)
    raise TypeError(f"No tensor caster for {cls!r}")


def load_tensor(tensor_cls: Type[Tensor], obj: Any, convert: bool = True) -> Tensor:
    """Copy ``obj`` into a new ``tensor_cls``; raises :class:`ShapeMismatch` on mismatch."""

    caster = TensorCaster(tensor_cls)
    if not caster.load(obj, convert):
        raise caster.error
    return caster.value


def load_map(map_cls: Type[TensorMap], obj: Any) -> TensorMap:
    """Alias ``obj`` as a ``map_cls``; raises :class:`MapIncompatible` on mismatch."""

    caster = TensorMapCaster(map_cls)
    if not caster.load(obj):
        raise caster.error
    return caster.value


def to_numpy(
    src: Any,
    policy: Union[ReturnValuePolicy, str, None] = None,
    parent: Any = None,
    allocator: Optional[TensorAllocator] = None,
):
    """Cast a tensor or map (or a value-category wrapper around one) to NumPy."""

    target = as_source(src).target
    if isinstance(target, TensorMap):
        if allocator is not None:
            raise CastPolicyError("An allocator only applies to the move policy of owning tensors")
        return TensorMapCaster(type(target)).cast(src, policy, parent)
    if isinstance(target, Tensor):
        return TensorCaster(type(target)).cast(src, policy, parent, allocator)
    raise TypeError(f"Cannot convert {type(target).__name__} to a NumPy array")


__all__ = [
    "TensorCaster",
    "TensorMapCaster",
    "type_caster",
    "load_tensor",
    "load_map",
    "to_numpy",
]
