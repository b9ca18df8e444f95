# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

from __future__ import annotations

import logging

from . import policy
from .caster import (
    TensorCaster,
    TensorMapCaster,
    load_map,
    load_tensor,
    to_numpy,
    type_caster,
)
from .capsule import LifetimeCapsule
from .config import (
    default_dtype,
    default_layout,
    get_alloc_alignment,
    get_default_dtype,
    get_default_layout,
    set_alloc_alignment,
    set_default_dtype,
    set_default_layout,
)
from .dtypes import SCALAR_TYPES, ScalarType, scalar_type
from .errors import (
    CastPolicyError,
    ElementTypeMismatch,
    LoadError,
    MapIncompatible,
    NotWriteableError,
    ShapeMismatch,
    TensorCastError,
    TensorReleasedError,
)
from .foreign import ForeignArray
from .kind import TensorKind
from .layout import Layout
from .memory import RawBuffer, TensorAllocator, allocate_buffer
from .policy import ReturnValuePolicy, cref, lvalue, pointer, rvalue
from .shape import DynamicShape, FixedShape, ShapeDescriptor
from .tensor import (
    Tensor,
    TensorFixedSize,
    TensorMap,
    fixed_tensor_type,
    map_type,
    tensor_type,
)

try:
    from ._version import __version__, __version_tuple__
except ImportError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.1.0"
    __version_tuple__ = (0, 1, 0)

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Policy shorthands mirroring the enum members.
COPY = ReturnValuePolicy.COPY
MOVE = ReturnValuePolicy.MOVE
TAKE_OWNERSHIP = ReturnValuePolicy.TAKE_OWNERSHIP
REFERENCE = ReturnValuePolicy.REFERENCE
REFERENCE_INTERNAL = ReturnValuePolicy.REFERENCE_INTERNAL
AUTOMATIC = ReturnValuePolicy.AUTOMATIC
AUTOMATIC_REFERENCE = ReturnValuePolicy.AUTOMATIC_REFERENCE

ROW_MAJOR = Layout.ROW_MAJOR
COL_MAJOR = Layout.COL_MAJOR


__all__ = [
    "Tensor",
    "TensorFixedSize",
    "TensorMap",
    "tensor_type",
    "fixed_tensor_type",
    "map_type",
    "TensorKind",
    "ShapeDescriptor",
    "DynamicShape",
    "FixedShape",
    "ScalarType",
    "SCALAR_TYPES",
    "scalar_type",
    "Layout",
    "ROW_MAJOR",
    "COL_MAJOR",
    "ForeignArray",
    "RawBuffer",
    "allocate_buffer",
    "TensorAllocator",
    "LifetimeCapsule",
    "policy",
    "ReturnValuePolicy",
    "COPY",
    "MOVE",
    "TAKE_OWNERSHIP",
    "REFERENCE",
    "REFERENCE_INTERNAL",
    "AUTOMATIC",
    "AUTOMATIC_REFERENCE",
    "lvalue",
    "cref",
    "rvalue",
    "pointer",
    "TensorCaster",
    "TensorMapCaster",
    "type_caster",
    "load_tensor",
    "load_map",
    "to_numpy",
    "TensorCastError",
    "LoadError",
    "ShapeMismatch",
    "ElementTypeMismatch",
    "MapIncompatible",
    "CastPolicyError",
    "NotWriteableError",
    "TensorReleasedError",
    "set_default_dtype",
    "get_default_dtype",
    "default_dtype",
    "set_default_layout",
    "get_default_layout",
    "default_layout",
    "set_alloc_alignment",
    "get_alloc_alignment",
]
