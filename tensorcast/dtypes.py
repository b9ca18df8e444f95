# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""Element types understood by native tensors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Union


@dataclass(frozen=True)
class ScalarType:
    """A fixed-width element type.

    ``format`` is the :mod:`struct` character used to view native storage,
    ``numpy_name`` the name NumPy knows the type by, and ``descriptor_name``
    the spelling used in diagnostics.
    """

    name: str
    format: str
    itemsize: int
    python_type: Callable[[Any], Any]

    @property
    def numpy_name(self) -> str:
        return self.name

    @property
    def descriptor_name(self) -> str:
        if self.name == "bool":
            return "bool"
        return f"numpy.{self.name}"

    def coerce(self, value: Any) -> Any:
        """Convert ``value`` into the Python object stored for this type."""
        return self.python_type(value)

    def __str__(self) -> str:
        return self.name


_SCALAR_TYPES: Tuple[ScalarType, ...] = (
    ScalarType("bool", "?", 1, bool),
    ScalarType("int8", "b", 1, int),
    ScalarType("int16", "h", 2, int),
    ScalarType("int32", "i", 4, int),
    ScalarType("int64", "q", 8, int),
    ScalarType("uint8", "B", 1, int),
    ScalarType("uint16", "H", 2, int),
    ScalarType("uint32", "I", 4, int),
    ScalarType("uint64", "Q", 8, int),
    ScalarType("float32", "f", 4, float),
    ScalarType("float64", "d", 8, float),
)

SCALAR_TYPES: Dict[str, ScalarType] = {s.name: s for s in _SCALAR_TYPES}

# Aliases accepted wherever a dtype name is expected.
_ALIASES = {
    "single": "float32",
    "double": "float64",
    "float": "float64",
    "int": "int64",
    "long": "int64",
    "bool_": "bool",
}


def scalar_type(dtype: Union[str, ScalarType, Any]) -> ScalarType:
    """Resolve ``dtype`` (a name, a ``ScalarType`` or a NumPy dtype-like) to a ``ScalarType``."""

    if isinstance(dtype, ScalarType):
        return dtype

    if not isinstance(dtype, str):
        name = getattr(dtype, "name", None)
        if not isinstance(name, str) and isinstance(dtype, type):
            name = dtype.__name__
        if not isinstance(name, str):
            raise ValueError(f"Unsupported dtype '{dtype}'")
        dtype = name

    key = _ALIASES.get(dtype, dtype)
    try:
        return SCALAR_TYPES[key]
    except KeyError:
        raise ValueError(f"Unsupported dtype '{dtype}'") from None


__all__ = ["ScalarType", "SCALAR_TYPES", "scalar_type"]
