# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Exception hierarchy shared by the loaders and casters.

Two families exist. ``LoadError`` subclasses are recoverable: a loader reports
them by returning ``False`` so that a caller can try another conversion. The
remaining errors are contract violations and always raise.
"""

from __future__ import annotations


class TensorCastError(Exception):
    """Base class for every error raised by tensorcast."""


class LoadError(TensorCastError, TypeError):
    """The input does not match the requested conversion path."""


class ShapeMismatch(LoadError):
    """Rank or shape of a foreign array is incompatible with a tensor kind."""


class ElementTypeMismatch(ShapeMismatch):
    """The foreign array could not be coerced to the tensor's element type."""


class MapIncompatible(LoadError):
    """A foreign array cannot be aliased by a zero-copy map."""


class CastPolicyError(TensorCastError, RuntimeError):
    """A return value policy was used in a way that would corrupt memory."""


class NotWriteableError(TensorCastError, ValueError):
    """Mutable access was requested on a read-only foreign array."""


class TensorReleasedError(TensorCastError, RuntimeError):
    """A tensor was used after its storage had been destroyed."""


__all__ = [
    "TensorCastError",
    "LoadError",
    "ShapeMismatch",
    "ElementTypeMismatch",
    "MapIncompatible",
    "CastPolicyError",
    "NotWriteableError",
    "TensorReleasedError",
]
