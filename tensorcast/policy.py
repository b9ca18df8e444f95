# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Return value policies and source value categories.

Python has no const references, rvalues or raw pointers, so a source passed
to a caster may be wrapped to say how it should be treated:

* a bare object, ``lvalue(obj)`` or ``cref(obj)`` is a named value the caller
  keeps (``cref`` additionally forbids mutation through the result);
* ``rvalue(obj)`` is a temporary the caster may steal from;
* ``pointer(obj)`` is a heap object whose ownership may be adopted.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .errors import CastPolicyError


class ReturnValuePolicy(enum.Enum):
    """Who owns the buffer of a produced array, and for how long."""

    AUTOMATIC = "automatic"
    AUTOMATIC_REFERENCE = "automatic_reference"
    TAKE_OWNERSHIP = "take_ownership"
    COPY = "copy"
    MOVE = "move"
    REFERENCE = "reference"
    REFERENCE_INTERNAL = "reference_internal"


class ValueCategory(enum.Enum):
    LVALUE = "lvalue"
    RVALUE = "rvalue"
    POINTER = "pointer"


@dataclass(frozen=True)
class Source:
    """An object to cast together with its value category and constness."""

    target: Any
    category: ValueCategory = ValueCategory.LVALUE
    const: bool = False


def _wrap(obj: Any, category: ValueCategory, const: bool) -> Source:
    if isinstance(obj, Source):
        obj = obj.target
    return Source(obj, category, bool(const))


def lvalue(obj: Any, const: bool = False) -> Source:
    return _wrap(obj, ValueCategory.LVALUE, const)


def cref(obj: Any) -> Source:
    """A const lvalue reference to ``obj``."""
    return _wrap(obj, ValueCategory.LVALUE, True)


def rvalue(obj: Any, const: bool = False) -> Source:
    return _wrap(obj, ValueCategory.RVALUE, const)


def pointer(obj: Any, const: bool = False) -> Source:
    return _wrap(obj, ValueCategory.POINTER, const)


def as_source(obj: Any) -> Source:
    """Normalise ``obj`` to a :class:`Source`; bare objects are non-const lvalues."""
    if isinstance(obj, Source):
        return obj
    return Source(obj)


def as_policy(policy: Any) -> ReturnValuePolicy:
    """Accept a ``ReturnValuePolicy``, its name or its value; ``None`` means automatic."""

    if policy is None:
        return ReturnValuePolicy.AUTOMATIC
    if isinstance(policy, ReturnValuePolicy):
        return policy
    if isinstance(policy, str):
        try:
            return ReturnValuePolicy(policy.lower())
        except ValueError:
            pass
        try:
            return ReturnValuePolicy[policy.upper()]
        except KeyError:
            pass
    raise CastPolicyError(f"Unrecognized return value policy {policy!r}")


_REFERENCE_POLICIES = (ReturnValuePolicy.REFERENCE, ReturnValuePolicy.REFERENCE_INTERNAL)


def resolve_tensor_policy(policy: ReturnValuePolicy, source: Source) -> ReturnValuePolicy:
    """Rewrite ``policy`` for an owning tensor according to the source's category."""

    if source.category is ValueCategory.RVALUE:
        if policy in _REFERENCE_POLICIES:
            raise CastPolicyError("Cannot use a reference return value policy for an rvalue")
        return ReturnValuePolicy.MOVE
    return _resolve_automatic(policy, source)


def resolve_map_policy(policy: ReturnValuePolicy, source: Source) -> ReturnValuePolicy:
    """Rewrite ``policy`` for a map; rvalue maps keep the requested policy."""

    if source.category is ValueCategory.RVALUE:
        return policy
    return _resolve_automatic(policy, source)


def _resolve_automatic(policy: ReturnValuePolicy, source: Source) -> ReturnValuePolicy:
    if source.category is ValueCategory.LVALUE:
        if policy in (ReturnValuePolicy.AUTOMATIC, ReturnValuePolicy.AUTOMATIC_REFERENCE):
            return ReturnValuePolicy.COPY
        return policy
    if policy is ReturnValuePolicy.AUTOMATIC:
        return ReturnValuePolicy.TAKE_OWNERSHIP
    if policy is ReturnValuePolicy.AUTOMATIC_REFERENCE:
        return ReturnValuePolicy.REFERENCE
    return policy


__all__ = [
    "ReturnValuePolicy",
    "ValueCategory",
    "Source",
    "lvalue",
    "cref",
    "rvalue",
    "pointer",
    "as_source",
    "as_policy",
    "resolve_tensor_policy",
    "resolve_map_policy",
]
