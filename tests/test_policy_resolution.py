# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import pytest

import tensorcast as tc
from tensorcast.policy import (
    ReturnValuePolicy as P,
    as_policy,
    as_source,
    resolve_map_policy,
    resolve_tensor_policy,
)

OBJ = object()


@pytest.mark.parametrize(
    "policy, expected",
    [
        (P.AUTOMATIC, P.COPY),
        (P.AUTOMATIC_REFERENCE, P.COPY),
        (P.COPY, P.COPY),
        (P.MOVE, P.MOVE),
        (P.TAKE_OWNERSHIP, P.TAKE_OWNERSHIP),
        (P.REFERENCE, P.REFERENCE),
        (P.REFERENCE_INTERNAL, P.REFERENCE_INTERNAL),
    ],
)
def test_lvalue_resolution(policy, expected):
    assert resolve_tensor_policy(policy, tc.lvalue(OBJ)) is expected
    assert resolve_tensor_policy(policy, tc.cref(OBJ)) is expected
    assert resolve_map_policy(policy, as_source(OBJ)) is expected


@pytest.mark.parametrize(
    "policy, expected",
    [
        (P.AUTOMATIC, P.TAKE_OWNERSHIP),
        (P.AUTOMATIC_REFERENCE, P.REFERENCE),
        (P.COPY, P.COPY),
        (P.REFERENCE_INTERNAL, P.REFERENCE_INTERNAL),
    ],
)
def test_pointer_resolution(policy, expected):
    assert resolve_tensor_policy(policy, tc.pointer(OBJ)) is expected
    assert resolve_map_policy(policy, tc.pointer(OBJ)) is expected


@pytest.mark.parametrize(
    "policy", [P.AUTOMATIC, P.AUTOMATIC_REFERENCE, P.COPY, P.MOVE, P.TAKE_OWNERSHIP]
)
def test_rvalue_tensors_always_move(policy):
    assert resolve_tensor_policy(policy, tc.rvalue(OBJ)) is P.MOVE


@pytest.mark.parametrize("policy", [P.REFERENCE, P.REFERENCE_INTERNAL])
def test_rvalue_tensor_reference_is_fatal(policy):
    with pytest.raises(tc.CastPolicyError, match="rvalue"):
        resolve_tensor_policy(policy, tc.rvalue(OBJ))


@pytest.mark.parametrize("policy", list(P))
def test_rvalue_maps_keep_policy(policy):
    assert resolve_map_policy(policy, tc.rvalue(OBJ)) is policy


def test_as_policy_accepts_names_and_values():
    assert as_policy(None) is P.AUTOMATIC
    assert as_policy(P.MOVE) is P.MOVE
    assert as_policy("reference_internal") is P.REFERENCE_INTERNAL
    assert as_policy("TAKE_OWNERSHIP") is P.TAKE_OWNERSHIP
    with pytest.raises(tc.CastPolicyError):
        as_policy("borrow")
    with pytest.raises(tc.CastPolicyError):
        as_policy(3)


def test_wrappers_unwrap_nested_sources():
    source = tc.rvalue(tc.cref(OBJ))
    assert source.target is OBJ
    assert source.category is tc.policy.ValueCategory.RVALUE
    assert not source.const
    assert tc.cref(OBJ).const
    assert as_source(OBJ) == tc.lvalue(OBJ)
