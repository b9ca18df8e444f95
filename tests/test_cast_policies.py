# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import gc
import weakref

import numpy as np
import pytest

import tensorcast as tc

Matrix = tc.tensor_type("float64", 2)


class Tracked(Matrix):
    """Counts how often its storage is destroyed."""

    releases = 0

    def release(self) -> None:
        type(self).releases += 1
        super().release()


class Owner:
    pass


def _matrix():
    return Matrix.from_values([[1, 2], [3, 4]])


def test_copy_is_independent():
    t = _matrix()
    arr = tc.to_numpy(t, tc.COPY)
    assert arr.tolist() == [[1, 2], [3, 4]]
    assert arr.flags.writeable
    arr[0, 0] = 9
    assert t[0, 0] == 1.0
    t[1, 1] = 7
    assert arr[1, 1] == 4


def test_automatic_lvalue_copies():
    t = _matrix()
    arr = tc.to_numpy(t)
    assert not np.shares_memory(arr, np.asarray(t.data().view))
    arr[0, 0] = 9
    assert t[0, 0] == 1.0


def test_copy_of_const_source_is_writeable():
    arr = tc.to_numpy(tc.cref(_matrix()), tc.COPY)
    assert arr.flags.writeable


def test_reference_aliases_source():
    t = _matrix()
    arr = tc.to_numpy(t, tc.REFERENCE)
    assert arr.flags.writeable
    arr[0, 0] = 9
    assert t[0, 0] == 9.0
    t[1, 1] = 7
    assert arr[1, 1] == 7


def test_reference_does_not_extend_tensor_lifetime():
    t = _matrix()
    ref = weakref.ref(t)
    arr = tc.to_numpy(t, tc.REFERENCE)
    del t
    gc.collect()
    assert ref() is None
    assert arr.shape == (2, 2)


def test_const_reference_is_read_only():
    t = _matrix()
    for policy in (tc.REFERENCE, tc.REFERENCE_INTERNAL):
        arr = tc.to_numpy(tc.cref(t), policy, parent=Owner())
        assert not arr.flags.writeable
        assert arr.tolist() == [[1, 2], [3, 4]]
        with pytest.raises(ValueError):
            arr[0, 0] = 5


def test_reference_internal_keeps_parent_alive():
    owner = Owner()
    owner.tensor = _matrix()
    ref = weakref.ref(owner)
    arr = tc.to_numpy(owner.tensor, tc.REFERENCE_INTERNAL, parent=owner)
    arr[0, 1] = 5
    assert owner.tensor[0, 1] == 5.0

    del owner
    gc.collect()
    assert ref() is not None
    del arr
    gc.collect()
    assert ref() is None


def test_reference_internal_requires_parent():
    with pytest.raises(tc.CastPolicyError):
        tc.to_numpy(_matrix(), tc.REFERENCE_INTERNAL)


def test_reference_policies_rejected_for_rvalues():
    for policy in (tc.REFERENCE, tc.REFERENCE_INTERNAL):
        with pytest.raises(tc.CastPolicyError):
            tc.to_numpy(tc.rvalue(_matrix()), policy, parent=Owner())


def test_rvalue_is_moved():
    allocator = tc.TensorAllocator()
    t = _matrix()
    arr = tc.to_numpy(tc.rvalue(t), tc.COPY, allocator=allocator)
    assert arr.tolist() == [[1, 2], [3, 4]]
    assert t.dimensions() == (0, 0)
    assert allocator.live == 1

    del arr
    gc.collect()
    assert allocator.live == 0
    assert allocator.deallocations == 1


def test_move_survives_source_destruction():
    allocator = tc.TensorAllocator()
    t = _matrix()
    ref = weakref.ref(t)
    arr = tc.to_numpy(t, tc.MOVE, allocator=allocator)
    del t
    gc.collect()
    assert ref() is None
    assert arr.flags.writeable
    assert arr.tolist() == [[1, 2], [3, 4]]
    arr[0, 0] = 8
    assert arr[0, 0] == 8


def test_move_destructor_runs_once_after_last_reference():
    allocator = tc.TensorAllocator()
    arr = tc.to_numpy(_matrix(), tc.MOVE, allocator=allocator)
    row = arr[1]
    del arr
    gc.collect()
    assert allocator.live == 1
    assert row.tolist() == [3, 4]

    del row
    gc.collect()
    assert allocator.live == 0
    assert allocator.allocations == 1
    assert allocator.deallocations == 1


def test_move_from_const_is_fatal():
    allocator = tc.TensorAllocator()
    t = _matrix()
    with pytest.raises(tc.CastPolicyError):
        tc.to_numpy(tc.cref(t), tc.MOVE, allocator=allocator)
    with pytest.raises(tc.CastPolicyError):
        tc.to_numpy(tc.rvalue(t, const=True), tc.AUTOMATIC, allocator=allocator)
    assert allocator.allocations == 0
    assert t.tolist() == [[1, 2], [3, 4]]


def test_move_fixed_size_copies_inline_storage():
    Fixed = tc.fixed_tensor_type("int32", (2, 2))
    allocator = tc.TensorAllocator()
    f = Fixed.from_values([[1, 2], [3, 4]])
    arr = tc.to_numpy(f, tc.MOVE, allocator=allocator)
    assert arr.tolist() == [[1, 2], [3, 4]]
    assert f.tolist() == [[1, 2], [3, 4]]
    arr[0, 0] = 9
    assert f[0, 0] == 1


def test_take_ownership_adopts_and_releases_once():
    Tracked.releases = 0
    t = Tracked.from_values([[1, 2], [3, 4]])
    arr = tc.to_numpy(tc.pointer(t), tc.AUTOMATIC)
    assert arr.flags.writeable
    arr[0, 0] = 5
    assert t[0, 0] == 5.0

    view = arr[:, 0]
    del arr
    gc.collect()
    assert Tracked.releases == 0
    del view
    gc.collect()
    assert Tracked.releases == 1
    assert t.released


def test_take_ownership_of_const_is_fatal():
    with pytest.raises(tc.CastPolicyError):
        tc.to_numpy(tc.pointer(_matrix(), const=True), tc.TAKE_OWNERSHIP)


def test_policy_names_and_unknown_policy():
    t = _matrix()
    arr = tc.to_numpy(t, "reference")
    arr[0, 0] = 6
    assert t[0, 0] == 6.0
    with pytest.raises(tc.CastPolicyError):
        tc.to_numpy(t, "bogus")
    with pytest.raises(tc.CastPolicyError):
        tc.to_numpy(t, 42)


def test_released_tensor_cannot_be_cast():
    t = _matrix()
    t.release()
    with pytest.raises(tc.TensorReleasedError):
        tc.to_numpy(t, tc.COPY)


def test_col_major_reference():
    ColMatrix = tc.tensor_type("float32", 2, tc.COL_MAJOR)
    t = ColMatrix.from_values([[1, 2, 3], [4, 5, 6]])
    arr = tc.to_numpy(t, tc.REFERENCE)
    assert arr.flags.f_contiguous
    assert arr.dtype == np.float32
    assert arr.tolist() == [[1, 2, 3], [4, 5, 6]]


def test_fixed_shape_result_matches_dims():
    Fixed = tc.fixed_tensor_type("float32", (3, 1))
    arr = tc.to_numpy(Fixed(), tc.COPY)
    assert arr.shape == (3, 1)


def test_caster_checks_source_type():
    other = tc.tensor_type("float32", 2)(1, 1)
    with pytest.raises(TypeError):
        tc.TensorCaster(Matrix).cast(other, tc.COPY)
    with pytest.raises(TypeError):
        tc.to_numpy(object())
