# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pytest

import tensorcast as tc

Matrix = tc.tensor_type("float64", 2)


def test_asarray_on_tensor_copies():
    t = Matrix.from_values([[1.5, 2.5], [3.5, 4.5]])
    arr = np.asarray(t)
    np.testing.assert_allclose(arr, [[1.5, 2.5], [3.5, 4.5]])
    arr[0, 0] = 0
    assert t[0, 0] == 1.5


def test_asarray_with_dtype():
    t = Matrix.from_values([[1, 2], [3, 4]])
    arr = np.asarray(t, dtype=np.int32)
    assert arr.dtype == np.int32
    assert arr.tolist() == [[1, 2], [3, 4]]


def test_asarray_on_map_aliases():
    t = Matrix.from_values([[1, 2], [3, 4]])
    arr = np.asarray(tc.map_type(Matrix).of(t))
    arr[1, 0] = 30
    assert t[1, 0] == 30.0


def test_load_then_copy_round_trip_is_independent():
    source = np.random.default_rng(0).standard_normal((3, 4))
    t = tc.load_tensor(Matrix, source)
    out = tc.to_numpy(t, tc.COPY)
    np.testing.assert_array_equal(out, source)
    assert not np.shares_memory(out, source)
    out[0, 0] = 100
    assert source[0, 0] != 100
    assert t[0, 0] == source[0, 0]


def test_tensor_numpy_accepts_policy():
    t = Matrix.from_values([[1, 2], [3, 4]])
    view = t.numpy(tc.REFERENCE)
    view[0, 1] = 20
    assert t[0, 1] == 20.0
    copy = t.numpy()
    copy[0, 1] = 0
    assert t[0, 1] == 20.0


@pytest.mark.parametrize("dtype", ["int8", "uint16", "int64", "float32", "bool"])
def test_dtypes_survive_round_trip(dtype):
    Vector = tc.tensor_type(dtype, 1)
    source = np.array([1, 0, 1], dtype=dtype)
    t = tc.load_tensor(Vector, source)
    out = tc.to_numpy(t, tc.COPY)
    assert out.dtype == np.dtype(dtype)
    np.testing.assert_array_equal(out, source)


def test_from_values_accepts_arrays():
    t = Matrix.from_values(np.eye(2))
    assert t.tolist() == [[1.0, 0.0], [0.0, 1.0]]


def test_asarray_without_copy_aliases_tensor():
    t = Matrix.from_values([[1, 2], [3, 4]])
    arr = np.asarray(t, copy=False)
    arr[0, 0] = 99
    assert t[0, 0] == 99.0
    assert np.asarray(t, dtype=np.float64, copy=False)[0, 0] == 99


def test_asarray_without_copy_rejects_dtype_change():
    t = Matrix.from_values([[1, 2], [3, 4]])
    with pytest.raises(ValueError):
        np.asarray(t, dtype=np.float32, copy=False)


def test_asarray_without_copy_on_const_map_is_read_only():
    t = Matrix.from_values([[1, 2], [3, 4]])
    arr = np.asarray(tc.map_type(Matrix, const=True).of(t), copy=False)
    assert not arr.flags.writeable
    t[1, 1] = 8
    assert arr[1, 1] == 8
