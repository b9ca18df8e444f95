# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

import tensorcast as tc


def test_fixed_descriptor():
    Fixed = tc.fixed_tensor_type("float32", (2, 3))
    assert Fixed.kind.descriptor() == (
        "numpy.ndarray[numpy.float32[2, 3], flags.writeable, flags.c_contiguous]"
    )


def test_dynamic_descriptor():
    Cube = tc.tensor_type("float64", 3, tc.COL_MAJOR)
    assert Cube.kind.descriptor() == (
        "numpy.ndarray[numpy.float64[?, ?, ?], flags.writeable, flags.f_contiguous]"
    )


def test_caster_names_share_the_descriptor():
    Matrix = tc.tensor_type("int32", 2)
    expected = "numpy.ndarray[numpy.int32[?, ?], flags.writeable, flags.c_contiguous]"
    assert tc.type_caster(Matrix).name == expected
    assert tc.type_caster(tc.map_type(Matrix)).name == expected
    assert isinstance(tc.type_caster(tc.map_type(Matrix)), tc.TensorMapCaster)


def test_type_names():
    Matrix = tc.tensor_type("uint8", 2)
    assert Matrix.__name__ == "Tensor[uint8, 2, RowMajor]"
    assert tc.map_type(Matrix, const=True).__name__ == (
        "TensorMap[const Tensor[uint8, 2, RowMajor]]"
    )
    Fixed = tc.fixed_tensor_type("int16", (4,), tc.COL_MAJOR)
    assert Fixed.__name__ == "TensorFixedSize[int16, (4,), ColMajor]"


def test_bool_descriptor_uses_plain_name():
    Flags = tc.tensor_type("bool", 1)
    assert Flags.kind.descriptor() == (
        "numpy.ndarray[bool[?], flags.writeable, flags.c_contiguous]"
    )
