# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Zero-copy maps between NumPy and tensorcast.

Loads a NumPy array as a writable map, edits it from both sides and shows
which arrays a map refuses to alias.
"""

import numpy as np

import tensorcast as tc

Matrix = tc.tensor_type("float32", 2)
MatrixMap = tc.map_type(Matrix)


def main():
    source = np.arange(12, dtype=np.float32).reshape(3, 4)
    view = tc.load_map(MatrixMap, source)
    view[0, 0] = -1
    print(f"NumPy sees the map write: {source[0, 0]}")

    back = tc.to_numpy(view, tc.REFERENCE)
    print(f"round trip shares memory: {np.shares_memory(back, source)}")

    # Whatever a map cannot alias is rejected rather than copied.
    caster = tc.type_caster(MatrixMap)
    candidates = {
        "float64 array": source.astype(np.float64),
        "Fortran-ordered array": np.asfortranarray(source),
        "strided slice": source[:, ::2],
        "nested list": source.tolist(),
    }
    for label, candidate in candidates.items():
        accepted = caster.load(candidate)
        print(f"{label:>22}: accepted={accepted} ({caster.error})")

    owning = tc.load_tensor(Matrix, source[:, ::2])
    print(f"an owning tensor copies instead: {owning.dimensions()}")
    return 0


if __name__ == "__main__":
    exit(main())
