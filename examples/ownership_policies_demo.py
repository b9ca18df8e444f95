# Copyright (c) 2025 Soumyadip Sarkar.
# All rights reserved.
#
# This source code is licensed under the Apache-style license found in the
# LICENSE file in the root directory of this source tree.

"""
Ownership Policies Demo for tensorcast

This script shows what each return value policy does when a native tensor
is handed to NumPy:
1. COPY produces an independent array
2. REFERENCE and REFERENCE_INTERNAL alias the tensor's storage
3. MOVE relocates the tensor and frees it with the last array
4. TAKE_OWNERSHIP adopts a heap tensor
5. Misused policies fail loudly
"""

import gc

import tensorcast as tc

Matrix = tc.tensor_type("float64", 2)


def banner(title):
    print("=" * 60)
    print(title)
    print("=" * 60)


def demo_copy():
    banner("COPY")
    t = Matrix.from_values([[1, 2], [3, 4]])
    arr = tc.to_numpy(t, tc.COPY)
    arr[0, 0] = 100
    print(f"array after write: {arr.tolist()}")
    print(f"tensor unchanged:  {t.tolist()}")


def demo_reference():
    banner("REFERENCE / REFERENCE_INTERNAL")
    t = Matrix.from_values([[1, 2], [3, 4]])
    arr = tc.to_numpy(t, tc.REFERENCE)
    arr[1, 1] = -4
    print(f"tensor sees the write: {t.tolist()}")

    read_only = tc.to_numpy(tc.cref(t), tc.REFERENCE)
    print(f"const reference writeable: {read_only.flags.writeable}")

    class Holder:
        pass

    holder = Holder()
    holder.matrix = t
    internal = tc.to_numpy(holder.matrix, tc.REFERENCE_INTERNAL, parent=holder)
    print(f"array base keeps the holder alive: {internal.base.base is holder}")


def demo_move():
    banner("MOVE")
    allocator = tc.TensorAllocator()
    t = Matrix.from_values([[5, 6], [7, 8]])
    arr = tc.to_numpy(tc.rvalue(t), allocator=allocator)
    print(f"moved array:          {arr.tolist()}")
    print(f"source dimensions:    {t.dimensions()}")
    print(f"live allocator slots: {allocator.live}")
    del arr
    gc.collect()
    print(f"after the array dies: {allocator.live}")


def demo_take_ownership():
    banner("TAKE_OWNERSHIP")
    t = Matrix.from_values([[9, 8], [7, 6]])
    arr = tc.to_numpy(tc.pointer(t))
    print(f"adopted array: {arr.tolist()}")
    del arr
    gc.collect()
    print(f"tensor released with the array: {t.released}")


def demo_errors():
    banner("POLICY ERRORS")
    t = Matrix(2, 2)
    attempts = [
        ("reference to an rvalue", lambda: tc.to_numpy(tc.rvalue(t), tc.REFERENCE)),
        ("move from a const reference", lambda: tc.to_numpy(tc.cref(t), tc.MOVE)),
        ("copy of a map", lambda: tc.to_numpy(tc.map_type(Matrix).of(t), tc.COPY)),
        ("reference_internal without parent", lambda: tc.to_numpy(t, tc.REFERENCE_INTERNAL)),
    ]
    for label, attempt in attempts:
        try:
            attempt()
        except tc.CastPolicyError as exc:
            print(f"{label}: {exc}")


def main():
    demo_copy()
    demo_reference()
    demo_move()
    demo_take_ownership()
    demo_errors()
    return 0


if __name__ == "__main__":
    exit(main())
