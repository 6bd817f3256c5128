"""Command-line testbench: load a problem, run a kernel model and check it."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .balance import pad_vec, spmv_compute, spmv_dual, spmv_stream_vec
from .csr import CsrMatrix, read_csr, read_csr_partition, read_dense_x, reference_spmv
from .kernels import (
    spmv_csr,
    spmv_fast_stream,
    spmv_naive_stream,
    spmv_row_ptr_stream,
)

KERNELS = ("vec", "stream", "balanced", "csr", "naive", "naive-stream", "fast")
DEFAULT_EPS = 1e-3
_REPORTED_MISMATCHES = 9

# (max rows, max columns, max stored entries) for each kernel design
_LIMITS = {
    "csr": (512, 512, 20000),
    "naive": (256, 256, 4096),
}
_DEFAULT_LIMITS = (256, 256, 20000)


@dataclass(frozen=True)
class Comparison:
    """Rows where a computed result differs from the golden one by more than ``eps``."""

    mismatches: tuple[tuple[int, float, float], ...]
    eps: float = DEFAULT_EPS

    @property
    def errors(self) -> int:
        return len(self.mismatches)

    @property
    def passed(self) -> bool:
        return not self.mismatches


def compare(
    gold: Sequence[float], hw: Sequence[float], eps: float = DEFAULT_EPS
) -> Comparison:
    """Compare two result vectors element by element with an absolute tolerance."""
    if len(gold) != len(hw):
        raise ValueError(f"length mismatch: {len(gold)} golden rows, {len(hw)} computed")
    mismatches = tuple(
        (row, g, h) for row, (g, h) in enumerate(zip(gold, hw)) if abs(g - h) > eps
    )
    return Comparison(mismatches=mismatches, eps=eps)


def _first(results: list[float], count: int) -> list[float]:
    if len(results) < count:
        raise ValueError(f"kernel produced {len(results)} row results, expected {count}")
    return results[:count]


def _check_limits(kernel: str, matrix: CsrMatrix, x: Sequence[float]) -> None:
    max_m, max_n, max_sz = _LIMITS.get(kernel, _DEFAULT_LIMITS)
    if matrix.m > max_m or matrix.n > max_n or matrix.nnz > max_sz:
        raise ValueError(
            f"problem {matrix.m}x{matrix.n} with {matrix.nnz} entries exceeds "
            f"the {kernel} limits {max_m}x{max_n} with {max_sz} entries"
        )
    if len(x) != matrix.n:
        raise ValueError(f"x has {len(x)} entries, matrix has {matrix.n} columns")


def _run_balanced(matrix: CsrMatrix, x: Sequence[float], directory: Path) -> list[float]:
    first = read_csr_partition(0, directory)
    second = read_csr_partition(1, directory)
    for part in (first, second):
        print(f"{part.m} {part.n} {part.nnz}")
    hw = [0.0] * matrix.m
    for part, results in zip((first, second), spmv_dual(first, second, x)):
        rows = range(part.row_start, part.row_end + 1)
        if rows and (rows.start < 0 or rows.stop > matrix.m):
            raise ValueError(f"partition rows {rows.start}..{rows.stop - 1} outside the matrix")
        for row, value in zip(rows, _first(results, len(rows))):
            hw[row] = value
    return hw


def _run_kernel(
    kernel: str, matrix: CsrMatrix, x: Sequence[float], directory: Path
) -> list[float]:
    a = matrix
    row_ends = a.row_ptr[1 : a.m + 1]
    if kernel == "csr":
        return spmv_csr(a.row_ptr, a.col_idx, a.val, x, a.m)
    if kernel == "naive":
        return spmv_naive_stream(a.row_ptr, a.col_idx, a.val, x, a.m, a.nnz)
    if kernel == "fast":
        return spmv_fast_stream(a.row_ptr, a.col_idx, a.val, x, a.m, a.nnz)
    if kernel == "naive-stream":
        results = spmv_row_ptr_stream(row_ends, a.col_idx[: a.nnz], a.val[: a.nnz], x, a.nnz)
        print("End function")
        return _first(results, a.m)
    if kernel == "stream":
        results = spmv_compute(row_ends, a.col_idx[: a.nnz], a.val[: a.nnz], x)
        print("End function")
        return _first(results, a.m)
    if kernel == "vec":
        row_pads, col_pairs, val_pairs, nnz = pad_vec(a)
        return _first(spmv_stream_vec(row_pads, col_pairs, val_pairs, x, nnz), a.m)
    if kernel == "balanced":
        return _run_balanced(a, x, directory)
    raise ValueError(f"unknown kernel {kernel!r}")


def main(argv: Sequence[str] | None = None) -> int:
    """Run a kernel model on the problem in a directory and compare with the reference."""
    parser = argparse.ArgumentParser(
        prog="spmvsim",
        description="Check a sparse matrix-vector kernel model against a software reference.",
    )
    parser.add_argument("directory", nargs="?", default=".", help="directory holding the problem files")
    parser.add_argument("--kernel", choices=KERNELS, default="vec", help="kernel model to run")
    parser.add_argument("--eps", type=float, default=DEFAULT_EPS, help="absolute tolerance")
    args = parser.parse_args(argv)

    directory = Path(args.directory)
    try:
        matrix = read_csr(directory)
        x = read_dense_x(directory)
        _check_limits(args.kernel, matrix, x)
        hw = _run_kernel(args.kernel, matrix, x, directory)
        gold = reference_spmv(matrix, x)
        result = compare(gold, hw, args.eps)
    except (OSError, ValueError, IndexError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    for row, g, h in result.mismatches[:_REPORTED_MISMATCHES]:
        print(f"[mismatch] row {row}  gold={g:g}  hw={h:g}", file=sys.stderr)
    if result.passed:
        print("✓ PASS – HW matches SW reference.")
        return 0
    print(f"✗ FAIL – {result.errors} mismatches.")
    return 1


if __name__ == "__main__":
    sys.exit(main())