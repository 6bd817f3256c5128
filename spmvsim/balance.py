"""Load-balanced streaming kernels that pad every row to whole blocks of lanes."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from typing import Any

from .csr import CsrMatrix
from .kernels import padded_length

BALANCE_BLOCK = 8
PAIR_WIDTH = 2

Pair = tuple[Any, Any]


class _Stream:
    """First-in first-out stream that refuses to be read while empty."""

    def __init__(self, name: str, items: Iterable[Any] = ()) -> None:
        self.name = name
        self._items: deque[Any] = deque(items)

    def read(self) -> Any:
        try:
            return self._items.popleft()
        except IndexError:
            raise ValueError(f"stream {self.name!r} read while empty") from None


def _check_pair_block(block: int) -> None:
    if block <= 0 or block % PAIR_WIDTH:
        raise ValueError(f"block must be a positive multiple of {PAIR_WIDTH}")


def _partition_streams(
    matrix: CsrMatrix,
) -> tuple[list[int], list[int], list[float]]:
    row_ends = matrix.row_ptr[1 : matrix.m + 1]
    if len(row_ends) < matrix.m:
        raise ValueError(
            f"row_ptr needs {matrix.m + 1} entries, got {len(matrix.row_ptr)}"
        )
    col_idx = matrix.col_idx[: matrix.nnz]
    val = matrix.val[: matrix.nnz]
    if len(col_idx) < matrix.nnz or len(val) < matrix.nnz:
        raise ValueError(f"fewer than {matrix.nnz} stored entries supplied")
    return row_ends, col_idx, val


def pad_rows(
    row_ends: Iterable[int], block: int = BALANCE_BLOCK
) -> tuple[list[int], list[int]]:
    """Row lengths from ``row_ptr[1..m]`` and those lengths padded to whole blocks."""
    ends = list(row_ends)
    lengths = [cur - prev for prev, cur in zip([0, *ends], ends)]
    pads = [padded_length(length, block) for length in lengths]
    return lengths, pads


def spmv_compute(
    row_ends: Iterable[int],
    col_idx: Iterable[int],
    val: Iterable[float],
    x: Sequence[float],
    block: int = BALANCE_BLOCK,
) -> list[float]:
    """Block-wise multiply-accumulate over padded rows; returns every row result emitted."""
    lengths, pads = pad_rows(row_ends, block)
    rows = _Stream("row", lengths)
    row_pads = _Stream("row_pad", pads)
    cols = _Stream("col_idx", col_idx)
    vals = _Stream("val", val)
    results: list[float] = []

    row_len = 0
    pad_left = 0
    count = 0
    acc = 0.0
    for _ in range(0, sum(pads), block):
        if pad_left == 0:
            row_len = rows.read()
            pad_left = row_pads.read()
            acc = 0.0
            count = 0
        lanes = []
        for _ in range(block):
            if count < row_len:
                col = cols.read()
                lanes.append(vals.read() * x[col])
            else:
                lanes.append(0.0)
            count += 1
        acc += sum(lanes, 0.0)
        pad_left -= block
        if pad_left == 0:
            results.append(acc)
            acc = 0.0
    return results


def spmv_dual(
    first: CsrMatrix, second: CsrMatrix, x: Sequence[float]
) -> tuple[list[float], list[float]]:
    """Run two row partitions through independent compute units sharing ``x``."""
    return (
        spmv_compute(*_partition_streams(first), x, BALANCE_BLOCK),
        spmv_compute(*_partition_streams(second), x, BALANCE_BLOCK),
    )


def pad_vec(
    matrix: CsrMatrix, block: int = BALANCE_BLOCK
) -> tuple[list[int], list[Pair], list[Pair], int]:
    """Pad each row to a whole number of blocks and pack entries into pairs.

    Returns the padded row lengths, the column pairs, the value pairs and the
    padded entry count. An empty row is padded to zero entries.
    """
    _check_pair_block(block)
    ends = matrix.row_ptr[1 : matrix.m + 1]
    if len(ends) < matrix.m:
        raise ValueError(
            f"row_ptr needs {matrix.m + 1} entries, got {len(matrix.row_ptr)}"
        )

    row_pads: list[int] = []
    col_pairs: list[Pair] = []
    val_pairs: list[Pair] = []
    prev = 0
    for cur in ends:
        length = cur - prev
        if length < 0:
            raise ValueError("row length must not be negative")
        row_pad = (length + block - 1) // block * block
        row_pads.append(row_pad)
        filler = row_pad - length
        cols = [*matrix.col_idx[prev:cur], *([0] * filler)]
        vals = [*matrix.val[prev:cur], *([0.0] * filler)]
        if len(cols) != row_pad or len(vals) != row_pad:
            raise ValueError(f"row ends at {cur} beyond the stored entries")
        col_pairs.extend(zip(cols[0::2], cols[1::2]))
        val_pairs.extend(zip(vals[0::2], vals[1::2]))
        prev = cur
    return row_pads, col_pairs, val_pairs, sum(row_pads)


def spmv_stream_vec(
    row_pads: Iterable[int],
    col_pairs: Iterable[Pair],
    val_pairs: Iterable[Pair],
    x: Sequence[float],
    nnz: int,
    block: int = BALANCE_BLOCK,
) -> list[float]:
    """Two-lane vector kernel over pre-padded rows; returns every row result emitted."""
    _check_pair_block(block)
    pads = _Stream("row_pad", row_pads)
    cols = _Stream("col_idx", col_pairs)
    vals = _Stream("val", val_pairs)
    results: list[float] = []

    pad_left = 0
    acc = 0.0
    for _ in range(0, nnz, block):
        if pad_left == 0:
            pad_left = pads.read()
            acc = 0.0
        lanes: list[float] = []
        for _ in range(block // PAIR_WIDTH):
            c0, c1 = cols.read()
            v0, v1 = vals.read()
            lanes.append(v0 * x[c0])
            lanes.append(v1 * x[c1])
        acc += sum(lanes, 0.0)
        pad_left -= block
        if pad_left == 0:
            results.append(acc)
            acc = 0.0
    return results