"""Behavioural models of the CSR and streaming sparse matrix-vector kernels."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from itertools import islice
from typing import Any

FAST_STREAM_BLOCK = 4


class _Fifo:
    """First-in first-out stream that refuses to be read while empty."""

    def __init__(self, name: str, items: Iterable[Any] = ()) -> None:
        self.name = name
        self._items: deque[Any] = deque(items)

    def write(self, item: Any) -> None:
        self._items.append(item)

    def read(self) -> Any:
        try:
            return self._items.popleft()
        except IndexError:
            raise ValueError(f"stream {self.name!r} read while empty") from None

    def __len__(self) -> int:
        return len(self._items)


def _row_lengths(row_ptr: Sequence[int], m: int) -> list[int]:
    """Row lengths taken from ``row_ptr[1..m]`` with the first row starting at zero."""
    ends = list(row_ptr[1 : m + 1])
    if len(ends) < m:
        raise ValueError(f"row_ptr needs {m + 1} entries, got {len(row_ptr)}")
    starts = [0, *ends[:-1]]
    return [end - start for start, end in zip(starts, ends)]


def _entry_streams(col_idx: Sequence[int], val: Sequence[float], nnz: int) -> tuple[_Fifo, _Fifo]:
    cols = _Fifo("col_idx", islice(col_idx, nnz))
    vals = _Fifo("val", islice(val, nnz))
    if len(cols) < nnz or len(vals) < nnz:
        raise ValueError(f"fewer than {nnz} stored entries supplied")
    return cols, vals


def _drain(fifo: _Fifo, count: int) -> list[float]:
    return [fifo.read() for _ in range(count)]


def padded_length(length: int, block: int) -> int:
    """Round a row length up to a whole number of blocks; an empty row takes one block."""
    if block <= 0:
        raise ValueError("block must be positive")
    if length < 0:
        raise ValueError("row length must not be negative")
    if length == 0:
        return block
    remainder = length % block
    return length + block - remainder if remainder else length


def spmv_csr(
    row_ptr: Sequence[int],
    col_idx: Sequence[int],
    val: Sequence[float],
    x: Sequence[float],
    m: int,
) -> list[float]:
    """Row-by-row CSR product; the first row always starts at entry zero."""
    ends = list(row_ptr[1 : m + 1])
    if len(ends) < m:
        raise ValueError(f"row_ptr needs {m + 1} entries, got {len(row_ptr)}")
    starts = [0, *ends[:-1]]
    return [
        sum((val[k] * x[col_idx[k]] for k in range(start, end)), 0.0)
        for start, end in zip(starts, ends)
    ]


def spmv_naive_stream(
    row_ptr: Sequence[int],
    col_idx: Sequence[int],
    val: Sequence[float],
    x: Sequence[float],
    m: int,
    nnz: int,
) -> list[float]:
    """One entry per step through FIFOs; rows without entries break the row count.

    Raises ``ValueError`` when fewer than ``m`` row results are produced.
    """
    lengths = _Fifo("row", _row_lengths(row_ptr, m))
    cols, vals = _entry_streams(col_idx, val, nnz)
    results = _Fifo("y")

    col_left = 0
    acc = 0.0
    for _ in range(nnz):
        if col_left == 0:
            col_left = lengths.read()
            acc = 0.0
        acc += vals.read() * x[cols.read()]
        col_left -= 1
        if col_left == 0:
            results.write(acc)
    return _drain(results, m)


def spmv_row_ptr_stream(
    row_ends: Iterable[int],
    col_idx: Iterable[int],
    val: Iterable[float],
    x: Sequence[float],
    nnz: int,
) -> list[float]:
    """Streamed kernel fed with ``row_ptr[1..m]``; returns every row result it emits."""
    ends = _Fifo("row_ptr", row_ends)
    cols = _Fifo("col_idx", col_idx)
    vals = _Fifo("val", val)
    results: list[float] = []

    row_len = 0
    prev = 0
    acc = 0.0
    for _ in range(nnz):
        if row_len == 0:
            cur = ends.read()
            row_len = cur - prev
            prev = cur
            acc = 0.0
        if row_len == 0:
            col, value = 0, 0.0
        else:
            col, value = cols.read(), vals.read()
        acc += value * x[col]
        row_len -= 1
        if row_len == 0:
            results.append(acc)
    return results


def spmv_fast_stream(
    row_ptr: Sequence[int],
    col_idx: Sequence[int],
    val: Sequence[float],
    x: Sequence[float],
    m: int,
    nnz: int,
    block: int = FAST_STREAM_BLOCK,
) -> list[float]:
    """Block-wise streamed product with rows padded to whole blocks of ``block`` lanes."""
    lengths = _row_lengths(row_ptr, m)
    pads = [padded_length(length, block) for length in lengths]
    total = sum(pads)
    row_fifo = _Fifo("row", lengths)
    pad_fifo = _Fifo("row_pad", pads)
    cols, vals = _entry_streams(col_idx, val, nnz)
    results = _Fifo("y")

    row_len = 0
    pad_left = 0
    count = 0
    acc = 0.0
    for _ in range(0, total, block):
        if pad_left == 0:
            row_len = row_fifo.read()
            pad_left = pad_fifo.read()
            acc = 0.0
            count = 0
        lanes = []
        for _ in range(block):
            count += 1
            if count > row_len:
                lanes.append(0.0)
            else:
                col = cols.read()
                lanes.append(vals.read() * x[col])
        acc += sum(lanes, 0.0)
        pad_left -= block
        if pad_left == 0:
            results.write(acc)
    return _drain(results, m)