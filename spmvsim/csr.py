"""Compressed sparse row matrices: text-file loading and a reference product."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

Number = TypeVar("Number", int, float)


@dataclass
class CsrMatrix:
    """A sparse matrix in CSR form, optionally a row range of a larger matrix."""

    m: int
    n: int
    nnz: int
    row_ptr: list[int] = field(default_factory=list)
    col_idx: list[int] = field(default_factory=list)
    val: list[float] = field(default_factory=list)
    row_start: int = 0
    row_end: int = 0

    def row_lengths(self) -> list[int]:
        """Number of stored entries in each row."""
        return [end - start for start, end in zip(self.row_ptr, self.row_ptr[1:])]


def _leading_numbers(text: str, kind: Callable[[str], Number]) -> list[Number]:
    """Parse whitespace-separated numbers, stopping at the first token that fails."""
    numbers: list[Number] = []
    for token in text.split():
        try:
            numbers.append(kind(token))
        except ValueError:
            break
    return numbers


def _body_after(lines: list[str], skipped: int) -> str:
    return "\n".join(lines[skipped:])


def _header_ints(line: str, count: int, path: Path) -> list[int]:
    values = _leading_numbers(line, int)
    if len(values) < count:
        raise ValueError(f"{path}: header needs {count} integers, got {len(values)}")
    return values[:count]


def read_vector_body(path: str | Path, kind: Callable[[str], Number] = float) -> list[Number]:
    """Read the numbers of a vector file, skipping its header and optional comment line.

    The first line is always a header. When it holds no ``#`` the second line
    is taken to be a comment and skipped as well.
    """
    lines = Path(path).read_text().splitlines()
    skipped = 1 if lines and "#" in lines[0] else 2
    return _leading_numbers(_body_after(lines, skipped), kind)


def read_csr(directory: str | Path = ".") -> CsrMatrix:
    """Load ``row_ptr.txt``, ``col_idx.txt`` and ``val.txt`` from a directory."""
    base = Path(directory)
    row_path = base / "row_ptr.txt"
    lines = row_path.read_text().splitlines()
    if not lines:
        raise ValueError(f"{row_path}: missing header")
    m, n, nnz = _header_ints(lines[0], 3, row_path)

    row_ptr = _leading_numbers(_body_after(lines, 2), int)
    if len(row_ptr) < m + 1:
        raise ValueError(f"{row_path}: expected {m + 1} row pointers, got {len(row_ptr)}")

    col_idx = read_vector_body(base / "col_idx.txt", int)
    val = read_vector_body(base / "val.txt", float)
    if len(col_idx) != nnz or len(val) != nnz:
        raise ValueError(
            "nnz mismatch between headers & bodies: "
            f"{len(col_idx)} column indices, {len(val)} values, header says {nnz}"
        )
    return CsrMatrix(m=m, n=n, nnz=nnz, row_ptr=row_ptr[: m + 1], col_idx=col_idx, val=val)


def read_dense_x(directory: str | Path = ".") -> list[float]:
    """Load the dense input vector from ``x.txt`` in a directory."""
    path = Path(directory) / "x.txt"
    lines = path.read_text().splitlines()
    if not lines:
        raise ValueError(f"{path}: missing header")
    (n,) = _header_ints(lines[0], 1, path)
    x = _leading_numbers(_body_after(lines, 2), float)
    if len(x) != n:
        raise ValueError(f"x length mismatch: header says {n}, found {len(x)}")
    return x


def read_csr_partition(pid: int, directory: str | Path) -> CsrMatrix:
    """Load partition ``pid`` (region, row pointers, columns and values) from a directory."""
    base = Path(directory)

    region_path = base / f"region_{pid}.txt"
    region_lines = region_path.read_text().splitlines()
    bounds = _leading_numbers(_body_after(region_lines, 1), int)
    if len(bounds) < 2:
        raise ValueError(f"{region_path}: expected row start and row end")
    row_start, row_end = bounds[:2]

    row_path = base / f"row_ptr_{pid}.txt"
    row_lines = row_path.read_text().splitlines()
    if not row_lines:
        raise ValueError(f"{row_path}: missing header")
    m, n, nnz = _header_ints(row_lines[0], 3, row_path)
    row_ptr = _leading_numbers(_body_after(row_lines, 2), int)

    col_lines = (base / f"col_idx_{pid}.txt").read_text().splitlines()
    col_idx = _leading_numbers(_body_after(col_lines, 1), int)

    val_lines = (base / f"val_{pid}.txt").read_text().splitlines()
    val = _leading_numbers(_body_after(val_lines, 1), float)

    return CsrMatrix(
        m=m,
        n=n,
        nnz=nnz,
        row_ptr=row_ptr,
        col_idx=col_idx,
        val=val,
        row_start=row_start,
        row_end=row_end,
    )


def reference_spmv(matrix: CsrMatrix, x: Sequence[float]) -> list[float]:
    """Plain software product ``y = A @ x`` used as the golden result."""
    bounds = zip(matrix.row_ptr, matrix.row_ptr[1 : matrix.m + 1])
    return [
        sum(
            (v * x[c] for c, v in zip(matrix.col_idx[start:end], matrix.val[start:end])),
            0.0,
        )
        for start, end in bounds
    ]