import random

import pytest

from spmvsim.csr import CsrMatrix, reference_spmv
from spmvsim.kernels import (
    padded_length,
    spmv_csr,
    spmv_fast_stream,
    spmv_naive_stream,
    spmv_row_ptr_stream,
)


def _random_csr(seed, m, n, allow_empty=True, density=0.4):
    rng = random.Random(seed)
    row_ptr, cols, vals = [0], [], []
    for _ in range(m):
        row = [c for c in range(n) if rng.random() < density]
        if not row and not allow_empty:
            row = [rng.randrange(n)]
        cols.extend(row)
        vals.extend(float(rng.randint(-5, 5)) for _ in row)
        row_ptr.append(len(cols))
    return CsrMatrix(m=m, n=n, nnz=len(cols), row_ptr=row_ptr, col_idx=cols, val=vals)


def _random_x(seed, n):
    rng = random.Random(seed + 1000)
    return [float(rng.randint(-3, 3)) for _ in range(n)]


EXAMPLE = CsrMatrix(m=3, n=3, nnz=5, row_ptr=[0, 2, 3, 5], col_idx=[0, 2, 2, 0, 1],
                    val=[1.0, 2.0, 3.0, 4.0, 5.0])
EXAMPLE_X = [1.0, 2.0, 3.0]
WITH_EMPTY = CsrMatrix(m=3, n=3, nnz=3, row_ptr=[0, 2, 2, 3], col_idx=[0, 1, 2],
                       val=[1.0, 2.0, 3.0])


def test_padded_length_empty_row_takes_one_block():
    assert padded_length(0, 4) == 4


def test_padded_length_rounds_up():
    assert padded_length(5, 4) == 8


@pytest.mark.parametrize("block", [1, 2, 3, 4, 8])
@pytest.mark.parametrize("length", range(0, 20))
def test_padded_length_invariants(length, block):
    padded = padded_length(length, block)
    assert padded % block == 0
    assert padded >= max(length, 1)
    assert padded - length <= block


@pytest.mark.parametrize("length, block", [(-1, 4), (3, 0), (3, -2)])
def test_padded_length_rejects_bad_input(length, block):
    with pytest.raises(ValueError):
        padded_length(length, block)


def test_spmv_csr_worked_example():
    result = spmv_csr(EXAMPLE.row_ptr, EXAMPLE.col_idx, EXAMPLE.val, EXAMPLE_X, EXAMPLE.m)
    assert result == pytest.approx([7.0, 9.0, 14.0])


@pytest.mark.parametrize("seed", range(5))
def test_spmv_csr_matches_reference(seed):
    a = _random_csr(seed, 12, 9)
    x = _random_x(seed, a.n)
    assert spmv_csr(a.row_ptr, a.col_idx, a.val, x, a.m) == pytest.approx(reference_spmv(a, x))


def test_spmv_csr_short_row_ptr():
    with pytest.raises(ValueError):
        spmv_csr([0, 1], [0], [1.0], [1.0], 3)


@pytest.mark.parametrize("seed", range(5))
def test_naive_stream_matches_reference(seed):
    a = _random_csr(seed, 10, 8, allow_empty=False)
    x = _random_x(seed, a.n)
    result = spmv_naive_stream(a.row_ptr, a.col_idx, a.val, x, a.m, a.nnz)
    assert result == pytest.approx(reference_spmv(a, x))


def test_naive_stream_empty_row_starves_output():
    with pytest.raises(ValueError, match="read while empty"):
        spmv_naive_stream(WITH_EMPTY.row_ptr, WITH_EMPTY.col_idx, WITH_EMPTY.val,
                          EXAMPLE_X, WITH_EMPTY.m, WITH_EMPTY.nnz)


def test_naive_stream_too_few_entries():
    with pytest.raises(ValueError):
        spmv_naive_stream(EXAMPLE.row_ptr, EXAMPLE.col_idx[:3], EXAMPLE.val[:3],
                          EXAMPLE_X, EXAMPLE.m, EXAMPLE.nnz)


@pytest.mark.parametrize("seed", range(5))
def test_row_ptr_stream_matches_reference(seed):
    a = _random_csr(seed, 10, 8, allow_empty=False)
    x = _random_x(seed, a.n)
    result = spmv_row_ptr_stream(a.row_ptr[1:], a.col_idx, a.val, x, a.nnz)
    assert result == pytest.approx(reference_spmv(a, x))


def test_row_ptr_stream_empty_row_stops_emitting():
    result = spmv_row_ptr_stream(WITH_EMPTY.row_ptr[1:], WITH_EMPTY.col_idx, WITH_EMPTY.val,
                                 EXAMPLE_X, WITH_EMPTY.nnz)
    assert len(result) == 1
    assert result[0] == pytest.approx(reference_spmv(WITH_EMPTY, EXAMPLE_X)[0])


def test_row_ptr_stream_runs_out_of_rows():
    with pytest.raises(ValueError):
        spmv_row_ptr_stream([1], [0, 1], [1.0, 1.0], EXAMPLE_X, 2)


@pytest.mark.parametrize("block", [1, 2, 3, 4, 5, 8])
@pytest.mark.parametrize("seed", range(4))
def test_fast_stream_matches_reference(seed, block):
    a = _random_csr(seed, 14, 11)
    x = _random_x(seed, a.n)
    result = spmv_fast_stream(a.row_ptr, a.col_idx, a.val, x, a.m, a.nnz, block)
    assert result == pytest.approx(reference_spmv(a, x))


def test_fast_stream_handles_empty_rows():
    result = spmv_fast_stream(WITH_EMPTY.row_ptr, WITH_EMPTY.col_idx, WITH_EMPTY.val,
                              EXAMPLE_X, WITH_EMPTY.m, WITH_EMPTY.nnz)
    assert result == pytest.approx(reference_spmv(WITH_EMPTY, EXAMPLE_X))
    assert result[1] == 0.0


def test_fast_stream_default_block_agrees_with_csr():
    a = _random_csr(7, 20, 16, density=0.6)
    x = _random_x(7, a.n)
    assert spmv_fast_stream(a.row_ptr, a.col_idx, a.val, x, a.m, a.nnz) == pytest.approx(
        spmv_csr(a.row_ptr, a.col_idx, a.val, x, a.m)
    )


def test_fast_stream_entries_exhausted():
    with pytest.raises(ValueError, match="read while empty"):
        spmv_fast_stream(EXAMPLE.row_ptr, EXAMPLE.col_idx, EXAMPLE.val, EXAMPLE_X,
                         EXAMPLE.m, 3, 4)