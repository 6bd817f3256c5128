# spmvsim

Pure-Python behavioural models of several streaming sparse matrix-vector
multiply (SpMV) kernels working on matrices in CSR (compressed sparse row)
form, together with a command-line test bench that checks a model against a
plain software product `y = A @ x`.

The models mirror how each kernel moves data: row lengths, column indices and
values pass through first-in first-out streams, and reading an empty stream
raises `ValueError`.

## Modules

### `spmvsim.csr`

- `CsrMatrix`: a dataclass with `m`, `n`, `nnz`, `row_ptr`, `col_idx`, `val`
  and, for partitions, `row_start` and `row_end`. `row_lengths()` gives the
  number of stored entries in each row.
- `read_vector_body(path, kind)`: reads whitespace-separated numbers after a
  header line. When the header holds no `#`, the second line is skipped too.
- `read_csr(directory)`: loads `row_ptr.txt` (first line `m n nnz`, second
  line skipped, then the row pointers), `col_idx.txt` and `val.txt`. Raises
  `ValueError` if the entry counts disagree with the header.
- `read_dense_x(directory)`: loads `x.txt` (first line `n`, second line
  skipped, then the values). Raises `ValueError` on a length mismatch.
- `read_csr_partition(pid, directory)`: loads `region_<pid>.txt` (one line
  skipped, then the first and last row, inclusive), `row_ptr_<pid>.txt`,
  `col_idx_<pid>.txt` and `val_<pid>.txt`.
- `reference_spmv(matrix, x)`: the golden row-by-row product.

### `spmvsim.kernels`

- `padded_length(length, block)`: rounds a row length up to whole blocks; an
  empty row takes one block.
- `spmv_csr(row_ptr, col_idx, val, x, m)`: plain row-by-row CSR loop.
- `spmv_naive_stream(row_ptr, col_idx, val, x, m, nnz)`: one entry per step;
  matrices with empty rows produce too few results and raise `ValueError`.
- `spmv_row_ptr_stream(row_ends, col_idx, val, x, nnz)`: one entry per step,
  fed with `row_ptr[1..m]`; returns every row result it emits.
- `spmv_fast_stream(row_ptr, col_idx, val, x, m, nnz, block=4)`: rows padded to
  whole blocks and processed a block at a time.

### `spmvsim.balance`

- `pad_rows(row_ends, block=8)`: row lengths and their padded sizes.
- `spmv_compute(row_ends, col_idx, val, x, block=8)`: block-wise
  multiply-accumulate over padded rows.
- `spmv_dual(first, second, x)`: runs two row partitions (`CsrMatrix`) through
  independent compute units sharing `x`.
- `pad_vec(matrix, block=8)`: pads rows and packs columns and values into
  pairs; returns the padded row lengths, column pairs, value pairs and padded
  entry count. An empty row is padded to zero entries.
- `spmv_stream_vec(row_pads, col_pairs, val_pairs, x, nnz, block=8)`: two-lane
  kernel over the output of `pad_vec`.

### `spmvsim.testbench`

- `compare(gold, hw, eps=1e-3)`: returns a `Comparison` whose `mismatches`
  holds `(row, gold, hw)` for rows differing by more than `eps`, with `errors`
  and `passed` properties. Raises `ValueError` when the lengths differ.
- `main(argv=None)`: the command-line entry point.

## Installing

```
pip install .
```

## Running the test bench

```
spmvsim [directory] [--kernel KERNEL] [--eps EPS]
```

`directory` defaults to `.` and must hold `row_ptr.txt`, `col_idx.txt`,
`val.txt` and `x.txt`. `--kernel` is one of `vec` (the default), `stream`,
`balanced`, `csr`, `naive`, `naive-stream` and `fast`; `balanced` also reads
partitions 0 and 1 from the same directory. `--eps` sets the absolute
tolerance (default `0.001`).

The problem must fit the selected kernel's limits: 512 rows, 512 columns and
20000 entries for `csr`; 256, 256 and 4096 for `naive`; 256, 256 and 20000 for
the others. The command prints the first few mismatching rows to standard
error, then a pass or fail line. It exits with 0 on a pass, 1 if any row
disagrees, and 2 if the files cannot be read or the run fails.

## Using the library

```python
from spmvsim.csr import read_csr, read_dense_x, reference_spmv
from spmvsim.kernels import spmv_fast_stream
from spmvsim.testbench import compare

matrix = read_csr("data/")
x = read_dense_x("data/")
y = spmv_fast_stream(matrix.row_ptr, matrix.col_idx, matrix.val, x,
                     matrix.m, matrix.nnz, 4)
result = compare(reference_spmv(matrix, x), y, 1e-3)
print(result.passed, result.errors)
```

## What it does not do

The models reproduce results and stream behaviour only. They do not estimate
timing, latency or resource use, and they do not produce partition files;
`read_csr_partition` and the `balanced` kernel expect them to exist already.

## Running the tests

```
pip install .[test]
pytest
```