"""Behavioural models of streaming CSR sparse matrix-vector kernels and a test bench."""

__version__ = "0.1.0"
__all__ = ["balance", "csr", "kernels", "testbench"]