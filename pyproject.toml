[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spmvsim"
version = "0.1.0"
description = "Behavioural models of streaming CSR sparse matrix-vector multiply kernels, with a file-driven test bench"
requires-python = ">=3.10"
dependencies = []
keywords = ["spmv", "sparse", "csr", "matrix", "streaming", "simulation", "testbench"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
spmvsim = "spmvsim.testbench:main"

[tool.hatch.build.targets.wheel]
packages = ["spmvsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
