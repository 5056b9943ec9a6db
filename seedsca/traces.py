"""Loading of recorded power traces and their plaintext blocks."""

from __future__ import annotations

import os

import numpy as np

TRACE_COUNT = 2000
TRACE_LENGTH = 24000
BLOCK_SIZE = 16
TRACE_DTYPE = np.dtype(np.float32)


def _check_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def _read_exact(path: str | os.PathLike[str], size: int, what: str) -> bytes:
    with open(path, "rb") as handle:
        raw = handle.read(size)
    if len(raw) < size:
        raise ValueError(f"{what} file {os.fspath(path)!r} holds {len(raw)} bytes, "
                         f"{size} needed")
    return raw


def load_traces(path: str | os.PathLike[str], count: int = TRACE_COUNT,
                length: int = TRACE_LENGTH) -> np.ndarray:
    """Read count traces of length 32-bit floats each, stored one after another."""
    _check_positive("count", count)
    _check_positive("length", length)
    raw = _read_exact(path, count * length * TRACE_DTYPE.itemsize, "trace")
    return np.frombuffer(raw, dtype=TRACE_DTYPE).reshape(count, length).copy()


def load_plaintexts(path: str | os.PathLike[str], count: int = TRACE_COUNT) -> np.ndarray:
    """Read count 16-byte plaintext blocks from the start of a file."""
    _check_positive("count", count)
    raw = _read_exact(path, count * BLOCK_SIZE, "plaintext")
    return np.frombuffer(raw, dtype=np.uint8).reshape(count, BLOCK_SIZE).copy()