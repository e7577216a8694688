"""
Reusable scratch matrices owned by a detector.
"""

import numpy as np
from typing import Dict, Tuple


class ScratchArena:
    """
    Named scratch buffers that grow to the largest request seen and never shrink.

    Each buffer is backed by one flat array. matrix() returns a contiguous
    view of the requested shape, reallocating only when the backing array
    is too small for it.
    """

    def __init__(self):
        self._buffers: Dict[str, np.ndarray] = {}
        self._released = False

    def matrix(self, name: str, shape: Tuple[int, ...], dtype=np.uint8) -> np.ndarray:
        if self._released:
            raise RuntimeError("Scratch arena was released")

        dtype = np.dtype(dtype)
        size = int(np.prod(shape))
        backing = self._buffers.get(name)

        if backing is None or backing.dtype != dtype or backing.size < size:
            capacity = size if backing is None or backing.dtype != dtype else max(size, backing.size)
            backing = np.zeros(capacity, dtype=dtype)
            self._buffers[name] = backing

        return backing[:size].reshape(shape)

    def capacity(self, name: str) -> int:
        """Number of elements currently backing the named buffer (0 if unused)."""
        backing = self._buffers.get(name)
        return 0 if backing is None else backing.size

    def release(self):
        self._buffers.clear()
        self._released = True

    @property
    def released(self) -> bool:
        return self._released
