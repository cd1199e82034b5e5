"""Growable one-dimensional storage for owned compressed arrays.

A :class:`GrowableArray` keeps a backing buffer with spare capacity and a
logical length. Views handed out cover ``buffer[:len]`` only; appends write
past that range or move to a freshly allocated buffer, so a view taken before
a growth never observes the new entries.
"""

import numpy as np


class GrowableArray:
    """Amortized-growth 1D array with a fixed dtype.

    Parameters
    ----------
    values : array_like
        Initial contents.
    dtype : numpy.dtype
        Element dtype of the backing buffer.
    copy : bool, optional
        If False and ``values`` is already a 1D array of ``dtype``, adopt it as
        the backing buffer without copying.
    """

    __slots__ = ("_buf", "_len")

    def __init__(self, values, dtype, copy=True):
        dtype = np.dtype(dtype)
        if copy:
            buf = np.array(values, dtype=dtype)
        else:
            buf = np.asarray(values, dtype=dtype)
        if buf.ndim != 1:
            buf = buf.reshape(-1)
        self._buf = buf
        self._len = int(buf.size)

    def __len__(self):
        return self._len

    @property
    def dtype(self):
        return self._buf.dtype

    @property
    def capacity(self):
        return int(self._buf.size)

    def view(self, writeable=False):
        """Return ``buffer[:len]``; read-only unless ``writeable``."""
        out = self._buf[: self._len]
        if not writeable:
            out.flags.writeable = False
        return out

    def _reallocate(self, capacity):
        new = np.empty(capacity, dtype=self._buf.dtype)
        new[: self._len] = self._buf[: self._len]
        self._buf = new

    def reserve(self, additional):
        """Make room for at least ``additional`` more elements."""
        needed = self._len + int(additional)
        if needed > self._buf.size:
            self._reallocate(max(needed, 2 * self._buf.size, 4))

    def reserve_exact(self, additional):
        """Make room for exactly ``additional`` more elements."""
        needed = self._len + int(additional)
        if needed > self._buf.size:
            self._reallocate(needed)

    def append(self, value):
        self.reserve(1)
        self._buf[self._len] = value
        self._len += 1

    def extend(self, values):
        values = np.asarray(values)
        n = int(values.size)
        if n == 0:
            return
        self.reserve(n)
        self._buf[self._len : self._len + n] = values
        self._len += n

    def replace(self, values):
        """Rebind to a fresh buffer holding ``values``.

        Views taken earlier keep referencing the previous buffer.
        """
        buf = np.array(values)
        if buf.ndim != 1:
            buf = buf.reshape(-1)
        self._buf = buf
        self._len = int(buf.size)
