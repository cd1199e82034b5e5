"""Permutations of an index space, used by permuted outer iteration."""

import numpy as np


class Permutation:
    """Bijection on ``range(n)``.

    Parameters
    ----------
    perm : array_like of int
        ``perm[i]`` is the image of ``i``. Must contain every integer in
        ``range(len(perm))`` exactly once.

    Raises
    ------
    ValueError
        If ``perm`` is not a permutation.
    """

    def __init__(self, perm):
        perm = np.asarray(perm, dtype=np.intp)
        if perm.ndim != 1:
            raise ValueError("permutation must be one-dimensional")
        n = perm.size
        inv = np.full(n, -1, dtype=np.intp)
        if n:
            if perm.min() < 0 or perm.max() >= n:
                raise ValueError("permutation entries must lie in range(n)")
            inv[perm] = np.arange(n, dtype=np.intp)
            if np.any(inv < 0):
                raise ValueError("permutation entries must be unique")
        self._perm = perm
        self._inv = inv
        self._perm.flags.writeable = False
        self._inv.flags.writeable = False

    @classmethod
    def identity(cls, n):
        return cls(np.arange(int(n), dtype=np.intp))

    def __len__(self):
        return int(self._perm.size)

    def at(self, index):
        """Image of ``index``."""
        return int(self._perm[index])

    def at_inv(self, index):
        """Preimage of ``index``."""
        return int(self._inv[index])

    def inv(self):
        """Inverse permutation."""
        out = Permutation.__new__(Permutation)
        out._perm = self._inv
        out._inv = self._perm
        return out

    @property
    def vec(self):
        """Image array (read-only)."""
        return self._perm

    def __eq__(self, other):
        if not isinstance(other, Permutation):
            return NotImplemented
        return np.array_equal(self._perm, other._perm)

    __hash__ = None

    def __repr__(self):
        return f"Permutation({self._perm.tolist()})"
