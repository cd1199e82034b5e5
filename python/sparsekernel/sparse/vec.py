"""Sparse vectors: one compressed row or column.

A :class:`SparseVector` stores a sorted, duplicate-free index array and a
parallel value array over a logical dimension ``dim``. It is either owned
(growable through :meth:`SparseVector.append`) or a read-only view sharing
the arrays of a compressed matrix.
"""

import numpy as np

from .._runtime import get_check_appends, get_index_dtype
from ..errors import IncompatibleDimensions, OutOfBoundsIndex, StructuralError, StructureErrorKind
from ._buffer import GrowableArray
from ._validation import as_data_array, as_index_array, check_vector_structure
from .base import SparseArray, zero_of


class SparseVector(SparseArray):
    """Sparse vector of logical length ``dim``.

    Parameters
    ----------
    dim : int
        Logical length.
    indices : array_like of int
        Positions of stored entries, strictly increasing, each ``< dim``.
    data : array_like
        Stored values, parallel to ``indices``.
    dtype : numpy.dtype, optional
        Value dtype. Inferred from ``data`` when omitted.

    Raises
    ------
    StructuralError
        If ``indices`` and ``data`` differ in length, ``indices`` is not
        strictly increasing, or an index falls outside ``[0, dim)``.

    Notes
    -----
    The input arrays are copied; the new vector owns its storage.

    Examples
    --------
    >>> v = SparseVector(8, [0, 2, 4], [1.0, 2.0, 3.0])
    >>> v.nnz
    3
    >>> v.at(2)
    2.0
    >>> v.at(3) is None
    True
    """

    def __init__(self, dim, indices, data, dtype=None):
        indices = as_index_array(indices)
        data = as_data_array(data, dtype=dtype)
        super().__init__((dim,), dtype=data.dtype)
        check_vector_structure(self.dim, indices, data)
        self._indices = GrowableArray(indices, indices.dtype, copy=False)
        self._data = GrowableArray(data, data.dtype, copy=False)
        self._owned = True

    @classmethod
    def empty(cls, dim, dtype=np.float64):
        """Owned vector with no stored entries, ready for :meth:`append`."""
        return cls(dim, np.zeros(0, dtype=get_index_dtype()), np.zeros(0, dtype=dtype))

    @classmethod
    def _from_raw(cls, dim, indices, data):
        # Read-only view over arrays the caller has already validated.
        vec = cls.__new__(cls)
        SparseArray.__init__(vec, (dim,), dtype=data.dtype)
        if indices.flags.writeable:
            indices = indices[:]
            indices.flags.writeable = False
        if data.flags.writeable:
            data = data[:]
            data.flags.writeable = False
        vec._indices = indices
        vec._data = data
        vec._owned = False
        return vec

    @property
    def dim(self):
        """Logical length of the vector."""
        return self._shape[0]

    @property
    def is_owned(self):
        """True if this vector owns growable storage, False for a view."""
        return self._owned

    @property
    def indices(self):
        """Positions of the stored entries (read-only)."""
        if self._owned:
            return self._indices.view()
        return self._indices

    @property
    def data(self):
        """Stored values (read-only)."""
        if self._owned:
            return self._data.view()
        return self._data

    @property
    def nnz(self):
        """Number of stored entries."""
        return len(self._indices)

    def __iter__(self):
        """Iterate over ``(index, value)`` pairs in increasing index order."""
        return zip(self.indices.tolist(), self.data.tolist())

    def __repr__(self):
        kind = "owned" if self._owned else "view"
        return f"SparseVector(dim={self.dim}, nnz={self.nnz}, dtype={self.dtype}, {kind})"

    def check_structure(self):
        """Re-run the structural validation, raising :class:`StructuralError` on failure."""
        check_vector_structure(self.dim, self.indices, self.data)

    def at(self, index):
        """Value stored at ``index``, or None if nothing is stored there.

        Logarithmic in :attr:`nnz` (binary search over the sorted indices).

        Raises
        ------
        OutOfBoundsIndex
            If ``index`` is outside ``[0, dim)``.
        """
        index = int(index)
        if not 0 <= index < self.dim:
            raise OutOfBoundsIndex(f"index {index} out of bounds for dimension {self.dim}")
        indices = self.indices
        pos = int(np.searchsorted(indices, index))
        if pos < indices.size and indices[pos] == index:
            return self.data[pos]
        return None

    def __getitem__(self, index):
        if isinstance(index, (int, np.integer)):
            val = self.at(index)
            return zero_of(self.dtype) if val is None else val
        raise NotImplementedError("only integer indexing is supported")

    def append(self, index, value):
        """Append an entry at ``index`` after all stored entries.

        The caller guarantees ``index`` is larger than every stored index and
        below :attr:`dim`; with ``set_check_appends(True)`` both are verified.

        Raises
        ------
        ValueError
            If the vector is a borrowed view.
        StructuralError
            If append checks are enabled and ``index`` breaks the ordering or
            bounds invariant.
        """
        if not self._owned:
            raise ValueError("cannot append to a borrowed SparseVector; call to_owned() first")
        index = int(index)
        if get_check_appends():
            if not 0 <= index < self.dim:
                raise StructuralError(StructureErrorKind.INDICES_OUT_OF_BOUNDS, f"index {index}")
            if self.nnz and index <= int(self._indices.view()[-1]):
                raise StructuralError(StructureErrorKind.UNSORTED_INDICES, f"index {index}")
        self._indices.append(index)
        self._data.append(value)

    def reserve(self, additional):
        """Reserve room for ``additional`` more entries (owned vectors only)."""
        if not self._owned:
            raise ValueError("cannot reserve storage on a borrowed SparseVector")
        self._indices.reserve(additional)
        self._data.reserve(additional)

    def reserve_exact(self, additional):
        if not self._owned:
            raise ValueError("cannot reserve storage on a borrowed SparseVector")
        self._indices.reserve_exact(additional)
        self._data.reserve_exact(additional)

    def to_owned(self):
        """Deep copy into an independently owned vector."""
        out = SparseVector.__new__(SparseVector)
        SparseArray.__init__(out, (self.dim,), dtype=self.dtype)
        out._indices = GrowableArray(self.indices, self.indices.dtype)
        out._data = GrowableArray(self.data, self.dtype)
        out._owned = True
        return out

    def toarray(self):
        """Materialize as a dense 1D ``numpy.ndarray``."""
        out = np.zeros(self.dim, dtype=self.dtype)
        out[self.indices] = self.data
        return out

    def dot(self, other):
        """Inner product with another sparse vector or a dense 1D array.

        Raises
        ------
        IncompatibleDimensions
            If the lengths differ.
        """
        if isinstance(other, SparseVector):
            if other.dim != self.dim:
                raise IncompatibleDimensions(f"vector lengths differ: {self.dim} != {other.dim}")
            from .merge import Both, nnz_or_zip

            acc = zero_of(np.result_type(self.dtype, other.dtype))
            for elem in nnz_or_zip(self, other):
                if isinstance(elem, Both):
                    acc = acc + elem.left * elem.right
            return acc
        arr = np.asarray(other)
        if arr.ndim != 1 or arr.shape[0] != self.dim:
            raise IncompatibleDimensions("dense operand must be 1D with matching length")
        return (self.data * arr[self.indices]).sum()

    def multiply(self, other):
        """Elementwise product with another sparse vector."""
        from .binop import csvec_binop

        return csvec_binop(self, other, lambda x, y: x * y)

    def __add__(self, other):
        if isinstance(other, SparseVector):
            from .binop import csvec_binop

            return csvec_binop(self, other, lambda x, y: x + y)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, SparseVector):
            from .binop import csvec_binop

            return csvec_binop(self, other, lambda x, y: x - y)
        return NotImplemented

    def __mul__(self, alpha):
        """Scalar multiplication; the stored structure is kept as is."""
        if isinstance(alpha, SparseArray):
            return NotImplemented
        out = SparseVector.__new__(SparseVector)
        data = self.data * alpha
        SparseArray.__init__(out, (self.dim,), dtype=data.dtype)
        out._indices = GrowableArray(self.indices, self.indices.dtype)
        out._data = GrowableArray(data, data.dtype, copy=False)
        out._owned = True
        return out

    __rmul__ = __mul__

    def __neg__(self):
        return self * -1

    def __eq__(self, other):
        if not isinstance(other, SparseVector):
            return NotImplemented
        return (
            self.dim == other.dim
            and np.array_equal(self.indices, other.indices)
            and np.array_equal(self.data, other.data)
        )

    __hash__ = None
