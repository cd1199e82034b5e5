"""Base classes and storage descriptors for sparse arrays and matrices.

These classes define the minimal interface shared by concrete sparse types in
`sparsekernel.sparse`, including shape/dtype bookkeeping, the compressed
storage order of a matrix, and the memory ordering of dense collaborators.
"""

import enum

import numpy as np


class CompressedStorage(enum.Enum):
    """Storage order of a compressed matrix.

    ``CSR`` compresses rows (the outer dimension is the row count), ``CSC``
    compresses columns.
    """

    CSR = "csr"
    CSC = "csc"

    def other_storage(self):
        """Return CSC if this is CSR, and vice versa. No data is involved."""
        if self is CompressedStorage.CSR:
            return CompressedStorage.CSC
        return CompressedStorage.CSR

    def __repr__(self):
        return self.name


CSR = CompressedStorage.CSR
CSC = CompressedStorage.CSC


class DenseOrder(enum.Enum):
    """Memory ordering tag of a dense two-dimensional array."""

    C = "C"
    F = "F"
    UNORDERED = "unordered"


def dense_ordering(arr):
    """Return the :class:`DenseOrder` of a dense ``numpy.ndarray``.

    Arrays that are both C- and F-contiguous (a single row or column, or an
    empty array) report ``C``; use :func:`order_compatible` to test pairing
    with a storage order, which accepts either flag.
    """
    if arr.flags.c_contiguous:
        return DenseOrder.C
    if arr.flags.f_contiguous:
        return DenseOrder.F
    return DenseOrder.UNORDERED


def order_compatible(storage, arr) -> bool:
    """True if dense ``arr`` is laid out along the outer dimension of ``storage``."""
    if storage is CompressedStorage.CSR:
        return bool(arr.flags.c_contiguous)
    return bool(arr.flags.f_contiguous)


def zero_of(dtype):
    """Additive identity for ``dtype``."""
    dtype = np.dtype(dtype)
    if dtype == np.dtype(object):
        return 0
    return dtype.type(0)


def one_of(dtype):
    """Multiplicative identity for ``dtype``."""
    dtype = np.dtype(dtype)
    if dtype == np.dtype(object):
        return 1
    return dtype.type(1)


class SparseArray:
    """Abstract base class for sparse N-dimensional arrays.

    Parameters
    ----------
    shape : tuple[int, ...]
        Array shape. Stored as a tuple of non-negative ints.
    dtype : Any, optional
        Element dtype metadata.

    Attributes
    ----------
    shape : tuple[int, ...]
        Array shape.
    ndim : int
        Number of dimensions, equal to ``len(shape)``.
    dtype : numpy.dtype
        Element type.

    Raises
    ------
    ValueError
        If any extent is negative.
    """

    # Defer to our reflected operators instead of letting NumPy broadcast us
    # as an opaque object scalar.
    __array_ufunc__ = None

    def __init__(self, shape, dtype=None):
        shape = tuple(int(s) for s in shape)
        if any(s < 0 for s in shape):
            raise ValueError("shape entries must be non-negative")
        self._shape = shape
        self._dtype = np.dtype(np.float64 if dtype is None else dtype)

    @property
    def shape(self):
        return self._shape

    @property
    def ndim(self):
        return len(self._shape)

    @property
    def dtype(self):
        return self._dtype


class SparseMatrix(SparseArray):
    """Abstract base class for 2D sparse matrices.

    Parameters
    ----------
    shape : tuple[int, int]
        Matrix shape. Must be two-dimensional.
    dtype : Any, optional
        Element dtype metadata.

    Raises
    ------
    ValueError
        If ``shape`` is not 2D.
    """

    def __init__(self, shape, dtype=None):
        if len(shape) != 2:
            raise ValueError("SparseMatrix requires 2D shape")
        super().__init__(shape, dtype=dtype)

    @property
    def rows(self):
        """Number of rows."""
        return self._shape[0]

    @property
    def cols(self):
        """Number of columns."""
        return self._shape[1]

    def toarray(self):
        """Return a dense numpy.ndarray with the same shape and dtype.

        Notes
        -----
        The base implementation returns an all-zeros array. Concrete sparse
        matrix types should override this to materialize actual data.
        """
        return np.zeros(self.shape, dtype=self.dtype)
