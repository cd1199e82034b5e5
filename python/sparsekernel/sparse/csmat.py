"""Compressed sparse matrices in CSR or CSC storage.

In the CSR format, a matrix is described by three arrays, ``indptr``,
``indices`` and ``data``, satisfying for every row ``i``::

    A[i, indices[indptr[i]:indptr[i+1]]] = data[indptr[i]:indptr[i+1]]

In the CSC format the same relation holds with rows and columns swapped.
The compressed dimension is called the *outer* dimension, the other one the
*inner* dimension.

Notes
-----
- The public constructor validates every structural invariant once. Views
  derived internally (transposed, per-slice, outer-range) reuse the validated
  arrays without copying or re-checking them.
- Borrowed arrays are exposed read-only. Owned matrices grow into spare
  capacity or into a new buffer, never into memory a live view covers.
- Random access through :meth:`CompressedMatrix.at` is logarithmic in the
  number of entries of the addressed slice; bulk algorithms should iterate
  with :meth:`CompressedMatrix.outer_iterator` instead.
"""

import logging

import numpy as np

from .._runtime import get_check_appends, get_index_dtype
from ..errors import EmptyBlock, IncompatibleDimensions, OutOfBoundsIndex
from ._buffer import GrowableArray
from ._validation import (
    as_data_array,
    as_index_array,
    check_compressed_structure,
    check_vector_structure,
)
from .base import (
    CSC,
    CSR,
    CompressedStorage,
    SparseArray,
    SparseMatrix,
    order_compatible,
    one_of,
    zero_of,
)
from .convert import convert_mat_storage
from .vec import SparseVector

logger = logging.getLogger(__name__)


def _readonly(arr):
    out = arr[:]
    out.flags.writeable = False
    return out


class OuterIterator:
    """Iterator over the outer slices of a compressed matrix.

    Yields ``(outer_index, SparseVector)`` pairs, where each vector is a
    read-only view sharing the matrix arrays. ``reversed()`` walks the
    remaining slices from the end; only the outer order is reversed, the
    entries of each yielded vector stay in increasing inner order.
    """

    def __init__(self, indptr, indices, data, inner_len):
        self._indptr = indptr.tolist()
        self._indices = indices
        self._data = data
        self._inner_len = inner_len
        self._front = 0
        self._back = len(self._indptr) - 1

    def _slice(self, i):
        start = self._indptr[i]
        stop = self._indptr[i + 1]
        return i, SparseVector._from_raw(
            self._inner_len, self._indices[start:stop], self._data[start:stop]
        )

    def __iter__(self):
        return self

    def __next__(self):
        if self._front >= self._back:
            raise StopIteration
        item = self._slice(self._front)
        self._front += 1
        return item

    def next_back(self):
        """Take the last remaining slice, or raise StopIteration."""
        if self._front >= self._back:
            raise StopIteration
        self._back -= 1
        return self._slice(self._back)

    def __reversed__(self):
        while self._front < self._back:
            yield self.next_back()

    def __len__(self):
        return self._back - self._front


class OuterIteratorPerm:
    """Outer iteration over ``P * A`` for a permutation ``P``.

    Attributes
    ----------
    perm : Permutation
        The permutation oriented for this storage order (``P`` for CSR, its
        inverse for CSC). It is the one to apply to the inner indices of the
        yielded vectors when composing ``P * A * P^T``.
    """

    def __init__(self, indptr, indices, data, inner_len, perm):
        self._indptr = indptr.tolist()
        self._indices = indices
        self._data = data
        self._inner_len = inner_len
        self.perm = perm
        self._outer = iter(range(len(self._indptr) - 1))

    def __iter__(self):
        return self

    def __next__(self):
        outer_ind = next(self._outer)
        outer_ind_perm = self.perm.at(outer_ind)
        start = self._indptr[outer_ind_perm]
        stop = self._indptr[outer_ind_perm + 1]
        vec = SparseVector._from_raw(
            self._inner_len, self._indices[start:stop], self._data[start:stop]
        )
        return outer_ind_perm, vec

    def __len__(self):
        return len(self._indptr) - 1


class CompressedMatrix(SparseMatrix):
    """Sparse matrix in compressed row (CSR) or compressed column (CSC) storage.

    Parameters
    ----------
    storage : CompressedStorage
        ``CSR`` or ``CSC``.
    shape : tuple[int, int]
        Matrix shape ``(nrows, ncols)``.
    indptr : array_like of int, shape ``(outer_dims + 1,)``
        Offsets array. Must start at 0, be non-decreasing and end at ``nnz``.
    indices : array_like of int, shape ``(nnz,)``
        Inner index of every stored entry; strictly increasing within each
        outer slice and smaller than the inner dimension.
    data : array_like, shape ``(nnz,)``
        Stored values.
    dtype : numpy.dtype, optional
        Value dtype. Inferred from ``data`` when omitted.

    Raises
    ------
    StructuralError
        If the arrays violate any structural invariant; ``err.kind`` names it.

    Notes
    -----
    The arrays are copied and the new matrix owns them.

    Examples
    --------
    >>> import numpy as np
    >>> from sparsekernel import CSR, CompressedMatrix
    >>> a = CompressedMatrix(CSR, (2, 3), [0, 2, 3], [0, 2, 1], [1.0, 2.0, 3.0])
    >>> a.nnz
    3
    >>> a.at(0, 2)
    2.0
    >>> a.at(1, 0) is None
    True
    """

    def __init__(self, storage, shape, indptr, indices, data, dtype=None):
        storage = CompressedStorage(storage)
        indptr = as_index_array(indptr)
        indices = as_index_array(indices)
        data = as_data_array(data, dtype=dtype)
        super().__init__(shape, dtype=data.dtype)
        self._storage = storage
        check_compressed_structure(self.outer_dims, self.inner_dims, indptr, indices, data)
        self._indptr = GrowableArray(indptr, indptr.dtype, copy=False)
        self._indices = GrowableArray(indices, indices.dtype, copy=False)
        self._data = GrowableArray(data, data.dtype, copy=False)
        self._owned = True

    # ------------------------------------------------------------------
    # Alternate constructors
    # ------------------------------------------------------------------

    @classmethod
    def new_borrowed(cls, storage, shape, indptr, indices, data):
        """Checked read-only view over caller arrays, without copying them.

        The caller must not modify the arrays while the view is alive.
        """
        storage = CompressedStorage(storage)
        indptr = np.asarray(indptr)
        indices = np.asarray(indices)
        data = np.asarray(data)
        if indptr.size and not np.issubdtype(indptr.dtype, np.integer):
            raise TypeError("indptr must hold integers")
        if indices.size and not np.issubdtype(indices.dtype, np.integer):
            raise TypeError("indices must hold integers")
        nrows, ncols = (int(s) for s in shape)
        outer, inner = (nrows, ncols) if storage is CSR else (ncols, nrows)
        check_compressed_structure(outer, inner, indptr, indices, data)
        return cls._new_raw(storage, nrows, ncols, indptr, indices, data)

    @classmethod
    def _new_raw(cls, storage, nrows, ncols, indptr, indices, data):
        # Unchecked borrowed view: only for arrays already proven valid.
        # indptr[0] may be non-zero for outer-range views, in which case
        # indices/data are the parent's full arrays.
        mat = cls.__new__(cls)
        SparseMatrix.__init__(mat, (nrows, ncols), dtype=data.dtype)
        mat._storage = storage
        mat._indptr = _readonly(indptr)
        mat._indices = _readonly(indices)
        mat._data = _readonly(data)
        mat._owned = False
        return mat

    @classmethod
    def _adopt(cls, storage, nrows, ncols, indptr, indices, data, check=True):
        # Owned matrix taking over freshly allocated arrays without a copy.
        mat = cls.__new__(cls)
        SparseMatrix.__init__(mat, (nrows, ncols), dtype=data.dtype)
        mat._storage = storage
        if check:
            check_compressed_structure(mat.outer_dims, mat.inner_dims, indptr, indices, data)
        mat._indptr = GrowableArray(indptr, indptr.dtype, copy=False)
        mat._indices = GrowableArray(indices, indices.dtype, copy=False)
        mat._data = GrowableArray(data, data.dtype, copy=False)
        mat._owned = True
        return mat

    @classmethod
    def empty(cls, storage, inner_size, dtype=np.float64):
        """Owned matrix with zero outer slices, for building with ``append_outer``.

        A CSR result has shape ``(0, inner_size)``, a CSC one
        ``(inner_size, 0)``.
        """
        storage = CompressedStorage(storage)
        nrows, ncols = (0, inner_size) if storage is CSR else (inner_size, 0)
        idx = get_index_dtype()
        return cls._adopt(
            storage,
            nrows,
            ncols,
            np.zeros(1, dtype=idx),
            np.zeros(0, dtype=idx),
            np.zeros(0, dtype=dtype),
            check=False,
        )

    @classmethod
    def zero(cls, rows, cols, dtype=np.float64):
        """CSR matrix of the given shape with no stored entries."""
        idx = get_index_dtype()
        return cls._adopt(
            CSR,
            rows,
            cols,
            np.zeros(int(rows) + 1, dtype=idx),
            np.zeros(0, dtype=idx),
            np.zeros(0, dtype=dtype),
            check=False,
        )

    @classmethod
    def eye(cls, storage, n, dtype=np.float64):
        """Identity matrix of size ``n`` in the given storage."""
        storage = CompressedStorage(storage)
        idx = get_index_dtype()
        return cls._adopt(
            storage,
            n,
            n,
            np.arange(int(n) + 1, dtype=idx),
            np.arange(int(n), dtype=idx),
            np.full(int(n), one_of(dtype), dtype=dtype),
            check=False,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def storage(self):
        """Storage order (:class:`CompressedStorage`)."""
        return self._storage

    @property
    def is_owned(self):
        """True if the matrix owns growable arrays, False for a borrowed view."""
        return self._owned

    def is_csr(self) -> bool:
        return self._storage is CSR

    def is_csc(self) -> bool:
        return self._storage is CSC

    @property
    def outer_dims(self):
        """Number of outer slices: rows for CSR, columns for CSC."""
        return self._shape[0] if self._storage is CSR else self._shape[1]

    @property
    def inner_dims(self):
        """Inner dimension: columns for CSR, rows for CSC."""
        return self._shape[1] if self._storage is CSR else self._shape[0]

    @property
    def indptr(self):
        """Offsets of each outer slice within ``indices`` and ``data`` (read-only).

        For an outer-range view ``indptr[0]`` can be non-zero; the offsets
        then index the parent's full ``indices`` and ``data`` arrays.
        """
        if self._owned:
            return self._indptr.view()
        return self._indptr

    @property
    def indices(self):
        """Inner index of every stored entry (read-only)."""
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
        """Number of stored entries.

        Most sparse algorithms are linear in this count rather than in the
        matrix dimensions.
        """
        indptr = self.indptr
        return int(indptr[-1]) - int(indptr[0])

    def _parts(self):
        return self.indptr, self.indices, self.data

    def __repr__(self):
        kind = "owned" if self._owned else "view"
        return (
            f"CompressedMatrix(storage={self._storage.name}, shape={self.shape}, "
            f"nnz={self.nnz}, dtype={self.dtype}, {kind})"
        )

    def check_compressed_structure(self):
        """Re-validate the structure, raising :class:`StructuralError` on failure."""
        owned = self.to_owned() if self.indptr[0] != 0 else self
        indptr, indices, data = owned._parts()
        check_compressed_structure(self.outer_dims, self.inner_dims, indptr, indices, data)

    # ------------------------------------------------------------------
    # Element access and iteration
    # ------------------------------------------------------------------

    def outer_view(self, i):
        """View of the ``i``-th outer slice as a :class:`SparseVector`, or None."""
        i = int(i)
        if not 0 <= i < self.outer_dims:
            return None
        indptr, indices, data = self._parts()
        start = int(indptr[i])
        stop = int(indptr[i + 1])
        return SparseVector._from_raw(self.inner_dims, indices[start:stop], data[start:stop])

    def at_outer_inner(self, outer_ind, inner_ind):
        """Value at ``(outer_ind, inner_ind)`` in storage coordinates, or None."""
        vec = self.outer_view(outer_ind)
        if vec is None:
            return None
        inner_ind = int(inner_ind)
        if not 0 <= inner_ind < vec.dim:
            return None
        return vec.at(inner_ind)

    def at(self, row, col):
        """Value at ``(row, col)``, or None if no entry is stored there.

        This access is logarithmic in the number of entries of the addressed
        outer slice. Prefer :meth:`outer_iterator` for algorithms.

        Raises
        ------
        OutOfBoundsIndex
            If ``row`` or ``col`` lies outside the matrix.
        """
        row = int(row)
        col = int(col)
        if not (0 <= row < self._shape[0] and 0 <= col < self._shape[1]):
            raise OutOfBoundsIndex(f"index ({row}, {col}) out of bounds for shape {self.shape}")
        if self._storage is CSR:
            return self.at_outer_inner(row, col)
        return self.at_outer_inner(col, row)

    def __getitem__(self, key):
        """Scalar lookup ``A[i, j]``; absent entries read as zero."""
        if isinstance(key, tuple) and len(key) == 2:
            i, j = key
            if isinstance(i, (int, np.integer)) and isinstance(j, (int, np.integer)):
                val = self.at(i, j)
                return zero_of(self.dtype) if val is None else val
        raise NotImplementedError("only scalar (i, j) indexing is supported")

    def outer_iterator(self):
        """Iterate over ``(outer_index, SparseVector)`` pairs.

        Examples
        --------
        >>> eye = CompressedMatrix.eye(CSR, 3)
        >>> [(i, list(v)) for i, v in eye.outer_iterator()]
        [(0, [(0, 1.0)]), (1, [(1, 1.0)]), (2, [(2, 1.0)])]
        """
        indptr, indices, data = self._parts()
        return OuterIterator(indptr, indices, data, self.inner_dims)

    def outer_iterator_perm(self, perm):
        """Iterate over the outer slices of ``P * A``.

        Parameters
        ----------
        perm : Permutation
            Permutation of the outer dimension.

        Returns
        -------
        OuterIteratorPerm
            Iterator whose ``perm`` attribute is the permutation oriented for
            the inner dimension of ``P * A * P^T``.
        """
        if len(perm) != self.outer_dims:
            raise IncompatibleDimensions(
                f"permutation of size {len(perm)} for outer dimension {self.outer_dims}"
            )
        oriented = perm if self._storage is CSR else perm.inv()
        indptr, indices, data = self._parts()
        return OuterIteratorPerm(indptr, indices, data, self.inner_dims, oriented)

    def middle_outer_views(self, i, count):
        """View of ``count`` contiguous outer slices starting at ``i``.

        The view shares ``indices`` and ``data`` with this matrix; its
        ``indptr`` is a sub-range of this matrix's offsets.

        Raises
        ------
        EmptyBlock
            If ``count`` is zero.
        OutOfBoundsIndex
            If ``i`` or ``i + count`` exceeds the outer dimension.
        """
        i = int(i)
        count = int(count)
        if count == 0:
            raise EmptyBlock("a middle outer view needs at least one slice")
        iend = i + count
        if i < 0 or count < 0 or i >= self.outer_dims or iend > self.outer_dims:
            raise OutOfBoundsIndex(
                f"outer range [{i}, {iend}) out of bounds for outer dimension {self.outer_dims}"
            )
        indptr, indices, data = self._parts()
        if self._storage is CSR:
            nrows, ncols = count, self._shape[1]
        else:
            nrows, ncols = self._shape[0], count
        return CompressedMatrix._new_raw(
            self._storage, nrows, ncols, indptr[i : iend + 1], indices, data
        )

    def outer_block_iter(self, block_size):
        """Iterate over non-overlapping views of ``block_size`` outer slices.

        The last block may be shorter.

        Raises
        ------
        EmptyBlock
            If ``block_size`` is zero.
        """
        block_size = int(block_size)
        if block_size <= 0:
            raise EmptyBlock("block size must be positive")
        return self._outer_blocks(block_size)

    def _outer_blocks(self, block_size):
        outer = self.outer_dims
        for start in range(0, outer, block_size):
            yield self.middle_outer_views(start, min(block_size, outer - start))

    # ------------------------------------------------------------------
    # Views, copies and conversions
    # ------------------------------------------------------------------

    def borrowed(self):
        """Read-only view over the current arrays."""
        indptr, indices, data = self._parts()
        return CompressedMatrix._new_raw(
            self._storage, self._shape[0], self._shape[1], indptr, indices, data
        )

    def transpose_view(self):
        """Transposed view: same arrays, opposite storage label, swapped shape."""
        indptr, indices, data = self._parts()
        return CompressedMatrix._new_raw(
            self._storage.other_storage(), self._shape[1], self._shape[0], indptr, indices, data
        )

    @property
    def T(self):
        """Transposed view (see :meth:`transpose_view`)."""
        return self.transpose_view()

    def transpose_mut(self):
        """Transpose in place by swapping the shape and flipping the storage label.

        No array is rewritten.
        """
        self._shape = (self._shape[1], self._shape[0])
        self._storage = self._storage.other_storage()

    def to_owned(self):
        """Deep copy into an independently owned matrix.

        Outer-range views are compacted so the copy's ``indptr`` starts at 0.
        """
        indptr, indices, data = self._parts()
        start = int(indptr[0])
        stop = int(indptr[-1])
        return CompressedMatrix._adopt(
            self._storage,
            self._shape[0],
            self._shape[1],
            np.array(indptr - start, dtype=indptr.dtype),
            np.array(indices[start:stop]),
            np.array(data[start:stop]),
            check=False,
        )

    def to_other_storage(self):
        """Equal matrix in the opposite storage order, as a new owned matrix."""
        indptr, indices, data = self._parts()
        inner = self.inner_dims
        nnz = self.nnz
        out_indptr = np.zeros(inner + 1, dtype=indptr.dtype)
        out_indices = np.zeros(nnz, dtype=indices.dtype)
        out_data = np.empty(nnz, dtype=data.dtype)
        convert_mat_storage(self, out_indptr, out_indices, out_data)
        return CompressedMatrix._adopt(
            self._storage.other_storage(),
            self._shape[0],
            self._shape[1],
            out_indptr,
            out_indices,
            out_data,
        )

    def to_csr(self):
        """New owned CSR matrix equal to this one (a copy if already CSR)."""
        if self._storage is CSR:
            return self.to_owned()
        return self.to_other_storage()

    def to_csc(self):
        """New owned CSC matrix equal to this one (a copy if already CSC)."""
        if self._storage is CSC:
            return self.to_owned()
        return self.to_other_storage()

    def toarray(self):
        """Materialize the sparse matrix as a dense numpy.ndarray.

        Returns
        -------
        numpy.ndarray
            Dense array of shape ``self.shape`` with the dtype of ``data``.
        """
        out = np.zeros(self.shape, dtype=self.dtype)
        for outer_ind, vec in self.outer_iterator():
            if self._storage is CSR:
                out[outer_ind, vec.indices] = vec.data
            else:
                out[vec.indices, outer_ind] = vec.data
        return out

    # ------------------------------------------------------------------
    # Mutation (owned matrices only)
    # ------------------------------------------------------------------

    def _require_owned(self, what):
        if not self._owned:
            raise ValueError(f"cannot {what} a borrowed CompressedMatrix; call to_owned() first")

    def _grow_outer(self):
        if self._storage is CSR:
            self._shape = (self._shape[0] + 1, self._shape[1])
        else:
            self._shape = (self._shape[0], self._shape[1] + 1)

    def reserve_outer_dim(self, additional):
        """Reserve room for ``additional`` more outer slices."""
        self._require_owned("reserve storage on")
        self._indptr.reserve(additional)

    def reserve_outer_dim_exact(self, outer_dim_lim):
        """Reserve room for exactly ``outer_dim_lim`` outer slices in total."""
        self._require_owned("reserve storage on")
        self._indptr.reserve_exact(max(0, int(outer_dim_lim) + 1 - len(self._indptr)))

    def reserve_nnz(self, additional):
        """Reserve room for ``additional`` more stored entries."""
        self._require_owned("reserve storage on")
        self._indices.reserve(additional)
        self._data.reserve(additional)

    def reserve_nnz_exact(self, nnz_lim):
        """Reserve room for exactly ``nnz_lim`` stored entries in total."""
        self._require_owned("reserve storage on")
        extra = max(0, int(nnz_lim) - len(self._indices))
        self._indices.reserve_exact(extra)
        self._data.reserve_exact(extra)

    def append_outer(self, values):
        """Append an outer slice given as a dense buffer, keeping its non-zeros.

        Parameters
        ----------
        values : array_like, shape ``(inner_dims,)``
            Dense slice. It is cast to the matrix dtype first, then entry ``k``
            becomes inner index ``k`` if the cast value is non-zero.

        Returns
        -------
        CompressedMatrix
            ``self``, to allow chained building.

        Raises
        ------
        ValueError
            If the matrix is a borrowed view.
        IncompatibleDimensions
            If ``len(values)`` differs from the inner dimension.
        """
        self._require_owned("append to")
        values = np.asarray(values)
        if values.ndim != 1 or values.shape[0] != self.inner_dims:
            raise IncompatibleDimensions(
                f"dense slice of length {values.size} for inner dimension {self.inner_dims}"
            )
        values = values.astype(self._data.dtype, copy=False)
        nz = np.flatnonzero(values != zero_of(values.dtype))
        self._indices.extend(nz)
        self._data.extend(values[nz])
        self._indptr.append(len(self._indices))
        self._grow_outer()
        return self

    def append_outer_csvec(self, vec):
        """Append an outer slice given as a sparse vector.

        Indices are copied verbatim; the caller guarantees they are sorted
        and unique. With ``set_check_appends(True)`` this is verified.

        Returns
        -------
        CompressedMatrix
            ``self``, to allow chained building.

        Raises
        ------
        ValueError
            If the matrix is a borrowed view.
        IncompatibleDimensions
            If ``vec.dim`` differs from the inner dimension.
        StructuralError
            If append checks are enabled and ``vec`` is malformed.
        """
        self._require_owned("append to")
        if vec.dim != self.inner_dims:
            raise IncompatibleDimensions(
                f"vector of dimension {vec.dim} for inner dimension {self.inner_dims}"
            )
        if get_check_appends():
            check_vector_structure(vec.dim, vec.indices, vec.data)
        self._indices.extend(vec.indices)
        self._data.extend(vec.data)
        self._indptr.append(len(self._indices))
        self._grow_outer()
        return self

    def data_mut(self):
        """Writable view of the stored values (owned matrices only).

        Writes through this view are visible to every view sharing the
        current buffer.
        """
        self._require_owned("mutate")
        return self._data.view(writeable=True)

    def scale(self, val):
        """Multiply every stored value by ``val`` in place.

        The structure is unchanged, even where a product becomes zero. The
        values move to a fresh buffer, so views taken earlier keep the old
        values.
        """
        self._require_owned("scale")
        self._data.replace(self._data.view() * val)
        self._dtype = self._data.dtype

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def __eq__(self, other):
        """Structural equality: same storage, shape and stored slices."""
        if not isinstance(other, CompressedMatrix):
            return NotImplemented
        if self._storage is not other._storage or self.shape != other.shape:
            return False
        a_ptr, a_ind, a_dat = self._parts()
        b_ptr, b_ind, b_dat = other._parts()
        a0, b0 = int(a_ptr[0]), int(b_ptr[0])
        return (
            np.array_equal(a_ptr - a0, b_ptr - b0)
            and np.array_equal(a_ind[a0 : int(a_ptr[-1])], b_ind[b0 : int(b_ptr[-1])])
            and np.array_equal(a_dat[a0 : int(a_ptr[-1])], b_dat[b0 : int(b_ptr[-1])])
        )

    __hash__ = None

    def _matching_storage(self, other):
        if other._storage is self._storage:
            return other
        logger.debug(
            "converting right operand from %s to %s", other._storage.name, self._storage.name
        )
        return other.to_other_storage()

    def _dense_operands(self, other):
        # Pick the sparse side's storage to follow the dense memory order.
        arr = np.asarray(other)
        if arr.ndim != 2:
            raise IncompatibleDimensions("dense operand must be two-dimensional")
        if order_compatible(self._storage, arr):
            return self, arr
        if arr.flags.c_contiguous or arr.flags.f_contiguous:
            logger.debug("converting sparse operand to match dense ordering")
            return self.to_other_storage(), arr
        return self, np.ascontiguousarray(arr) if self._storage is CSR else np.asfortranarray(arr)

    def __add__(self, other):
        """Elementwise sum with a sparse matrix (sparse result) or a dense array (dense result)."""
        from . import binop

        if isinstance(other, CompressedMatrix):
            return binop.add_mat_same_storage(self, self._matching_storage(other))
        if isinstance(other, np.ndarray):
            lhs, rhs = self._dense_operands(other)
            one = one_of(np.result_type(lhs.dtype, rhs.dtype))
            return binop.add_dense_mat_same_ordering(lhs, rhs, one, one)
        return NotImplemented

    def __radd__(self, other):
        if isinstance(other, np.ndarray):
            return self.__add__(other)
        return NotImplemented

    def __sub__(self, other):
        from . import binop

        if isinstance(other, CompressedMatrix):
            return binop.sub_mat_same_storage(self, self._matching_storage(other))
        if isinstance(other, np.ndarray):
            lhs, rhs = self._dense_operands(other)
            one = one_of(np.result_type(lhs.dtype, rhs.dtype))
            return binop.add_dense_mat_same_ordering(lhs, rhs, one, -one)
        return NotImplemented

    def __rsub__(self, other):
        from . import binop

        if isinstance(other, np.ndarray):
            lhs, rhs = self._dense_operands(other)
            one = one_of(np.result_type(lhs.dtype, rhs.dtype))
            return binop.add_dense_mat_same_ordering(lhs, rhs, -one, one)
        return NotImplemented

    def __mul__(self, alpha):
        """Scalar multiplication ``A * alpha``; the structure is preserved exactly."""
        from . import binop

        if isinstance(alpha, (SparseArray, np.ndarray)):
            return NotImplemented
        return binop.scalar_mul_mat(self, alpha)

    __rmul__ = __mul__

    def __neg__(self):
        from . import binop

        return binop.scalar_mul_mat(self, -one_of(self.dtype))

    def multiply(self, other):
        """Elementwise (Hadamard) product.

        Parameters
        ----------
        other : CompressedMatrix, numpy.ndarray or scalar
            Sparse operand (sparse result), dense operand (dense result), or a
            scalar (same as ``self * other``).
        """
        from . import binop

        if isinstance(other, CompressedMatrix):
            return binop.mul_mat_same_storage(self, self._matching_storage(other))
        if isinstance(other, np.ndarray):
            lhs, rhs = self._dense_operands(other)
            return binop.mul_dense_mat_same_ordering(
                lhs, rhs, one_of(np.result_type(lhs.dtype, rhs.dtype))
            )
        return binop.scalar_mul_mat(self, other)

    def __matmul__(self, other):
        """Matrix product with a compressed matrix or a dense array."""
        from . import prod

        if isinstance(other, (CompressedMatrix, np.ndarray)):
            return prod.mul_mat(self, other)
        return NotImplemented


def csr_matrix(indptr, indices, data, shape, dtype=None):
    """Construct a checked, owned CSR :class:`CompressedMatrix`.

    Parameters
    ----------
    indptr, indices, data, shape, dtype
        See :class:`CompressedMatrix`.
    """
    return CompressedMatrix(CSR, shape, indptr, indices, data, dtype=dtype)


def csc_matrix(indptr, indices, data, shape, dtype=None):
    """Construct a checked, owned CSC :class:`CompressedMatrix`."""
    return CompressedMatrix(CSC, shape, indptr, indices, data, dtype=dtype)
