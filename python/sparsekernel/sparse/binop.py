"""Elementwise operations on compressed matrices and sparse vectors.

Sparse-sparse combination walks both operands slice by slice with
:func:`~sparsekernel.sparse.merge.nnz_or_zip` and stores a result only where
it is non-zero, so ``A + (-A)`` has no stored entries. Scaling by a scalar is
a structural copy and never prunes.

Functions ending in ``_raw`` write into caller-provided arrays and perform no
allocation; the others allocate and return an owned result.
"""

import logging
import operator

import numpy as np

from ..errors import IncompatibleDimensions, IncompatibleStorages
from .base import CSR, order_compatible, zero_of
from .csmat import CompressedMatrix
from .merge import Both, LeftOnly, nnz_or_zip
from .vec import SparseVector

logger = logging.getLogger(__name__)


def add_mat_same_storage(lhs, rhs):
    """Sparse sum of two matrices sharing shape and storage order.

    Raises
    ------
    IncompatibleDimensions
        If the shapes differ.
    IncompatibleStorages
        If the storage orders differ.
    """
    return csmat_binop_same_storage_alloc(lhs, rhs, operator.add)


def sub_mat_same_storage(lhs, rhs):
    """Sparse difference ``lhs - rhs`` of two matrices sharing shape and storage."""
    return csmat_binop_same_storage_alloc(lhs, rhs, operator.sub)


def mul_mat_same_storage(lhs, rhs):
    """Elementwise (not matrix) product of two matrices sharing shape and storage."""
    return csmat_binop_same_storage_alloc(lhs, rhs, operator.mul)


def scalar_mul_mat(mat, val):
    """Return a new owned matrix equal to ``mat * val``, with the same structure."""
    nnz = mat.nnz
    indptr = mat.indptr
    dtype = np.result_type(mat.dtype, np.asarray(val).dtype) if mat.dtype != object else object
    out_indptr = np.zeros(mat.outer_dims + 1, dtype=indptr.dtype)
    out_indices = np.zeros(nnz, dtype=mat.indices.dtype)
    out_data = np.empty(nnz, dtype=dtype)
    scalar_mul_mat_raw(mat, val, out_indptr, out_indices, out_data)
    return CompressedMatrix._adopt(
        mat.storage, mat.rows, mat.cols, out_indptr, out_indices, out_data
    )


def scalar_mul_mat_raw(mat, val, out_indptr, out_indices, out_data):
    """Write ``mat * val`` into preallocated arrays.

    The offsets are copied (rebased to start at zero for outer-range views)
    and the indices copied verbatim; only the values are transformed.

    Raises
    ------
    ValueError
        If ``out_indptr`` does not have ``outer_dims + 1`` entries or the
        other outputs are shorter than ``mat.nnz``.
    """
    nnz = mat.nnz
    if out_indptr.shape != (mat.outer_dims + 1,):
        raise ValueError(f"out_indptr must have length {mat.outer_dims + 1}")
    if out_indices.size < nnz or out_data.size < nnz:
        raise ValueError(f"output arrays must hold at least {nnz} entries")
    indptr = mat.indptr
    start = int(indptr[0])
    out_indptr[:] = indptr - start
    out_indices[:nnz] = mat.indices[start : start + nnz]
    out_data[:nnz] = mat.data[start : start + nnz] * val


def csmat_binop_same_storage_alloc(lhs, rhs, binop):
    """Combine two matrices elementwise with ``binop`` into a new owned matrix.

    Parameters
    ----------
    lhs, rhs : CompressedMatrix
        Operands with identical shape and storage order.
    binop : callable
        ``binop(a, b)`` on scalars; an absent entry is passed as zero.

    Returns
    -------
    CompressedMatrix
        Owned result holding only the non-zero outcomes.

    Raises
    ------
    IncompatibleDimensions
        If the shapes differ.
    IncompatibleStorages
        If the storage orders differ.
    """
    if lhs.shape != rhs.shape:
        raise IncompatibleDimensions(f"shapes differ: {lhs.shape} != {rhs.shape}")
    if lhs.storage is not rhs.storage:
        raise IncompatibleStorages(
            f"storages differ: {lhs.storage.name} != {rhs.storage.name}"
        )
    max_nnz = lhs.nnz + rhs.nnz
    dtype = np.result_type(lhs.dtype, rhs.dtype)
    idx_dtype = np.result_type(lhs.indices.dtype, rhs.indices.dtype)
    out_indptr = np.zeros(lhs.outer_dims + 1, dtype=idx_dtype)
    out_indices = np.zeros(max_nnz, dtype=idx_dtype)
    out_data = np.zeros(max_nnz, dtype=dtype)
    nnz = csmat_binop_same_storage_raw(lhs, rhs, binop, out_indptr, out_indices, out_data)
    logger.debug("elementwise combine kept %d of at most %d entries", nnz, max_nnz)
    return CompressedMatrix._adopt(
        lhs.storage,
        lhs.rows,
        lhs.cols,
        out_indptr,
        out_indices[:nnz].copy(),
        out_data[:nnz].copy(),
    )


def _combine(elem, binop, zero):
    if isinstance(elem, Both):
        return elem.index, binop(elem.left, elem.right)
    if isinstance(elem, LeftOnly):
        return elem.index, binop(elem.value, zero)
    return elem.index, binop(zero, elem.value)


def csmat_binop_same_storage_raw(lhs, rhs, binop, out_indptr, out_indices, out_data):
    """Elementwise combination into preallocated arrays.

    ``out_indices`` and ``out_data`` must hold at least ``lhs.nnz + rhs.nnz``
    entries; only the first ``nnz`` are written.

    Returns
    -------
    int
        Number of entries written.

    Raises
    ------
    IncompatibleDimensions
        If the operand shapes differ.
    IncompatibleStorages
        If the storage orders differ.
    ValueError
        If the output arrays are too small.
    """
    if lhs.shape != rhs.shape:
        raise IncompatibleDimensions(f"shapes differ: {lhs.shape} != {rhs.shape}")
    if lhs.storage is not rhs.storage:
        raise IncompatibleStorages(
            f"storages differ: {lhs.storage.name} != {rhs.storage.name}"
        )
    if out_indptr.shape != (rhs.outer_dims + 1,):
        raise ValueError(f"out_indptr must have length {rhs.outer_dims + 1}")
    max_nnz = lhs.nnz + rhs.nnz
    if out_indices.size < max_nnz or out_data.size < max_nnz:
        raise ValueError(f"output arrays must hold at least {max_nnz} entries")

    zero = zero_of(out_data.dtype)
    nnz = 0
    out_indptr[0] = 0
    for (outer_ind, lvec), (_, rvec) in zip(lhs.outer_iterator(), rhs.outer_iterator()):
        for elem in nnz_or_zip(lvec, rvec):
            ind, val = _combine(elem, binop, zero)
            if val != zero:
                out_indices[nnz] = ind
                out_data[nnz] = val
                nnz += 1
        out_indptr[outer_ind + 1] = nnz
    return nnz


def _dense_result(lhs, rhs, *coeffs):
    if not order_compatible(lhs.storage, rhs):
        raise IncompatibleStorages(
            f"{lhs.storage.name} matrix cannot pair with a dense array of this memory order"
        )
    if lhs.dtype == object or rhs.dtype == object:
        dtype = object
    else:
        dtype = np.result_type(lhs.dtype, rhs.dtype, *coeffs)
    order = "C" if lhs.storage is CSR else "F"
    return np.zeros(rhs.shape, dtype=dtype, order=order)


def _check_dense_operands(lhs, rhs, out):
    if lhs.shape != rhs.shape or lhs.shape != out.shape:
        raise IncompatibleDimensions(
            f"shapes differ: sparse {lhs.shape}, dense {rhs.shape}, out {out.shape}"
        )
    if not (order_compatible(lhs.storage, rhs) and order_compatible(lhs.storage, out)):
        raise IncompatibleStorages(
            f"{lhs.storage.name} matrix needs "
            f"{'C' if lhs.storage is CSR else 'F'}-ordered dense operands"
        )


def _dense_slices(lhs, rhs, out):
    csr = lhs.storage is CSR
    for outer_ind, vec in lhs.outer_iterator():
        if csr:
            yield vec, rhs[outer_ind, :], out[outer_ind, :]
        else:
            yield vec, rhs[:, outer_ind], out[:, outer_ind]


def _binop_dense_vectorized(lhs, rhs, binop, out):
    # binop must broadcast over arrays; used by the built-in combinators only
    _check_dense_operands(lhs, rhs, out)
    zero = zero_of(out.dtype)
    for vec, dense_slice, out_slice in _dense_slices(lhs, rhs, out):
        out_slice[...] = binop(zero, dense_slice)
        if vec.nnz:
            inds = vec.indices
            out_slice[inds] = binop(vec.data, dense_slice[inds])


def add_dense_mat_same_ordering(lhs, rhs, alpha, beta):
    """Dense result of ``alpha * lhs + beta * rhs``.

    Parameters
    ----------
    lhs : CompressedMatrix
        Sparse operand.
    rhs : numpy.ndarray
        Dense operand; C-contiguous for a CSR ``lhs``, F-contiguous for CSC.
    alpha, beta : scalar
        Coefficients. They take part in the result dtype, so integer
        operands with ``alpha=0.5`` give a floating result.

    Returns
    -------
    numpy.ndarray
        Newly allocated dense array with the memory order of ``rhs``.

    Raises
    ------
    IncompatibleStorages
        If the memory order of ``rhs`` does not match the storage of ``lhs``.
    IncompatibleDimensions
        If the shapes differ.

    Examples
    --------
    >>> import numpy as np
    >>> eye = CompressedMatrix.eye(CSR, 2)
    >>> add_dense_mat_same_ordering(eye, np.ones((2, 2)), 2.0, 1.0)
    array([[3., 1.],
           [1., 3.]])
    """
    rhs = np.asarray(rhs)
    out = _dense_result(lhs, rhs, alpha, beta)
    _binop_dense_vectorized(lhs, rhs, lambda x, y: alpha * x + beta * y, out)
    return out


def mul_dense_mat_same_ordering(lhs, rhs, alpha):
    """Dense result of the elementwise product ``alpha * lhs * rhs``."""
    rhs = np.asarray(rhs)
    out = _dense_result(lhs, rhs, alpha)
    _binop_dense_vectorized(lhs, rhs, lambda x, y: alpha * x * y, out)
    return out


def csmat_binop_dense_same_ordering_raw(lhs, rhs, binop, out):
    """Write ``binop(lhs[i, j], rhs[i, j])`` for every position into ``out``.

    Each outer slice of ``lhs`` is merged against ``enumerate`` of the
    matching dense slice, so ``binop`` is called on scalars (``max`` works).
    The sparse operand is always the first argument; absent entries are
    passed as zero.

    Raises
    ------
    IncompatibleDimensions
        If ``lhs``, ``rhs`` and ``out`` do not all share one shape.
    IncompatibleStorages
        If ``rhs`` or ``out`` is not laid out in the memory order matching
        the storage of ``lhs`` (C for CSR, F for CSC).

    Examples
    --------
    >>> import numpy as np
    >>> out = np.zeros((2, 2))
    >>> csmat_binop_dense_same_ordering_raw(
    ...     CompressedMatrix.eye(CSR, 2), np.full((2, 2), 0.5), max, out)
    >>> out
    array([[1. , 0.5],
           [0.5, 1. ]])
    """
    _check_dense_operands(lhs, rhs, out)
    zero = zero_of(out.dtype)
    for vec, dense_slice, out_slice in _dense_slices(lhs, rhs, out):
        for elem in nnz_or_zip(vec, enumerate(dense_slice.tolist())):
            ind, val = _combine(elem, binop, zero)
            out_slice[ind] = val


def csvec_binop(lhs, rhs, binop):
    """Combine two sparse vectors elementwise, keeping only non-zero results.

    Parameters
    ----------
    lhs, rhs : SparseVector
        Operands of the same dimension.
    binop : callable
        ``binop(a, b)`` on scalars; an absent entry is passed as zero.

    Returns
    -------
    SparseVector
        Owned result.

    Raises
    ------
    IncompatibleDimensions
        If the dimensions differ.

    Examples
    --------
    >>> a = SparseVector(4, [0, 2], [1.0, 2.0])
    >>> b = SparseVector(4, [2, 3], [-2.0, 5.0])
    >>> list(csvec_binop(a, b, lambda x, y: x + y))
    [(0, 1.0), (3, 5.0)]
    """
    if lhs.dim != rhs.dim:
        raise IncompatibleDimensions(f"vector lengths differ: {lhs.dim} != {rhs.dim}")
    dtype = np.result_type(lhs.dtype, rhs.dtype)
    zero = zero_of(dtype)
    res = SparseVector.empty(lhs.dim, dtype=dtype)
    res.reserve_exact(lhs.nnz + rhs.nnz)
    for elem in nnz_or_zip(lhs, rhs):
        ind, val = _combine(elem, binop, zero)
        if val != zero:
            res.append(ind, val)
    return res


__all__ = [
    "add_mat_same_storage",
    "sub_mat_same_storage",
    "mul_mat_same_storage",
    "scalar_mul_mat",
    "scalar_mul_mat_raw",
    "csmat_binop_same_storage_alloc",
    "csmat_binop_same_storage_raw",
    "add_dense_mat_same_ordering",
    "mul_dense_mat_same_ordering",
    "csmat_binop_dense_same_ordering_raw",
    "csvec_binop",
]
