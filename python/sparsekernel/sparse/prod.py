"""Matrix products involving compressed matrices.

The sparse-sparse kernel is Gustavson's row-by-row algorithm with a dense
accumulator; CSC operands reuse it through transposed views, since
``(A @ B).T == B.T @ A.T`` and the transpose of a CSC matrix is a CSR view
over the same arrays.
"""

import logging

import numpy as np

from .._runtime import get_index_dtype
from ..errors import IncompatibleDimensions
from .base import CSC, CSR
from .csmat import CompressedMatrix

logger = logging.getLogger(__name__)


def csr_mul_csr(lhs, rhs):
    """Sparse product of two CSR matrices, returned as an owned CSR matrix.

    Entries that cancel to zero are kept as explicit zeros.

    Raises
    ------
    IncompatibleDimensions
        If ``lhs.cols != rhs.rows``.
    ValueError
        If either operand is not CSR.
    """
    if not (lhs.is_csr() and rhs.is_csr()):
        raise ValueError("csr_mul_csr expects two CSR matrices")
    if lhs.cols != rhs.rows:
        raise IncompatibleDimensions(f"cannot multiply {lhs.shape} by {rhs.shape}")
    dtype = np.result_type(lhs.dtype, rhs.dtype)
    ncols = rhs.cols
    acc = np.zeros(ncols, dtype=dtype)
    touched = np.zeros(ncols, dtype=bool)
    rhs_rows = [vec for _, vec in rhs.outer_iterator()]
    no_cols = np.zeros(0, dtype=np.intp)

    indptr = [0]
    index_chunks = []
    data_chunks = []
    for _, lvec in lhs.outer_iterator():
        row_cols = []
        for k, lval in lvec:
            rvec = rhs_rows[k]
            acc[rvec.indices] += lval * rvec.data
            new = rvec.indices[~touched[rvec.indices]]
            if new.size:
                touched[new] = True
                row_cols.append(new)
        cols = np.sort(np.concatenate(row_cols)) if row_cols else no_cols
        index_chunks.append(cols)
        data_chunks.append(acc[cols].copy())
        acc[cols] = 0
        touched[cols] = False
        indptr.append(indptr[-1] + cols.size)

    idx = get_index_dtype()
    indices = np.concatenate(index_chunks).astype(idx) if index_chunks else np.zeros(0, dtype=idx)
    data = np.concatenate(data_chunks) if data_chunks else np.zeros(0, dtype=dtype)
    return CompressedMatrix._adopt(
        CSR, lhs.rows, ncols, np.asarray(indptr, dtype=idx), indices, data.astype(dtype)
    )


def csc_mul_csc(lhs, rhs):
    """Sparse product of two CSC matrices, returned as an owned CSC matrix."""
    if not (lhs.is_csc() and rhs.is_csc()):
        raise ValueError("csc_mul_csc expects two CSC matrices")
    if lhs.cols != rhs.rows:
        raise IncompatibleDimensions(f"cannot multiply {lhs.shape} by {rhs.shape}")
    res = csr_mul_csr(rhs.transpose_view(), lhs.transpose_view())
    res.transpose_mut()
    return res


def csmat_mul_dense(lhs, rhs):
    """Product of a compressed matrix and a dense array.

    Parameters
    ----------
    lhs : CompressedMatrix
    rhs : numpy.ndarray, shape ``(lhs.cols,)`` or ``(lhs.cols, k)``

    Returns
    -------
    numpy.ndarray
        Dense result. A two-dimensional result is F-ordered when ``rhs`` is
        F-ordered only, C-ordered otherwise.
    """
    rhs = np.asarray(rhs)
    if rhs.ndim not in (1, 2) or rhs.shape[0] != lhs.cols:
        raise IncompatibleDimensions(f"cannot multiply {lhs.shape} by {rhs.shape}")
    vector = rhs.ndim == 1
    rhs2 = rhs.reshape(lhs.cols, -1) if vector else rhs
    order = "F" if rhs2.flags.f_contiguous and not rhs2.flags.c_contiguous else "C"
    out = np.zeros((lhs.rows, rhs2.shape[1]), dtype=np.result_type(lhs.dtype, rhs.dtype), order=order)
    if lhs.is_csr():
        for row, vec in lhs.outer_iterator():
            if vec.nnz:
                out[row, :] = vec.data @ rhs2[vec.indices, :]
    else:
        for col, vec in lhs.outer_iterator():
            if vec.nnz:
                out[vec.indices, :] += np.outer(vec.data, rhs2[col, :])
    return out[:, 0] if vector else out


def mul_mat(lhs, rhs):
    """Product ``lhs @ rhs``, dispatched on the storage pair.

    Mixed storage pairs convert ``rhs`` to the storage of ``lhs`` first, so
    the result has the storage of ``lhs``.

    Raises
    ------
    IncompatibleDimensions
        If the inner dimensions of the product do not agree.
    """
    if not isinstance(rhs, CompressedMatrix):
        return csmat_mul_dense(lhs, rhs)
    if lhs.cols != rhs.rows:
        raise IncompatibleDimensions(f"cannot multiply {lhs.shape} by {rhs.shape}")
    if lhs.storage is not rhs.storage:
        logger.debug(
            "converting product operand from %s to %s", rhs.storage.name, lhs.storage.name
        )
        rhs = rhs.to_other_storage()
    if lhs.storage is CSC:
        return csc_mul_csc(lhs, rhs)
    return csr_mul_csr(lhs, rhs)
