"""Structural checks shared by sparse vectors and compressed matrices.

All checks are vectorized with NumPy so that validating at the trust boundary
stays linear in ``nnz`` without a Python-level loop.
"""

import logging

import numpy as np

from .._runtime import get_index_dtype
from ..errors import StructuralError, StructureErrorKind

logger = logging.getLogger(__name__)


def as_index_array(values, dtype=None, copy=True):
    """Convert ``values`` to a 1D integer array of the configured index dtype.

    Raises
    ------
    TypeError
        If ``values`` holds non-integer data.
    """
    dtype = get_index_dtype() if dtype is None else np.dtype(dtype)
    arr = np.asarray(values)
    if arr.size == 0:
        return np.zeros(0, dtype=dtype)
    if arr.ndim != 1:
        raise ValueError("index arrays must be one-dimensional")
    if not np.issubdtype(arr.dtype, np.integer):
        raise TypeError(f"index arrays must hold integers, got {arr.dtype}")
    if copy or arr.dtype != dtype:
        return arr.astype(dtype, copy=True)
    return arr


def as_data_array(values, dtype=None, copy=True):
    """Convert ``values`` to a 1D value array, preserving its dtype by default."""
    arr = np.array(values, dtype=dtype, copy=True) if copy else np.asarray(values, dtype=dtype)
    if arr.ndim != 1:
        raise ValueError("data arrays must be one-dimensional")
    return arr


def _fail(kind, detail=None):
    logger.debug("rejected sparse structure: %s (%s)", kind.name, detail)
    raise StructuralError(kind, detail)


def check_vector_structure(dim, indices, data):
    """Validate one sparse vector: parallel arrays, sorted unique indices in ``[0, dim)``."""
    if indices.size != data.size:
        _fail(StructureErrorKind.DATA_INDICES_MISMATCH, f"{indices.size} != {data.size}")
    if indices.size == 0:
        return
    bad = np.flatnonzero(indices[1:] <= indices[:-1])
    if bad.size:
        _fail(StructureErrorKind.UNSORTED_INDICES, f"at position {int(bad[0]) + 1}")
    if indices[0] < 0 or indices[-1] >= dim:
        _fail(StructureErrorKind.INDICES_OUT_OF_BOUNDS, f"dimension is {dim}")


def check_compressed_structure(outer, inner, indptr, indices, data):
    """Validate the three arrays of a compressed matrix.

    Parameters
    ----------
    outer, inner : int
        Outer and inner dimension counts.
    indptr, indices, data : numpy.ndarray
        Offsets, inner indices and values.

    Raises
    ------
    StructuralError
        On the first violated invariant, checked in this order: offsets
        length, indices/data length, offsets bounds, offsets ordering, span
        of the offsets versus stored entries, then per-slice sortedness and
        inner bounds.
    """
    if indptr.ndim != 1 or indptr.size != outer + 1:
        _fail(StructureErrorKind.BAD_OFFSETS_LENGTH, f"expected {outer + 1}, got {indptr.size}")
    if indices.size != data.size:
        _fail(StructureErrorKind.DATA_INDICES_MISMATCH, f"{indices.size} != {data.size}")
    nnz = int(indices.size)
    if indptr.min() < 0 or indptr.max() > nnz:
        _fail(StructureErrorKind.OFFSETS_OUT_OF_BOUNDS, f"nnz is {nnz}")
    if outer > 0 and np.any(indptr[1:] < indptr[:-1]):
        _fail(StructureErrorKind.UNSORTED_OFFSETS)
    if indptr[0] != 0 or indptr[-1] != nnz:
        _fail(
            StructureErrorKind.NNZ_MISMATCH,
            f"indptr spans {int(indptr[-1]) - int(indptr[0])} entries, {nnz} stored",
        )
    if nnz == 0:
        return
    # A decrease (or repeat) between neighbours is legal only across a slice boundary.
    slice_start = np.zeros(nnz, dtype=bool)
    starts = indptr[:-1]
    slice_start[starts[starts < nnz]] = True
    bad = np.flatnonzero((indices[1:] <= indices[:-1]) & ~slice_start[1:])
    if bad.size:
        pos = int(bad[0]) + 1
        slice_ind = int(np.searchsorted(indptr, pos, side="right")) - 1
        _fail(StructureErrorKind.UNSORTED_INDICES, f"outer slice {slice_ind}")
    oob = np.flatnonzero((indices < 0) | (indices >= inner))
    if oob.size:
        pos = int(oob[0])
        slice_ind = int(np.searchsorted(indptr, pos, side="right")) - 1
        _fail(
            StructureErrorKind.INDICES_OUT_OF_BOUNDS,
            f"outer slice {slice_ind}, inner dimension is {inner}",
        )
