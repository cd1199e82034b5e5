"""Counting-sort conversion between CSR and CSC storage.

Swapping the storage order of ``A`` while keeping its meaning is the same
operation as transposing ``A`` without changing the storage label, so this
module backs both :meth:`CompressedMatrix.to_other_storage` and any copying
transpose.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def convert_mat_storage(mat, indptr, indices, data):
    """Write ``mat`` in the opposite storage order into preallocated arrays.

    Runs in ``O(nnz + inner_dims)`` without comparisons:

    1. histogram the inner indices into ``indptr``;
    2. turn the counts into an exclusive prefix sum;
    3. scatter every entry, in source order, to the running offset of its
       inner index, recording its originating outer index;
    4. shift the advanced offsets back by one slot.

    Parameters
    ----------
    mat : CompressedMatrix
        Source matrix or view.
    indptr : numpy.ndarray of int, shape ``(mat.inner_dims + 1,)``
        Output offsets; must be all zeros on entry.
    indices : numpy.ndarray of int, shape ``(mat.nnz,)``
        Output inner indices.
    data : numpy.ndarray, shape ``(mat.nnz,)``
        Output values.

    Raises
    ------
    ValueError
        If the output arrays do not match the source sizes, or ``indptr`` is
        not zero-filled.
    """
    nnz = mat.nnz
    inner = mat.inner_dims
    if indptr.shape != (inner + 1,):
        raise ValueError(f"indptr must have length {inner + 1}, got {indptr.size}")
    if indices.shape != (nnz,) or data.shape != (nnz,):
        raise ValueError(f"indices and data must have length {nnz}")
    if np.any(indptr):
        raise ValueError("indptr must be zero-filled")

    src_indptr = mat.indptr
    start = int(src_indptr[0])
    stop = int(src_indptr[-1])
    src_indices = mat.indices[start:stop]

    counts = np.bincount(src_indices, minlength=inner) if nnz else np.zeros(inner, dtype=np.intp)
    indptr[1:] = np.cumsum(counts)
    indptr[0] = 0
    if int(indptr[-1]) != nnz:
        raise RuntimeError(f"prefix sum ended at {int(indptr[-1])}, expected {nnz}")

    # Inner indices are unique inside one slice, so each slice scatters in
    # a single vectorized step without colliding destinations.
    for outer_ind, vec in mat.outer_iterator():
        if vec.nnz == 0:
            continue
        inner_inds = vec.indices
        dest = indptr[inner_inds]
        data[dest] = vec.data
        indices[dest] = outer_ind
        indptr[inner_inds] += 1

    indptr[1:] = indptr[:-1].copy()
    indptr[0] = 0
    logger.debug(
        "converted %s matrix of shape %s (nnz=%d) to %s",
        mat.storage.name,
        mat.shape,
        nnz,
        mat.storage.other_storage().name,
    )
