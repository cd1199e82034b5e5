"""Exact symmetry test for compressed matrices."""

from .csmat import CompressedMatrix


def is_symmetric(mat: CompressedMatrix) -> bool:
    """Return True if ``mat`` equals its transpose, entry by entry.

    Every stored entry ``(i, j)`` must have a stored mirror ``(j, i)`` with an
    equal value. The comparison is exact; use a tolerance-based check on
    ``mat.toarray()`` for floating-point data computed in different orders.
    Non-square matrices are never symmetric.

    Examples
    --------
    >>> from sparsekernel import CSR, CompressedMatrix
    >>> is_symmetric(CompressedMatrix.eye(CSR, 3))
    True
    """
    if mat.rows != mat.cols:
        return False
    for outer_ind, vec in mat.outer_iterator():
        for inner_ind, value in vec:
            mirror = mat.at_outer_inner(inner_ind, outer_ind)
            if mirror is None or mirror != value:
                return False
    return True
