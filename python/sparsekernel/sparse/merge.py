"""Aligned traversal of two sparse index/value sequences.

:func:`nnz_or_zip` walks two sequences of ``(index, value)`` pairs, each in
strictly increasing index order, and yields one tagged element per distinct
index seen on either side. Every elementwise kernel in
:mod:`sparsekernel.sparse.binop` is built on it, which keeps them linear in
the combined number of stored entries.
"""

from typing import Any, Iterable, Iterator, NamedTuple, Tuple, Union


class LeftOnly(NamedTuple):
    """Index present only in the left operand."""

    index: int
    value: Any


class RightOnly(NamedTuple):
    """Index present only in the right operand."""

    index: int
    value: Any


class Both(NamedTuple):
    """Index present in both operands."""

    index: int
    left: Any
    right: Any


MergedElement = Union[LeftOnly, RightOnly, Both]

_EXHAUSTED = object()


def nnz_or_zip(
    left: Iterable[Tuple[int, Any]], right: Iterable[Tuple[int, Any]]
) -> Iterator[MergedElement]:
    """Merge two sorted sparse sequences into tagged, index-ordered elements.

    Parameters
    ----------
    left, right : iterable of (int, value)
        Index/value pairs with strictly increasing indices, e.g. a
        :class:`~sparsekernel.sparse.vec.SparseVector` or
        ``enumerate(dense_row)``.

    Yields
    ------
    LeftOnly, RightOnly or Both
        One element per distinct index, in strictly increasing index order.

    Examples
    --------
    >>> list(nnz_or_zip([(0, 1.0), (2, 1.0)], [(2, 3.0), (5, 3.0)]))
    [LeftOnly(index=0, value=1.0), Both(index=2, left=1.0, right=3.0), RightOnly(index=5, value=3.0)]
    """
    lit = iter(left)
    rit = iter(right)
    lhead = next(lit, _EXHAUSTED)
    rhead = next(rit, _EXHAUSTED)
    while lhead is not _EXHAUSTED and rhead is not _EXHAUSTED:
        lind, lval = lhead
        rind, rval = rhead
        if lind < rind:
            yield LeftOnly(lind, lval)
            lhead = next(lit, _EXHAUSTED)
        elif rind < lind:
            yield RightOnly(rind, rval)
            rhead = next(rit, _EXHAUSTED)
        else:
            yield Both(lind, lval, rval)
            lhead = next(lit, _EXHAUSTED)
            rhead = next(rit, _EXHAUSTED)
    while lhead is not _EXHAUSTED:
        yield LeftOnly(lhead[0], lhead[1])
        lhead = next(lit, _EXHAUSTED)
    while rhead is not _EXHAUSTED:
        yield RightOnly(rhead[0], rhead[1])
        rhead = next(rit, _EXHAUSTED)
