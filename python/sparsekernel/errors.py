"""Exception types raised by sparsekernel.

Every failure is reported synchronously through one of the classes below.
They subclass the builtin exception a caller would naturally catch
(``ValueError`` or ``IndexError``), so code written against plain NumPy
conventions keeps working.
"""

import enum


class StructureErrorKind(enum.Enum):
    """Which structural invariant of a compressed matrix was violated."""

    BAD_OFFSETS_LENGTH = "indptr length does not match the outer dimension + 1"
    OFFSETS_OUT_OF_BOUNDS = "indptr contains an offset outside [0, nnz]"
    UNSORTED_OFFSETS = "indptr is not monotonically non-decreasing"
    DATA_INDICES_MISMATCH = "indices and data have different lengths"
    NNZ_MISMATCH = "indptr does not span exactly the stored entries"
    INDICES_OUT_OF_BOUNDS = "an inner index reaches or exceeds the inner dimension"
    UNSORTED_INDICES = "inner indices are not strictly increasing within a slice"


class SparseError(Exception):
    """Base class for all sparsekernel errors."""


class StructuralError(SparseError, ValueError):
    """Raised when arrays do not describe a valid compressed structure.

    Parameters
    ----------
    kind : StructureErrorKind
        The violated invariant.
    detail : str, optional
        Extra context appended to the message (offending slice, index, ...).

    Attributes
    ----------
    kind : StructureErrorKind
        The violated invariant, for programmatic inspection.
    """

    def __init__(self, kind, detail=None):
        self.kind = kind
        msg = kind.value if detail is None else f"{kind.value} ({detail})"
        super().__init__(msg)


class IncompatibleDimensions(SparseError, ValueError):
    """Operand shapes disagree (rows, cols or vector length)."""


class IncompatibleStorages(SparseError, ValueError):
    """Operand storage orders disagree where they are required to match."""


class OutOfBoundsIndex(SparseError, IndexError):
    """A requested element, slice or block lies outside the matrix."""


class EmptyBlock(SparseError, ValueError):
    """A block or range request spans zero outer slices."""


__all__ = [
    "StructureErrorKind",
    "SparseError",
    "StructuralError",
    "IncompatibleDimensions",
    "IncompatibleStorages",
    "OutOfBoundsIndex",
    "EmptyBlock",
]
