from .base import CSC, CSR, CompressedStorage, DenseOrder, dense_ordering
from .csmat import CompressedMatrix, OuterIterator, OuterIteratorPerm, csc_matrix, csr_matrix
from .merge import Both, LeftOnly, RightOnly, nnz_or_zip
from .permutation import Permutation
from .symmetric import is_symmetric
from .vec import SparseVector
from . import binop, convert, prod

__all__ = [
    "CSR",
    "CSC",
    "CompressedStorage",
    "DenseOrder",
    "dense_ordering",
    "CompressedMatrix",
    "OuterIterator",
    "OuterIteratorPerm",
    "csr_matrix",
    "csc_matrix",
    "SparseVector",
    "Both",
    "LeftOnly",
    "RightOnly",
    "nnz_or_zip",
    "Permutation",
    "is_symmetric",
    "binop",
    "convert",
    "prod",
]
