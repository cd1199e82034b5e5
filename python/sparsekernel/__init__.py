from ._runtime import get_check_appends, get_index_dtype, set_check_appends, set_index_dtype
from . import errors as errors
from . import sparse as sparse
from .sparse import (
    CSC,
    CSR,
    CompressedMatrix,
    CompressedStorage,
    Permutation,
    SparseVector,
    csc_matrix,
    csr_matrix,
    is_symmetric,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "set_index_dtype",
    "get_index_dtype",
    "set_check_appends",
    "get_check_appends",
    "errors",
    "sparse",
    "CSR",
    "CSC",
    "CompressedStorage",
    "CompressedMatrix",
    "SparseVector",
    "Permutation",
    "csr_matrix",
    "csc_matrix",
    "is_symmetric",
]
