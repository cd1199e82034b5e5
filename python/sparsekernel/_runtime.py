import os

import numpy as np

_ALLOWED_INDEX_DTYPES = (np.dtype(np.int32), np.dtype(np.int64))
_TRUTHY = ("1", "true", "yes", "on")

_current_index_dtype = np.dtype(np.int64)
_current_check_appends = False


def set_index_dtype(dtype) -> None:
    global _current_index_dtype
    dtype = np.dtype(dtype)
    if dtype not in _ALLOWED_INDEX_DTYPES:
        raise ValueError("index dtype must be int32 or int64")
    _current_index_dtype = dtype
    os.environ["SPARSEKERNEL_INDEX_DTYPE"] = dtype.name


def get_index_dtype() -> np.dtype:
    # If user set env externally, honor it
    env = os.environ.get("SPARSEKERNEL_INDEX_DTYPE")
    if env:
        try:
            dtype = np.dtype(env)
        except TypeError:
            return _current_index_dtype
        if dtype in _ALLOWED_INDEX_DTYPES:
            return dtype
    return _current_index_dtype


def set_check_appends(flag: bool) -> None:
    global _current_check_appends
    _current_check_appends = bool(flag)
    os.environ["SPARSEKERNEL_CHECK_APPENDS"] = "1" if _current_check_appends else "0"


def get_check_appends() -> bool:
    env = os.environ.get("SPARSEKERNEL_CHECK_APPENDS")
    if env:
        return env.strip().lower() in _TRUTHY
    return _current_check_appends
