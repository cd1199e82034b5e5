import argparse
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import scipy.sparse as sp

# Ensure we can import sparsekernel from source tree
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


# ---------- Builders ----------


def build_scipy_csr(
    m: int, n: int, density: float, seed: int, dtype: np.dtype
) -> Tuple[sp.csr_matrix, int]:
    rs = np.random.RandomState(seed)
    data_rvs = lambda s: rs.standard_normal(s).astype(dtype)
    A_csr = sp.random(m, n, density=density, format="csr", random_state=rs, data_rvs=data_rvs)
    A_csr.sort_indices()
    return A_csr, int(A_csr.nnz)


def build_dense_matrix(m: int, n: int, seed: int, dtype: np.dtype) -> np.ndarray:
    rs = np.random.RandomState(seed)
    return rs.standard_normal((m, n)).astype(dtype)


def build_kernel_csr_from_scipy(A_scipy: sp.csr_matrix):
    from sparsekernel import csr_matrix

    return csr_matrix(A_scipy.indptr, A_scipy.indices, A_scipy.data, A_scipy.shape)


# ---------- Timing helpers ----------


def time_op(fn: Callable[[], Any], warmup: int, repeat: int) -> List[float]:
    for _ in range(warmup):
        fn()
    times: List[float] = []
    for _ in range(repeat):
        t0 = time.perf_counter()
        fn()
        t1 = time.perf_counter()
        times.append(t1 - t0)
    return times


def summarize(name: str, times: List[float], ops: float) -> Optional[Dict[str, float]]:
    if not times:
        return None
    arr = np.array(times, dtype=np.float64)
    return {
        "name": name,
        "min_ms": float(arr.min() * 1e3),
        "median_ms": float(np.median(arr) * 1e3),
        "mean_ms": float(arr.mean() * 1e3),
        "mops": float((ops / arr.min()) / 1e6) if ops > 0 else 0.0,
    }


class Backend:
    SCIPY = "scipy"
    KERNEL = "sparsekernel"


# ---------- Ops registry (per backend) ----------


def scipy_ops(A: sp.csr_matrix, B: sp.csr_matrix, D: np.ndarray, alpha: float):
    return {
        "add": lambda: A + B,
        "sub": lambda: A - B,
        "hadamard": lambda: A.multiply(B),
        "scale": lambda: alpha * A,
        "add_dense": lambda: A + D,
        "to_csc": lambda: A.tocsc(),
        "symmetric": lambda: (A != A.T).nnz == 0,
    }


def kernel_ops(A: Any, B: Any, D: np.ndarray, alpha: float):
    from sparsekernel import is_symmetric

    return {
        "add": lambda: A + B,
        "sub": lambda: A - B,
        "hadamard": lambda: A.multiply(B),
        "scale": lambda: alpha * A,
        "add_dense": lambda: A + D,
        "to_csc": lambda: A.to_csc(),
        "symmetric": lambda: is_symmetric(A),
    }


def to_dense(out: Any) -> np.ndarray:
    if isinstance(out, np.ndarray):
        return out
    if hasattr(out, "toarray"):
        return np.asarray(out.toarray())
    return np.asarray(out)


# ---------- Main ----------


def main():
    p = argparse.ArgumentParser(description="Compressed-matrix kernel benchmarks against SciPy")
    p.add_argument("--m", type=int, default=2048)
    p.add_argument("--n", type=int, default=2048)
    p.add_argument("--density", type=float, default=0.001)
    p.add_argument("--dtype", type=str, default="float64", choices=["float32", "float64"])
    p.add_argument("--warmup", type=int, default=1)
    p.add_argument("--repeat", type=int, default=5)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--no_scipy", action="store_true")
    p.add_argument("--validate", action="store_true")
    p.add_argument(
        "--ops",
        type=str,
        default="all",
        help="Comma-separated ops: add, sub, hadamard, scale, add_dense, to_csc, symmetric",
    )
    p.add_argument("--alpha", type=float, default=2.0, help="Scalar for scale")

    args = p.parse_args()
    dtype = np.float64 if args.dtype == "float64" else np.float32

    A_scipy, nnz = build_scipy_csr(args.m, args.n, args.density, args.seed, dtype)
    B_scipy, nnz2 = build_scipy_csr(args.m, args.n, args.density, args.seed + 7, dtype)
    D = build_dense_matrix(args.m, args.n, args.seed + 1, dtype)
    A_kernel = build_kernel_csr_from_scipy(A_scipy)
    B_kernel = build_kernel_csr_from_scipy(B_scipy)

    ref = scipy_ops(A_scipy, B_scipy, D, args.alpha)
    mine = kernel_ops(A_kernel, B_kernel, D, args.alpha)

    wanted = {op.strip().lower() for op in (args.ops.split(",") if args.ops else [])}
    if "all" in wanted or not wanted:
        wanted = set(mine)

    ops_count = {
        "add": float(nnz + nnz2),
        "sub": float(nnz + nnz2),
        "hadamard": float(nnz + nnz2),
        "scale": float(nnz),
        "add_dense": float(args.m * args.n),
        "to_csc": float(nnz),
        "symmetric": float(nnz),
    }

    results: List[Dict[str, float]] = []
    for op in sorted(wanted):
        if op not in mine:
            raise SystemExit(f"unknown op: {op}")
        if not args.no_scipy:
            times = time_op(ref[op], args.warmup, args.repeat)
            stats = summarize(f"{Backend.SCIPY}:{op}", times, ops_count[op])
            if stats:
                results.append(stats)
        times = time_op(mine[op], args.warmup, args.repeat)
        stats = summarize(f"{Backend.KERNEL}:{op}", times, ops_count[op])
        if stats:
            results.append(stats)
        if args.validate and op != "symmetric":
            rtol = 1e-4 if dtype == np.float32 else 1e-7
            atol = 1e-6 if dtype == np.float32 else 1e-9
            if not np.allclose(to_dense(mine[op]()), to_dense(ref[op]()), rtol=rtol, atol=atol):
                raise AssertionError(f"Validation failed: sparsekernel {op} vs scipy")

    print(
        f"Kernel benchmarks: m={args.m} n={args.n} density={args.density} dtype={args.dtype} nnz={nnz}"
    )
    for r in results:
        print(
            f"{r['name']:>24}: min {r['min_ms']:.3f} ms | median {r['median_ms']:.3f} ms | mean {r['mean_ms']:.3f} ms | {r['mops']:.2f} MOps/s"
        )


if __name__ == "__main__":
    main()
