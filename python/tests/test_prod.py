import numpy as np
import pytest

from sparsekernel import CSC, CSR, CompressedMatrix, csc_matrix, csr_matrix
from sparsekernel.errors import IncompatibleDimensions
from sparsekernel.sparse import prod


def make_simple():
    # A = [[1,0,2],[0,3,0]]
    return csr_matrix([0, 2, 3], [0, 2, 1], [1.0, 2.0, 3.0], (2, 3))


def make_simple_csc():
    return csc_matrix([0, 1, 2, 3], [0, 1, 0], [1.0, 3.0, 2.0], (2, 3))


def test_csr_spmv():
    A = make_simple()
    x = np.array([10.0, 20.0, 30.0])
    np.testing.assert_allclose(A @ x, np.array([1 * 10 + 2 * 30, 3 * 20]))


def test_csc_spmm():
    A = make_simple_csc()
    B = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    np.testing.assert_allclose(A @ B, np.array([[11.0, 14.0], [9.0, 12.0]]))


def test_dense_result_follows_dense_order():
    A = make_simple()
    B = np.asfortranarray(np.arange(6.0).reshape(3, 2))
    Y = prod.csmat_mul_dense(A, B)
    assert Y.flags.f_contiguous
    np.testing.assert_allclose(Y, A.toarray() @ B)


@pytest.mark.parametrize("ls", [CSR, CSC])
@pytest.mark.parametrize("rs", [CSR, CSC])
def test_sparse_products(ls, rs):
    A = make_simple()
    B = A.transpose_view().to_owned()  # 3x2
    lhs = A if ls is CSR else A.to_csc()
    rhs = B.to_csr() if rs is CSR else B.to_csc()
    C = lhs @ rhs
    assert C.storage is ls
    np.testing.assert_allclose(C.toarray(), A.toarray() @ B.toarray())
    C.check_compressed_structure()


def test_csc_mul_csc_storage():
    A = CompressedMatrix.eye(CSC, 3)
    B = make_simple_csc().transpose_view().to_csc()
    C = prod.csc_mul_csc(A, B)
    assert C.is_csc() and C.is_owned
    np.testing.assert_allclose(C.toarray(), B.toarray())


def test_csr_product_sorts_columns_and_keeps_cancellation():
    A = csr_matrix([0, 2, 2], [0, 1], [1.0, 1.0], (2, 2))
    # row 0 reaches columns 1, 2 before column 0; column 1 cancels
    B = csr_matrix([0, 2, 4], [1, 2, 0, 1], [1.0, 2.0, 5.0, -1.0], (2, 3))
    C = prod.csr_mul_csr(A, B)
    np.testing.assert_array_equal(C.indptr, [0, 3, 3])
    np.testing.assert_array_equal(C.indices, [0, 1, 2])
    np.testing.assert_array_equal(C.data, [5.0, 0.0, 2.0])
    C.check_compressed_structure()


def test_product_dimension_errors():
    A = make_simple()
    with pytest.raises(IncompatibleDimensions):
        A @ A
    with pytest.raises(IncompatibleDimensions):
        A @ np.ones(2)
    with pytest.raises(ValueError):
        prod.csr_mul_csr(A, A.to_csc())


def test_matches_scipy():
    sp = pytest.importorskip("scipy.sparse")
    rng = np.random.default_rng(1)
    da = rng.random((12, 9))
    da[da < 0.7] = 0.0
    db = rng.random((9, 7))
    db[db < 0.7] = 0.0
    sa, sb = sp.csr_matrix(da), sp.csr_matrix(db)
    A = csr_matrix(sa.indptr, sa.indices, sa.data, sa.shape)
    B = csr_matrix(sb.indptr, sb.indices, sb.data, sb.shape)
    np.testing.assert_allclose((A @ B).toarray(), (sa @ sb).toarray())
