import numpy as np
import pytest

from sparsekernel import CSC, CSR, CompressedMatrix, csr_matrix
from sparsekernel.sparse.convert import convert_mat_storage


def mk_mat1():
    indptr = np.array([0, 2, 4, 5, 6, 7])
    indices = np.array([2, 3, 3, 4, 2, 1, 3])
    data = np.array([3.0, 4.0, 2.0, 5.0, 5.0, 8.0, 7.0])
    return csr_matrix(indptr, indices, data, (5, 5))


def test_csr_to_csc():
    A = mk_mat1()
    C = A.to_csc()
    assert C.is_csc()
    assert C.is_owned
    np.testing.assert_array_equal(C.indptr, [0, 0, 1, 3, 6, 7])
    np.testing.assert_array_equal(C.indices, [3, 0, 2, 0, 1, 4, 1])
    np.testing.assert_array_equal(C.data, [8.0, 3.0, 5.0, 4.0, 2.0, 7.0, 5.0])
    np.testing.assert_array_equal(C.toarray(), A.toarray())


def test_roundtrip():
    A = mk_mat1()
    assert A.to_csc().to_csr() == A
    assert A.to_other_storage().to_other_storage() == A


def test_same_storage_is_copy():
    A = mk_mat1()
    B = A.to_csr()
    assert B == A
    assert not np.shares_memory(B.data, A.data)
    C = A.to_csc()
    D = C.to_csc()
    assert D == C
    assert not np.shares_memory(D.indices, C.indices)


def test_convert_does_not_alias_source():
    A = mk_mat1()
    C = A.to_other_storage()
    assert not np.shares_memory(C.data, A.data)


def test_transpose_by_conversion():
    # Converting the transposed view gives the transpose in the same storage.
    A = mk_mat1()
    T = A.transpose_view().to_other_storage()
    assert T.is_csr()
    np.testing.assert_array_equal(T.toarray(), A.toarray().T)


def test_convert_empty_and_rectangular():
    E = CompressedMatrix.zero(3, 7)
    C = E.to_csc()
    assert C.shape == (3, 7)
    np.testing.assert_array_equal(C.indptr, np.zeros(8))
    R = csr_matrix([0, 1, 3], [6, 0, 3], [1.0, 2.0, 3.0], (2, 7))
    np.testing.assert_array_equal(R.to_csc().toarray(), R.toarray())


def test_convert_middle_view():
    V = mk_mat1().middle_outer_views(1, 3)
    C = V.to_csc()
    assert C.shape == (3, 5)
    np.testing.assert_array_equal(C.toarray(), mk_mat1().toarray()[1:4])


def test_convert_raw_rejects_bad_outputs():
    A = mk_mat1()
    with pytest.raises(ValueError):
        convert_mat_storage(A, np.zeros(5, dtype=np.int64), np.zeros(7, dtype=np.int64), np.zeros(7))
    with pytest.raises(ValueError):
        convert_mat_storage(A, np.ones(6, dtype=np.int64), np.zeros(7, dtype=np.int64), np.zeros(7))


def test_matches_scipy():
    sp = pytest.importorskip("scipy.sparse")
    rng = np.random.default_rng(0)
    dense = rng.random((30, 20))
    dense[dense < 0.8] = 0.0
    s = sp.csr_matrix(dense)
    A = csr_matrix(s.indptr, s.indices, s.data, s.shape)
    sc = s.tocsc()
    sc.sort_indices()
    C = A.to_csc()
    np.testing.assert_array_equal(C.indptr, sc.indptr)
    np.testing.assert_array_equal(C.indices, sc.indices)
    np.testing.assert_array_equal(C.data, sc.data)
    assert C.storage is CSC
    assert A.storage is CSR


def test_transpose_copy_csc_basic():
    # A = [[1,0,2],[0,3,0]] in CSC
    A = CompressedMatrix(CSC, (2, 3), [0, 1, 2, 3], [0, 1, 0], [1.0, 3.0, 2.0])
    T = A.T.to_other_storage()
    assert T.is_csc()
    assert T.shape == (3, 2)
    np.testing.assert_array_equal(T.indptr, [0, 2, 3])
    np.testing.assert_array_equal(T.indices, [0, 2, 1])
    np.testing.assert_allclose(T.data, [1.0, 2.0, 3.0])


def test_transpose_copy_csc_empty():
    A = CompressedMatrix(CSC, (2, 3), [0, 0, 0, 0], [], [])
    T = A.T.to_other_storage()
    assert T.shape == (3, 2)
    np.testing.assert_array_equal(T.indptr, [0, 0, 0])
    assert T.indices.size == 0 and T.data.size == 0
