import numpy as np
import pytest

from sparsekernel import CSC, CSR, CompressedMatrix, SparseVector, csr_matrix
from sparsekernel.errors import IncompatibleDimensions, IncompatibleStorages
from sparsekernel.sparse import binop


def make_mat1():
    indptr = np.array([0, 2, 4, 5, 6, 7])
    indices = np.array([2, 3, 3, 4, 2, 1, 3])
    data = np.array([3.0, 4.0, 2.0, 5.0, 5.0, 8.0, 7.0])
    return csr_matrix(indptr, indices, data, (5, 5))


def make_mat2():
    indptr = np.array([0, 4, 6, 6, 8, 10])
    indices = np.array([0, 1, 2, 4, 0, 3, 2, 3, 1, 2])
    data = np.array([6.0, 7.0, 3.0, 3.0, 8.0, 9.0, 2.0, 4.0, 4.0, 4.0])
    return csr_matrix(indptr, indices, data, (5, 5))


def make_mat1_plus_mat2():
    indptr = [0, 5, 8, 9, 12, 15]
    indices = [0, 1, 2, 3, 4, 0, 3, 4, 2, 1, 2, 3, 1, 2, 3]
    data = [6.0, 7.0, 6.0, 4.0, 3.0, 8.0, 11.0, 5.0, 5.0, 8.0, 2.0, 4.0, 4.0, 4.0, 7.0]
    return csr_matrix(indptr, indices, data, (5, 5))


def make_mat1_minus_mat2():
    indptr = [0, 4, 7, 8, 11, 14]
    indices = [0, 1, 3, 4, 0, 3, 4, 2, 1, 2, 3, 1, 2, 3]
    data = [-6.0, -7.0, 4.0, -3.0, -8.0, -7.0, 5.0, 5.0, 8.0, -2.0, -4.0, -4.0, -4.0, 7.0]
    return csr_matrix(indptr, indices, data, (5, 5))


def make_mat1_times_2():
    return csr_matrix(
        [0, 2, 4, 5, 6, 7],
        [2, 3, 3, 4, 2, 1, 3],
        [6.0, 8.0, 4.0, 10.0, 10.0, 16.0, 14.0],
        (5, 5),
    )


def make_mat_dense1():
    return np.array(
        [
            [0.0, 1.0, 2.0, 3.0, 4.0],
            [5.0, 6.0, 5.0, 4.0, 3.0],
            [4.0, 5.0, 4.0, 3.0, 2.0],
            [3.0, 4.0, 3.0, 2.0, 1.0],
            [1.0, 2.0, 1.0, 1.0, 0.0],
        ]
    )


def test_add_mat_same_storage():
    assert binop.add_mat_same_storage(make_mat1(), make_mat2()) == make_mat1_plus_mat2()
    assert make_mat1() + make_mat2() == make_mat1_plus_mat2()


def test_sub_mat_same_storage():
    assert binop.sub_mat_same_storage(make_mat1(), make_mat2()) == make_mat1_minus_mat2()
    assert make_mat1() - make_mat2() == make_mat1_minus_mat2()


def test_mul_mat_same_storage():
    res = binop.mul_mat_same_storage(make_mat1(), make_mat2())
    np.testing.assert_array_equal(res.indptr, [0, 1, 2, 2, 2, 2])
    np.testing.assert_array_equal(res.indices, [2, 3])
    np.testing.assert_array_equal(res.data, [9.0, 18.0])
    assert make_mat1().multiply(make_mat2()) == res


def test_cancellation_is_pruned():
    A = make_mat1()
    D = A - A
    assert D.nnz == 0
    np.testing.assert_array_equal(D.indptr, np.zeros(6))
    D.check_compressed_structure()


def test_add_negated_copy_is_pruned():
    A = make_mat1()
    D = binop.add_mat_same_storage(A, binop.scalar_mul_mat(A, -1.0))
    assert D.nnz == 0
    np.testing.assert_array_equal(D.indptr, np.zeros(6))
    D.check_compressed_structure()


def test_scalar_mul_mat():
    assert binop.scalar_mul_mat(make_mat1(), 2.0) == make_mat1_times_2()
    assert make_mat1() * 2.0 == make_mat1_times_2()
    assert 2.0 * make_mat1() == make_mat1_times_2()
    Z = make_mat1() * 0.0
    assert Z.nnz == 7


def test_scalar_mul_mat_raw():
    A = make_mat1()
    indptr = np.zeros(6, dtype=np.int64)
    indices = np.zeros(7, dtype=np.int64)
    data = np.zeros(7)
    binop.scalar_mul_mat_raw(A, 2.0, indptr, indices, data)
    np.testing.assert_array_equal(data, make_mat1_times_2().data)
    with pytest.raises(ValueError):
        binop.scalar_mul_mat_raw(A, 2.0, np.zeros(5, dtype=np.int64), indices, data)


def test_scalar_mul_of_middle_view():
    V = make_mat1().middle_outer_views(3, 2)
    res = V * 2.0
    np.testing.assert_array_equal(res.indptr, [0, 1, 2])
    np.testing.assert_array_equal(res.toarray(), make_mat1().toarray()[3:] * 2.0)


def test_neg():
    np.testing.assert_array_equal((-make_mat1()).toarray(), -make_mat1().toarray())


def test_binop_errors():
    A = make_mat1()
    with pytest.raises(IncompatibleDimensions):
        binop.add_mat_same_storage(A, CompressedMatrix.eye(CSR, 4))
    with pytest.raises(IncompatibleStorages):
        binop.add_mat_same_storage(A, A.to_csc())


def test_operator_converts_storage():
    res = make_mat1() + make_mat2().to_csc()
    assert res.is_csr()
    assert res == make_mat1_plus_mat2()


def test_binop_raw_counts_entries():
    A, B = make_mat1(), make_mat2()
    max_nnz = A.nnz + B.nnz
    indptr = np.zeros(6, dtype=np.int64)
    indices = np.zeros(max_nnz, dtype=np.int64)
    data = np.zeros(max_nnz)
    nnz = binop.csmat_binop_same_storage_raw(A, B, lambda x, y: x + y, indptr, indices, data)
    assert nnz == 15
    np.testing.assert_array_equal(indptr, make_mat1_plus_mat2().indptr)
    with pytest.raises(ValueError):
        binop.csmat_binop_same_storage_raw(A, B, lambda x, y: x + y, indptr, indices[:3], data)


def test_binop_alloc_custom_op():
    res = binop.csmat_binop_same_storage_alloc(make_mat1(), make_mat2(), max)
    np.testing.assert_array_equal(
        res.toarray(), np.maximum(make_mat1().toarray(), make_mat2().toarray())
    )


def test_add_dense():
    expected = np.array(
        [
            [0.0, 1.0, 5.0, 7.0, 4.0],
            [5.0, 6.0, 5.0, 6.0, 8.0],
            [4.0, 5.0, 9.0, 3.0, 2.0],
            [3.0, 12.0, 3.0, 2.0, 1.0],
            [1.0, 2.0, 1.0, 8.0, 0.0],
        ]
    )
    res = binop.add_dense_mat_same_ordering(make_mat1(), make_mat_dense1(), 1.0, 1.0)
    np.testing.assert_array_equal(res, expected)
    assert res.flags.c_contiguous
    np.testing.assert_array_equal(make_mat1() + make_mat_dense1(), expected)
    np.testing.assert_array_equal(make_mat_dense1() + make_mat1(), expected)


def test_add_dense_coefficients():
    dense = make_mat_dense1()
    res = binop.add_dense_mat_same_ordering(make_mat1(), dense, 2.0, -1.0)
    np.testing.assert_array_equal(res, 2.0 * make_mat1().toarray() - dense)
    np.testing.assert_array_equal(make_mat1() - dense, make_mat1().toarray() - dense)
    np.testing.assert_array_equal(dense - make_mat1(), dense - make_mat1().toarray())


def test_add_dense_identity():
    eye = CompressedMatrix.eye(CSR, 3)
    res = binop.add_dense_mat_same_ordering(eye, np.zeros((3, 3)), 1.0, 1.0)
    np.testing.assert_array_equal(res, np.eye(3))


def test_mul_dense():
    eye = CompressedMatrix.eye(CSR, 3)
    res = binop.mul_dense_mat_same_ordering(eye, np.ones((3, 3)), 1.0)
    np.testing.assert_array_equal(res, np.eye(3))
    np.testing.assert_array_equal(
        make_mat1().multiply(make_mat_dense1()), make_mat1().toarray() * make_mat_dense1()
    )


def test_dense_csc_fortran():
    A = make_mat1().to_csc()
    dense = np.asfortranarray(make_mat_dense1())
    res = binop.add_dense_mat_same_ordering(A, dense, 1.0, 1.0)
    assert res.flags.f_contiguous
    np.testing.assert_array_equal(res, make_mat1().toarray() + dense)


def test_dense_ordering_mismatch():
    with pytest.raises(IncompatibleStorages):
        binop.add_dense_mat_same_ordering(make_mat1().to_csc(), make_mat_dense1(), 1.0, 1.0)
    with pytest.raises(IncompatibleStorages):
        binop.add_dense_mat_same_ordering(
            make_mat1(), np.asfortranarray(make_mat_dense1()), 1.0, 1.0
        )
    # Operators adapt the sparse side instead of failing.
    res = make_mat1().to_csc() + make_mat_dense1()
    np.testing.assert_array_equal(res, make_mat1().toarray() + make_mat_dense1())


def test_dense_shape_mismatch():
    with pytest.raises(IncompatibleDimensions):
        binop.add_dense_mat_same_ordering(make_mat1(), np.ones((5, 4)), 1.0, 1.0)
    out = np.zeros((4, 5))
    with pytest.raises(IncompatibleDimensions):
        binop.csmat_binop_dense_same_ordering_raw(
            make_mat1(), make_mat_dense1(), lambda x, y: x + y, out
        )


def test_dense_sparse_is_left_operand():
    A = make_mat1()
    out = np.zeros((5, 5))
    binop.csmat_binop_dense_same_ordering_raw(A, make_mat_dense1(), lambda x, y: x - y, out)
    np.testing.assert_array_equal(out, A.toarray() - make_mat_dense1())


def test_dense_coefficients_widen_dtype():
    eye = CompressedMatrix.eye(CSR, 3, dtype=np.int64)
    res = binop.add_dense_mat_same_ordering(eye, np.zeros((3, 3), dtype=np.int64), 0.5, 1.0)
    assert res.dtype == np.float64
    np.testing.assert_array_equal(res, 0.5 * np.eye(3))

    res = binop.mul_dense_mat_same_ordering(eye, np.full((3, 3), 3, dtype=np.int64), 0.5)
    assert res.dtype == np.float64
    np.testing.assert_array_equal(res, 1.5 * np.eye(3))


def test_dense_integer_coefficients_keep_dtype():
    eye = CompressedMatrix.eye(CSR, 2, dtype=np.int64)
    res = binop.add_dense_mat_same_ordering(eye, np.ones((2, 2), dtype=np.int64), 2, 1)
    assert res.dtype == np.int64
    np.testing.assert_array_equal(res, [[3, 1], [1, 3]])


def test_dense_raw_scalar_combinator():
    eye = CompressedMatrix.eye(CSR, 3)
    out = np.zeros((3, 3))
    binop.csmat_binop_dense_same_ordering_raw(eye, 0.5 * np.ones((3, 3)), max, out)
    expected = np.full((3, 3), 0.5)
    np.fill_diagonal(expected, 1.0)
    np.testing.assert_array_equal(out, expected)

    A = make_mat1().to_csc()
    dense = np.asfortranarray(make_mat_dense1())
    out = np.zeros((5, 5), order="F")
    binop.csmat_binop_dense_same_ordering_raw(A, dense, lambda x, y: x if x > y else y - x, out)
    sparse = A.toarray()
    np.testing.assert_array_equal(out, np.where(sparse > dense, sparse, dense - sparse))


def test_csvec_binop():
    a = SparseVector(4, [0, 2], [1.0, 2.0])
    b = SparseVector(4, [2, 3], [-2.0, 5.0])
    res = binop.csvec_binop(a, b, lambda x, y: x + y)
    assert list(res) == [(0, 1.0), (3, 5.0)]
    assert res.is_owned
    with pytest.raises(IncompatibleDimensions):
        binop.csvec_binop(a, SparseVector(3, [], []), lambda x, y: x + y)


def test_matches_scipy():
    sp = pytest.importorskip("scipy.sparse")
    A, B = make_mat1(), make_mat2()
    sA = sp.csr_matrix((A.data, A.indices, A.indptr), shape=A.shape)
    sB = sp.csr_matrix((B.data, B.indices, B.indptr), shape=B.shape)
    np.testing.assert_array_equal((A + B).toarray(), (sA + sB).toarray())
    np.testing.assert_array_equal((A - B).toarray(), (sA - sB).toarray())
    np.testing.assert_array_equal(A.multiply(B).toarray(), sA.multiply(sB).toarray())
