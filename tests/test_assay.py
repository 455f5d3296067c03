"""Tests for AssayMatrix construction and slicing."""

import numpy as np
import pytest

from sumexp.core.assay import AssayMatrix
from sumexp.core.exceptions import ShapeError


@pytest.fixture
def matrix():
    return AssayMatrix.create(3, 2, [1, 2, 3, 4, 5, 6])


class TestCreate:

    def test_row_major_layout(self, matrix):
        assert matrix.shape == (3, 2)
        assert matrix.to_list() == [[1, 2], [3, 4], [5, 6]]

    def test_length_mismatch(self):
        with pytest.raises(ShapeError, match="rows \\* cols"):
            AssayMatrix.create(2, 2, [1, 2, 3])

    def test_negative_dimension(self):
        with pytest.raises(ShapeError):
            AssayMatrix.create(-1, 2, [])

    def test_zero_by_n(self):
        empty = AssayMatrix.create(0, 4, [])
        assert empty.shape == (0, 4)

    def test_from_array_requires_2d(self):
        with pytest.raises(ShapeError):
            AssayMatrix.from_array([1, 2, 3])

    def test_from_array_copies(self):
        source = np.arange(6, dtype=float).reshape(2, 3)
        wrapped = AssayMatrix.from_array(source)
        source[0, 0] = 100
        assert wrapped.values[0, 0] == 0
        assert source.flags.writeable

    def test_values_are_read_only(self, matrix):
        with pytest.raises(ValueError):
            matrix.values[0, 0] = 10

    def test_values_cannot_be_made_writeable(self, matrix):
        values = matrix.values
        with pytest.raises(ValueError):
            values.flags.writeable = True
        assert matrix.to_list() == [[1, 2], [3, 4], [5, 6]]

    def test_no_copy_view_input_is_copied(self):
        base = np.zeros((4, 2))
        wrapped = AssayMatrix.from_array(base[:2], copy=False)
        assert not np.shares_memory(wrapped.values, base)
        assert base.flags.writeable

    def test_default_dtype_is_float(self, matrix):
        assert matrix.dtype == np.float64


class TestSlicing:
    """slice_rows/slice_cols are pure, ordered and bounds-checked."""

    def test_slice_rows_order_preserving(self, matrix):
        assert matrix.slice_rows([2, 0]).to_list() == [[5, 6], [1, 2]]

    def test_slice_rows_repeats(self, matrix):
        assert matrix.slice_rows([1, 1]).to_list() == [[3, 4], [3, 4]]

    def test_slice_cols(self, matrix):
        assert matrix.slice_cols([1]).to_list() == [[2], [4], [6]]

    def test_slice_does_not_modify_original(self, matrix):
        matrix.slice_rows([0])
        assert matrix.shape == (3, 2)

    def test_empty_slices(self, matrix):
        assert matrix.slice_rows([]).shape == (0, 2)
        assert matrix.slice_cols([]).shape == (3, 0)

    def test_row_out_of_range(self, matrix):
        with pytest.raises(IndexError, match="row index out of range"):
            matrix.slice_rows([0, 3])

    def test_col_out_of_range(self, matrix):
        with pytest.raises(IndexError, match="column index out of range"):
            matrix.slice_cols([2])

    def test_negative_index_rejected(self, matrix):
        with pytest.raises(IndexError):
            matrix.slice_rows([-1])

    def test_float_indices_rejected(self, matrix):
        with pytest.raises(TypeError):
            matrix.slice_rows([0.0, 1.0])

    def test_range_and_ndarray_indices(self, matrix):
        assert matrix.slice_rows(range(2)) == matrix.slice_rows(np.array([0, 1]))


class TestEquality:

    def test_equal_values(self, matrix):
        assert matrix == AssayMatrix.from_array([[1, 2], [3, 4], [5, 6]])

    def test_nan_equal(self):
        a = AssayMatrix.from_array([[np.nan, 1.0]])
        assert a == AssayMatrix.from_array([[np.nan, 1.0]])

    def test_different_shape(self, matrix):
        assert matrix != matrix.slice_rows([0])
