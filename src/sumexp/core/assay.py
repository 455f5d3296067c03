"""
Assay matrices: rectangular numeric grids of measurements.

Rows are features (genes, transcripts, proteins) and columns are samples. An
AssayMatrix knows nothing about annotations; AssayContainer pairs it with
metadata tables and keeps the axes aligned.

Engineering Design:
    - Backed by a 2-D NumPy array, stored read-only (flags.writeable = False)
    - Pure slicing: slice_rows()/slice_cols() return new matrices
    - Positions are validated before slicing, negative positions are rejected

Examples:
    >>> from sumexp.core.assay import AssayMatrix
    >>> counts = AssayMatrix.create(3, 2, [1, 2, 3, 4, 5, 6])
    >>> counts.slice_rows([2, 0]).to_list()
    [[5.0, 6.0], [1.0, 2.0]]
"""

from __future__ import annotations

from typing import Any, List, Sequence

import numpy as np

from sumexp.core._indexing import PositionLike, as_positions
from sumexp.core.exceptions import ShapeError

__all__ = ['AssayMatrix']


def _freeze(array: np.ndarray) -> np.ndarray:
    # A view could be re-enabled through its writeable owner (a caller array,
    # a DataFrame block), so only arrays owning their data are frozen in place
    if array.base is not None:
        array = array.copy()
    array.flags.writeable = False
    return array


class AssayMatrix:
    """
    Immutable R × C numeric matrix.

    Attributes:
        values: Read-only 2-D array (rows × cols)
        shape: (n_rows, n_cols)
    """

    def __init__(self, values: np.ndarray):
        if not isinstance(values, np.ndarray):
            raise TypeError(f"values must be np.ndarray, got {type(values)}")
        if values.ndim != 2:
            raise ShapeError(f"assay values must be 2D, got shape {values.shape}")
        self._values = _freeze(values)

    @classmethod
    def create(
        cls,
        rows: int,
        cols: int,
        values: Sequence[float],
        dtype: Any = np.float64,
    ) -> AssayMatrix:
        """
        Build a matrix from row-major values.

        Args:
            rows: Number of rows (R)
            cols: Number of columns (C)
            values: Flat sequence of R * C numbers, row-major

        Raises:
            ShapeError: If a dimension is negative or len(values) != rows * cols
        """
        if rows < 0 or cols < 0:
            raise ShapeError(f"dimensions must be non-negative, got {rows} x {cols}")
        flat = np.array(values, dtype=dtype).ravel()
        if flat.size != rows * cols:
            raise ShapeError(
                f"values length ({flat.size}) must equal rows * cols ({rows * cols})"
            )
        return cls(flat.reshape(rows, cols))

    @classmethod
    def from_array(cls, array: Any, dtype: Any = np.float64, copy: bool = True) -> AssayMatrix:
        """
        Wrap a 2-D array-like (nested lists, ndarray, DataFrame values).

        Args:
            array: 2-D array-like
            dtype: Target numeric dtype
            copy: Copy even when no conversion is needed. With copy=False an
                array owning its data is frozen in place; views (including
                DataFrame blocks) are still copied so nothing stays aliased

        Raises:
            ShapeError: If the input is not 2-D
        """
        if isinstance(array, AssayMatrix):
            if array.dtype == np.dtype(dtype):
                return array
            array = array.values
        values = np.array(array, dtype=dtype, copy=True) if copy else np.asarray(array, dtype=dtype)
        if values.ndim != 2:
            raise ShapeError(f"assay values must be 2D, got shape {values.shape}")
        return cls(values)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the data; its writeable flag cannot be re-enabled."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    @property
    def shape(self) -> tuple[int, int]:
        return self._values.shape

    @property
    def n_rows(self) -> int:
        return self._values.shape[0]

    @property
    def n_cols(self) -> int:
        return self._values.shape[1]

    @property
    def dtype(self) -> np.dtype:
        return self._values.dtype

    def slice_rows(self, indices: PositionLike) -> AssayMatrix:
        """
        Rows at the given positions, in the given order (repeats allowed).

        Raises:
            IndexError: If a position is outside [0, n_rows)
        """
        positions = as_positions(indices, self.n_rows, axis="row")
        return AssayMatrix(self._values[positions, :])

    def slice_cols(self, indices: PositionLike) -> AssayMatrix:
        """
        Columns at the given positions, in the given order (repeats allowed).

        Raises:
            IndexError: If a position is outside [0, n_cols)
        """
        positions = as_positions(indices, self.n_cols, axis="column")
        return AssayMatrix(self._values[:, positions])

    def _take(self, rows: np.ndarray | None, cols: np.ndarray | None) -> AssayMatrix:
        # Positions already validated by the caller
        values = self._values
        if rows is not None:
            values = values[rows, :]
        if cols is not None:
            values = values[:, cols]
        if rows is None and cols is None:
            return self
        return AssayMatrix(values)

    def to_list(self) -> List[List[float]]:
        return self._values.tolist()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssayMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(
            np.array_equal(self._values, other._values, equal_nan=True)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"AssayMatrix({self.n_rows} × {self.n_cols}, dtype={self.dtype})"
