"""Positional index validation shared by assays and metadata tables."""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np
import pandas as pd

__all__ = ['as_positions']

PositionLike = Union[Iterable[int], np.ndarray, pd.Index, range]


def as_positions(indices: PositionLike, size: int, axis: str = "row") -> np.ndarray:
    """
    Convert an index list into validated int64 positions.

    Order and repeats are preserved. Negative positions are treated as out of
    range rather than counted from the end.

    Args:
        indices: Integer positions (list, range, ndarray, pd.Index)
        size: Length of the axis being indexed
        axis: Axis label used in error messages

    Returns:
        1-D int64 array of positions

    Raises:
        TypeError: If indices are not integers (boolean masks included)
        IndexError: If any position falls outside [0, size)
    """
    if isinstance(indices, (pd.Index, pd.Series)):
        indices = indices.to_numpy()
    elif not isinstance(indices, np.ndarray):
        indices = list(indices)

    positions = np.asarray(indices)
    if positions.size == 0:
        return np.empty(0, dtype=np.int64)

    if positions.ndim != 1:
        raise TypeError(f"{axis} indices must be 1-D, got shape {positions.shape}")
    if positions.dtype.kind not in "iu":
        raise TypeError(
            f"{axis} indices must be integers, got dtype {positions.dtype}"
        )

    positions = positions.astype(np.int64, copy=False)
    bad = positions[(positions < 0) | (positions >= size)]
    if bad.size:
        shown = ", ".join(str(p) for p in bad[:5])
        more = f" (+{bad.size - 5} more)" if bad.size > 5 else ""
        raise IndexError(
            f"{axis} index out of range for axis of length {size}: {shown}{more}"
        )
    return positions
