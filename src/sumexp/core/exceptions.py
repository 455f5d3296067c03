"""
Exception types for coordinated assay containers.

Only dimension problems get a dedicated type. Out-of-range positions raise the
builtin IndexError, unknown names raise KeyError, wrong input kinds raise
TypeError.
"""

from __future__ import annotations

__all__ = ['ShapeError']


class ShapeError(ValueError):
    """
    Dimension mismatch between assays, metadata tables, or supplied values.

    Subclasses ValueError so callers catching the broad validation error
    still see it.

    Examples:
        >>> try:
        ...     AssayMatrix.create(2, 2, [1, 2, 3])
        ... except ShapeError as e:
        ...     print(e)
        values length (3) must equal rows * cols (4)
    """
