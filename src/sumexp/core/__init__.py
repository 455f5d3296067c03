"""
Core data structures for coordinated assay containers.

1. MetadataTable: Ordered records describing one axis (rows or columns)
2. AssayMatrix: Immutable numeric grid of measurements
3. AssayContainer: Assays bound to row and column metadata under one shape
4. Transform: Abstract base class for composable container transformations

Design Philosophy:
    - Immutability: All operations return new instances (functional style)
    - Validation: Shapes are checked at every construction boundary
    - Alignment: Matrices and metadata are only ever cut together

Examples:
    >>> from sumexp.core import AssayContainer, RowFilter
    >>>
    >>> se = AssayContainer.create(
    ...     assays={"counts": counts},
    ...     row_meta=gene_table,
    ...     col_meta=sample_table,
    ... )
    >>> infected = se.filter_cols(lambda rec: rec["infection"] == "InfluenzaA")
"""

from sumexp.core.exceptions import ShapeError
from sumexp.core.metadata import FieldType, MetadataTable
from sumexp.core.assay import AssayMatrix
from sumexp.core.container import AssayContainer, Axis
from sumexp.core.transform import (
    AddAnnotation,
    ColumnFilter,
    Pipeline,
    RowFilter,
    Transform,
)

__all__ = [
    'ShapeError',
    'FieldType',
    'MetadataTable',
    'AssayMatrix',
    'AssayContainer',
    'Axis',
    'Transform',
    'RowFilter',
    'ColumnFilter',
    'AddAnnotation',
    'Pipeline',
]
