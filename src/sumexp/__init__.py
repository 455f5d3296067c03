"""
sumexp - Coordinated assay containers

Bind assay matrices (features × samples) to row and column metadata tables so
that every subset, filter and annotation keeps them aligned.
"""

__version__ = "0.1.0"

from sumexp.config import ContainerOptions, load_config
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
    "AssayContainer",
    "AssayMatrix",
    "MetadataTable",
    "FieldType",
    "Axis",
    "ShapeError",
    "ContainerOptions",
    "load_config",
    "Transform",
    "RowFilter",
    "ColumnFilter",
    "AddAnnotation",
    "Pipeline",
]
