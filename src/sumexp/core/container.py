"""
Coordinated container binding assay matrices to row and column metadata.

AssayContainer is the experiment-matrix abstraction: one or more named assays
(features × samples) sharing a single shape, a row MetadataTable describing the
features and a column MetadataTable describing the samples.

Biological Context:
    An RNA-seq experiment is rarely a single matrix:
    - counts, logcounts, normalised values share the same genes and samples
    - gene annotations (symbol, chromosome) describe the rows
    - sample annotations (time point, infection, sex) describe the columns

    Subsetting "the first 3 genes in samples at time 0 and 8" must cut every
    assay and both tables together; doing it by hand on separate objects is
    exactly how a matrix drifts out of alignment with its annotations.

Engineering Design:
    - Immutable value: every operation returns a new container
    - Validated: create() checks every assay against both tables and against
      each other before a container exists
    - All-or-nothing: positions are validated once, up front, before any assay
      is sliced
    - Options (sumexp.config.ContainerOptions) travel with derived containers

Shape Invariants:
    - every assay has shape (len(row_metadata), len(col_metadata))
    - all assays share one shape

Examples:
    >>> from sumexp.core.container import AssayContainer
    >>> se = AssayContainer.create(
    ...     assays={"counts": [[1, 2], [3, 4], [5, 6]]},
    ...     row_meta=[{"id": "g1"}, {"id": "g2"}, {"id": "g3"}],
    ...     col_meta=[{"s": "a"}, {"s": "b"}],
    ... )
    >>> sub = se.subset_rows([2, 0])
    >>> sub.assay().to_list()
    [[5.0, 6.0], [1.0, 2.0]]
    >>> sub.row_metadata.column("id").tolist()
    ['g3', 'g1']
"""

from __future__ import annotations

import logging
import warnings
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from sumexp.config import DEFAULT_OPTIONS, ContainerOptions
from sumexp.core._indexing import PositionLike, as_positions
from sumexp.core.assay import AssayMatrix
from sumexp.core.exceptions import ShapeError
from sumexp.core.metadata import MetadataTable, Predicate

logger = logging.getLogger(__name__)

__all__ = ['AssayContainer', 'Axis']

MetadataLike = Union[MetadataTable, pd.DataFrame, Sequence[Mapping[str, Any]], None]


class Axis(str, Enum):
    """Axis of a container: rows (features) or columns (samples)."""
    ROWS = "rows"
    COLS = "cols"

    @classmethod
    def parse(cls, axis: Union[Axis, str, int]) -> Axis:
        """
        Normalise an axis spelling.

        Accepts Axis members, "rows"/"row"/0 and "cols"/"col"/"columns"/"column"/1.

        Raises:
            ValueError: For anything else
        """
        if isinstance(axis, Axis):
            return axis
        if isinstance(axis, str):
            key = axis.lower()
            if key in ("rows", "row"):
                return cls.ROWS
            if key in ("cols", "col", "columns", "column"):
                return cls.COLS
        elif isinstance(axis, (int, np.integer)) and not isinstance(axis, bool):
            if axis == 0:
                return cls.ROWS
            if axis == 1:
                return cls.COLS
        raise ValueError(f"axis must be 'rows' or 'cols' (or 0/1), got {axis!r}")


def _as_assay(value: Any, options: ContainerOptions) -> AssayMatrix:
    if isinstance(value, AssayMatrix):
        return AssayMatrix.from_array(value, dtype=options.dtype)
    if isinstance(value, pd.DataFrame):
        # Frames are always copied; their blocks stay writeable in the caller
        value = value.to_numpy(copy=True)
    return AssayMatrix.from_array(value, dtype=options.dtype, copy=options.copy_on_create)


_MISSING = object()


def _lookup_key(value: Any) -> Any:
    # NaN != NaN, so missing values share one sentinel key
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return _MISSING
    return value


def _as_table(value: MetadataLike, n_expected: Optional[int]) -> MetadataTable:
    if value is None:
        return MetadataTable.empty(n_expected or 0)
    if isinstance(value, MetadataTable):
        return value
    if isinstance(value, pd.DataFrame):
        return MetadataTable.from_frame(value)
    if isinstance(value, (list, tuple)):
        return MetadataTable.create(value)
    raise TypeError(
        f"metadata must be MetadataTable, pd.DataFrame or a list of records, got {type(value)}"
    )


class AssayContainer:
    """
    Immutable bundle of assays with row and column metadata.

    Build with AssayContainer.create(); the constructor is internal and
    assumes its arguments are already validated.

    Attributes:
        assays: Read-only mapping of assay name to AssayMatrix
        row_metadata: MetadataTable with one record per row (feature)
        col_metadata: MetadataTable with one record per column (sample)
        options: ContainerOptions carried through every transformation
    """

    def __init__(
        self,
        assays: Dict[str, AssayMatrix],
        row_metadata: MetadataTable,
        col_metadata: MetadataTable,
        options: ContainerOptions = DEFAULT_OPTIONS,
    ):
        self._assays = assays
        self._row_metadata = row_metadata
        self._col_metadata = col_metadata
        self._options = options

    @classmethod
    def create(
        cls,
        assays: Optional[Mapping[str, Any]] = None,
        row_meta: MetadataLike = None,
        col_meta: MetadataLike = None,
        options: Optional[ContainerOptions] = None,
    ) -> AssayContainer:
        """
        Validate inputs and build a container.

        Args:
            assays: Mapping of name to AssayMatrix or 2-D array-like. May be
                empty, in which case the shape comes from the metadata tables.
            row_meta: Row annotations (MetadataTable, DataFrame or list of
                records). None means no row fields.
            col_meta: Column annotations, same forms as row_meta
            options: ContainerOptions (defaults to DEFAULT_OPTIONS)

        Returns:
            New AssayContainer

        Raises:
            TypeError: If an argument has the wrong kind
            ShapeError: If assays disagree in shape, or an assay's row/column
                count does not match the row/column metadata length

        Examples:
            >>> AssayContainer.create(
            ...     assays={"counts": np.zeros((5, 2))},
            ...     row_meta=[{"id": f"g{i}"} for i in range(4)],
            ... )
            Traceback (most recent call last):
            ...
            ShapeError: assay 'counts' has 5 rows but row metadata has 4 records
        """
        options = options or DEFAULT_OPTIONS
        if assays is None:
            assays = {}
        if not isinstance(assays, Mapping):
            raise TypeError(f"assays must be a mapping of name to matrix, got {type(assays)}")

        matrices: Dict[str, AssayMatrix] = {}
        for name, value in assays.items():
            if not isinstance(name, str) or not name:
                raise TypeError(f"assay names must be non-empty strings, got {name!r}")
            matrices[name] = _as_assay(value, options)

        shapes = {name: m.shape for name, m in matrices.items()}
        if len(set(shapes.values())) > 1:
            raise ShapeError(f"assays disagree in shape: {shapes}")
        shape = next(iter(shapes.values())) if shapes else None

        row_table = _as_table(row_meta, shape[0] if shape else None)
        col_table = _as_table(col_meta, shape[1] if shape else None)

        for name, (n_rows, n_cols) in shapes.items():
            if n_rows != len(row_table):
                raise ShapeError(
                    f"assay {name!r} has {n_rows} rows but row metadata has "
                    f"{len(row_table)} records"
                )
            if n_cols != len(col_table):
                raise ShapeError(
                    f"assay {name!r} has {n_cols} columns but column metadata has "
                    f"{len(col_table)} records"
                )

        container = cls(matrices, row_table, col_table, options)
        logger.debug(f"Created {container.n_rows} × {container.n_cols} container "
                     f"with assays {list(matrices)}")
        return container

    @property
    def assays(self) -> Mapping[str, AssayMatrix]:
        return MappingProxyType(self._assays)

    @property
    def assay_names(self) -> List[str]:
        return list(self._assays)

    @property
    def row_metadata(self) -> MetadataTable:
        """Annotations for rows (features)."""
        return self._row_metadata

    @property
    def col_metadata(self) -> MetadataTable:
        """Annotations for columns (samples)."""
        return self._col_metadata

    @property
    def options(self) -> ContainerOptions:
        return self._options

    @property
    def shape(self) -> tuple[int, int]:
        """Container dimensions (n_rows, n_cols)."""
        return len(self._row_metadata), len(self._col_metadata)

    @property
    def n_rows(self) -> int:
        return len(self._row_metadata)

    @property
    def n_cols(self) -> int:
        return len(self._col_metadata)

    def assay(self, name: Optional[str] = None) -> AssayMatrix:
        """
        Look up an assay by name.

        Without a name, returns options.default_assay if present, otherwise
        the first assay.

        Raises:
            KeyError: If the assay does not exist or the container has none
        """
        if not self._assays:
            raise KeyError("container holds no assays")
        if name is None:
            default = self._options.default_assay
            name = default if default in self._assays else next(iter(self._assays))
        if name not in self._assays:
            raise KeyError(f"unknown assay {name!r}; available: {self.assay_names}")
        return self._assays[name]

    def _table(self, axis: Axis) -> MetadataTable:
        return self._row_metadata if axis is Axis.ROWS else self._col_metadata

    def _derive(
        self,
        rows: Optional[np.ndarray] = None,
        cols: Optional[np.ndarray] = None,
        row_table: Optional[MetadataTable] = None,
        col_table: Optional[MetadataTable] = None,
    ) -> AssayContainer:
        # rows/cols are validated positions; tables default to take() on them
        if row_table is None:
            row_table = self._row_metadata if rows is None else self._row_metadata.take(rows)
        if col_table is None:
            col_table = self._col_metadata if cols is None else self._col_metadata.take(cols)
        assays = {name: m._take(rows, cols) for name, m in self._assays.items()}
        return AssayContainer(assays, row_table, col_table, self._options)

    def _report_filter(self, axis: Axis, n_kept: int, n_total: int) -> None:
        pct = 100 * n_kept / n_total if n_total else 0.0
        logger.info(f"Filter on {axis.value} kept {n_kept}/{n_total} ({pct:.1f}%)")
        if n_kept == 0 and n_total > 0 and self._options.warn_on_empty:
            warnings.warn(
                f"Filter on {axis.value} matched nothing; result has 0 {axis.value}",
                UserWarning,
                stacklevel=3,
            )

    def subset_rows(self, indices: PositionLike) -> AssayContainer:
        """
        Keep the rows at the given positions, in the given order.

        Every assay and the row metadata are cut together. Repeats and
        arbitrary order are allowed.

        Raises:
            IndexError: If any position is out of bounds (nothing is sliced)

        Examples:
            >>> se.subset_rows([2, 0]).row_metadata.column("id").tolist()
            ['g3', 'g1']
        """
        positions = as_positions(indices, self.n_rows, axis="row")
        logger.debug(f"Subsetting rows: {self.n_rows} -> {len(positions)}")
        return self._derive(rows=positions)

    def subset_cols(self, indices: PositionLike) -> AssayContainer:
        """
        Keep the columns at the given positions, in the given order.

        An empty list gives a container with zero columns and every assay
        becoming R × 0.

        Raises:
            IndexError: If any position is out of bounds (nothing is sliced)
        """
        positions = as_positions(indices, self.n_cols, axis="column")
        logger.debug(f"Subsetting columns: {self.n_cols} -> {len(positions)}")
        return self._derive(cols=positions)

    def subset(
        self,
        rows: Optional[PositionLike] = None,
        cols: Optional[PositionLike] = None,
    ) -> AssayContainer:
        """
        Subset both axes in one step; None keeps an axis whole.

        Both position lists are validated before anything is sliced.

        Examples:
            >>> # First 3 genes in samples at time 0 and 8
            >>> times = se.col_metadata.column("time")
            >>> se.subset(rows=range(3), cols=np.flatnonzero(times.isin([0, 8])))
        """
        row_pos = None if rows is None else as_positions(rows, self.n_rows, axis="row")
        col_pos = None if cols is None else as_positions(cols, self.n_cols, axis="column")
        return self._derive(rows=row_pos, cols=col_pos)

    def filter_rows(self, predicate: Predicate) -> AssayContainer:
        """
        Keep the rows whose metadata record matches a predicate.

        Args:
            predicate: Callable taking a row record dict, or a boolean mask

        Returns:
            New container; no matches gives a valid container with 0 rows

        Examples:
            >>> se.filter_rows(lambda rec: rec["chrom"] == "chrX")
        """
        table, kept = self._row_metadata.select(predicate)
        self._report_filter(Axis.ROWS, len(kept), self.n_rows)
        return self._derive(rows=kept, row_table=table)

    def filter_cols(self, predicate: Predicate) -> AssayContainer:
        """Keep the columns whose metadata record matches a predicate."""
        table, kept = self._col_metadata.select(predicate)
        self._report_filter(Axis.COLS, len(kept), self.n_cols)
        return self._derive(cols=kept, col_table=table)

    def add_metadata_column(
        self,
        axis: Union[Axis, str, int],
        name: str,
        values: Any,
    ) -> AssayContainer:
        """
        Add (or replace) a metadata field on one axis.

        Args:
            axis: Axis.ROWS / Axis.COLS or an accepted spelling ("rows", 1, ...)
            name: Field name
            values: One value per row (or column)

        Returns:
            New container with the same assays

        Raises:
            ShapeError: If len(values) differs from the axis length
            ValueError: If axis is not recognised
        """
        axis = Axis.parse(axis)
        updated = self._table(axis).with_field(name, values)
        logger.debug(f"Added {axis.value} metadata field {name!r}")
        if axis is Axis.ROWS:
            return AssayContainer(dict(self._assays), updated, self._col_metadata, self._options)
        return AssayContainer(dict(self._assays), self._row_metadata, updated, self._options)

    def with_assay(self, name: str, matrix: Any) -> AssayContainer:
        """
        Add or replace an assay.

        Raises:
            ShapeError: If the matrix shape differs from the container shape
        """
        if not isinstance(name, str) or not name:
            raise TypeError(f"assay names must be non-empty strings, got {name!r}")
        new = _as_assay(matrix, self._options)
        if new.shape != self.shape:
            raise ShapeError(
                f"assay {name!r} has shape {new.shape}, container shape is {self.shape}"
            )
        assays = dict(self._assays)
        assays[name] = new
        return AssayContainer(assays, self._row_metadata, self._col_metadata, self._options)

    def positions(
        self,
        axis: Union[Axis, str, int],
        field: str,
        values: Union[Any, Iterable[Any]],
    ) -> np.ndarray:
        """
        Positions whose metadata field takes one of the given values.

        Results follow the order of `values`; a value matching several
        records contributes all of them in their original order. Missing
        values (None, NaN, pd.NA) all match one another. Use with
        subset_rows()/subset_cols() to subset by name.

        Raises:
            KeyError: If the field does not exist or a value is not present

        Examples:
            >>> pos = se.positions("rows", "id", ["g3", "g1"])
            >>> se.subset_rows(pos)
        """
        axis = Axis.parse(axis)
        column = self._table(axis).column(field)
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            values = [values]
        values = list(values)

        lookup: Dict[Any, List[int]] = {}
        for pos, value in enumerate(column.tolist()):
            lookup.setdefault(_lookup_key(value), []).append(pos)

        missing = [v for v in values if _lookup_key(v) not in lookup]
        if missing:
            raise KeyError(f"values not found in {axis.value} field {field!r}: {missing}")

        result: List[int] = []
        for value in values:
            result.extend(lookup[_lookup_key(value)])
        return np.asarray(result, dtype=np.int64)

    def to_long_frame(self, assay: Optional[str] = None) -> pd.DataFrame:
        """
        Reshape one assay into a long table joined with both metadata tables.

        One output row per (row, col) cell, row-major. Columns: "row", "col",
        "value", then row fields prefixed "row_" and column fields prefixed
        "col_".

        Raises:
            KeyError: If the assay does not exist
        """
        matrix = self.assay(assay)
        n_rows, n_cols = matrix.shape
        row_idx = np.repeat(np.arange(n_rows), n_cols)
        col_idx = np.tile(np.arange(n_cols), n_rows)

        cells = pd.DataFrame({
            "row": row_idx,
            "col": col_idx,
            "value": matrix.values.ravel().copy(),
        })
        row_fields = self._row_metadata.to_frame().add_prefix("row_")
        col_fields = self._col_metadata.to_frame().add_prefix("col_")
        return pd.concat(
            [
                cells,
                row_fields.iloc[row_idx].reset_index(drop=True),
                col_fields.iloc[col_idx].reset_index(drop=True),
            ],
            axis=1,
        )

    def equals(self, other: object) -> bool:
        """Same assays (names, order, values) and equal metadata tables."""
        if not isinstance(other, AssayContainer):
            return False
        return (
            self.assay_names == other.assay_names
            and all(self._assays[n] == other._assays[n] for n in self._assays)
            and self._row_metadata.equals(other._row_metadata)
            and self._col_metadata.equals(other._col_metadata)
        )

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"AssayContainer({self.n_rows} rows × {self.n_cols} cols)\n"
            f"  Assays: {self.assay_names}\n"
            f"  Row fields: {self._row_metadata.fields}\n"
            f"  Column fields: {self._col_metadata.fields}"
        )
