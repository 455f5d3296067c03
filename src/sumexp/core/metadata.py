"""
Metadata tables aligned by position to one axis of an assay.

A MetadataTable is an ordered sequence of records sharing a fixed set of named
fields. Row order is significant: record i describes row (or column) i of every
assay in the owning container.

Biological Context:
    Side tables are what make a bare count matrix interpretable:
    - Row metadata: gene symbol, chromosome, biotype, ...
    - Column metadata: sample, tissue, infection time, sex, ...

    In the tidy-data view, filtering samples by "time == 8" is a predicate over
    column metadata, and the matrix must follow along.

Engineering Design:
    - Backed by a pandas DataFrame with a RangeIndex (labels are fields, not keys)
    - Immutable by convention: every operation returns a new table
    - Lazy selection: select()/take() record the kept positions and only build
      the sub-frame on first access; chained selections compose positions
    - Field types summarised as FieldType (numeric, text, boolean, categorical)

Examples:
    >>> from sumexp.core.metadata import MetadataTable
    >>> genes = MetadataTable.create([
    ...     {"id": "g1", "chrom": "chr1"},
    ...     {"id": "g2", "chrom": "chrX"},
    ... ])
    >>> autosomal, kept = genes.select(lambda rec: rec["chrom"] != "chrX")
    >>> kept
    array([0])
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from sumexp.core._indexing import PositionLike, as_positions
from sumexp.core.exceptions import ShapeError

__all__ = ['MetadataTable', 'FieldType', 'Predicate']

Predicate = Union[Callable[[Dict[str, Any]], Any], np.ndarray, pd.Series, Sequence[bool]]


class FieldType(str, Enum):
    """Kind of values held by a metadata field."""
    NUMERIC = "numeric"
    TEXT = "text"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"


def _field_type(series: pd.Series) -> FieldType:
    dtype = series.dtype
    if isinstance(dtype, pd.CategoricalDtype):
        return FieldType.CATEGORICAL
    if pd.api.types.is_bool_dtype(dtype):
        return FieldType.BOOLEAN
    if pd.api.types.is_numeric_dtype(dtype):
        return FieldType.NUMERIC
    return FieldType.TEXT


class MetadataTable:
    """
    Ordered records with a fixed set of named fields.

    Construct with create() (from records), from_frame() or empty(); the
    constructor itself is internal and takes ownership of the frame it is
    given.

    Attributes:
        fields: Field names in column order
        field_types: Mapping of field name to FieldType

    Invariants:
        - Every record has exactly the fields in `fields`
        - len(table) is the number of records, even when there are no fields
    """

    def __init__(self, frame: pd.DataFrame, positions: Optional[np.ndarray] = None):
        self._source = frame
        self._positions = positions
        self._frame: Optional[pd.DataFrame] = frame if positions is None else None
        self._length = len(frame) if positions is None else len(positions)

    @classmethod
    def create(cls, records: Sequence[Mapping[str, Any]]) -> MetadataTable:
        """
        Build a table from a sequence of records.

        Args:
            records: Mappings that all share the same keys

        Returns:
            New MetadataTable; an empty sequence gives an empty table

        Raises:
            TypeError: If a record is not a mapping
            ShapeError: If records have inconsistent field sets

        Examples:
            >>> MetadataTable.create([{"s": "a"}, {"s": "b"}]).fields
            ['s']
            >>> MetadataTable.create([{"s": "a"}, {"t": "b"}])
            Traceback (most recent call last):
            ...
            ShapeError: record 1 fields differ from record 0: missing ['s'], unexpected ['t']
        """
        records = list(records)
        for i, rec in enumerate(records):
            if not isinstance(rec, Mapping):
                raise TypeError(f"record {i} must be a mapping, got {type(rec)}")
        if not records:
            return cls.empty(0)

        fields = list(records[0].keys())
        expected = set(fields)
        for i, rec in enumerate(records[1:], start=1):
            keys = set(rec.keys())
            if keys != expected:
                missing = sorted(str(k) for k in expected - keys)
                extra = sorted(str(k) for k in keys - expected)
                raise ShapeError(
                    f"record {i} fields differ from record 0: "
                    f"missing {missing}, unexpected {extra}"
                )

        if not fields:
            return cls.empty(len(records))
        return cls(pd.DataFrame.from_records(records, columns=fields))

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> MetadataTable:
        """
        Wrap a DataFrame; columns become fields, the index is discarded.

        Raises:
            TypeError: If frame is not a DataFrame
            ValueError: If column names are duplicated
        """
        if not isinstance(frame, pd.DataFrame):
            raise TypeError(f"frame must be pd.DataFrame, got {type(frame)}")
        if frame.columns.duplicated().any():
            dupes = list(frame.columns[frame.columns.duplicated()])
            raise ValueError(f"duplicate field names: {dupes}")
        return cls(frame.reset_index(drop=True).copy())

    @classmethod
    def empty(cls, n_records: int) -> MetadataTable:
        """Table of n_records records with no fields."""
        if n_records < 0:
            raise ShapeError(f"n_records must be non-negative, got {n_records}")
        return cls(pd.DataFrame(index=pd.RangeIndex(n_records)))

    def _materialize(self) -> pd.DataFrame:
        if self._frame is None:
            self._frame = self._source.iloc[self._positions].reset_index(drop=True)
        return self._frame

    def _view(self, positions: np.ndarray) -> MetadataTable:
        # Compose with a pending selection instead of materializing it
        if self._frame is None:
            return MetadataTable(self._source, self._positions[positions])
        return MetadataTable(self._frame, positions)

    @property
    def is_materialized(self) -> bool:
        """Whether the underlying frame has been built."""
        return self._frame is not None

    @property
    def fields(self) -> List[str]:
        return list(self._source.columns)

    @property
    def field_types(self) -> Dict[str, FieldType]:
        frame = self._source
        return {name: _field_type(frame[name]) for name in frame.columns}

    def __len__(self) -> int:
        return self._length

    def column(self, name: str) -> pd.Series:
        """
        Values of one field, in record order.

        Raises:
            KeyError: If the field does not exist
        """
        if name not in self._source.columns:
            raise KeyError(f"unknown field {name!r}; available: {self.fields}")
        return self._materialize()[name].copy()

    def record(self, i: int) -> Dict[str, Any]:
        """Record at position i as a dict."""
        if not 0 <= i < len(self):
            raise IndexError(f"record index {i} out of range for table of length {len(self)}")
        if not self.fields:
            return {}
        return self._materialize().iloc[[i]].to_dict(orient="records")[0]

    def records(self) -> List[Dict[str, Any]]:
        """All records as a list of dicts, in order."""
        # to_dict() yields no rows at all for a field-less frame
        if not self.fields:
            return [{} for _ in range(len(self))]
        return self._materialize().to_dict(orient="records")

    def to_frame(self) -> pd.DataFrame:
        """Copy of the table as a DataFrame with a RangeIndex."""
        return self._materialize().copy()

    def select(self, predicate: Predicate) -> Tuple[MetadataTable, np.ndarray]:
        """
        Keep the records matching a predicate.

        Args:
            predicate: Callable taking a record dict and returning a truthy
                value, or a boolean mask of length len(self). A Series mask is
                used by position; its index is ignored.

        Returns:
            (table, kept_indices): a lazy view of the kept records and their
            int64 positions in original order

        Raises:
            ShapeError: If a mask has the wrong length
            TypeError: If a mask is not boolean

        Examples:
            >>> samples = MetadataTable.create([{"time": 0}, {"time": 8}, {"time": 0}])
            >>> t0, kept = samples.select(lambda rec: rec["time"] == 0)
            >>> kept
            array([0, 2])
        """
        if callable(predicate):
            mask = np.fromiter(
                (bool(predicate(rec)) for rec in self.records()),
                dtype=bool,
                count=len(self),
            )
        else:
            if isinstance(predicate, pd.Series):
                predicate = predicate.to_numpy()
            mask = np.asarray(predicate)
            if mask.ndim != 1 or len(mask) != len(self):
                raise ShapeError(
                    f"mask length ({len(mask) if mask.ndim == 1 else mask.shape}) "
                    f"must match table length ({len(self)})"
                )
            if mask.size and mask.dtype != bool:
                raise TypeError(f"mask must be boolean, got dtype {mask.dtype}")

        kept = np.flatnonzero(mask).astype(np.int64)
        return self._view(kept), kept

    def take(self, positions: PositionLike) -> MetadataTable:
        """
        Records at the given positions, in the given order (repeats allowed).

        Raises:
            IndexError: If a position is outside [0, len(self))
        """
        return self._view(as_positions(positions, len(self), axis="record"))

    def with_field(self, name: str, values: Any) -> MetadataTable:
        """
        Table with an added (or replaced) field.

        Args:
            name: Field name
            values: One value per record; Series/Index values are used by
                position and keep extension dtypes such as categorical

        Raises:
            ShapeError: If the number of values differs from len(self)
        """
        if isinstance(values, (str, bytes)):
            raise ShapeError(f"values for field {name!r} must be a sequence, got {type(values)}")
        if isinstance(values, (pd.Series, pd.Index)):
            values = values.array
        elif not hasattr(values, "__len__"):
            values = list(values)
        try:
            ndim = np.ndim(values)
        except ValueError as e:
            raise ShapeError(f"values for field {name!r} must be 1-D: {e}")
        if ndim != 1:
            raise ShapeError(f"values for field {name!r} must be 1-D, got {ndim}-D")
        if len(values) != len(self):
            raise ShapeError(
                f"values length ({len(values)}) must match table length ({len(self)})"
            )

        frame = self._materialize().copy()
        frame[name] = values
        return MetadataTable(frame)

    def equals(self, other: object) -> bool:
        """Same fields, dtypes and values, in the same order."""
        if not isinstance(other, MetadataTable):
            return False
        return self._materialize().equals(other._materialize())

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MetadataTable({len(self)} records; fields: {self.fields})"
