"""
Composable, immutable transformations over assay containers.

A Transform takes a container and returns a new one; the input is never
modified. Concrete transforms here wrap the container's own operations so a
sequence of steps can be recorded, validated and replayed as a Pipeline.

Biological Context:
    Preparing an experiment for analysis is a chain of small decisions:
    1. Drop samples failing QC (column filter on sample metadata)
    2. Keep protein-coding genes (row filter on feature metadata)
    3. Annotate samples with derived labels (e.g. infected vs. control)

    Each step must be:
    - Reproducible (same input -> same output)
    - Auditable (name + parameters logged)
    - Side-effect free (the original container is still available)

Engineering Design:
    Pure Functions:
        - No side effects (don't modify inputs)
        - Deterministic (same input + params -> same output)
        - Composable (Pipeline chains transformations)

Examples:
    >>> from sumexp.core.transform import ColumnFilter, RowFilter, Pipeline
    >>>
    >>> prep = Pipeline([
    ...     ColumnFilter(lambda rec: rec["time"] in (0, 8), label="time in {0, 8}"),
    ...     RowFilter(lambda rec: rec["gene_biotype"] == "protein_coding"),
    ... ])
    >>> prepared = prep.apply(container)
    >>> # container is unchanged
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from sumexp.core.container import AssayContainer, Axis
from sumexp.core.metadata import Predicate

logger = logging.getLogger(__name__)

__all__ = ['Transform', 'RowFilter', 'ColumnFilter', 'AddAnnotation', 'Pipeline']


class Transform(ABC):
    """
    Abstract base class for container transformations.

    Attributes:
        name: Human-readable transformation name (e.g., "RowFilter")
        params: Dictionary of parameters used for this transformation
        timestamp: When this transform instance was created (for audit trail)

    Examples:
        >>> class DropAssay(Transform):
        ...     def __init__(self, assay: str):
        ...         super().__init__(name="DropAssay", params={"assay": assay})
        ...         self.assay = assay
        ...
        ...     def apply(self, container):
        ...         keep = {n: m for n, m in container.assays.items() if n != self.assay}
        ...         return AssayContainer.create(keep, container.row_metadata,
        ...                                      container.col_metadata, container.options)
    """

    def __init__(self, name: str, params: Dict[str, Any]) -> None:
        self.name = name
        self.params = params
        self.timestamp = datetime.now()

    @abstractmethod
    def apply(self, container: AssayContainer) -> AssayContainer:
        """
        Execute transformation and return a new container.

        Must never modify the input container.
        """

    def validate(self, container: AssayContainer) -> List[str]:
        """
        Check preconditions before applying transformation.

        Subclasses should override and call super().validate() first.

        Returns:
            List of error messages (empty list = valid)
        """
        errors: List[str] = []

        if not isinstance(container, AssayContainer):
            errors.append(f"Expected AssayContainer, got {type(container).__name__}")

        return errors

    def __repr__(self) -> str:
        """
        String representation for logging and debugging.

        Examples:
            >>> print(RowFilter(lambda rec: rec["keep"], label="keep"))
            RowFilter(predicate=keep)
        """
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"


def _describe(predicate: Predicate, label: Optional[str]) -> str:
    if label:
        return label
    if callable(predicate):
        return getattr(predicate, "__name__", type(predicate).__name__)
    return "mask"


class RowFilter(Transform):
    """
    Keep rows whose metadata record matches a predicate.

    Params:
        predicate: Callable over a row record, or a boolean mask
        label: Description used in repr/logs (lambdas have no useful name)
    """

    def __init__(self, predicate: Predicate, label: Optional[str] = None):
        super().__init__(name="RowFilter", params={"predicate": _describe(predicate, label)})
        self.predicate = predicate

    def apply(self, container: AssayContainer) -> AssayContainer:
        return container.filter_rows(self.predicate)


class ColumnFilter(Transform):
    """Keep columns whose metadata record matches a predicate."""

    def __init__(self, predicate: Predicate, label: Optional[str] = None):
        super().__init__(name="ColumnFilter", params={"predicate": _describe(predicate, label)})
        self.predicate = predicate

    def apply(self, container: AssayContainer) -> AssayContainer:
        return container.filter_cols(self.predicate)


class AddAnnotation(Transform):
    """
    Add a metadata field to one axis.

    Params:
        axis: "rows" or "cols" (any spelling accepted by Axis.parse)
        field: Field name
        values: One value per row/column of the container it is applied to
    """

    def __init__(self, axis: Union[Axis, str, int], field: str, values: Sequence[Any]):
        self.axis = Axis.parse(axis)
        super().__init__(
            name="AddAnnotation",
            params={"axis": self.axis.value, "field": field, "n_values": len(values)},
        )
        self.field = field
        self.values = values

    def validate(self, container: AssayContainer) -> List[str]:
        errors = super().validate(container)
        if errors:
            return errors

        expected = container.n_rows if self.axis is Axis.ROWS else container.n_cols
        if len(self.values) != expected:
            errors.append(
                f"{len(self.values)} values for {self.axis.value} field "
                f"{self.field!r}, container has {expected}"
            )
        return errors

    def apply(self, container: AssayContainer) -> AssayContainer:
        return container.add_metadata_column(self.axis, self.field, self.values)


class Pipeline(Transform):
    """
    Ordered sequence of transforms applied one after another.

    validate() can only check the first step against the input, since later
    steps see containers that do not exist yet; apply() validates every step
    against the container it actually receives.
    """

    def __init__(self, steps: Sequence[Transform]):
        steps = list(steps)
        for step in steps:
            if not isinstance(step, Transform):
                raise TypeError(f"pipeline steps must be Transform, got {type(step)}")
        super().__init__(name="Pipeline", params={"steps": " -> ".join(str(s) for s in steps)})
        self.steps = steps

    def validate(self, container: AssayContainer) -> List[str]:
        errors = super().validate(container)
        if not errors and self.steps:
            errors.extend(self.steps[0].validate(container))
        return errors

    def apply(self, container: AssayContainer) -> AssayContainer:
        result = container
        for i, step in enumerate(self.steps):
            errors = step.validate(result)
            if errors:
                raise ValueError(f"Step {i} ({step}) cannot be applied: " + "; ".join(errors))
            before = result.shape
            result = step.apply(result)
            logger.info(f"Applied {step}: {before} -> {result.shape}")
        return result
