"""
Pytest configuration and shared fixtures.

Provides synthetic experiments shaped like the course dataset: genes as rows,
mouse samples as columns with infection/time/sex annotations.
"""

import numpy as np
import pandas as pd
import pytest

from sumexp.core.container import AssayContainer
from sumexp.core.metadata import MetadataTable


def generate_synthetic_experiment(
    n_genes: int,
    n_samples: int,
    with_logcounts: bool = True,
    seed: int = 42,
) -> AssayContainer:
    """
    Generate a synthetic count experiment with realistic annotations.

    Args:
        n_genes: Number of genes (rows)
        n_samples: Number of samples (columns)
        with_logcounts: Also store a log2(counts + 1) assay
        seed: Random seed for reproducibility

    Returns:
        AssayContainer with "counts" (and optionally "logcounts")

    Design:
        - Negative binomial counts (realistic for RNA-seq)
        - Every 10th gene on chrX, the rest spread over chr1..chr5
        - Samples cycle through time points 0, 4, 8 and alternate sex
    """
    rng = np.random.RandomState(seed)
    counts = rng.negative_binomial(n=5, p=0.01, size=(n_genes, n_samples)).astype(float)

    genes = pd.DataFrame({
        "gene": [f"Gene{i:04d}" for i in range(n_genes)],
        "chromosome": ["X" if i % 10 == 0 else str(1 + i % 5) for i in range(n_genes)],
        "length": rng.randint(500, 5000, size=n_genes),
    })
    samples = pd.DataFrame({
        "sample": [f"GSM{2545336 + j}" for j in range(n_samples)],
        "time": [(0, 4, 8)[j % 3] for j in range(n_samples)],
        "sex": pd.Categorical(["Female" if j % 2 == 0 else "Male" for j in range(n_samples)]),
        "infected": [j % 3 != 0 for j in range(n_samples)],
    })

    assays = {"counts": counts}
    if with_logcounts:
        assays["logcounts"] = np.log2(counts + 1)

    return AssayContainer.create(
        assays=assays,
        row_meta=MetadataTable.from_frame(genes),
        col_meta=MetadataTable.from_frame(samples),
    )


@pytest.fixture
def small_experiment():
    """Small experiment (50 genes x 12 samples) for fast unit tests."""
    return generate_synthetic_experiment(n_genes=50, n_samples=12, seed=42)


@pytest.fixture
def toy_container():
    """3 x 2 container: [[1, 2], [3, 4], [5, 6]], genes g1..g3, samples a/b."""
    return AssayContainer.create(
        assays={"counts": [[1, 2], [3, 4], [5, 6]]},
        row_meta=[{"id": "g1"}, {"id": "g2"}, {"id": "g3"}],
        col_meta=[{"s": "a"}, {"s": "b"}],
    )
